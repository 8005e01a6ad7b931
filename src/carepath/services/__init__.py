"""CarePath domain services.

Only the model-independent state machines are re-exported here; entity
modules import them, so the services that load entities are imported from
their own modules.
"""

from carepath.services.state_machine import InvoiceStateMachine, ShiftStateMachine

__all__ = [
    "InvoiceStateMachine",
    "ShiftStateMachine",
]
