"""Error taxonomy for the CarePath domain core.

Store failures (``sqlalchemy.exc``) are deliberately not part of this
hierarchy: they reach the caller unmodified.
"""

from __future__ import annotations


class CarePathError(Exception):
    """Base class for errors raised by this package."""


class UsageError(CarePathError):
    """The caller used an API out of contract."""


class TransactionStateError(UsageError):
    """Transaction control called in the wrong state.

    Raised when a transaction is started while one is already open, or when
    commit/rollback is requested with none open.
    """


class InvalidTransitionError(CarePathError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
