"""CarePath domain models."""

from carepath.models.base import AuditMixin, Base
from carepath.models.billing import Invoice, InvoiceLineItem, Payment
from carepath.models.clinical import CarePlan
from carepath.models.identity import Caregiver, CaregiverCertification, Client, User
from carepath.models.scheduling import Shift, VisitNote, VisitPhoto

__all__ = [
    "AuditMixin",
    "Base",
    # Identity
    "User",
    "Caregiver",
    "CaregiverCertification",
    "Client",
    # Clinical
    "CarePlan",
    # Scheduling
    "Shift",
    "VisitNote",
    "VisitPhoto",
    # Billing
    "Invoice",
    "InvoiceLineItem",
    "Payment",
]
