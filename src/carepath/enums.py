"""Enumerated domains shared by entities, state machines and services."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Role of a platform user."""

    ADMIN = "admin"
    COORDINATOR = "coordinator"
    CAREGIVER = "caregiver"
    CLIENT = "client"
    FACILITY_MANAGER = "facility_manager"


class EmploymentType(str, Enum):
    """How a caregiver is engaged."""

    W2_EMPLOYEE = "w2_employee"
    CONTRACTOR_1099 = "contractor_1099"


class ServiceType(str, Enum):
    """Line of business a client or shift belongs to."""

    IN_HOME_CARE = "in_home_care"
    FACILITY_STAFFING = "facility_staffing"


class ShiftStatus(str, Enum):
    """Shift lifecycle status values."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class InvoiceStatus(str, Enum):
    """Invoice status values."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    PARTIALLY_PAID = "partially_paid"


class PaymentStatus(str, Enum):
    """Payment settlement status. Only SETTLED counts toward amount paid."""

    PENDING = "pending"
    SETTLED = "settled"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """How a payment was tendered."""

    CASH = "cash"
    CHECK = "check"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    INSURANCE = "insurance"
    MEDICAID = "medicaid"


class CertificationType(str, Enum):
    """Caregiver credential types."""

    CNA = "cna"
    LPN = "lpn"
    RN = "rn"
    HHA = "hha"
    CPR = "cpr"
    FIRST_AID = "first_aid"
    DEMENTIA = "dementia"
    ALZHEIMERS = "alzheimers"
    GNA = "gna"
    CRMA = "crma"


# Credentials issued by a licensing board; these carry a license number and
# an issuing authority.
BOARD_CREDENTIAL_TYPES = frozenset(
    {
        CertificationType.CNA,
        CertificationType.LPN,
        CertificationType.RN,
        CertificationType.HHA,
        CertificationType.GNA,
        CertificationType.CRMA,
    }
)
