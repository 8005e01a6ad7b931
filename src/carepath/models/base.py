"""Base model classes for SQLAlchemy ORM."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedAsDataclass, mapped_column

from carepath.clock import utcnow


class Base(MappedAsDataclass, DeclarativeBase, kw_only=True, eq=False):
    """Base class for all ORM models.

    Models are mapped dataclasses: constructor defaults apply at construction
    time, before anything is flushed.
    """

    type_annotation_map = {
        UUID: Uuid(as_uuid=True),
        datetime: DateTime(timezone=True),
        Decimal: Numeric(14, 4),
        str: String(),
    }


class AuditMixin(MappedAsDataclass, kw_only=True):
    """Audit fields shared by every entity.

    ``is_deleted`` is the soft-delete marker: records are retained for the
    six-year medical record retention period and never physically removed.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default_factory=uuid4)
    created_at: Mapped[datetime] = mapped_column(default_factory=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(default=None)
    created_by: Mapped[str | None] = mapped_column(String(255), default=None)
    updated_by: Mapped[str | None] = mapped_column(String(255), default=None)
    is_deleted: Mapped[bool] = mapped_column(default=False, index=True)
