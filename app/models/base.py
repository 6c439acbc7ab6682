from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


def enum_column(enum_cls, **kwargs):
    """Stores enums as plain strings so SQLite and Postgres behave the same."""
    return SAEnum(enum_cls, native_enum=False, length=32, validate_strings=True, **kwargs)


class TimestampMixin:
    # Python side values, nothing has to be re-read after a flush
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow
    )


class TaxonomyMixin(TimestampMixin):
    """Columns shared by every lookup table vehicles or service centers point at."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id
    )

    name: Mapped[str] = mapped_column(
        String(120),
        index=True
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    status: Mapped[RecordStatus] = mapped_column(
        enum_column(RecordStatus),
        default=RecordStatus.ACTIVE
    )

    # Number of records currently referencing this row
    usage_count: Mapped[int] = mapped_column(
        Integer,
        default=0
    )
