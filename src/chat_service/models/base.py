# chat_service/src/chat_service/models/base.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from ..utils.ids import ID_LENGTH, new_id

# The single declarative base for all models.
Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend, SQLite included."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SortableIDMixin:
    """Mixin to provide a time-sortable string primary key for models."""

    id = Column(
        String(ID_LENGTH),
        primary_key=True,
        default=new_id,
        nullable=False,
    )


class CreatedAtMixin:
    """Mixin to provide an immutable created_at column for models."""

    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)
