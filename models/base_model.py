"""
Declarative base and the mixin shared by every Budget API table.

Each row gets a string UUID key and created_at / updated_at stamped by the
database. save() and delete() go through the DBStorage singleton.

SQLite hands back naive datetimes even for DateTime(timezone=True) columns;
as_utc() normalizes them before comparing with utc_now().
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# models.storage is created in models/__init__.py
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid_str() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseModel:
    """Columns and persistence helpers inherited by every model."""

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """Set columns from kwargs; the id is assigned up front so callers can use it before flush."""
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def save(self):
        """Persist the instance and commit through DBStorage."""
        self.updated_at = utc_now()
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """Mark the row for deletion; committing is up to the caller."""
        models.storage.delete(self)
