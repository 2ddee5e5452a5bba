#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the social media API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- save() and delete() that use DBStorage
- to_dict() that formats timestamps, removes SA internals, adds __class__

Timestamps are naive UTC and set on the Python side so rows inserted in the
same second still order correctly (SQLite CURRENT_TIMESTAMP has second precision).
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Declarative base for all models
Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at,
    save()/delete() wired to DBStorage and a to_dict() for debugging output.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        If you pass created_at/updated_at explicitly (e.g., in tests), they will be set.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        if getattr(self, "created_at", None) is None:
            self.created_at = utcnow()
        if getattr(self, "updated_at", None) is None:
            self.updated_at = self.created_at

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.__dict__}"

    def save(self):
        """Update updated_at and persist the instance using DBStorage."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """
        Hard delete the current instance using DBStorage.
        Not committed here; caller decides when to commit.
        """
        models.storage.delete(self)

    def to_dict(self) -> dict:
        """
        Return a dictionary of fields:
        - Adds __class__
        - Formats created_at / updated_at to TIME_FMT
        - Removes SQLAlchemy internal state and the password hash
        """
        d = {k: v for k, v in self.__dict__.items() if k != "_sa_instance_state"}
        if isinstance(d.get("created_at"), datetime):
            d["created_at"] = d["created_at"].strftime(TIME_FMT)
        if isinstance(d.get("updated_at"), datetime):
            d["updated_at"] = d["updated_at"].strftime(TIME_FMT)
        d["__class__"] = self.__class__.__name__
        d.pop("password_hash", None)
        return d
