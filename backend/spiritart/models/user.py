"""
SpiritArt Backend: User Model
==============================

What:  ORM model for the `users` table, one row per client-app account.
How:   The primary key is the caller-supplied user id (the client app's auth
       uid), so lookups never need a secondary index.

Lifecycle:
    1. Created by POST /api/user/create, or on the first verified payment
       for an unknown id (balance 0)
    2. `credits` changes on every purchase (+n) and transformation (-1)
    3. Never deleted

Free-form profile fields sent to POST /api/user/create (name, email, ...)
live in the `attributes` JSON column and are flattened back out when the
user is serialized.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from spiritart.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        comment="Caller-supplied user identifier",
    )

    # Not guarded by a CHECK constraint: concurrent transformations can race
    # the balance below zero (see LedgerStore.adjust_credits).
    credits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Current credit balance",
    )

    attributes: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Extra profile fields supplied by the client app",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', credits={self.credits})>"
