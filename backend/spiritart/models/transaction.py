"""
SpiritArt Backend: Credit Transaction Model
============================================

What:  ORM model for the `transactions` table, the append-only credit ledger.
How:   Each row records a signed credit delta and its cause:

    type                   credits   linkage
    ─────────────────────  ───────   ─────────────────────────────
    purchase               +n        order_id, payment_id, amount
    image-transformation   -1        image_id, prompt

Rows are never updated. A wrong entry would need a new offsetting entry.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from spiritart.database import Base
from spiritart.models.user import utcnow

PURCHASE = "purchase"
IMAGE_TRANSFORMATION = "image-transformation"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)

    # Purchases
    order_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    amount: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)

    # Transformations
    image_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    prompt: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("idx_transactions_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, user_id='{self.user_id}', "
            f"type='{self.type}', credits={self.credits})>"
        )
