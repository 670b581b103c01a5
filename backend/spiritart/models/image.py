"""
SpiritArt Backend: Image Record Model
======================================

What:  ORM model for the `images` table: one row per successful
       transformation, written after the credit has been deducted.
Who:   Written by ImageTransformService; read by GET /api/user/{id}/images.

Rows are append-only. `image_url` points at the provider-hosted result and
`original_image_url` at the temporary copy of the upload, which expires a
minute after the request, so neither URL is durable.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from spiritart.database import Base
from spiritart.models.user import utcnow


class ImageRecord(Base):
    __tablename__ = "images"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # What the user typed (or the default instruction) vs. what the image
    # model actually received.
    prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    enhanced_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    original_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    style: Mapped[str] = mapped_column(String(64), nullable=False)
    detail_level: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("idx_images_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ImageRecord(id={self.id}, user_id='{self.user_id}', style='{self.style}')>"
