"""
SpiritArt Backend: User & Ledger Schemas
=========================================

What:  API contracts for the user lookup, user upsert, transaction history
       and image history endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from spiritart.models import ImageRecord, Transaction, User
from spiritart.schemas.common import CamelModel


class UserOut(CamelModel):
    """
    A user as the client app sees it: the stored columns plus every extra
    profile field flattened to the top level.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    credits: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        reserved = {"id", "credits", "createdAt", "updatedAt"}
        extras = {k: v for k, v in (user.attributes or {}).items() if k not in reserved}
        return cls(
            id=user.id,
            credits=user.credits,
            created_at=user.created_at,
            updated_at=user.updated_at,
            **extras,
        )


class UserResponse(BaseModel):
    user: UserOut


class CreateUserRequest(BaseModel):
    """
    Body of POST /api/user/create: `id` plus any profile fields.

    `id` is optional at the schema level so its absence becomes our own 400
    rather than a generic validation error.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None


class CreateUserResponse(BaseModel):
    success: bool = True
    user: UserOut


class TransactionOut(CamelModel):
    id: str
    user_id: str
    credits: int
    type: str
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    amount: Optional[float] = None
    image_id: Optional[str] = None
    prompt: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, transaction: Transaction) -> "TransactionOut":
        return cls.model_validate(transaction)


class TransactionListResponse(BaseModel):
    transactions: List[TransactionOut] = Field(description="Newest first")


class ImageOut(CamelModel):
    id: str
    user_id: str
    prompt: str
    enhanced_prompt: str
    image_description: str
    original_image_url: Optional[str] = None
    style: str
    detail_level: int
    image_url: str
    created_at: datetime

    @classmethod
    def from_model(cls, image: ImageRecord) -> "ImageOut":
        return cls.model_validate(image)


class ImageListResponse(BaseModel):
    images: List[ImageOut] = Field(description="Newest first")
