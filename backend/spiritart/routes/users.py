"""
SpiritArt Backend: User Routes
===============================

    GET  /api/user/{user_id}                → {user}            (404 if unknown)
    POST /api/user/create                   → {success, user}   (400 without id)
    GET  /api/user/{user_id}/transactions   → {transactions}    newest first
    GET  /api/user/{user_id}/images         → {images}          newest first

The history endpoints return an empty list for an unknown user rather than a
404; they are plain queries over the append-only tables.
"""

import logging

from fastapi import APIRouter, Depends

from spiritart.dependencies import get_ledger_store
from spiritart.exceptions import MissingFieldError, UserNotFoundError
from spiritart.schemas.common import ErrorResponse
from spiritart.schemas.user import (
    CreateUserRequest,
    CreateUserResponse,
    ImageListResponse,
    ImageOut,
    TransactionListResponse,
    TransactionOut,
    UserOut,
    UserResponse,
)
from spiritart.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user and their credit balance",
)
async def get_user(user_id: str, store: LedgerStore = Depends(get_ledger_store)) -> UserResponse:
    user = await store.get_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return UserResponse(user=UserOut.from_model(user))


@router.post(
    "/create",
    response_model=CreateUserResponse,
    responses={400: {"description": "Missing user id", "model": ErrorResponse}},
    summary="Create or update a user",
)
async def create_user(
    payload: CreateUserRequest,
    store: LedgerStore = Depends(get_ledger_store),
) -> CreateUserResponse:
    """
    Upsert a user. Any fields besides `id` and `credits` are stored on the
    user as-is and returned flattened alongside the balance.
    """
    if not payload.id:
        raise MissingFieldError("id", "User ID")
    user = await store.create_or_update_user(payload.model_dump())
    return CreateUserResponse(success=True, user=UserOut.from_model(user))


@router.get(
    "/{user_id}/transactions",
    response_model=TransactionListResponse,
    response_model_exclude_none=True,
    summary="List a user's credit transactions",
)
async def list_transactions(
    user_id: str,
    store: LedgerStore = Depends(get_ledger_store),
) -> TransactionListResponse:
    transactions = await store.list_transactions_for_user(user_id)
    return TransactionListResponse(
        transactions=[TransactionOut.from_model(t) for t in transactions]
    )


@router.get(
    "/{user_id}/images",
    response_model=ImageListResponse,
    response_model_exclude_none=True,
    summary="List a user's generated images",
)
async def list_images(
    user_id: str,
    store: LedgerStore = Depends(get_ledger_store),
) -> ImageListResponse:
    images = await store.list_images_for_user(user_id)
    return ImageListResponse(images=[ImageOut.from_model(i) for i in images])
