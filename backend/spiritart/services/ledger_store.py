"""
SpiritArt Backend: User/Ledger Store
=====================================

What:  Repository over the users, images and transactions tables.
Who:   PaymentService, ImageTransformService and the user routes.
How:   One instance per request, wrapping that request's AsyncSession.
       Methods flush but never commit; `get_db_session` commits when the
       request handler returns.

Records are treated as documents: images and transactions are inserted and
never touched again, and nothing relies on foreign keys between tables.

Credit adjustment is a read-modify-write:

    balance = SELECT credits FROM users WHERE id = :id
    UPDATE users SET credits = :balance + :delta WHERE id = :id

Two concurrent requests for the same user can both read the same balance and
one update is lost. This is a known limitation; the transaction log still
records both deltas, so the balance can be rebuilt from it.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from spiritart.exceptions import DatabaseError, UserNotFoundError, ValidationError
from spiritart.models import ImageRecord, Transaction, User
from spiritart.models.user import utcnow

logger = logging.getLogger(__name__)

_USER_COLUMNS = {"id", "credits", "created_at", "createdAt", "updated_at", "updatedAt"}


class LedgerStore:
    """
    Persistence operations for users and their append-only history.

    Database driver errors are logged with their type and re-raised as
    DatabaseError so clients only ever see a generic message.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Users ─────────────────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        """Point lookup. A missing user is returned as None, not raised."""
        try:
            return await self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise self._database_error("get_user", e, user_id=user_id) from e

    async def create_or_update_user(self, data: Dict[str, Any]) -> User:
        """
        Upsert a user by `data["id"]`.

        A `credits` key sets the balance outright. Every other key except the
        timestamps is merged into the `attributes` document. `created_at` is
        only written on first insert; `updated_at` on every call.
        """
        user_id = data["id"]
        attributes = {k: v for k, v in data.items() if k not in _USER_COLUMNS}
        credits = _coerce_credits(data["credits"]) if "credits" in data else None
        now = utcnow()

        try:
            user = await self.db.get(User, user_id)
            if user is None:
                user = User(
                    id=user_id,
                    credits=credits if credits is not None else 0,
                    attributes=attributes,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(user)
                logger.info("Created user %s", user_id)
            else:
                if credits is not None:
                    user.credits = credits
                # New dict so the JSON column registers as changed
                user.attributes = {**(user.attributes or {}), **attributes}
                user.updated_at = now
                logger.info("Updated user %s", user_id)
            await self.db.flush()
            return user
        except SQLAlchemyError as e:
            raise self._database_error("create_or_update_user", e, user_id=user_id) from e

    async def adjust_credits(self, user_id: str, delta: int) -> int:
        """
        Add `delta` (may be negative) to the user's balance and return the
        new balance.

        Raises:
            UserNotFoundError: No user with this id
        """
        user = await self.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        try:
            new_balance = user.credits + delta
            user.credits = new_balance
            user.updated_at = utcnow()
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._database_error("adjust_credits", e, user_id=user_id) from e

        logger.info("Adjusted credits for %s by %+d → %d", user_id, delta, new_balance)
        return new_balance

    # ── Append-only history ───────────────────────────────────────────────

    async def append_image(self, **fields: Any) -> ImageRecord:
        """Insert an image record; the store assigns `id` and `created_at`."""
        record = ImageRecord(**fields)
        try:
            self.db.add(record)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._database_error("append_image", e, user_id=fields.get("user_id")) from e
        return record

    async def append_transaction(self, **fields: Any) -> Transaction:
        """Insert a ledger transaction; the store assigns `id` and `created_at`."""
        transaction = Transaction(**fields)
        try:
            self.db.add(transaction)
            await self.db.flush()
        except SQLAlchemyError as e:
            raise self._database_error(
                "append_transaction", e, user_id=fields.get("user_id")
            ) from e
        return transaction

    async def list_images_for_user(self, user_id: str) -> List[ImageRecord]:
        """All of a user's image records, newest first. No pagination."""
        query = (
            select(ImageRecord)
            .where(ImageRecord.user_id == user_id)
            .order_by(desc(ImageRecord.created_at))
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise self._database_error("list_images_for_user", e, user_id=user_id) from e
        return list(result.scalars().all())

    async def list_transactions_for_user(self, user_id: str) -> List[Transaction]:
        """All of a user's transactions, newest first. No pagination."""
        query = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(desc(Transaction.created_at))
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise self._database_error("list_transactions_for_user", e, user_id=user_id) from e
        return list(result.scalars().all())

    @staticmethod
    def _database_error(operation: str, error: Exception, **context: Any) -> DatabaseError:
        logger.error(
            "Database error in %s: %s", operation, str(error), exc_info=True
        )
        return DatabaseError(
            context={"operation": operation, "error_type": type(error).__name__, **context},
        )


def _coerce_credits(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("credits must be an integer", field="credits")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("credits must be an integer", field="credits")
