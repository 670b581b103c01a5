"""
SpiritArt Backend: Payment Service
===================================

What:  Credit purchases: create a provider order, then verify the signed
       payment confirmation and credit the user.
Who:   POST /api/create-order and POST /api/verify-payment.

Purchase flow:
    ┌─────────┐  create-order   ┌──────────┐  checkout   ┌──────────┐
    │ Client  │────────────────▶│ Razorpay │◀───────────▶│  Client  │
    └─────────┘                 └──────────┘             └────┬─────┘
                                                              │ order id, payment id,
                                                              │ signature
                                                              ▼
                                    verify-payment: HMAC-SHA256(secret, "order|payment")
                                    match    → +credits, `purchase` transaction
                                    mismatch → 400, nothing written

The signature check is the only thing standing between a client and free
credits; nothing else about the request is trusted.
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from spiritart.exceptions import MissingFieldError, SignatureMismatchError
from spiritart.models.transaction import PURCHASE
from spiritart.schemas.payment import OrderResponse, VerifyPaymentResponse
from spiritart.services.ledger_store import LedgerStore
from spiritart.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of `order_id|payment_id` keyed with `secret`."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def to_minor_units(price: float) -> int:
    """Rupees to paise: 499 → 49900, 4.99 → 499."""
    return int(round(price * 100))


class PaymentService:
    """
    Stateless orchestration of the two purchase steps.

    Args:
        gateway: Provider adapter used to create orders
        store: Ledger store for the current request
        key_id: Public Razorpay key id, echoed to the checkout widget
        key_secret: Razorpay secret used to verify signatures
        currency: ISO currency for new orders
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        store: LedgerStore,
        key_id: str,
        key_secret: str,
        currency: str = "INR",
    ):
        self.gateway = gateway
        self.store = store
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency

    async def create_order(
        self,
        price: Optional[float],
        user_id: Optional[str],
        credits: Optional[int],
    ) -> OrderResponse:
        """
        Create a Razorpay order for a credit pack.

        The user id and credit count ride along as order notes so the
        purchase can be matched up from the Razorpay dashboard.
        """
        if price is None:
            raise MissingFieldError("price", "Price")

        amount = to_minor_units(price)
        receipt = f"receipt_order_{int(time.time() * 1000)}"
        order = await self.gateway.create_order(
            amount=amount,
            currency=self.currency,
            receipt=receipt,
            notes={"userId": user_id, "credits": credits},
        )

        return OrderResponse(
            id=order["id"],
            amount=order.get("amount", amount),
            currency=order.get("currency", self.currency),
            key=self.key_id,
        )

    async def verify_payment(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        credits: Optional[int],
        user_id: Optional[str],
        amount: Optional[float] = None,
    ) -> VerifyPaymentResponse:
        """
        Verify a checkout signature and credit the user.

        On a match the user is created (balance 0) if unknown, credited with
        `credits`, and a `purchase` transaction is appended. On a mismatch
        nothing is read or written.

        Raises:
            MissingFieldError: A required field is absent
            SignatureMismatchError: The signature does not match
        """
        if not user_id:
            raise MissingFieldError("userId", "User ID")
        if not order_id:
            raise MissingFieldError("razorpay_order_id", "Order ID")
        if not payment_id:
            raise MissingFieldError("razorpay_payment_id", "Payment ID")
        if not signature:
            raise MissingFieldError("razorpay_signature", "Payment signature")
        if credits is None:
            raise MissingFieldError("credits", "Credits")

        expected = compute_signature(order_id, payment_id, self.key_secret)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            logger.warning("Signature mismatch for order %s (user %s)", order_id, user_id)
            raise SignatureMismatchError(order_id)

        logger.info("Payment successful for order %s; adding %d credits to %s", order_id, credits, user_id)

        user = await self.store.get_user(user_id)
        if user is None:
            await self.store.create_or_update_user({"id": user_id, "credits": 0})

        balance = await self.store.adjust_credits(user_id, credits)
        await self.store.append_transaction(
            user_id=user_id,
            order_id=order_id,
            payment_id=payment_id,
            amount=amount or 0,
            credits=credits,
            type=PURCHASE,
        )

        return VerifyPaymentResponse(success=True, credits=balance)
