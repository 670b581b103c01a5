"""
SpiritArt Backend: Payment Gateway Adapter
===========================================

What:  Thin async wrapper around the Razorpay order API.
How:   The Razorpay SDK is synchronous (it uses `requests`), so each call is
       pushed onto Starlette's threadpool to keep the event loop free.

PaymentService depends on the `PaymentGateway` interface only, which lets
tests substitute an in-memory fake without patching the SDK.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

from starlette.concurrency import run_in_threadpool

from spiritart.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """Interface for creating orders with a payment provider."""

    @abstractmethod
    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Create a provider order.

        Args:
            amount: Amount in minor currency units (paise for INR)
            currency: ISO currency code
            receipt: Merchant-side receipt reference
            notes: Free-form metadata stored with the order

        Returns:
            The provider's order object; at least `id`, `amount`, `currency`.

        Raises:
            PaymentProviderError: The provider rejected or failed the call
        """
        ...


class RazorpayGateway(PaymentGateway):
    """PaymentGateway backed by a `razorpay.Client`."""

    def __init__(self, client: Any):
        self._client = client

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Dict[str, Any],
    ) -> Dict[str, Any]:
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        try:
            order = await run_in_threadpool(self._client.order.create, data=payload)
        except Exception as e:
            # The SDK raises its own error classes and plain requests errors;
            # both carry the provider message we pass back to the client.
            logger.error("Razorpay order creation failed: %s", str(e))
            raise PaymentProviderError(
                message=str(e) or "Payment provider request failed",
                context={"receipt": receipt, "error_type": type(e).__name__},
            ) from e

        logger.info("Created Razorpay order %s (%d %s)", order.get("id"), amount, currency)
        return order
