"""
SpiritArt Backend: Payment Routes
==================================

    POST /api/create-order    {price, userId, credits}  → {id, amount, currency, key}
    POST /api/verify-payment  {razorpay_order_id, razorpay_payment_id,
                               razorpay_signature, credits, userId, amount?}
                                                        → {success, credits}
"""

import logging

from fastapi import APIRouter, Depends

from spiritart.dependencies import get_payment_service
from spiritart.schemas.common import ErrorResponse
from spiritart.schemas.payment import (
    CreateOrderRequest,
    OrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from spiritart.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Payments"])


@router.post(
    "/create-order",
    response_model=OrderResponse,
    responses={
        400: {"description": "Missing price", "model": ErrorResponse},
        500: {"description": "Payment provider error", "model": ErrorResponse},
    },
    summary="Create a Razorpay order for a credit pack",
)
async def create_order(
    payload: CreateOrderRequest,
    service: PaymentService = Depends(get_payment_service),
) -> OrderResponse:
    logger.info(
        "Create order request: user=%s credits=%s price=%s",
        payload.user_id, payload.credits, payload.price,
    )
    return await service.create_order(
        price=payload.price,
        user_id=payload.user_id,
        credits=payload.credits,
    )


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    responses={400: {"description": "Missing field or signature mismatch", "model": ErrorResponse}},
    summary="Verify a payment signature and credit the user",
)
async def verify_payment(
    payload: VerifyPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> VerifyPaymentResponse:
    return await service.verify_payment(
        order_id=payload.razorpay_order_id,
        payment_id=payload.razorpay_payment_id,
        signature=payload.razorpay_signature,
        credits=payload.credits,
        user_id=payload.user_id,
        amount=payload.amount,
    )
