"""
SpiritArt Backend: Payment Schemas
===================================

What:  Request/response contracts for POST /api/create-order and
       POST /api/verify-payment.

The Razorpay checkout widget hands the client `razorpay_order_id`,
`razorpay_payment_id` and `razorpay_signature` in snake_case, so those keep
their names while our own fields use camelCase.

Every request field is optional at the schema level; PaymentService checks
presence and raises MissingFieldError so all missing-field responses share
one 400 shape.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price: Optional[float] = Field(default=None, gt=0, description="Amount in major units (rupees)")
    user_id: Optional[str] = Field(default=None, alias="userId")
    credits: Optional[int] = Field(default=None, ge=0)


class OrderResponse(BaseModel):
    id: str = Field(description="Razorpay order id")
    amount: int = Field(description="Amount in minor units (paise)")
    currency: str
    key: str = Field(description="Public Razorpay key id for the checkout widget")


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=0)
    user_id: Optional[str] = Field(default=None, alias="userId")
    amount: Optional[float] = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    credits: int = Field(description="Balance after the purchase was credited")
