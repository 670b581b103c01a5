"""
SpiritArt Backend: Payment Service Tests
=========================================

What we test:
    ✅ Order amount is price × 100 in INR, with notes for correlation
    ✅ A correctly signed payment credits the user and logs a purchase
    ✅ Unknown users are created with a zero balance before crediting
    ✅ Any single-character change to the signature is rejected with no writes
    ✅ Missing fields are rejected before the signature is checked
    ✅ Gateway failures surface as PaymentProviderError
"""

import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock

import pytest

from spiritart.exceptions import MissingFieldError, PaymentProviderError, SignatureMismatchError
from spiritart.models.transaction import PURCHASE
from spiritart.services.payment_gateway import RazorpayGateway
from spiritart.services.payment_service import PaymentService, compute_signature, to_minor_units

SECRET = "test_secret"


def sign(order_id: str, payment_id: str, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def service(fake_gateway, ledger_store):
    return PaymentService(
        gateway=fake_gateway,
        store=ledger_store,
        key_id="rzp_test_key",
        key_secret=SECRET,
        currency="INR",
    )


class TestSignature:

    def test_matches_reference_hmac(self):
        assert compute_signature("order_1", "pay_1", SECRET) == sign("order_1", "pay_1")

    def test_lowercase_hex(self):
        signature = compute_signature("order_1", "pay_1", SECRET)
        assert len(signature) == 64
        assert signature == signature.lower()

    def test_depends_on_every_input(self):
        base = compute_signature("order_1", "pay_1", SECRET)
        assert compute_signature("order_2", "pay_1", SECRET) != base
        assert compute_signature("order_1", "pay_2", SECRET) != base
        assert compute_signature("order_1", "pay_1", "other") != base


class TestCreateOrder:

    @pytest.mark.parametrize("price, expected", [(499, 49900), (4.99, 499), (0.1, 10)])
    def test_minor_units(self, price, expected):
        assert to_minor_units(price) == expected

    async def test_creates_inr_order(self, service, fake_gateway):
        order = await service.create_order(price=499, user_id="u1", credits=10)

        assert order.id == "order_test123"
        assert order.amount == 49900
        assert order.currency == "INR"
        assert order.key == "rzp_test_key"

        kwargs = fake_gateway.create_order.await_args.kwargs
        assert kwargs["amount"] == 49900
        assert kwargs["currency"] == "INR"
        assert kwargs["notes"] == {"userId": "u1", "credits": 10}
        assert kwargs["receipt"].startswith("receipt_order_")

    async def test_missing_price(self, service, fake_gateway):
        with pytest.raises(MissingFieldError):
            await service.create_order(price=None, user_id="u1", credits=10)
        fake_gateway.create_order.assert_not_awaited()


class TestVerifyPayment:

    async def test_valid_signature_credits_existing_user(self, service, ledger_store):
        await ledger_store.create_or_update_user({"id": "u1", "credits": 2})

        result = await service.verify_payment(
            order_id="order_1",
            payment_id="pay_1",
            signature=sign("order_1", "pay_1"),
            credits=10,
            user_id="u1",
            amount=499,
        )

        assert result.success is True
        assert result.credits == 12

        [transaction] = await ledger_store.list_transactions_for_user("u1")
        assert transaction.type == PURCHASE
        assert transaction.credits == 10
        assert transaction.order_id == "order_1"
        assert transaction.payment_id == "pay_1"
        assert transaction.amount == 499

    async def test_unknown_user_created_then_credited(self, service, ledger_store):
        result = await service.verify_payment(
            order_id="order_1",
            payment_id="pay_1",
            signature=sign("order_1", "pay_1"),
            credits=5,
            user_id="new-user",
        )

        assert result.credits == 5
        user = await ledger_store.get_user("new-user")
        assert user.credits == 5

        [transaction] = await ledger_store.list_transactions_for_user("new-user")
        assert transaction.amount == 0

    @pytest.mark.parametrize("position", [0, 17, 63])
    async def test_mutated_signature_rejected_without_writes(self, service, ledger_store, position):
        await ledger_store.create_or_update_user({"id": "u1", "credits": 2})
        good = sign("order_1", "pay_1")
        flipped = "0" if good[position] != "0" else "1"
        bad = good[:position] + flipped + good[position + 1:]

        with pytest.raises(SignatureMismatchError, match="Payment verification failed"):
            await service.verify_payment(
                order_id="order_1",
                payment_id="pay_1",
                signature=bad,
                credits=10,
                user_id="u1",
            )

        user = await ledger_store.get_user("u1")
        assert user.credits == 2
        assert await ledger_store.list_transactions_for_user("u1") == []

    async def test_signature_for_other_order_rejected(self, service, ledger_store):
        with pytest.raises(SignatureMismatchError):
            await service.verify_payment(
                order_id="order_1",
                payment_id="pay_1",
                signature=sign("order_2", "pay_1"),
                credits=10,
                user_id="u1",
            )
        assert await ledger_store.get_user("u1") is None

    @pytest.mark.parametrize(
        "missing",
        ["user_id", "order_id", "payment_id", "signature", "credits"],
    )
    async def test_missing_field(self, service, missing):
        fields = {
            "order_id": "order_1",
            "payment_id": "pay_1",
            "signature": sign("order_1", "pay_1"),
            "credits": 10,
            "user_id": "u1",
        }
        fields[missing] = None

        with pytest.raises(MissingFieldError):
            await service.verify_payment(**fields)


class TestRazorpayGateway:

    async def test_passes_order_payload_to_sdk(self):
        client = MagicMock()
        client.order.create.return_value = {"id": "order_x", "amount": 100, "currency": "INR"}
        gateway = RazorpayGateway(client)

        order = await gateway.create_order(100, "INR", "receipt_order_1", {"userId": "u1"})

        assert order["id"] == "order_x"
        client.order.create.assert_called_once_with(
            data={
                "amount": 100,
                "currency": "INR",
                "receipt": "receipt_order_1",
                "notes": {"userId": "u1"},
            }
        )

    async def test_sdk_error_wrapped_with_provider_message(self):
        client = MagicMock()
        client.order.create.side_effect = RuntimeError("Authentication failed")
        gateway = RazorpayGateway(client)

        with pytest.raises(PaymentProviderError, match="Authentication failed"):
            await gateway.create_order(100, "INR", "receipt_order_1", {})
