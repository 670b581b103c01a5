"""
SpiritArt Backend: HTTP Endpoint Tests
=======================================

End-to-end through the FastAPI app with HTTPX: real routing, dependency
injection, exception handlers and SQLite; fake payment gateway and AI
provider.

Scenarios:
    ✅ Buy credits: create order → verify signature → balance and history
    ✅ Transform: upload → 1 credit spent → image + transaction recorded
    ✅ Broke user: 400 "Not enough credits", no provider calls, no records
    ✅ Forged payment: 400 "Payment verification failed", nothing written
    ✅ Error body shape, request ids, validation → 400, AI not configured → 503
"""

import hashlib
import hmac
from unittest.mock import MagicMock

import pytest

from spiritart.clients import ProviderClients
from spiritart.models import Transaction, User


def sign(order_id: str, payment_id: str, secret: str = "test_secret") -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


async def create_user(client, user_id="u1", credits=None, **fields):
    body = {"id": user_id, **fields}
    if credits is not None:
        body["credits"] = credits
    response = await client.post("/api/user/create", json=body)
    assert response.status_code == 200
    return response.json()["user"]


class TestLiveness:

    async def test_root_banner(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.text == "SpiritArt Alchemy API is running"
        assert response.headers["content-type"].startswith("text/plain")

    async def test_health_without_ai_is_degraded(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["database"] == "connected"
        assert body["ai_provider"] == "not_configured"
        assert body["status"] == "degraded"

    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/api/user/nobody", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/")
        assert len(response.headers["X-Request-ID"]) == 8


class TestUsers:

    async def test_create_and_get_user(self, test_client):
        user = await create_user(test_client, "u1", name="Chihiro", email="c@example.com")
        assert user["id"] == "u1"
        assert user["credits"] == 0
        assert user["name"] == "Chihiro"
        assert "createdAt" in user

        response = await test_client.get("/api/user/u1")
        assert response.status_code == 200
        fetched = response.json()["user"]
        assert fetched["email"] == "c@example.com"
        assert fetched["credits"] == 0

    async def test_create_without_id(self, test_client):
        response = await test_client.post("/api/user/create", json={"name": "Nameless"})
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    async def test_unknown_user_404(self, test_client):
        response = await test_client.get("/api/user/ghost")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "User not found"
        assert body["code"] == "user_not_found"

    async def test_reads_do_not_modify_state(self, test_client):
        await create_user(test_client, "u1", credits=4)

        for _ in range(3):
            assert (await test_client.get("/api/user/u1")).json()["user"]["credits"] == 4
            assert (await test_client.get("/api/user/u1/transactions")).json() == {"transactions": []}
            assert (await test_client.get("/api/user/u1/images")).json() == {"images": []}


class TestPurchaseScenario:

    async def test_create_order(self, test_client):
        response = await test_client.post(
            "/api/create-order", json={"price": 499, "userId": "u1", "credits": 10}
        )
        assert response.status_code == 200
        assert response.json() == {
            "id": "order_test123",
            "amount": 49900,
            "currency": "INR",
            "key": "rzp_test_key",
        }

    async def test_verify_payment_credits_user(self, test_client, session_factory):
        response = await test_client.post(
            "/api/verify-payment",
            json={
                "razorpay_order_id": "order_test123",
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": sign("order_test123", "pay_abc"),
                "credits": 10,
                "userId": "buyer",
                "amount": 499,
            },
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "credits": 10}

        transactions = (await test_client.get("/api/user/buyer/transactions")).json()["transactions"]
        assert len(transactions) == 1
        purchase = transactions[0]
        assert purchase["type"] == "purchase"
        assert purchase["credits"] == 10
        assert purchase["orderId"] == "order_test123"
        assert purchase["paymentId"] == "pay_abc"
        assert purchase["userId"] == "buyer"
        assert "imageId" not in purchase

        async with session_factory() as session:
            assert (await session.get(User, "buyer")).credits == 10

    async def test_forged_signature_rejected(self, test_client, session_factory):
        await create_user(test_client, "u1", credits=1)

        response = await test_client.post(
            "/api/verify-payment",
            json={
                "razorpay_order_id": "order_test123",
                "razorpay_payment_id": "pay_abc",
                "razorpay_signature": "f" * 64,
                "credits": 1000,
                "userId": "u1",
            },
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Payment verification failed"

        async with session_factory() as session:
            assert (await session.get(User, "u1")).credits == 1
            result = await session.execute(Transaction.__table__.select())
            assert result.all() == []

    async def test_verify_without_user_id(self, test_client):
        response = await test_client.post(
            "/api/verify-payment",
            json={"razorpay_order_id": "o", "razorpay_payment_id": "p", "razorpay_signature": "s", "credits": 1},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    @pytest.mark.parametrize("price", ["lots", -5])
    async def test_invalid_price_is_400_not_422(self, test_client, price):
        response = await test_client.post("/api/create-order", json={"price": price, "userId": "u1", "credits": 1})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert "price" in body["error"]


class TestTransformScenario:

    async def test_transform_spends_one_credit(self, test_client, fake_ai, make_image):
        await create_user(test_client, "u1", credits=5)
        original = make_image("JPEG", (640, 480))

        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("street.jpg", original, "image/jpeg")},
            data={"userId": "u1", "style": "ghibli-character", "prompt": "Make it spring", "detailLevel": "70"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["credits"] == 4
        assert body["imageUrl"] == fake_ai.generate_image.return_value
        assert body["imageDescription"] == fake_ai.describe_image.return_value
        assert body["originalPrompt"] == "Make it spring"
        assert body["enhancedPrompt"].startswith("I want you to create a Studio Ghibli style artwork")
        assert body["originalImageUrl"].startswith("http://test/uploads/")

        stored = await test_client.get(body["originalImageUrl"])
        assert stored.status_code == 200
        assert stored.content == original
        assert stored.headers["content-type"] == "image/jpeg"

        images = (await test_client.get("/api/user/u1/images")).json()["images"]
        transactions = (await test_client.get("/api/user/u1/transactions")).json()["transactions"]
        assert len(images) == 1
        assert images[0]["style"] == "ghibli-character"
        assert images[0]["detailLevel"] == 70
        assert len(transactions) == 1
        assert transactions[0]["credits"] == -1
        assert transactions[0]["type"] == "image-transformation"
        assert transactions[0]["imageId"] == images[0]["id"]

    async def test_zero_credit_user_rejected(self, test_client, fake_ai, make_image):
        await create_user(test_client, "broke", credits=0)

        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("street.jpg", make_image("JPEG"), "image/jpeg")},
            data={"userId": "broke"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Not enough credits"
        fake_ai.describe_image.assert_not_awaited()
        fake_ai.generate_image.assert_not_awaited()
        assert (await test_client.get("/api/user/broke/images")).json() == {"images": []}
        assert (await test_client.get("/api/user/broke/transactions")).json() == {"transactions": []}

    async def test_unknown_user_404(self, test_client, make_image):
        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("street.jpg", make_image("JPEG"), "image/jpeg")},
            data={"userId": "ghost"},
        )
        assert response.status_code == 404

    async def test_missing_file(self, test_client):
        response = await test_client.post("/api/upload-image", data={"userId": "u1"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("No image file was uploaded")

    async def test_missing_user_id(self, test_client, make_image):
        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("street.jpg", make_image("JPEG"), "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    async def test_wrong_extension(self, test_client, make_image):
        await create_user(test_client, "u1", credits=5)
        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("anim.gif", make_image("GIF"), "image/gif")},
            data={"userId": "u1"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "File upload error: Only JPG and PNG files are allowed!"

    async def test_ai_not_configured_returns_503(self, test_client, make_image):
        from spiritart import dependencies
        from spiritart.main import app

        del app.dependency_overrides[dependencies.get_ai_service]
        app.state.clients = ProviderClients(razorpay=MagicMock(), openai=None)
        try:
            response = await test_client.post(
                "/api/upload-image",
                files={"image": ("street.jpg", make_image("JPEG"), "image/jpeg")},
                data={"userId": "u1"},
            )
        finally:
            del app.state.clients

        assert response.status_code == 503
        assert response.json()["code"] == "ai_service_unavailable"


class TestRetiredAndUploads:

    async def test_generate_image_retired(self, test_client):
        response = await test_client.post("/api/generate-image", json={"prompt": "anything"})
        assert response.status_code == 400
        assert "/api/upload-image" in response.json()["error"]

    async def test_unknown_upload_404(self, test_client):
        response = await test_client.get("/uploads/nothing-original.png")
        assert response.status_code == 404


class TestErrorBody:

    async def test_details_included_outside_production(self, test_client):
        body = (await test_client.get("/api/user/ghost")).json()
        assert set(body) == {"error", "code", "details", "request_id"}
        assert body["details"]["resource_id"] == "ghost"

    async def test_details_hidden_in_production(self, test_client, monkeypatch):
        from spiritart.config import settings

        monkeypatch.setattr(settings, "environment", "production")
        body = (await test_client.get("/api/user/ghost")).json()
        assert "details" not in body
        assert body["error"] == "User not found"


class TestUploadLimits:

    async def test_oversize_upload_read_is_bounded(self, test_client, test_settings, fake_ai, monkeypatch):
        from starlette.datastructures import UploadFile

        reads = []
        original_read = UploadFile.read

        async def recording_read(self, size=-1):
            data = await original_read(self, size)
            reads.append((size, len(data)))
            return data

        monkeypatch.setattr(UploadFile, "read", recording_read)
        await create_user(test_client, "u1", credits=5)

        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("big.jpg", b"\xff" * (10 * 1024 * 1024), "image/jpeg")},
            data={"userId": "u1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "File upload error: File too large"
        assert reads
        for size, length in reads:
            assert 0 < size <= test_settings.max_upload_size + 1
            assert length <= test_settings.max_upload_size + 1
        fake_ai.describe_image.assert_not_awaited()

    async def test_oversize_upload_still_checks_user_id_first(self, test_client):
        response = await test_client.post(
            "/api/upload-image",
            files={"image": ("big.jpg", b"\xff" * (5 * 1024 * 1024), "image/jpeg")},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"


class TestUnexpectedErrors:

    async def test_unknown_error_is_500_with_message(self, test_client):
        from httpx import ASGITransport, AsyncClient

        from spiritart import dependencies
        from spiritart.main import app

        def broken_store():
            raise RuntimeError("ledger exploded")

        app.dependency_overrides[dependencies.get_ledger_store] = broken_store
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/user/u1", headers={"X-Request-ID": "boom-1"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "ledger exploded"
        assert body["code"] == "server_error"
        assert body["request_id"] == "boom-1"
        assert body["details"] == {"error_type": "RuntimeError"}
        assert response.headers["X-Request-ID"] == "boom-1"
