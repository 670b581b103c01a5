"""
SpiritArt Backend: Test Configuration (conftest.py)
====================================================

Shared pytest fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / session_factory: in-memory SQLite with the real schema
    ├── db_session / ledger_store: a session and LedgerStore over it
    ├── mock_db_session: AsyncMock session for driver-failure paths
    ├── test_settings: Settings with test credentials
    ├── fake_gateway: PaymentGateway stand-in (AsyncMock)
    ├── fake_ai: VisionDescriber + ImageGenerator stand-in (AsyncMocks)
    ├── memory_storage: MemoryUploadStorage
    ├── make_image: Pillow-generated JPEG/PNG bytes
    └── test_client: HTTPX AsyncClient with the fakes wired in through
                     app.dependency_overrides
"""

import io
import os

# Settings are read at import time: configure the environment before any
# spiritart module is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_secret"
os.environ["OPENAI_API_KEY"] = ""
os.environ["UPLOAD_STORAGE"] = "memory"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import spiritart.models  # noqa: F401  (registers tables on Base.metadata)
from spiritart.config import Settings
from spiritart.database import Base, get_db_session
from spiritart.services.ledger_store import LedgerStore
from spiritart.services.upload_storage import MemoryUploadStorage

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "test_secret"
DESCRIPTION = "A quiet street at dusk with paper lanterns and a sleeping cat."
GENERATED_URL = "https://images.example/generated.png"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger_store(db_session):
    return LedgerStore(db_session)


@pytest.fixture
def mock_db_session():
    """
    AsyncSession stand-in for driver-failure tests.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=OperationalError(...))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Settings & fakes
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite://",
        razorpay_key_id=TEST_KEY_ID,
        razorpay_key_secret=TEST_KEY_SECRET,
        openai_api_key="",
        upload_storage="memory",
        upload_cleanup_delay=60,
        environment="test",
    )


@pytest.fixture
def fake_gateway():
    """Returns orders the way Razorpay does: amount echoed in paise."""
    gateway = MagicMock()

    async def create_order(amount, currency, receipt, notes):
        return {"id": "order_test123", "amount": amount, "currency": currency, "receipt": receipt}

    gateway.create_order = AsyncMock(side_effect=create_order)
    return gateway


@pytest.fixture
def fake_ai():
    ai = MagicMock()
    ai.describe_image = AsyncMock(return_value=DESCRIPTION)
    ai.generate_image = AsyncMock(return_value=GENERATED_URL)
    ai.health_check = AsyncMock(return_value=True)
    return ai


@pytest.fixture
def memory_storage():
    return MemoryUploadStorage()


@pytest.fixture
def make_image():
    """
    Build real image bytes with Pillow.

    Usage:
        png = make_image("PNG", (2000, 1000))
    """

    def _make(fmt: str = "PNG", size=(64, 48), mode: str = "RGB", color=(120, 180, 90)) -> bytes:
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, test_settings, fake_gateway, fake_ai, memory_storage):
    """
    AsyncClient against the real app with providers replaced by fakes and
    the database replaced by the per-test SQLite engine.
    """
    from spiritart import dependencies
    from spiritart.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[dependencies.get_settings] = lambda: test_settings
    app.dependency_overrides[dependencies.get_payment_gateway] = lambda: fake_gateway
    app.dependency_overrides[dependencies.get_ai_service] = lambda: fake_ai
    previous_storage = app.state.upload_storage
    app.state.upload_storage = memory_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    app.state.upload_storage = previous_storage
