"""
SpiritArt Backend: Request Dependencies
========================================

What:  FastAPI dependency providers that assemble services for one request.
How:   Provider clients come from `app.state.clients` (built in the lifespan),
       the upload storage from `app.state.upload_storage` (built in
       `create_app`), and the database session from `get_db_session`.

Dependency graph:
    get_db_session ─▶ get_ledger_store ─┬─▶ get_payment_service
    get_provider_clients ─▶ get_payment_gateway ─┘
    get_provider_clients ─▶ get_ai_service ─┬─▶ get_vision_describer ─┐
                                            └─▶ get_image_generator ──┼─▶ get_transform_service
    get_ledger_store, get_upload_storage, get_settings ───────────────┘

Tests replace individual nodes through `app.dependency_overrides`.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from spiritart.clients import ProviderClients
from spiritart.config import Settings, settings
from spiritart.database import get_db_session
from spiritart.exceptions import AIServiceUnavailableError, SpiritArtError
from spiritart.services.ai_base import ImageGenerator, VisionDescriber
from spiritart.services.ledger_store import LedgerStore
from spiritart.services.openai_service import OpenAIService
from spiritart.services.payment_gateway import PaymentGateway, RazorpayGateway
from spiritart.services.payment_service import PaymentService
from spiritart.services.transform_service import ImageTransformService
from spiritart.services.upload_storage import UploadStorage


def get_settings() -> Settings:
    return settings


async def get_ledger_store(db: AsyncSession = Depends(get_db_session)) -> LedgerStore:
    return LedgerStore(db)


def get_provider_clients(request: Request) -> ProviderClients:
    clients = getattr(request.app.state, "clients", None)
    if clients is None:
        raise SpiritArtError(
            message="Service is not ready. Please try again shortly.",
            context={"reason": "provider clients not initialized"},
        )
    return clients


def get_upload_storage(request: Request) -> UploadStorage:
    return request.app.state.upload_storage


def get_payment_gateway(clients: ProviderClients = Depends(get_provider_clients)) -> PaymentGateway:
    return RazorpayGateway(clients.razorpay)


def get_payment_service(
    gateway: PaymentGateway = Depends(get_payment_gateway),
    store: LedgerStore = Depends(get_ledger_store),
    config: Settings = Depends(get_settings),
) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        store=store,
        key_id=config.razorpay_key_id,
        key_secret=config.razorpay_key_secret,
        currency=config.payment_currency,
    )


def get_ai_service(
    clients: ProviderClients = Depends(get_provider_clients),
    config: Settings = Depends(get_settings),
) -> OpenAIService:
    if clients.openai is None:
        raise AIServiceUnavailableError()
    return OpenAIService(
        clients.openai,
        vision_model=config.vision_model,
        image_model=config.image_model,
        image_size=config.image_size,
        image_quality=config.image_quality,
    )


def get_vision_describer(ai: OpenAIService = Depends(get_ai_service)) -> VisionDescriber:
    return ai


def get_image_generator(ai: OpenAIService = Depends(get_ai_service)) -> ImageGenerator:
    return ai


def get_transform_service(
    store: LedgerStore = Depends(get_ledger_store),
    describer: VisionDescriber = Depends(get_vision_describer),
    generator: ImageGenerator = Depends(get_image_generator),
    storage: UploadStorage = Depends(get_upload_storage),
    config: Settings = Depends(get_settings),
) -> ImageTransformService:
    return ImageTransformService(
        store=store,
        describer=describer,
        generator=generator,
        storage=storage,
        settings=config,
    )
