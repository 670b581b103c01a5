"""
SpiritArt Backend: Provider Client Bootstrap
=============================================

What:  Builds the Razorpay and OpenAI clients once per process.
Who:   The application lifespan stores the result on `app.state.clients`;
       request dependencies wrap the clients in services.

Without an OpenAI key the `openai` slot is None and every AI-backed endpoint
answers 503 instead of failing deep inside a provider call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI

from spiritart.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ProviderClients:
    razorpay: Any
    openai: Optional[AsyncOpenAI] = None


def build_razorpay_client(key_id: str, key_secret: str) -> Any:
    # The SDK is only needed once the server starts; importing it here keeps
    # `import spiritart.main` free of its setuptools/requests import chain.
    import razorpay

    client = razorpay.Client(auth=(key_id, key_secret))
    logger.info("Razorpay initialized with key_id: %s", key_id)
    return client


def build_openai_client(api_key: str) -> Optional[AsyncOpenAI]:
    if not api_key:
        logger.warning("OpenAI client not created: OPENAI_API_KEY is not set")
        return None
    logger.info("OpenAI client initialized")
    return AsyncOpenAI(api_key=api_key)


def build_clients(settings: Settings) -> ProviderClients:
    return ProviderClients(
        razorpay=build_razorpay_client(settings.razorpay_key_id, settings.razorpay_key_secret),
        openai=build_openai_client(settings.openai_api_key),
    )


async def close_clients(clients: Optional[ProviderClients]) -> None:
    """Release HTTP connection pools held by the clients."""
    if clients is None:
        return
    if clients.openai is not None:
        await clients.openai.close()
    session = getattr(clients.razorpay, "session", None)
    if session is not None:
        session.close()
