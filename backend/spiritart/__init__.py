"""
SpiritArt Backend: Application Package
=======================================

What: Relay service between the SpiritArt client app and its providers
      (Razorpay payments, OpenAI vision + image generation, the credit ledger).
Who:  Imported by uvicorn (`spiritart.main:app`), Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  request parsing, status codes
    ├─────────────────────────────────────┤
    │     Services (Flows & Providers)    │  payment, transform, ledger store
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  async SQLAlchemy sessions
    └─────────────────────────────────────┘

Provider clients are built once in the application lifespan and handed to the
flows through FastAPI dependencies (see `spiritart.dependencies`).
"""

__version__ = "1.0.0"
