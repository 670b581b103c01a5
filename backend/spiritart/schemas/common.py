"""
SpiritArt Backend: Shared Schema Pieces
========================================

What:  The camelCase base model used by every API contract, plus the error
       and health payloads.
How:   `CamelModel` generates camelCase aliases (`user_id` → `userId`) so
       Python code stays snake_case while the JSON matches the client app.
       `populate_by_name` lets services build models with either spelling.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "Not enough credits",
            "code": "insufficient_credits",
            "details": {"user_id": "u1", "credits": 0},
            "request_id": "a1b2c3d4"
        }

    `details` is omitted in production.
    """

    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Debug context (non-production only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    ai_provider: str = Field(description="AI provider status: available, unavailable, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
