"""
SpiritArt Backend: Exception Hierarchy
=======================================

What:  Application exceptions carrying a user-facing message, a debug context
       dict, an HTTP status and a machine-readable code.
How:   Services raise these; the handlers registered in `main.py` turn them
       into `{error, code, details?, request_id}` JSON responses.

Exception Hierarchy:
    SpiritArtError (base)                      → 500
    ├── ValidationError                        → 400
    │   ├── MissingFieldError
    │   ├── NoFileUploadedError
    │   ├── EmptyFileError
    │   ├── InvalidUploadError
    │   ├── InsufficientCreditsError
    │   ├── ImageProcessingError
    │   ├── VisionAnalysisRefusedError
    │   ├── IncompatibleImageFormatError
    │   ├── ProviderRejectedRequestError
    │   ├── SignatureMismatchError
    │   └── EndpointRetiredError
    ├── NotFoundError                          → 404
    │   └── UserNotFoundError
    ├── UpstreamServiceError                   → 500
    │   ├── GenerationFailedError
    │   ├── MalformedUpstreamResponseError
    │   └── PaymentProviderError
    ├── AIServiceUnavailableError              → 503
    ├── FileStorageError                       → 500
    └── DatabaseError                          → 500

`context` is logged server-side and only echoed to clients as `details`
outside production.
"""

from typing import Any, Dict, Optional


class SpiritArtError(Exception):
    """
    Base exception for all SpiritArt application errors.

    Attributes:
        message:  User-facing error description (returned as `error`)
        context:  Additional debug info (logged; returned as `details`
                  only when the environment is not production)
    """

    status_code: int = 500
    code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# 400: the client can fix the request
# ══════════════════════════════════════════════════════════════════════════


class ValidationError(SpiritArtError):
    """Raised when client input fails validation."""

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class MissingFieldError(ValidationError):
    code = "missing_field"

    def __init__(self, field: str, label: Optional[str] = None):
        super().__init__(message=f"{label or field} is required", field=field)


class NoFileUploadedError(ValidationError):
    code = "no_file_uploaded"

    def __init__(self):
        super().__init__(
            message="No image file was uploaded. Please select an image to transform.",
            field="image",
        )


class EmptyFileError(ValidationError):
    code = "empty_file"

    def __init__(self):
        super().__init__(
            message="The uploaded file is empty. Please select a valid image.",
            field="image",
        )


class InvalidUploadError(ValidationError):
    """Upload rejected on extension or size before any processing."""

    code = "invalid_upload"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=f"File upload error: {message}", field="image", context=context)


class InsufficientCreditsError(ValidationError):
    code = "insufficient_credits"

    def __init__(self, user_id: str, balance: int):
        super().__init__(
            message="Not enough credits",
            context={"user_id": user_id, "credits": balance},
        )


class ImageProcessingError(ValidationError):
    code = "image_processing_failed"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Failed to process the uploaded image. Please try a different image.",
            context=context,
        )


class VisionAnalysisRefusedError(ValidationError):
    """The vision model declined to describe the image."""

    code = "vision_analysis_refused"

    def __init__(self):
        super().__init__(
            message=(
                "Our AI system could not properly analyze your image. "
                "Please try a different image with clearer content."
            ),
            context={"reason": "Vision model unable to process image details"},
        )


class IncompatibleImageFormatError(ValidationError):
    code = "incompatible_image_format"

    def __init__(self, provider_message: str = ""):
        super().__init__(
            message="The image format is not compatible with our AI system. Please try a different image.",
            context={"provider_message": provider_message},
        )


class ProviderRejectedRequestError(ValidationError):
    """The AI provider answered 400 for reasons the user can act on."""

    code = "provider_rejected_request"

    def __init__(self, message: str, provider_message: str = ""):
        super().__init__(message=message, context={"provider_message": provider_message})


class SignatureMismatchError(ValidationError):
    code = "signature_mismatch"

    def __init__(self, order_id: str):
        super().__init__(
            message="Payment verification failed",
            context={"order_id": order_id},
        )


class EndpointRetiredError(ValidationError):
    code = "endpoint_retired"

    def __init__(self, replacement: str):
        super().__init__(
            message=(
                "This endpoint is no longer supported. "
                f"Please use {replacement} to transform your images to Ghibli style."
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# 404
# ══════════════════════════════════════════════════════════════════════════


class NotFoundError(SpiritArtError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        message = message or f"The requested {resource} was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UserNotFoundError(NotFoundError):
    code = "user_not_found"

    def __init__(self, user_id: str):
        super().__init__(resource="user", resource_id=user_id, message="User not found")


# ══════════════════════════════════════════════════════════════════════════
# 5xx: provider or server fault
# ══════════════════════════════════════════════════════════════════════════


class UpstreamServiceError(SpiritArtError):
    """
    A provider call failed for a reason the client cannot fix.

    The provider's own message is passed through as `error`, matching how
    uncategorized failures are reported.
    """

    status_code = 500
    code = "upstream_error"


class GenerationFailedError(UpstreamServiceError):
    code = "generation_failed"

    def __init__(self, provider_message: str = ""):
        super().__init__(
            message="Error generating image with AI. Please try again or use a different image.",
            context={"provider_message": provider_message},
        )


class MalformedUpstreamResponseError(UpstreamServiceError):
    code = "malformed_upstream_response"

    def __init__(self, reason: str = "Missing image URL in response"):
        super().__init__(
            message="Failed to generate image. The AI service returned an invalid response.",
            context={"reason": reason},
        )


class PaymentProviderError(UpstreamServiceError):
    code = "payment_provider_error"


class AIServiceUnavailableError(SpiritArtError):
    """OPENAI_API_KEY is missing, so the service runs without AI features."""

    status_code = 503
    code = "ai_service_unavailable"

    def __init__(self):
        super().__init__(
            message="Image transformation is temporarily unavailable. Please try again later.",
            context={"reason": "AI provider is not configured"},
        )


class FileStorageError(SpiritArtError):
    """Raised when storing or reading a temporary upload fails."""

    status_code = 500
    code = "file_storage_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SpiritArtError):
    """
    Raised when database operations fail unexpectedly.

    The client always gets a generic message; the driver error is logged.
    """

    status_code = 500
    code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
