"""
Centralized error handling middleware for FastAPI.

Provides consistent error responses and logging for all API routes.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from proof_engine import ValidationError

logger = logging.getLogger(__name__)


class ProofOfArtError(Exception):
    """Base exception for API errors carrying an HTTP status."""

    code = "internal_error"

    def __init__(self, message: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class UnauthorizedError(ProofOfArtError):
    """Raised when no valid creator identity is present."""

    code = "unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, status_code=401)


class ForbiddenError(ProofOfArtError):
    """Raised when the creator does not own the resource."""

    code = "forbidden"

    def __init__(self, message: str = "Unauthorized", details: Any = None):
        super().__init__(message=message, status_code=403, details=details)


class NotFoundError(ProofOfArtError):
    """Raised when an artwork record is not found."""

    code = "not_found"

    def __init__(self, content_hash: str):
        super().__init__(
            message="Artwork not found",
            status_code=404,
            details={"contentHash": content_hash},
        )


class ProviderUnavailableError(ProofOfArtError):
    """Raised when the requested model has no configured credentials."""

    code = "provider_unavailable"

    def __init__(self, model: str):
        super().__init__(
            message=f"{model} API key not configured",
            status_code=503,
            details={
                "model": model,
                "hint": "Please configure API keys in environment variables",
            },
        )


class GenerationFailedError(ProofOfArtError):
    """Raised when the generation provider returns an error."""

    code = "generation_failed"

    def __init__(self, model: str, reason: str, elapsed_ms: int | None = None):
        super().__init__(
            message=f"Generation failed: {reason}",
            status_code=502,
            details={"model": model, "elapsed_ms": elapsed_ms},
        )


class GenerationTimeoutError(GenerationFailedError):
    """Raised when the generation provider exceeds its timeout."""

    code = "generation_timeout"

    def __init__(self, model: str, timeout_seconds: float, elapsed_ms: int | None = None):
        super().__init__(model, f"timed out after {timeout_seconds:g} seconds", elapsed_ms)
        self.message = (
            "Image generation timed out. Please try again with a shorter prompt "
            "or different model."
        )
        self.status_code = 504
        self.details["timeout_seconds"] = timeout_seconds


class DownloadFailedError(ProofOfArtError):
    """Raised when generated content cannot be fetched."""

    code = "download_failed"

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Failed to download generated content: {reason}",
            status_code=502,
            details={"url": url[:200]},
        )


class PinFailedError(ProofOfArtError):
    """Raised when pinning content to the content-addressed store fails."""

    code = "pin_failed"

    def __init__(self, reason: str, details: Any = None):
        super().__init__(
            message=f"IPFS upload failed: {reason}",
            status_code=502,
            details=details,
        )


class MetadataPinFailedError(PinFailedError):
    """Proof package pin failure. Reported as a warning, never fatal."""

    code = "metadata_pin_failed"

    def __init__(self, reason: str, details: Any = None):
        super().__init__(reason, details=details)
        self.message = f"Metadata upload failed: {reason}"


class StoreUnavailableError(ProofOfArtError):
    """Record store is not configured or unreachable (degraded mode)."""

    code = "store_unavailable"

    def __init__(self, reason: str):
        super().__init__(message=f"Database not available: {reason}", status_code=503)


class StoreError(ProofOfArtError):
    """Genuine persistence fault, distinct from unavailability."""

    code = "store_error"

    def __init__(self, reason: str):
        super().__init__(message=f"Database error: {reason}", status_code=500)


class RegistryUnavailableError(ProofOfArtError):
    """Raised when no registry contract is configured."""

    code = "registry_unavailable"

    def __init__(self, reason: str = "Registry contract not configured"):
        super().__init__(message=reason, status_code=503)


class RegistryError(ProofOfArtError):
    """Raised when a registry call fails."""

    code = "registry_error"

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Registry call {operation} failed: {reason}",
            status_code=502,
            details={"operation": operation},
        )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches unhandled exceptions and returns consistent error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response

        except ProofOfArtError as e:
            logger.error(
                f"{type(e).__name__}: {e.message}",
                extra={"status_code": e.status_code, "details": e.details},
            )
            return JSONResponse(
                status_code=e.status_code,
                content=format_error_response(e.code, e.message, e.details),
            )

        except ValidationError as e:
            logger.warning(f"ValidationError: {e.message}")
            return JSONResponse(
                status_code=400,
                content=format_error_response("validation_error", e.message, e.details),
            )

        except Exception as e:
            # Log full stack trace for unexpected errors
            logger.exception(f"Unhandled exception: {str(e)}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "code": "internal_error",
                    "message": str(e) if logger.isEnabledFor(logging.DEBUG) else None,
                },
            )


def format_error_response(code: str, message: str, details: Any = None) -> dict:
    """
    Format a consistent error response.

    Args:
        code: Machine-readable error code
        message: Human-readable error message
        details: Additional error details (optional)

    Returns:
        dict: Formatted error response
    """
    response = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details:
        response["details"] = details
    return response
