"""FastAPI middleware and request dependencies."""

from .error_handler import (
    ErrorHandlerMiddleware,
    ProofOfArtError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ProviderUnavailableError,
    GenerationFailedError,
    GenerationTimeoutError,
    DownloadFailedError,
    PinFailedError,
    MetadataPinFailedError,
    StoreUnavailableError,
    StoreError,
    RegistryUnavailableError,
    RegistryError,
    format_error_response,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "ProofOfArtError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ProviderUnavailableError",
    "GenerationFailedError",
    "GenerationTimeoutError",
    "DownloadFailedError",
    "PinFailedError",
    "MetadataPinFailedError",
    "StoreUnavailableError",
    "StoreError",
    "RegistryUnavailableError",
    "RegistryError",
    "format_error_response",
]
