"""Custom exceptions for proof package construction and hash handling."""

from typing import Any


class ProofEngineError(Exception):
    """Base exception for proof engine errors."""

    pass


class ValidationError(ProofEngineError, ValueError):
    """Input has the wrong shape; never retried automatically."""

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidHashError(ValidationError):
    """Hash is not 64 hex characters (optionally 0x-prefixed)."""

    def __init__(self, value: str, field: str = "contentHash"):
        cleaned = value[2:] if value.lower().startswith("0x") else value
        super().__init__(
            f"Invalid {field}: expected 64 hex characters, got {len(cleaned)}",
            details={"field": field, "length": len(cleaned)},
        )


class PromptEncryptionError(ProofEngineError):
    """Prompt could not be encrypted or decrypted."""

    pass
