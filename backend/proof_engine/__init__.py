"""Content hashing and proof package construction."""

from .exceptions import (
    InvalidHashError,
    PromptEncryptionError,
    ProofEngineError,
    ValidationError,
)
from .hashing import (
    content_hash,
    is_valid_hash,
    normalize_prompt,
    prompt_hash,
    to_bytes32,
    to_prefixed,
    validate_hash,
)
from .proof_builder import ProofPackageBuilder, compute_package_identity

__all__ = [
    "ProofPackageBuilder",
    "compute_package_identity",
    "content_hash",
    "prompt_hash",
    "normalize_prompt",
    "is_valid_hash",
    "validate_hash",
    "to_prefixed",
    "to_bytes32",
    "ProofEngineError",
    "ValidationError",
    "InvalidHashError",
    "PromptEncryptionError",
]
