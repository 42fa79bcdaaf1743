"""Deterministic content and prompt hashing.

Both digests are SHA-256, lowercase hex, without a ``0x`` prefix. Prefixing
is left to callers that talk to the registry (see ``to_prefixed`` and
``to_bytes32``).
"""

import hashlib
import re

from .exceptions import InvalidHashError

HASH_HEX_LENGTH = 64

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def content_hash(content: bytes) -> str:
    """Compute SHA-256 of raw content bytes.

    Args:
        content: Generated content. Empty input is allowed.

    Returns:
        64-character lowercase hexadecimal digest.
    """
    return hashlib.sha256(content).hexdigest()


def normalize_prompt(prompt: str) -> str:
    """Trim surrounding whitespace from a prompt."""
    return prompt.strip()


def prompt_hash(prompt: str) -> str:
    """Compute SHA-256 of the normalized prompt encoded as UTF-8."""
    return hashlib.sha256(normalize_prompt(prompt).encode("utf-8")).hexdigest()


def strip_hex_prefix(value: str) -> str:
    if value[:2].lower() == "0x":
        return value[2:]
    return value


def is_valid_hash(value: str | None) -> bool:
    """Return True if value is 64 hex chars, with or without 0x."""
    if not value:
        return False
    cleaned = strip_hex_prefix(value)
    return len(cleaned) == HASH_HEX_LENGTH and _HEX_RE.fullmatch(cleaned) is not None


def validate_hash(value: str | None, field: str = "contentHash") -> str:
    """Validate a hash and return its canonical bare lowercase form.

    Off-length values are rejected, never padded or truncated.

    Raises:
        InvalidHashError: If the value is not a 64-character hex digest.
    """
    if not is_valid_hash(value):
        raise InvalidHashError(value or "", field=field)
    return strip_hex_prefix(value).lower()


def to_prefixed(value: str, field: str = "contentHash") -> str:
    """Return the 0x-prefixed 66-character form of a valid hash."""
    return "0x" + validate_hash(value, field=field)


def to_bytes32(value: str, field: str = "contentHash") -> bytes:
    """Convert a valid hash to the 32 raw bytes expected by the registry."""
    return bytes.fromhex(validate_hash(value, field=field))
