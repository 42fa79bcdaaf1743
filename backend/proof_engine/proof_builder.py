"""Proof package construction for generated artworks."""

import base64
import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any

from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

from .exceptions import PromptEncryptionError, ValidationError
from .hashing import content_hash, prompt_hash, validate_hash

logger = logging.getLogger(__name__)

PROOF_VERSION = "1.0"

# Fields that define the identity of a proof package
IDENTITY_FIELDS = ("contentHash", "promptHash", "creatorAddress", "ipfsCID", "modelUsed")


class ProofPackageBuilder:
    """Builds provenance records for generated content."""

    def __init__(self, encryption_key: str | None = None) -> None:
        """Initialize the builder.

        Args:
            encryption_key: Optional 64-char hex key (32 bytes) used to
                encrypt prompts when ``encrypt_prompt`` is requested.
        """
        self._box: SecretBox | None = None
        if encryption_key:
            try:
                self._box = SecretBox(bytes.fromhex(encryption_key))
            except (ValueError, TypeError, CryptoError) as e:
                raise PromptEncryptionError(
                    "PROMPT_ENCRYPTION_KEY must be 64 hex characters"
                ) from e

    @property
    def can_encrypt(self) -> bool:
        return self._box is not None

    def build(
        self,
        creator_address: str,
        content: bytes,
        ipfs_cid: str,
        model_used: str,
        parameters: dict[str, Any] | None = None,
        prompt: str | None = None,
        prompt_hash_value: str | None = None,
        biometric_data: Any = None,
        encrypt_prompt: bool = False,
        private: bool = False,
    ) -> dict[str, Any]:
        """Build a proof package for generated content.

        Args:
            creator_address: Wallet address of the creator.
            content: Raw generated content bytes.
            ipfs_cid: CID of the pinned content.
            model_used: Model identifier used for generation.
            parameters: Generation parameters passed to the provider.
            prompt: Raw prompt text, if known to the caller.
            prompt_hash_value: Prompt hash to use when the prompt is withheld.
            biometric_data: Opaque attestation blob, attached as-is.
            encrypt_prompt: Store the prompt encrypted instead of in clear.
            private: Never include the prompt in any form.

        Returns:
            Dictionary containing the proof package.

        Raises:
            ValidationError: If content is empty, a required field is
                missing, or the prompt does not match the supplied hash.
        """
        if not content:
            raise ValidationError("Content is empty", details={"field": "content"})

        missing = [
            name
            for name, value in (
                ("creatorAddress", creator_address),
                ("ipfsCID", ipfs_cid),
                ("modelUsed", model_used),
            )
            if not value or not str(value).strip()
        ]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing},
            )

        resolved_prompt_hash = self._resolve_prompt_hash(prompt, prompt_hash_value)

        package: dict[str, Any] = {
            "version": PROOF_VERSION,
            "creatorAddress": creator_address.strip().lower(),
            "promptHash": resolved_prompt_hash,
            "contentHash": content_hash(content),
            "ipfsCID": ipfs_cid,
            "modelUsed": model_used,
            "parameters": dict(parameters or {}),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

        if biometric_data is not None:
            package["biometricAttestation"] = biometric_data

        if prompt is not None and not private:
            if not encrypt_prompt:
                package["prompt"] = prompt
            elif self._box is not None:
                package["encryptedPrompt"] = self.encrypt_prompt(prompt)
            else:
                logger.warning("Prompt encryption requested but no key configured; prompt omitted")

        logger.info(f"Built proof package for content {package['contentHash'][:16]}")
        return package

    def _resolve_prompt_hash(self, prompt: str | None, supplied: str | None) -> str:
        if prompt is None and supplied is None:
            raise ValidationError(
                "Either prompt or promptHash is required",
                details={"missing": ["promptHash"]},
            )
        if supplied is not None:
            supplied = validate_hash(supplied, field="promptHash")
        if prompt is None:
            return supplied
        computed = prompt_hash(prompt)
        if supplied is not None and supplied != computed:
            raise ValidationError(
                "Prompt does not match promptHash",
                details={"promptHash": supplied, "computed": computed},
            )
        return computed

    def encrypt_prompt(self, prompt: str) -> str:
        """Encrypt a prompt, returning base64 of nonce + ciphertext."""
        if self._box is None:
            raise PromptEncryptionError("No prompt encryption key configured")
        return base64.b64encode(self._box.encrypt(prompt.encode("utf-8"))).decode("ascii")

    def decrypt_prompt(self, token: str) -> str:
        """Decrypt a value produced by ``encrypt_prompt``."""
        if self._box is None:
            raise PromptEncryptionError("No prompt encryption key configured")
        try:
            return self._box.decrypt(base64.b64decode(token)).decode("utf-8")
        except (CryptoError, ValueError) as e:
            raise PromptEncryptionError("Encrypted prompt could not be decrypted") from e


def compute_package_identity(package: dict[str, Any]) -> str:
    """Compute SHA-256 of the package's identity fields.

    Uses deterministic JSON serialization so the result depends only on the
    field values, not on key order or on non-identity fields such as the
    timestamp.
    """
    core = {field: package.get(field) for field in IDENTITY_FIELDS}
    json_str = json.dumps(core, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(json_str.encode("utf-8")).hexdigest()
