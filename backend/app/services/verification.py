"""
Verification service.

Checks a content hash against the authoritative registry and reconciles the
answer with the local record store.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from app.models.artwork import ArtworkRecord
from app.models.creator import is_valid_address
from proof_engine import ValidationError, content_hash, validate_hash
from .artwork_store import ArtworkRecordStore
from .registry import ArtworkRegistry

logger = logging.getLogger(__name__)

STATUS_REGISTERED = "registered"
STATUS_PENDING = "pending"
STATUS_NOT_FOUND = "not_found"


@dataclass
class VerificationResult:
    """
    Attributes:
        content_hash: Canonical bare lowercase hash that was checked
        status: registered, pending (local record only) or not_found
        exists: Registry answer
        verification_count: Registry counter, 0 when not registered
        ownership_verified: Registry ownership answer when an owner was given
        local_record: Matching artwork record, if any
    """

    content_hash: str
    status: str
    exists: bool
    verification_count: int = 0
    ownership_verified: Optional[bool] = None
    local_record: Optional[ArtworkRecord] = None


@dataclass
class ContentVerificationResult(VerificationResult):
    computed_hash: str = ""
    claimed_hash: Optional[str] = None
    content_matches: Optional[bool] = None


class VerificationService:
    """Answers "is this artwork registered, and by whom?"."""

    def __init__(self, registry: ArtworkRegistry, record_store: ArtworkRecordStore):
        self.registry = registry
        self.record_store = record_store

    async def verify(self, content_hash_value: str, owner: Optional[str] = None) -> VerificationResult:
        """
        Verify a content hash.

        The hash is validated before any registry call; off-length values are
        rejected, never padded or truncated. The verification count and
        ownership are only queried when the registry knows the hash.

        Raises:
            ValidationError: If the hash or owner address is malformed
            RegistryUnavailableError: If no registry is configured
            RegistryError: If a registry call fails
        """
        canonical = validate_hash(content_hash_value, field="contentHash")
        if owner is not None and not is_valid_address(owner):
            raise ValidationError("Invalid owner address", details={"owner": owner})

        exists = await self.registry.exists(canonical)

        count = 0
        ownership = None
        if exists:
            count = await self.registry.verification_count(canonical)
            if owner is not None:
                ownership = await self.registry.verify_ownership(canonical, owner)

        local = await self.record_store.find_by_content_hash(canonical)

        if exists:
            status = STATUS_REGISTERED
        elif local is not None:
            status = STATUS_PENDING
        else:
            status = STATUS_NOT_FOUND

        logger.info(f"Verified {canonical[:16]}: {status}")
        return VerificationResult(
            content_hash=canonical,
            status=status,
            exists=exists,
            verification_count=count,
            ownership_verified=ownership,
            local_record=local,
        )

    async def verify_content(
        self,
        content: bytes,
        claimed_hash: Optional[str] = None,
        owner: Optional[str] = None,
    ) -> ContentVerificationResult:
        """
        Re-derive the hash of supplied bytes and verify it.

        When a claimed hash is given, content_matches reports whether the bytes
        actually hash to it. The registry is queried for the computed hash.
        """
        computed = content_hash(content)
        claimed = validate_hash(claimed_hash, field="claimedHash") if claimed_hash else None

        result = await self.verify(computed, owner=owner)
        return ContentVerificationResult(
            **vars(result),
            computed_hash=computed,
            claimed_hash=claimed,
            content_matches=(computed == claimed) if claimed is not None else None,
        )

    async def owner_artworks(self, owner: str) -> tuple[list[str], list[ArtworkRecord]]:
        """
        List registry hashes for an owner with their local records.

        Returns:
            tuple: (content hashes in registry order, local records found for them)
        """
        if not is_valid_address(owner):
            raise ValidationError("Invalid owner address", details={"owner": owner})

        hashes = await self.registry.get_owner_artworks(owner)
        records = await asyncio.gather(*(self.record_store.find_by_content_hash(h) for h in hashes))
        return hashes, [record for record in records if record is not None]
