"""
Artwork Record Store

Idempotent upsert and query layer for artwork records, keyed by content hash.
When the database is unavailable, reads return empty results and writes
become no-ops so the generation pipeline keeps going.
"""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.middleware import StoreUnavailableError
from app.models.artwork import ArtworkRecord
from proof_engine import validate_hash
from .database import ArtworkRow, Database, utcnow

logger = logging.getLogger(__name__)

artworks = ArtworkRow.__table__


def _to_record(row: Mapping[str, Any]) -> ArtworkRecord:
    return ArtworkRecord(
        id=row["id"],
        content_hash=row["content_hash"],
        prompt_hash=row["prompt_hash"],
        creator_address=row["creator_address"],
        ipfs_cid=row["ipfs_cid"],
        model_used=row["model_used"],
        metadata_uri=row["metadata_uri"],
        certificate_token_id=row["certificate_token_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ArtworkRecordStore:
    """
    Persists artwork records.

    Handles:
    - Atomic insert-or-update by content hash
    - Lookups by content hash and creator, newest first
    - Certificate token id linkage after on-chain registration
    """

    def __init__(self, database: Database):
        self.database = database

    def _insert(self):
        if self.database.dialect_name == "postgresql":
            return pg_insert(artworks)
        return sqlite_insert(artworks)

    async def upsert(self, record: ArtworkRecord) -> ArtworkRecord:
        """
        Insert or update an artwork keyed by content hash.

        On conflict, prompt hash and metadata URI are replaced; the certificate
        token id is only replaced when the incoming value is present.

        Args:
            record: Artwork to save

        Returns:
            ArtworkRecord: The stored row, or the normalized input with id=None
            if the database is unavailable

        Raises:
            ValidationError: If content or prompt hash is malformed
            StoreError: If the statement fails for a reason other than availability
        """
        normalized = record.model_copy(
            update={
                "id": None,
                "content_hash": validate_hash(record.content_hash, field="contentHash"),
                "prompt_hash": validate_hash(record.prompt_hash, field="promptHash"),
                "creator_address": record.creator_address.strip().lower(),
                "created_at": None,
                "updated_at": None,
            }
        )

        now = utcnow()
        stmt = self._insert().values(
            content_hash=normalized.content_hash,
            prompt_hash=normalized.prompt_hash,
            creator_address=normalized.creator_address,
            ipfs_cid=normalized.ipfs_cid,
            model_used=normalized.model_used,
            metadata_uri=normalized.metadata_uri,
            certificate_token_id=normalized.certificate_token_id,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["content_hash"],
            set_={
                "prompt_hash": stmt.excluded.prompt_hash,
                "metadata_uri": stmt.excluded.metadata_uri,
                "certificate_token_id": func.coalesce(
                    stmt.excluded.certificate_token_id,
                    artworks.c.certificate_token_id,
                ),
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(*artworks.c)

        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                row = result.mappings().one()
        except StoreUnavailableError as e:
            logger.warning(f"Database not available, skipping artwork save: {e.message}")
            return normalized

        logger.info(f"Saved artwork {normalized.content_hash[:16]} (id={row['id']})")
        return _to_record(row)

    async def find_by_content_hash(self, content_hash: str) -> Optional[ArtworkRecord]:
        """Return the artwork with this content hash, or None."""
        canonical = validate_hash(content_hash, field="contentHash")
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(artworks).where(artworks.c.content_hash == canonical)
                )
                row = result.mappings().first()
        except StoreUnavailableError:
            logger.warning("Database not available, returning no artwork")
            return None
        return _to_record(row) if row else None

    async def find_by_creator(self, creator_address: str) -> list[ArtworkRecord]:
        """Return a creator's artworks, newest first."""
        return await self.list_all(creator_filter=creator_address)

    async def list_all(self, creator_filter: Optional[str] = None) -> list[ArtworkRecord]:
        """Return all artworks, optionally filtered by creator, newest first."""
        query = select(artworks).order_by(artworks.c.created_at.desc(), artworks.c.id.desc())
        if creator_filter:
            query = query.where(artworks.c.creator_address == creator_filter.strip().lower())

        try:
            async with self.database.session() as session:
                result = await session.execute(query)
                rows = result.mappings().all()
        except StoreUnavailableError:
            logger.warning("Database not available, returning empty artworks list")
            return []
        return [_to_record(row) for row in rows]

    async def update_certificate_token_id(self, content_hash: str, token_id: int) -> None:
        """Link an on-chain certificate token to an artwork. Idempotent."""
        canonical = validate_hash(content_hash, field="contentHash")
        try:
            async with self.database.session() as session:
                await session.execute(
                    update(artworks)
                    .where(artworks.c.content_hash == canonical)
                    .values(certificate_token_id=token_id, updated_at=utcnow())
                )
        except StoreUnavailableError:
            logger.warning("Database not available, skipping certificate update")
            return
        logger.info(f"Linked certificate {token_id} to artwork {canonical[:16]}")
