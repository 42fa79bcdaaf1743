"""Pydantic models for persisted artwork records."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ArtworkRecord(BaseModel):
    """
    Artwork row keyed by content hash.

    A record returned with ``id=None`` was echoed back without being
    persisted (record store in degraded mode).
    """

    id: Optional[int] = None
    content_hash: str = Field(..., alias="contentHash")
    prompt_hash: str = Field(..., alias="promptHash")
    creator_address: str = Field(..., alias="creatorAddress")
    ipfs_cid: str = Field(..., alias="ipfsCID")
    model_used: str = Field(..., alias="modelUsed")
    metadata_uri: Optional[str] = Field(None, alias="metadataURI")
    certificate_token_id: Optional[int] = Field(None, alias="certificateTokenId", ge=0)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = {"populate_by_name": True, "from_attributes": True}

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


class SaveArtworkRequest(BaseModel):
    """Request body for POST /api/artworks."""

    content_hash: str = Field(..., alias="contentHash", min_length=1)
    prompt_hash: str = Field(..., alias="promptHash", min_length=1)
    ipfs_cid: str = Field(..., alias="ipfsCID", min_length=1)
    model_used: str = Field(..., alias="modelUsed", min_length=1)
    creator_address: Optional[str] = Field(None, alias="creatorAddress")
    metadata_uri: Optional[str] = Field(None, alias="metadataURI")
    certificate_token_id: Optional[int] = Field(None, alias="certificateTokenId", ge=0)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "contentHash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                    "promptHash": "2c26b46b68ffc68ff99b453c1d30413413422d706483bfa0f98a5e886266e7ae",
                    "ipfsCID": "bafkreiexample",
                    "modelUsed": "dall-e-3",
                }
            ]
        },
    }


class CertificateUpdateRequest(BaseModel):
    """Request body for PUT /api/artworks/{contentHash}/certificate."""

    certificate_token_id: int = Field(..., alias="certificateTokenId", ge=0)

    model_config = {"populate_by_name": True}


class ArtworkResponse(BaseModel):
    """Single artwork response."""

    success: bool = True
    artwork: ArtworkRecord
    persisted: bool = Field(True, description="False when the record store is unavailable")


class ArtworkListResponse(BaseModel):
    """Artwork list response."""

    success: bool = True
    artworks: list[ArtworkRecord]
    count: int
