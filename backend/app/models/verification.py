"""Pydantic models for verification responses."""

from typing import Optional

from pydantic import BaseModel, Field

from .artwork import ArtworkRecord


class VerificationResponse(BaseModel):
    """
    Response for GET /api/verify/{contentHash}.

    Status values:
    - registered: the registry has a record for the hash
    - pending: only the local record store knows the hash (saved, never registered)
    - not_found: neither knows the hash
    """

    success: bool = True
    content_hash: str = Field(..., alias="contentHash")
    status: str
    exists: bool
    verification_count: int = Field(0, alias="verificationCount", ge=0)
    ownership_verified: Optional[bool] = Field(None, alias="ownershipVerified")
    artwork: Optional[ArtworkRecord] = None

    model_config = {"populate_by_name": True}


class FileVerificationResponse(VerificationResponse):
    """Response for POST /api/verify/file."""

    computed_hash: str = Field(..., alias="computedHash")
    claimed_hash: Optional[str] = Field(None, alias="claimedHash")
    content_matches: Optional[bool] = Field(None, alias="contentMatches")


class OwnerArtworksResponse(BaseModel):
    """Response for GET /api/verify/owner/{address}."""

    success: bool = True
    owner: str
    content_hashes: list[str] = Field(..., alias="contentHashes")
    artworks: list[ArtworkRecord] = Field(default_factory=list)
    count: int

    model_config = {"populate_by_name": True}
