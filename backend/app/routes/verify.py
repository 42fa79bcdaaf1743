"""
Verification endpoints.

Checks content hashes and uploaded files against the on-chain registry and
the local record store.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.container import ServiceContainer, get_container
from app.models import FileVerificationResponse, OwnerArtworksResponse, VerificationResponse
from app.services.verification import ContentVerificationResult, VerificationResult
from proof_engine import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _verification_fields(result: VerificationResult) -> dict:
    return {
        "content_hash": result.content_hash,
        "status": result.status,
        "exists": result.exists,
        "verification_count": result.verification_count,
        "ownership_verified": result.ownership_verified,
        "artwork": result.local_record,
    }


@router.get(
    "/verify/owner/{address}",
    response_model=OwnerArtworksResponse,
    summary="List Registered Artworks of an Owner",
)
async def owner_artworks(
    address: str,
    container: ServiceContainer = Depends(get_container),
) -> OwnerArtworksResponse:
    hashes, records = await container.verifier.owner_artworks(address)
    return OwnerArtworksResponse(
        owner=address.lower(),
        content_hashes=hashes,
        artworks=records,
        count=len(hashes),
    )


@router.get(
    "/verify/{content_hash}",
    response_model=VerificationResponse,
    summary="Verify Content Hash",
    description="""
Look a content hash up in the registry and the local record store.

Status is `registered` when the registry knows the hash, `pending` when only
a local record exists, and `not_found` otherwise. Pass `?owner=` to also
check ownership.
""",
    responses={400: {"description": "Malformed hash"}, 503: {"description": "Registry unavailable"}},
)
async def verify_hash(
    content_hash: str,
    owner: Optional[str] = Query(None, description="Address to check ownership for"),
    container: ServiceContainer = Depends(get_container),
) -> VerificationResponse:
    result = await container.verifier.verify(content_hash, owner=owner)
    return VerificationResponse(**_verification_fields(result))


@router.post(
    "/verify/file",
    response_model=FileVerificationResponse,
    summary="Verify Uploaded File",
    description="Hash an uploaded file and verify it; `claimedHash` is compared with the computed hash.",
)
async def verify_file(
    file: UploadFile = File(..., description="Artwork file to verify"),
    claimed_hash: Optional[str] = Form(None, alias="claimedHash"),
    owner: Optional[str] = Form(None),
    container: ServiceContainer = Depends(get_container),
) -> FileVerificationResponse:
    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty", details={"field": "file"})

    result: ContentVerificationResult = await container.verifier.verify_content(
        content, claimed_hash=claimed_hash, owner=owner
    )
    return FileVerificationResponse(
        computed_hash=result.computed_hash,
        claimed_hash=result.claimed_hash,
        content_matches=result.content_matches,
        **_verification_fields(result),
    )
