"""
Artwork record endpoints.

Provides listing and lookup of saved artworks, saving a record, and linking
an on-chain certificate token to it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.container import ServiceContainer, get_container
from app.middleware import ForbiddenError, NotFoundError, UnauthorizedError
from app.middleware.auth import get_optional_creator, require_creator
from app.models import (
    ANONYMOUS_CREATOR,
    ArtworkListResponse,
    ArtworkRecord,
    ArtworkResponse,
    CertificateUpdateRequest,
    Creator,
    SaveArtworkRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/artworks",
    response_model=ArtworkListResponse,
    summary="List Artworks",
    description="List saved artworks, newest first. Filter by creator with `?address=`.",
)
async def list_artworks(
    address: Optional[str] = Query(None, description="Creator wallet address"),
    container: ServiceContainer = Depends(get_container),
) -> ArtworkListResponse:
    artworks = await container.record_store.list_all(creator_filter=address)
    return ArtworkListResponse(artworks=artworks, count=len(artworks))


@router.get(
    "/artworks/my",
    response_model=ArtworkListResponse,
    summary="List My Artworks",
    description="List the authenticated creator's artworks, newest first.",
)
async def list_my_artworks(
    creator: Creator = Depends(require_creator),
    container: ServiceContainer = Depends(get_container),
) -> ArtworkListResponse:
    artworks = await container.record_store.find_by_creator(creator.address)
    return ArtworkListResponse(artworks=artworks, count=len(artworks))


@router.get(
    "/artworks/{content_hash}",
    response_model=ArtworkResponse,
    summary="Get Artwork",
    responses={404: {"description": "Artwork not found"}},
)
async def get_artwork(
    content_hash: str,
    container: ServiceContainer = Depends(get_container),
) -> ArtworkResponse:
    artwork = await container.record_store.find_by_content_hash(content_hash)
    if artwork is None:
        raise NotFoundError(content_hash)
    return ArtworkResponse(artwork=artwork)


@router.post(
    "/artworks",
    response_model=ArtworkResponse,
    summary="Save Artwork",
    description="""
Save an artwork record, or update the existing record for the same content
hash.

Without a bearer token the record is attributed to the anonymous creator
(the zero address), when anonymous registration is enabled. A body
`creatorAddress` must match the authenticated creator.
""",
)
async def save_artwork(
    request: SaveArtworkRequest,
    creator: Creator | None = Depends(get_optional_creator),
    container: ServiceContainer = Depends(get_container),
) -> ArtworkResponse:
    if creator is None:
        if not container.settings.ALLOW_ANONYMOUS_REGISTRATION:
            raise UnauthorizedError()
        creator = ANONYMOUS_CREATOR
    elif request.creator_address and request.creator_address.lower() != creator.address:
        raise ForbiddenError(
            "creatorAddress does not match the authenticated creator",
            details={"creatorAddress": request.creator_address},
        )

    artwork = await container.record_store.upsert(
        ArtworkRecord(
            content_hash=request.content_hash,
            prompt_hash=request.prompt_hash,
            creator_address=creator.address,
            ipfs_cid=request.ipfs_cid,
            model_used=request.model_used,
            metadata_uri=request.metadata_uri,
            certificate_token_id=request.certificate_token_id,
        )
    )
    return ArtworkResponse(artwork=artwork, persisted=artwork.is_persisted)


@router.put(
    "/artworks/{content_hash}/certificate",
    response_model=ArtworkResponse,
    summary="Link Certificate Token",
    description="Set the on-chain certificate token id of an artwork. Only its creator may do this.",
    responses={403: {"description": "Not the artwork's creator"}, 404: {"description": "Artwork not found"}},
)
async def update_certificate(
    content_hash: str,
    request: CertificateUpdateRequest,
    creator: Creator = Depends(require_creator),
    container: ServiceContainer = Depends(get_container),
) -> ArtworkResponse:
    store = container.record_store
    artwork = await store.find_by_content_hash(content_hash)
    if artwork is None:
        raise NotFoundError(content_hash)

    if artwork.creator_address != creator.address:
        raise ForbiddenError("Unauthorized")

    await store.update_certificate_token_id(content_hash, request.certificate_token_id)
    updated = await store.find_by_content_hash(content_hash)
    return ArtworkResponse(artwork=updated or artwork)
