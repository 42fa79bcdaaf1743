"""
Generation endpoints.

POST /api/generate runs the pipeline up to hashing and stages the content;
POST /api/generate/upload-ipfs pins it and records the proof;
POST /api/generate/full does both in one request.
"""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends

from app.container import ServiceContainer, get_container
from app.middleware.auth import get_optional_creator
from app.models import (
    FullGenerationResponse,
    GenerateRequest,
    GenerateResponse,
    ModelInfo,
    ModelListResponse,
    ProofPackage,
    PublishRequest,
    PublishResponse,
)
from app.models.creator import Creator
from app.services import CollectingProgressReporter, PublishResult
from proof_engine import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _publish_fields(result: PublishResult, reporter: CollectingProgressReporter) -> dict:
    return {
        "status": result.status,
        "ipfs_cid": result.ipfs_cid,
        "ipfs_url": result.ipfs_url,
        "proof_package": ProofPackage.model_validate(result.proof_package),
        "proof_identity": result.proof_identity,
        "metadata_uri": result.metadata_uri,
        "record_saved": result.record_saved,
        "artwork": result.artwork,
        "warnings": result.warnings,
        "timing": result.timing,
        "events": reporter.as_dicts(),
    }


@router.post(
    "/generate",
    response_model=GenerateResponse,
    summary="Generate Artwork",
    description="""
Generate an image with the selected model and compute its content hash.

The content is staged on the server and returned base64 encoded. Pinning to
IPFS happens in a separate call to `/api/generate/upload-ipfs`, so the
response carries `ipfsReady: false`.

Requires a bearer token.
""",
    responses={
        400: {"description": "Invalid prompt or model"},
        401: {"description": "Authentication required"},
        503: {"description": "Model provider not configured"},
        504: {"description": "Generation timed out"},
    },
)
async def generate_artwork(
    request: GenerateRequest,
    creator: Creator | None = Depends(get_optional_creator),
    container: ServiceContainer = Depends(get_container),
) -> GenerateResponse:
    reporter = CollectingProgressReporter("generate")
    result = await container.orchestrator.generate(
        creator, request.prompt, request.model, request.parameters, reporter=reporter
    )

    return GenerateResponse(
        image_url=result.image_url,
        image_buffer=base64.b64encode(result.content).decode("ascii"),
        content_hash=result.content_hash,
        prompt_hash=result.prompt_hash,
        model=result.model,
        metadata=result.metadata,
        ipfs_ready=False,
        staged=result.staged,
        timing=result.timing,
        events=reporter.as_dicts(),
    )


@router.post(
    "/generate/upload-ipfs",
    response_model=PublishResponse,
    summary="Publish Generated Artwork",
    description="""
Pin generated content to IPFS, build and pin its proof package, and save the
artwork record.

Content is taken from `imageBuffer` (base64) when present, otherwise from
the staging area by `contentHash`. The bytes must hash to `contentHash`.

A failed proof package pin or record save does not fail the request; it is
listed in `warnings` and `status` is `partial`.
""",
)
async def publish_artwork(
    request: PublishRequest,
    creator: Creator | None = Depends(get_optional_creator),
    container: ServiceContainer = Depends(get_container),
) -> PublishResponse:
    content = None
    if request.image_buffer:
        try:
            content = base64.b64decode(request.image_buffer, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("imageBuffer is not valid base64", details={"field": "imageBuffer"})

    reporter = CollectingProgressReporter("publish")
    result = await container.orchestrator.publish(
        creator,
        request.content_hash,
        request.prompt_hash,
        content=content,
        model=request.model,
        prompt=request.prompt,
        parameters=request.parameters,
        biometric_data=request.biometric_data,
        encrypt_prompt=request.encrypt_prompt,
        private=request.private,
        reporter=reporter,
    )
    return PublishResponse(**_publish_fields(result, reporter))


@router.post(
    "/generate/full",
    response_model=FullGenerationResponse,
    summary="Generate and Publish Artwork",
    description="Run generation, hashing, pinning, proof building and persistence in one request.",
)
async def generate_and_publish_artwork(
    request: GenerateRequest,
    creator: Creator | None = Depends(get_optional_creator),
    container: ServiceContainer = Depends(get_container),
) -> FullGenerationResponse:
    reporter = CollectingProgressReporter("full")
    generated, published = await container.orchestrator.generate_and_publish(
        creator,
        request.prompt,
        request.model,
        parameters=request.parameters,
        biometric_data=request.biometric_data,
        encrypt_prompt=request.encrypt_prompt,
        private=request.private,
        reporter=reporter,
    )

    return FullGenerationResponse(
        image_url=generated.image_url,
        content_hash=generated.content_hash,
        prompt_hash=generated.prompt_hash,
        model=generated.model,
        metadata=generated.metadata,
        ipfs_ready=True,
        **_publish_fields(published, reporter),
    )


@router.get(
    "/generate/models",
    response_model=ModelListResponse,
    summary="List Generation Models",
    description="List selectable models with an `available` flag telling whether credentials are configured.",
)
async def list_models(container: ServiceContainer = Depends(get_container)) -> ModelListResponse:
    models = await container.providers.list_models()
    return ModelListResponse(models=[ModelInfo(**model) for model in models])
