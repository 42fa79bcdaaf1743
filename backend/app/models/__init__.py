"""Pydantic models for API request/response schemas."""

from .artwork import (
    ArtworkListResponse,
    ArtworkRecord,
    ArtworkResponse,
    CertificateUpdateRequest,
    SaveArtworkRequest,
)
from .creator import ANONYMOUS_CREATOR, Creator
from .generation import (
    FullGenerationResponse,
    GenerateRequest,
    GenerateResponse,
    ModelInfo,
    ModelListResponse,
    PublishRequest,
    PublishResponse,
    StageEventModel,
)
from .proof_package import ProofPackage
from .verification import (
    FileVerificationResponse,
    OwnerArtworksResponse,
    VerificationResponse,
)

__all__ = [
    "ArtworkRecord",
    "ArtworkResponse",
    "ArtworkListResponse",
    "SaveArtworkRequest",
    "CertificateUpdateRequest",
    "Creator",
    "ANONYMOUS_CREATOR",
    "GenerateRequest",
    "GenerateResponse",
    "PublishRequest",
    "PublishResponse",
    "FullGenerationResponse",
    "StageEventModel",
    "ModelInfo",
    "ModelListResponse",
    "ProofPackage",
    "VerificationResponse",
    "FileVerificationResponse",
    "OwnerArtworksResponse",
]
