"""Pydantic models for the generation endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from .artwork import ArtworkRecord
from .proof_package import ProofPackage


class StageEventModel(BaseModel):
    """A single orchestrator stage boundary event."""

    stage: str
    outcome: str
    elapsed_ms: int = Field(..., alias="elapsedMs")
    detail: Optional[str] = None

    model_config = {"populate_by_name": True}


class GenerateRequest(BaseModel):
    """
    Request body for POST /api/generate and POST /api/generate/full.

    Attributes:
        prompt: Text prompt (1-1000 characters after trimming)
        model: Model identifier, e.g. "dall-e-3" or "bytez:<model-id>"
        parameters: Provider-specific generation options
    """

    prompt: str = Field(..., description="Text prompt for the generator")
    model: str = Field(..., description="Model identifier", examples=["dall-e-3"])
    parameters: dict[str, Any] = Field(default_factory=dict)
    biometric_data: Optional[Any] = Field(None, alias="biometricData")
    encrypt_prompt: bool = Field(False, alias="encryptPrompt")
    private: bool = Field(False, description="Never include the prompt in the proof package")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [{"prompt": "a red cube", "model": "demo-model", "parameters": {}}]
        },
    }


class PublishRequest(BaseModel):
    """
    Request body for POST /api/generate/upload-ipfs.

    Content comes either inline as base64 or from the staging area, looked
    up by content hash.
    """

    content_hash: str = Field(..., alias="contentHash")
    prompt_hash: str = Field(..., alias="promptHash")
    model: Optional[str] = None
    image_buffer: Optional[str] = Field(None, alias="imageBuffer", description="Base64 content")
    prompt: Optional[str] = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    biometric_data: Optional[Any] = Field(None, alias="biometricData")
    encrypt_prompt: bool = Field(False, alias="encryptPrompt")
    private: bool = False

    model_config = {"populate_by_name": True}


class GenerateResponse(BaseModel):
    """Response for POST /api/generate (content hashed, not yet pinned)."""

    success: bool = True
    image_url: str = Field(..., alias="imageUrl")
    image_buffer: str = Field(..., alias="imageBuffer")
    content_hash: str = Field(..., alias="contentHash")
    prompt_hash: str = Field(..., alias="promptHash")
    model: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    ipfs_ready: bool = Field(False, alias="ipfsReady")
    staged: bool = False
    timing: dict[str, int] = Field(default_factory=dict)
    events: list[StageEventModel] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class PublishResponse(BaseModel):
    """Response for POST /api/generate/upload-ipfs."""

    success: bool = True
    status: str = Field(..., description="complete or partial")
    ipfs_cid: str = Field(..., alias="ipfsCID")
    ipfs_url: str = Field(..., alias="ipfsUrl")
    proof_package: ProofPackage = Field(..., alias="proofPackage")
    proof_identity: str = Field(..., alias="proofIdentity")
    metadata_uri: Optional[str] = Field(None, alias="metadataURI")
    record_saved: bool = Field(..., alias="recordSaved")
    artwork: Optional[ArtworkRecord] = None
    warnings: list[str] = Field(default_factory=list)
    timing: dict[str, int] = Field(default_factory=dict)
    events: list[StageEventModel] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class FullGenerationResponse(PublishResponse):
    """Response for POST /api/generate/full."""

    image_url: str = Field(..., alias="imageUrl")
    content_hash: str = Field(..., alias="contentHash")
    prompt_hash: str = Field(..., alias="promptHash")
    model: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    ipfs_ready: bool = Field(True, alias="ipfsReady")


class ModelInfo(BaseModel):
    """A selectable generation model."""

    id: str
    name: str
    provider: str
    available: bool
    description: str = ""
    features: list[str] = Field(default_factory=list)


class ModelListResponse(BaseModel):
    """Response for GET /api/generate/models."""

    models: list[ModelInfo]
