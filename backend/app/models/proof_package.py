"""Pydantic models for proof packages."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ProofPackage(BaseModel):
    """Provenance record pinned alongside the artwork."""

    version: str = "1.0"
    creator_address: str = Field(..., alias="creatorAddress")
    prompt_hash: str = Field(..., alias="promptHash")
    content_hash: str = Field(..., alias="contentHash")
    ipfs_cid: str = Field(..., alias="ipfsCID")
    model_used: str = Field(..., alias="modelUsed")
    parameters: dict[str, Any] = Field(default_factory=dict)
    biometric_attestation: Optional[Any] = Field(None, alias="biometricAttestation")
    timestamp: str
    prompt: Optional[str] = None
    encrypted_prompt: Optional[str] = Field(None, alias="encryptedPrompt")

    model_config = {"populate_by_name": True}
