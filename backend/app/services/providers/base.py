"""
GenerationProvider abstraction for AI image backends.

Model identifiers are parsed once at the request boundary into a ModelRef
carrying a ProviderKind, so dispatch never inspects raw strings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from proof_engine import ValidationError

BYTEZ_PREFIX = "bytez:"
DEMO_PREFIX = "demo:"


class ProviderKind(str, Enum):
    OPENAI = "openai"
    STABILITY = "stability"
    BYTEZ = "bytez"
    DEMO = "demo"


@dataclass(frozen=True)
class ModelRef:
    """
    Parsed model identifier.

    Attributes:
        model_id: Identifier as selected by the client, e.g. "bytez:org/model"
        kind: Provider backend serving the model
        provider_model: Model name understood by the provider
    """

    model_id: str
    kind: ProviderKind
    provider_model: str


def parse_model_id(model_id: str | None) -> ModelRef:
    """
    Parse a client model identifier.

    Args:
        model_id: "dall-e-3", "stability-ai", "bytez:<model>", "demo-model" or "demo:<name>"

    Returns:
        ModelRef: Parsed reference

    Raises:
        ValidationError: If the identifier is empty or not recognized
    """
    cleaned = (model_id or "").strip()
    if not cleaned:
        raise ValidationError("Model is required", details={"field": "model"})

    if cleaned == "dall-e-3":
        return ModelRef(cleaned, ProviderKind.OPENAI, "dall-e-3")
    if cleaned == "stability-ai":
        return ModelRef(cleaned, ProviderKind.STABILITY, "core")
    if cleaned == "demo-model":
        return ModelRef(cleaned, ProviderKind.DEMO, "demo-model")

    for prefix, kind in ((BYTEZ_PREFIX, ProviderKind.BYTEZ), (DEMO_PREFIX, ProviderKind.DEMO)):
        if cleaned.startswith(prefix):
            provider_model = cleaned[len(prefix):].strip()
            if not provider_model:
                raise ValidationError(
                    f"Model id is missing after '{prefix}'", details={"model": cleaned}
                )
            return ModelRef(cleaned, kind, provider_model)

    raise ValidationError(f"Unsupported model: {cleaned}", details={"model": cleaned})


@dataclass
class GenerationOutput:
    """
    Provider result.

    Attributes:
        content_url: http(s) URL or data: URL of the produced content
        metadata: Provider-specific details (revised prompt, seed, ...)
    """

    content_url: str
    metadata: dict[str, Any] = field(default_factory=dict)


class GenerationProvider(ABC):
    """
    Abstract base class for generation providers.

    Implementations:
    - OpenAIProvider: DALL-E 3 image generation
    - StabilityProvider: Stability AI stable-image core endpoint
    - BytezProvider: Bytez hosted text-to-image models
    - DemoProvider: Deterministic local images, no credentials needed
    """

    kind: ProviderKind

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if the provider has the credentials it needs."""
        pass

    @abstractmethod
    async def generate(
        self, prompt: str, model_ref: ModelRef, parameters: dict[str, Any]
    ) -> GenerationOutput:
        """
        Generate content for a prompt.

        Args:
            prompt: Normalized prompt text
            model_ref: Parsed model reference of this provider's kind
            parameters: Provider-specific options (size, quality, style, ...)

        Returns:
            GenerationOutput: Where to fetch the produced content

        Raises:
            GenerationFailedError: If the provider reports an error or returns nothing
        """
        pass

    async def list_models(self) -> list[dict[str, Any]] | None:
        """
        Return the provider's live model catalog.

        Returns None when the provider has no catalog endpoint; callers then
        use the static catalog.
        """
        return None
