"""Generation provider backends."""

from .base import (
    GenerationOutput,
    GenerationProvider,
    ModelRef,
    ProviderKind,
    parse_model_id,
)
from .bytez_provider import BytezProvider
from .demo_provider import DemoProvider
from .openai_provider import OpenAIProvider
from .stability_provider import StabilityProvider

__all__ = [
    "GenerationProvider",
    "GenerationOutput",
    "ModelRef",
    "ProviderKind",
    "parse_model_id",
    "OpenAIProvider",
    "StabilityProvider",
    "BytezProvider",
    "DemoProvider",
]
