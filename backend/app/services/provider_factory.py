"""
Provider registry for generation backend selection.

Maps each ProviderKind to its GenerationProvider and assembles the model
catalog served to clients.
"""

import asyncio
import logging
from typing import Any

import httpx

from app.config import Settings
from .model_catalog import default_models, load_model_catalog
from .providers import (
    BytezProvider,
    DemoProvider,
    GenerationProvider,
    ModelRef,
    OpenAIProvider,
    ProviderKind,
    StabilityProvider,
    parse_model_id,
)

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Dispatches generation requests to the provider for a model's kind.

    Handles:
    - Model id parsing and provider lookup
    - Credential checks per model
    - Model catalog assembly with static fallback
    """

    def __init__(self, providers: dict[ProviderKind, GenerationProvider], list_timeout: float = 3.0):
        self._providers = dict(providers)
        self.list_timeout = list_timeout

    def get(self, kind: ProviderKind) -> GenerationProvider | None:
        return self._providers.get(kind)

    def resolve(self, model_id: str) -> tuple[ModelRef, GenerationProvider | None]:
        """
        Parse a model id and find its provider.

        Raises:
            ValidationError: If the model id is not recognized
        """
        model_ref = parse_model_id(model_id)
        return model_ref, self._providers.get(model_ref.kind)

    def is_configured(self, model_id: str) -> bool:
        """Return True if the model's provider has credentials. Unknown ids are not configured."""
        try:
            _, provider = self.resolve(model_id)
        except ValueError:
            return False
        return provider is not None and provider.is_configured()

    async def _bytez_entries(self) -> list[dict[str, Any]]:
        provider = self._providers.get(ProviderKind.BYTEZ)
        live = None
        if provider is not None:
            try:
                live = await asyncio.wait_for(provider.list_models(), timeout=self.list_timeout)
            except asyncio.TimeoutError:
                logger.warning("Bytez model catalog timed out, using defaults")
            except Exception as e:
                logger.warning(f"Bytez model catalog failed, using defaults: {e!r}")

        entries = [
            {
                "id": f"bytez:{model['id']}",
                "name": model.get("name") or model["id"],
                "provider": "Bytez",
                "kind": ProviderKind.BYTEZ.value,
                "description": model.get("description", ""),
                "features": ["Text-to-image", "High quality"],
            }
            for model in (live if isinstance(live, list) else [])
            if isinstance(model, dict) and isinstance(model.get("id"), str) and model["id"]
        ]
        return entries or default_models(ProviderKind.BYTEZ)

    async def list_models(self) -> list[dict[str, Any]]:
        """
        Return the selectable models with an availability flag.

        The demo model is listed only when the demo provider is enabled.
        """
        models: list[dict[str, Any]] = []
        bytez_added = False

        for entry in load_model_catalog():
            kind = ProviderKind(entry["kind"])
            provider = self._providers.get(kind)

            if kind == ProviderKind.BYTEZ:
                if bytez_added:
                    continue
                bytez_added = True
                entries = await self._bytez_entries()
            elif kind == ProviderKind.DEMO and (provider is None or not provider.is_configured()):
                continue
            else:
                entries = [entry]

            available = provider is not None and provider.is_configured()
            for model in entries:
                models.append(
                    {
                        "id": model["id"],
                        "name": model["name"],
                        "provider": model["provider"],
                        "available": available,
                        "description": model.get("description", ""),
                        "features": list(model.get("features", [])),
                    }
                )

        logger.info(f"Returning {len(models)} models")
        return models


def build_provider_registry(settings: Settings, client: httpx.AsyncClient) -> ProviderRegistry:
    """Create the registry with one provider per kind from settings."""
    providers: dict[ProviderKind, GenerationProvider] = {
        ProviderKind.OPENAI: OpenAIProvider(
            client, settings.OPENAI_API_KEY, settings.OPENAI_API_URL, settings.GENERATION_TIMEOUT
        ),
        ProviderKind.STABILITY: StabilityProvider(
            client,
            settings.STABILITY_API_KEY,
            settings.STABILITY_API_URL,
            settings.GENERATION_TIMEOUT,
        ),
        ProviderKind.BYTEZ: BytezProvider(
            client,
            settings.BYTEZ_API_KEY,
            settings.BYTEZ_API_URL,
            settings.GENERATION_TIMEOUT,
            list_timeout=settings.MODEL_LIST_TIMEOUT,
        ),
        ProviderKind.DEMO: DemoProvider(
            enabled=settings.ENABLE_DEMO_PROVIDER,
            latency_seconds=settings.DEMO_LATENCY_SECONDS,
        ),
    }

    configured = [kind.value for kind, provider in providers.items() if provider.is_configured()]
    logger.info(f"Generation providers configured: {configured or 'none'}")
    return ProviderRegistry(providers, list_timeout=settings.MODEL_LIST_TIMEOUT)
