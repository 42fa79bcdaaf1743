"""
OpenAI DALL-E 3 provider.

Calls the images/generations endpoint and returns the hosted image URL.
"""

import logging
from typing import Any

import httpx

from app.middleware import GenerationFailedError
from .base import GenerationOutput, GenerationProvider, ModelRef, ProviderKind

logger = logging.getLogger(__name__)

ALLOWED_SIZES = ("1024x1024", "1792x1024", "1024x1792")


class OpenAIProvider(GenerationProvider):
    """DALL-E 3 over the OpenAI REST API."""

    kind = ProviderKind.OPENAI

    def __init__(self, client: httpx.AsyncClient, api_key: str, base_url: str, timeout: float):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    async def generate(
        self, prompt: str, model_ref: ModelRef, parameters: dict[str, Any]
    ) -> GenerationOutput:
        size = parameters.get("size", "1024x1024")
        if size not in ALLOWED_SIZES:
            size = "1024x1024"

        payload = {
            "model": model_ref.provider_model,
            "prompt": prompt,
            "n": 1,
            "size": size,
            "quality": parameters.get("quality", "standard"),
            "style": parameters.get("style", "vivid"),
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/v1/images/generations",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json().get("data") or []
        except httpx.HTTPStatusError as e:
            raise GenerationFailedError(
                model_ref.model_id, f"DALL-E returned HTTP {e.response.status_code}"
            )
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationFailedError(model_ref.model_id, f"DALL-E request failed: {e}")

        if not data:
            raise GenerationFailedError(model_ref.model_id, "No data returned from DALL-E")

        image_url = data[0].get("url")
        if not image_url:
            raise GenerationFailedError(model_ref.model_id, "No image URL returned from DALL-E")

        logger.info("DALL-E generation returned an image URL")
        return GenerationOutput(
            content_url=image_url,
            metadata={"revisedPrompt": data[0].get("revised_prompt")},
        )
