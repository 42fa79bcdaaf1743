"""
Stability AI provider.

The stable-image core endpoint answers with raw PNG bytes, which are
returned to the orchestrator as a data: URL.
"""

import base64
import logging
from typing import Any

import httpx

from app.middleware import GenerationFailedError
from .base import GenerationOutput, GenerationProvider, ModelRef, ProviderKind

logger = logging.getLogger(__name__)


class StabilityProvider(GenerationProvider):
    kind = ProviderKind.STABILITY

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
        form = {
            "prompt": prompt,
            "output_format": "png",
            "width": parameters.get("width", 1024),
            "height": parameters.get("height", 1024),
            "style_preset": parameters.get("style_preset", "enhance"),
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/v2beta/stable-image/generate/{model_ref.provider_model}",
                # multipart/form-data with plain fields
                files={key: (None, str(value)) for key, value in form.items()},
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Accept": "image/*",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GenerationFailedError(
                model_ref.model_id, f"Stability AI returned HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            raise GenerationFailedError(model_ref.model_id, f"Stability AI request failed: {e}")

        if not response.content:
            raise GenerationFailedError(model_ref.model_id, "No data returned from Stability AI")

        encoded = base64.b64encode(response.content).decode("ascii")
        seed = response.headers.get("seed")
        logger.info(f"Stability AI generation returned {len(response.content)} bytes")
        return GenerationOutput(
            content_url=f"data:image/png;base64,{encoded}",
            metadata={"seed": int(seed) if seed and seed.isdigit() else None},
        )
