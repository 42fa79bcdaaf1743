"""
Bytez provider for hosted open-source text-to-image models.

Models are addressed as "bytez:<org>/<model>". The Bytez run endpoint
returns {"error": ..., "output": "<image url>"}.
"""

import logging
from typing import Any

import httpx

from app.middleware import GenerationFailedError
from .base import GenerationOutput, GenerationProvider, ModelRef, ProviderKind

logger = logging.getLogger(__name__)


class BytezProvider(GenerationProvider):
    """
    Bytez REST client.

    Handles:
    - Running a model with a text prompt
    - Listing text-to-image models for the model catalog
    """

    kind = ProviderKind.BYTEZ

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        base_url: str,
        timeout: float,
        list_timeout: float = 3.0,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.list_timeout = list_timeout

    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Key {self.api_key}"}

    async def generate(
        self, prompt: str, model_ref: ModelRef, parameters: dict[str, Any]
    ) -> GenerationOutput:
        logger.info(f"Generating image with Bytez model: {model_ref.provider_model}")

        body: dict[str, Any] = {"text": prompt}
        if parameters:
            body["params"] = parameters

        try:
            response = await self.client.post(
                f"{self.base_url}/models/v2/{model_ref.provider_model}",
                json=body,
                headers=self._headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationFailedError(
                model_ref.model_id, f"Bytez returned HTTP {e.response.status_code}"
            )
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationFailedError(model_ref.model_id, f"Bytez request failed: {e}")

        if result.get("error"):
            raise GenerationFailedError(
                model_ref.model_id, f"Bytez generation error: {result['error']}"
            )

        output = result.get("output")
        if not output or not isinstance(output, str):
            raise GenerationFailedError(model_ref.model_id, "No output returned from Bytez")

        return GenerationOutput(
            content_url=output,
            metadata={"modelId": model_ref.provider_model, "provider": "bytez"},
        )

    async def list_models(self) -> list[dict[str, Any]] | None:
        """
        Fetch text-to-image models from Bytez.

        Returns:
            list[dict]: Entries with id, name, description; None when the key is
            missing or the call fails
        """
        if not self.is_configured():
            return None

        try:
            response = await self.client.get(
                f"{self.base_url}/models/v2/list/models",
                params={"task": "text-to-image"},
                headers=self._headers,
                timeout=self.list_timeout,
            )
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Error fetching Bytez models, using defaults: {e}")
            return None

        if not isinstance(result, dict):
            logger.warning(f"Unexpected Bytez model list: {type(result).__name__}")
            return None

        output = result.get("output")
        if result.get("error") or not isinstance(output, list) or not output:
            return None

        models = []
        for entry in output:
            if not isinstance(entry, dict):
                continue
            model_id = entry.get("modelId") or entry.get("id")
            if not model_id or not isinstance(model_id, str):
                continue
            models.append(
                {
                    "id": model_id,
                    "name": entry.get("name") or model_id.split("/")[-1],
                    "description": entry.get("description")
                    or f"Bytez {model_id} - Text to image generation",
                }
            )
        return models or None
