"""
DemoProvider - deterministic local images for development and testing.

Produces a small solid-color PNG whose color is derived from the prompt, so
the same prompt always yields the same bytes (and the same content hash).
Enabled with ENABLE_DEMO_PROVIDER; needs no credentials or network.
"""

import asyncio
import base64
import hashlib
import io
import logging
from typing import Any

from PIL import Image

from .base import GenerationOutput, GenerationProvider, ModelRef, ProviderKind

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 16


def render_png(rgb: tuple[int, int, int], size: int = DEFAULT_SIZE) -> bytes:
    """Encode a size x size solid-color RGB PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (size, size), rgb).save(buffer, format="PNG")
    return buffer.getvalue()


class DemoProvider(GenerationProvider):
    """
    Local stand-in for a real generator.

    Adds:
    - Prompt-derived colors for reproducible output
    - Optional artificial latency to exercise progress reporting
    - [DEMO] prefixed logging
    """

    kind = ProviderKind.DEMO

    def __init__(self, enabled: bool = True, latency_seconds: float = 0.0):
        self.enabled = enabled
        self.latency_seconds = latency_seconds

    def is_configured(self) -> bool:
        return self.enabled

    async def generate(
        self, prompt: str, model_ref: ModelRef, parameters: dict[str, Any]
    ) -> GenerationOutput:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)

        seed = hashlib.sha256(f"{model_ref.provider_model}:{prompt}".encode("utf-8")).digest()
        rgb = (seed[0], seed[1], seed[2])

        size = parameters.get("size", DEFAULT_SIZE)
        if not isinstance(size, int) or not 1 <= size <= 256:
            size = DEFAULT_SIZE

        png = render_png(rgb, size)
        logger.info(f"[DEMO] Generated {size}x{size} image rgb{rgb} for {model_ref.model_id}")
        return GenerationOutput(
            content_url="data:image/png;base64," + base64.b64encode(png).decode("ascii"),
            metadata={"provider": "demo", "color": "#%02x%02x%02x" % rgb},
        )
