"""
Unit Tests for Generation Providers

Tests model id parsing, each provider backend against mocked HTTP, and the
provider registry's model catalog.
"""

import base64
import io
import json
from unittest.mock import AsyncMock

import httpx
import pytest
from PIL import Image

from app.middleware import GenerationFailedError
from app.services.model_catalog import default_models, load_model_catalog
from app.services.provider_factory import ProviderRegistry, build_provider_registry
from app.services.providers import (
    BytezProvider,
    DemoProvider,
    OpenAIProvider,
    ProviderKind,
    StabilityProvider,
    parse_model_id,
)
from proof_engine import ValidationError


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseModelId:
    """Tests for parse_model_id."""

    @pytest.mark.parametrize(
        "model_id,kind,provider_model",
        [
            ("dall-e-3", ProviderKind.OPENAI, "dall-e-3"),
            ("stability-ai", ProviderKind.STABILITY, "core"),
            ("bytez:dreamlike-art/dreamlike-photoreal-2.0", ProviderKind.BYTEZ, "dreamlike-art/dreamlike-photoreal-2.0"),
            ("demo-model", ProviderKind.DEMO, "demo-model"),
            ("demo:gradient", ProviderKind.DEMO, "gradient"),
        ],
    )
    def test_known_identifiers(self, model_id, kind, provider_model):
        ref = parse_model_id(model_id)
        assert ref.kind == kind
        assert ref.provider_model == provider_model
        assert ref.model_id == model_id

    @pytest.mark.parametrize("model_id", ["", "   ", None, "gpt-image", "bytez:", "midjourney"])
    def test_rejects_unknown_or_empty(self, model_id):
        with pytest.raises(ValidationError):
            parse_model_id(model_id)


class TestDemoProvider:
    """Tests for DemoProvider."""

    @pytest.mark.asyncio
    async def test_generates_png_data_url(self):
        output = await DemoProvider().generate("a red cube", parse_model_id("demo-model"), {})

        assert output.content_url.startswith("data:image/png;base64,")
        png = base64.b64decode(output.content_url.split(",", 1)[1])
        assert png.startswith(b"\x89PNG\r\n\x1a\n")
        assert output.metadata["provider"] == "demo"

    @pytest.mark.asyncio
    async def test_image_size_and_color(self):
        output = await DemoProvider().generate(
            "a red cube", parse_model_id("demo-model"), {"size": 32}
        )
        png = base64.b64decode(output.content_url.split(",", 1)[1])

        with Image.open(io.BytesIO(png)) as img:
            assert img.format == "PNG"
            assert img.size == (32, 32)
            assert "#%02x%02x%02x" % img.getpixel((0, 0)) == output.metadata["color"]

    @pytest.mark.asyncio
    async def test_out_of_range_size_uses_default(self):
        output = await DemoProvider().generate(
            "a red cube", parse_model_id("demo-model"), {"size": 10_000}
        )
        png = base64.b64decode(output.content_url.split(",", 1)[1])

        with Image.open(io.BytesIO(png)) as img:
            assert img.size == (16, 16)

    @pytest.mark.asyncio
    async def test_same_prompt_same_bytes(self):
        provider = DemoProvider()
        ref = parse_model_id("demo-model")
        first = await provider.generate("a red cube", ref, {})
        second = await provider.generate("a red cube", ref, {})
        other = await provider.generate("a blue sphere", ref, {})

        assert first.content_url == second.content_url
        assert first.content_url != other.content_url

    def test_configured_only_when_enabled(self):
        assert DemoProvider(enabled=True).is_configured()
        assert not DemoProvider(enabled=False).is_configured()


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    @pytest.mark.asyncio
    async def test_returns_image_url_and_revised_prompt(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"data": [{"url": "https://img.example/1.png", "revised_prompt": "a red cube, 3d"}]},
            )

        provider = OpenAIProvider(mock_client(handler), "sk-test", "https://api.openai.com", 10)
        output = await provider.generate("a red cube", parse_model_id("dall-e-3"), {"quality": "hd"})

        assert output.content_url == "https://img.example/1.png"
        assert output.metadata["revisedPrompt"] == "a red cube, 3d"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["model"] == "dall-e-3"
        assert captured["body"]["quality"] == "hd"
        assert captured["body"]["size"] == "1024x1024"

    @pytest.mark.asyncio
    async def test_empty_data_fails(self):
        provider = OpenAIProvider(
            mock_client(lambda r: httpx.Response(200, json={"data": []})), "sk", "https://x", 10
        )
        with pytest.raises(GenerationFailedError, match="No data"):
            await provider.generate("a red cube", parse_model_id("dall-e-3"), {})

    @pytest.mark.asyncio
    async def test_http_error_fails(self):
        provider = OpenAIProvider(
            mock_client(lambda r: httpx.Response(429, json={"error": "rate"})), "sk", "https://x", 10
        )
        with pytest.raises(GenerationFailedError, match="429"):
            await provider.generate("a red cube", parse_model_id("dall-e-3"), {})

    def test_configuration_requires_key(self):
        client = mock_client(lambda r: httpx.Response(200))
        assert OpenAIProvider(client, "sk", "https://x", 10).is_configured()
        assert not OpenAIProvider(client, "  ", "https://x", 10).is_configured()


class TestStabilityProvider:
    """Tests for StabilityProvider."""

    @pytest.mark.asyncio
    async def test_returns_data_url_and_seed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v2beta/stable-image/generate/core"
            assert request.headers["Accept"] == "image/*"
            return httpx.Response(200, content=b"PNGDATA", headers={"seed": "1234"})

        provider = StabilityProvider(mock_client(handler), "key", "https://api.stability.ai", 10)
        output = await provider.generate("a red cube", parse_model_id("stability-ai"), {})

        assert output.content_url == "data:image/png;base64," + base64.b64encode(b"PNGDATA").decode()
        assert output.metadata["seed"] == 1234

    @pytest.mark.asyncio
    async def test_server_error_fails(self):
        provider = StabilityProvider(
            mock_client(lambda r: httpx.Response(500)), "key", "https://api.stability.ai", 10
        )
        with pytest.raises(GenerationFailedError):
            await provider.generate("a red cube", parse_model_id("stability-ai"), {})


class TestBytezProvider:
    """Tests for BytezProvider."""

    @pytest.mark.asyncio
    async def test_returns_output_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/models/v2/dreamlike-art/dreamlike-photoreal-2.0"
            assert request.headers["Authorization"] == "Key bz"
            assert json.loads(request.content)["text"] == "a red cube"
            return httpx.Response(200, json={"error": None, "output": "https://cdn.bytez/1.png"})

        provider = BytezProvider(mock_client(handler), "bz", "https://api.bytez.com", 10)
        output = await provider.generate(
            "a red cube", parse_model_id("bytez:dreamlike-art/dreamlike-photoreal-2.0"), {}
        )

        assert output.content_url == "https://cdn.bytez/1.png"
        assert output.metadata == {
            "modelId": "dreamlike-art/dreamlike-photoreal-2.0",
            "provider": "bytez",
        }

    @pytest.mark.asyncio
    async def test_error_field_fails(self):
        provider = BytezProvider(
            mock_client(lambda r: httpx.Response(200, json={"error": "model cold", "output": None})),
            "bz",
            "https://api.bytez.com",
            10,
        )
        with pytest.raises(GenerationFailedError, match="model cold"):
            await provider.generate("a red cube", parse_model_id("bytez:org/model"), {})

    @pytest.mark.asyncio
    async def test_list_models_maps_entries(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["task"] == "text-to-image"
            return httpx.Response(200, json={"error": None, "output": [{"modelId": "org/model-a"}]})

        provider = BytezProvider(mock_client(handler), "bz", "https://api.bytez.com", 10)
        models = await provider.list_models()

        assert models == [
            {"id": "org/model-a", "name": "model-a", "description": "Bytez org/model-a - Text to image generation"}
        ]

    @pytest.mark.asyncio
    async def test_list_models_soft_fails(self):
        provider = BytezProvider(
            mock_client(lambda r: httpx.Response(503)), "bz", "https://api.bytez.com", 10
        )
        assert await provider.list_models() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"output": ["org/model-a", "org/model-b"]},
            {"output": [None, 42, {"modelId": 7}]},
            ["org/model-a"],
        ],
    )
    async def test_list_models_ignores_malformed_entries(self, body):
        provider = BytezProvider(
            mock_client(lambda r: httpx.Response(200, json=body)), "bz", "https://api.bytez.com", 10
        )
        assert await provider.list_models() is None

    @pytest.mark.asyncio
    async def test_list_models_keeps_valid_entries_among_malformed(self):
        body = {"output": ["org/model-a", {"modelId": "org/model-b"}]}
        provider = BytezProvider(
            mock_client(lambda r: httpx.Response(200, json=body)), "bz", "https://api.bytez.com", 10
        )
        models = await provider.list_models()
        assert [model["id"] for model in models] == ["org/model-b"]

    @pytest.mark.asyncio
    async def test_list_models_without_key(self):
        provider = BytezProvider(mock_client(lambda r: httpx.Response(200)), "", "https://x", 10)
        assert await provider.list_models() is None


class TestModelCatalog:
    """Tests for the static models.yaml catalog."""

    def test_catalog_loads(self):
        catalog = load_model_catalog()
        ids = [entry["id"] for entry in catalog]
        assert "dall-e-3" in ids
        assert "stability-ai" in ids
        assert "demo-model" in ids

    def test_every_entry_parses(self):
        for entry in load_model_catalog():
            assert parse_model_id(entry["id"]).kind.value == entry["kind"]

    def test_default_bytez_models(self):
        bytez = default_models(ProviderKind.BYTEZ)
        assert len(bytez) == 6
        assert all(entry["id"].startswith("bytez:") for entry in bytez)


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def make_registry(self, demo_enabled: bool = True, bytez_models=None) -> ProviderRegistry:
        client = mock_client(lambda r: httpx.Response(503))
        bytez = BytezProvider(client, "bz", "https://api.bytez.com", 10)
        bytez.list_models = AsyncMock(return_value=bytez_models)
        return ProviderRegistry(
            {
                ProviderKind.OPENAI: OpenAIProvider(client, "", "https://x", 10),
                ProviderKind.STABILITY: StabilityProvider(client, "key", "https://x", 10),
                ProviderKind.BYTEZ: bytez,
                ProviderKind.DEMO: DemoProvider(enabled=demo_enabled),
            }
        )

    def test_is_configured_per_model(self):
        registry = self.make_registry()
        assert not registry.is_configured("dall-e-3")
        assert registry.is_configured("stability-ai")
        assert registry.is_configured("bytez:org/model")
        assert registry.is_configured("demo-model")
        assert not registry.is_configured("unknown-model")

    @pytest.mark.asyncio
    async def test_list_models_falls_back_to_defaults(self):
        models = await self.make_registry(bytez_models=None).list_models()
        by_id = {model["id"]: model for model in models}

        assert by_id["dall-e-3"]["available"] is False
        assert by_id["stability-ai"]["available"] is True
        assert by_id["demo-model"]["provider"] == "Demo"
        assert len([m for m in models if m["provider"] == "Bytez"]) == 6

    @pytest.mark.asyncio
    async def test_list_models_uses_live_bytez_catalog(self):
        live = [{"id": "org/live", "name": "Live", "description": "live model"}]
        models = await self.make_registry(bytez_models=live).list_models()
        bytez = [m for m in models if m["provider"] == "Bytez"]

        assert [m["id"] for m in bytez] == ["bytez:org/live"]
        assert bytez[0]["available"] is True

    @pytest.mark.asyncio
    async def test_malformed_bytez_catalog_falls_back_to_defaults(self):
        client = mock_client(
            lambda r: httpx.Response(200, json={"output": ["org/model-a", "org/model-b"]})
        )
        registry = ProviderRegistry({ProviderKind.BYTEZ: BytezProvider(client, "bz", "https://x", 10)})
        models = await registry.list_models()

        bytez = [m["id"] for m in models if m["provider"] == "Bytez"]
        assert bytez == [entry["id"] for entry in default_models(ProviderKind.BYTEZ)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("live", [["org/model-a"], {"id": "org/model-a"}, [{"name": "no id"}]])
    async def test_unexpected_live_entries_fall_back_to_defaults(self, live):
        models = await self.make_registry(bytez_models=live).list_models()
        assert len([m for m in models if m["provider"] == "Bytez"]) == 6

    @pytest.mark.asyncio
    async def test_bytez_catalog_exception_falls_back_to_defaults(self):
        registry = self.make_registry()
        registry.get(ProviderKind.BYTEZ).list_models = AsyncMock(side_effect=AttributeError("get"))

        models = await registry.list_models()

        assert len([m for m in models if m["provider"] == "Bytez"]) == 6
        assert "stability-ai" in [m["id"] for m in models]

    @pytest.mark.asyncio
    async def test_demo_model_hidden_when_disabled(self):
        models = await self.make_registry(demo_enabled=False).list_models()
        assert "demo-model" not in [model["id"] for model in models]

    def test_build_from_settings(self, test_settings):
        registry = build_provider_registry(test_settings, mock_client(lambda r: httpx.Response(200)))
        assert registry.is_configured("demo-model")
        assert not registry.is_configured("dall-e-3")
