import asyncio
import base64
import json
import logging
from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from config.settings import GatewaySettings
from core.gateway import (
    AcquisitionValidationError,
    GatewayError,
    HttpGateway,
    LocalGateway,
    MockProvider,
    create_gateway,
    create_provider,
)
from core.gateway.providers import (
    CustomProvider,
    DalleProvider,
    ImagenProvider,
    ReplicateProvider,
    StabilityProvider,
    StableDiffusionProvider,
)
from core.gateway.uploads import validate_upload

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)
ENDPOINT = "http://wall.test/api/generate-image"


def _gateway_with(handler) -> HttpGateway:
    return HttpGateway(ENDPOINT, transport=httpx.MockTransport(handler))


class TestUploads:
    def test_oversized_file_rejected_before_reading(self, tmp_path):
        path = tmp_path / "huge.png"
        with path.open("wb") as handle:
            handle.truncate(12 * 1024 * 1024)

        gateway = LocalGateway(MockProvider(delay_seconds=0))
        with pytest.raises(AcquisitionValidationError, match="less than 10MB"):
            asyncio.run(gateway.acquire_from_file(path))

    def test_oversized_file_is_never_read(self, tmp_path, monkeypatch):
        path = tmp_path / "huge.jpg"
        with path.open("wb") as handle:
            handle.truncate(10 * 1024 * 1024 + 1)
        reads = []
        monkeypatch.setattr(Path, "read_bytes", lambda self: reads.append(self) or b"")

        gateway = LocalGateway(MockProvider(delay_seconds=0))
        with pytest.raises(AcquisitionValidationError):
            asyncio.run(gateway.acquire_from_file(path))
        assert reads == []

    def test_non_image_rejected(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(AcquisitionValidationError, match="Please select an image file"):
            validate_upload(path)

    def test_missing_file_is_a_read_failure(self, tmp_path):
        with pytest.raises(GatewayError, match="Failed to read image file"):
            validate_upload(tmp_path / "gone.png")

    def test_image_becomes_data_url_named_after_file(self, tmp_path):
        path = tmp_path / "sunset.png"
        path.write_bytes(PNG_BYTES)

        image = asyncio.run(LocalGateway(MockProvider(delay_seconds=0)).acquire_from_file(path))

        assert image.prompt == "sunset.png"
        assert image.url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")
        assert image.id.startswith("upload-")


class TestPromptValidation:
    @pytest.mark.parametrize("prompt", ["", "   ", None])
    def test_blank_prompt_never_reaches_backend(self, prompt):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(AcquisitionValidationError):
            asyncio.run(_gateway_with(handler).acquire_from_prompt(prompt))
        assert calls == []


class TestHttpGateway:
    def test_success_returns_payload(self):
        def handler(request):
            assert json.loads(request.content) == {"prompt": "a red fox"}
            return httpx.Response(200, json={"url": "https://img/fox.png", "prompt": "a red fox", "id": "dalle-1"})

        image = asyncio.run(_gateway_with(handler).acquire_from_prompt("a red fox"))

        assert image.url == "https://img/fox.png"
        assert image.id == "dalle-1"

    def test_error_message_surfaces_verbatim(self):
        def handler(request):
            return httpx.Response(502, json={"error": "rate limit exceeded"})

        with pytest.raises(GatewayError, match="^rate limit exceeded$"):
            asyncio.run(_gateway_with(handler).acquire_from_prompt("p"))

    def test_error_without_message_uses_generic_text(self):
        def handler(request):
            return httpx.Response(500, json={})

        with pytest.raises(GatewayError, match="Failed to generate image"):
            asyncio.run(_gateway_with(handler).acquire_from_prompt("p"))

    def test_non_json_response_is_reported_with_excerpt(self):
        body = "<html>" + "x" * 300

        def handler(request):
            return httpx.Response(500, text=body, headers={"content-type": "text/html"})

        with pytest.raises(GatewayError) as excinfo:
            asyncio.run(_gateway_with(handler).acquire_from_prompt("p"))
        assert str(excinfo.value) == f"Server returned non-JSON response: {body[:100]}"

    def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError, match="Network error"):
            asyncio.run(_gateway_with(handler).acquire_from_prompt("p"))


class TestProviders:
    def test_dalle_success(self):
        def handler(request):
            assert request.headers["authorization"] == "Bearer sk-test"
            assert request.url.path == "/v1/images/generations"
            return httpx.Response(200, json={"data": [{"url": "https://img/dalle.png"}]})

        provider = DalleProvider(GatewaySettings(provider="dalle", api_key="sk-test"), transport=httpx.MockTransport(handler))
        image = asyncio.run(provider.generate("castle"))

        assert image.url == "https://img/dalle.png"
        assert image.prompt == "castle"
        assert image.id.startswith("dalle-")

    def test_dalle_upstream_error(self):
        def handler(request):
            return httpx.Response(429, text="slow down")

        provider = DalleProvider(GatewaySettings(provider="dalle", api_key="k"), transport=httpx.MockTransport(handler))
        with pytest.raises(GatewayError, match="DALL-E API error: 429 - slow down"):
            asyncio.run(provider.generate("castle"))

    def test_stability_returns_data_url(self):
        encoded = base64.b64encode(PNG_BYTES).decode("ascii")

        def handler(request):
            return httpx.Response(200, json={"artifacts": [{"base64": encoded}]})

        provider = StabilityProvider(
            GatewaySettings(provider="stability", api_key="k"), transport=httpx.MockTransport(handler)
        )
        image = asyncio.run(provider.generate("forest"))
        assert image.url == f"data:image/png;base64,{encoded}"

    def test_replicate_polls_until_success(self):
        statuses = iter(["starting", "processing", "succeeded"])

        def handler(request):
            if request.method == "POST":
                assert request.headers["authorization"] == "Token r8"
                return httpx.Response(201, json={"id": "pred-1", "status": "starting"})
            state = next(statuses)
            output = ["https://img/replicate.png"] if state == "succeeded" else None
            return httpx.Response(200, json={"id": "pred-1", "status": state, "output": output})

        settings = GatewaySettings(provider="replicate", api_key="r8", poll_interval_seconds=0)
        provider = ReplicateProvider(settings, transport=httpx.MockTransport(handler))

        image = asyncio.run(provider.generate("boat"))
        assert image.url == "https://img/replicate.png"

    def test_replicate_failure_and_timeout(self):
        def failing(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "pred-1"})
            return httpx.Response(200, json={"status": "failed", "error": "NSFW"})

        def stuck(request):
            if request.method == "POST":
                return httpx.Response(201, json={"id": "pred-1"})
            return httpx.Response(200, json={"status": "processing"})

        settings = GatewaySettings(provider="replicate", api_key="r8", poll_interval_seconds=0, poll_attempts=3)
        with pytest.raises(GatewayError, match="Replicate prediction failed: NSFW"):
            asyncio.run(ReplicateProvider(settings, transport=httpx.MockTransport(failing)).generate("x"))
        with pytest.raises(GatewayError, match="timed out"):
            asyncio.run(ReplicateProvider(settings, transport=httpx.MockTransport(stuck)).generate("x"))

    def test_malformed_success_body_is_a_gateway_error(self):
        def handler(request):
            return httpx.Response(200, json=[])

        provider = DalleProvider(GatewaySettings(provider="dalle", api_key="k"), transport=httpx.MockTransport(handler))
        with pytest.raises(GatewayError, match="DALL-E API returned an unexpected response"):
            asyncio.run(provider.generate("castle"))

    def test_malformed_data_entries_are_a_gateway_error(self):
        def handler(request):
            return httpx.Response(200, json={"data": ["not-an-object"]})

        provider = DalleProvider(GatewaySettings(provider="dalle", api_key="k"), transport=httpx.MockTransport(handler))
        with pytest.raises(GatewayError, match="No image URL returned from DALL-E API"):
            asyncio.run(provider.generate("castle"))

    def test_stable_diffusion_reads_output_list(self):
        def handler(request):
            assert str(request.url) == "http://sd.local/generate"
            assert json.loads(request.content) == {"prompt": "valley", "model": "sdxl", "width": 1024, "height": 1024}
            return httpx.Response(200, json={"output": ["https://img/sd.png"]})

        settings = GatewaySettings(
            provider="stable-diffusion", api_key="k", base_url="http://sd.local/generate", model="sdxl"
        )
        image = asyncio.run(StableDiffusionProvider(settings, transport=httpx.MockTransport(handler)).generate("valley"))

        assert image.url == "https://img/sd.png"
        assert image.id.startswith("sd-")

    def test_stable_diffusion_without_image_fails(self):
        def handler(request):
            return httpx.Response(200, json={"status": "done"})

        settings = GatewaySettings(provider="stable-diffusion", api_key="k", base_url="http://sd.local")
        with pytest.raises(GatewayError, match="No image URL returned from Stable Diffusion API"):
            asyncio.run(StableDiffusionProvider(settings, transport=httpx.MockTransport(handler)).generate("x"))

    def test_custom_reads_nested_data_url(self):
        def handler(request):
            assert request.headers["authorization"] == "Bearer c1"
            return httpx.Response(200, json={"data": [{"url": "https://img/custom.png"}]})

        settings = GatewaySettings(provider="custom", api_key="c1", base_url="http://images.local/v1")
        image = asyncio.run(CustomProvider(settings, transport=httpx.MockTransport(handler)).generate("tree"))

        assert image.url == "https://img/custom.png"
        assert image.id.startswith("custom-")

    def test_custom_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        settings = GatewaySettings(provider="custom", api_key="c1", base_url="http://images.local/v1")
        with pytest.raises(GatewayError, match="Custom Image API request failed"):
            asyncio.run(CustomProvider(settings, transport=httpx.MockTransport(handler)).generate("tree"))

    def test_imagen_encodes_generated_bytes(self, monkeypatch):
        calls = []

        async def generate_images(model, prompt, config):
            calls.append((model, prompt, config.number_of_images))
            return SimpleNamespace(generated_images=[SimpleNamespace(image=SimpleNamespace(image_bytes=PNG_BYTES))])

        client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_images=generate_images)))
        monkeypatch.setattr(ImagenProvider, "_client", lambda self: client)

        image = asyncio.run(ImagenProvider(GatewaySettings(provider="imagen", api_key="g")).generate("dunes"))

        assert calls == [("imagen-3.0-generate-002", "dunes", 1)]
        assert image.url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")
        assert image.id.startswith("imagen-")

    def test_imagen_without_images_fails(self, monkeypatch):
        async def generate_images(model, prompt, config):
            return SimpleNamespace(generated_images=[])

        client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_images=generate_images)))
        monkeypatch.setattr(ImagenProvider, "_client", lambda self: client)

        with pytest.raises(GatewayError, match="No image data in Imagen API response"):
            asyncio.run(ImagenProvider(GatewaySettings(provider="imagen", api_key="g")).generate("dunes"))

    def test_mock_provider_renders_png(self):
        image = asyncio.run(MockProvider(delay_seconds=0).generate("a quiet harbour"))

        assert image.url.startswith("data:image/png;base64,")
        payload = base64.b64decode(image.url.split(",", 1)[1])
        assert payload[:8] == b"\x89PNG\r\n\x1a\n"
        assert image.prompt == "a quiet harbour"
        assert image.id.startswith("mock-")


class TestProviderSelection:
    def test_missing_key_falls_back_to_mock(self, caplog):
        with caplog.at_level(logging.WARNING):
            provider = create_provider(GatewaySettings(provider="dalle"))
        assert isinstance(provider, MockProvider)
        assert "falling back to mock" in caplog.text

    def test_base_url_required_for_self_hosted(self):
        provider = create_provider(GatewaySettings(provider="custom", api_key="k"))
        assert isinstance(provider, MockProvider)

    def test_configured_provider_is_used(self):
        assert isinstance(create_provider(GatewaySettings(provider="dalle", api_key="k")), DalleProvider)

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            create_provider(GatewaySettings(provider="midjourney"))

    def test_endpoint_selects_http_gateway(self):
        gateway = create_gateway(GatewaySettings(endpoint=ENDPOINT))
        assert isinstance(gateway, HttpGateway)
        assert isinstance(create_gateway(GatewaySettings()), LocalGateway)
