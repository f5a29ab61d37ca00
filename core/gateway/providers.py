# Path: core/gateway/providers.py
# Purpose: Provide upstream image generation backends selectable by configuration.
# Layer: core/gateway.
# Details: HTTP providers use httpx; Imagen uses google-genai; the mock renders a placeholder with Pillow.

from __future__ import annotations

import asyncio
import base64
import io
import logging
import random
import textwrap
from typing import Any, Dict, Optional

import httpx
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from config.settings import GatewaySettings
from core.board.geometry import new_entity_id
from core.models.domain import AcquiredImage
from .base import ImageProvider
from .errors import GatewayError

logger = logging.getLogger(__name__)

MOCK_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
    "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B739", "#52BE80",
)


def png_data_url(payload: bytes | str) -> str:
    if isinstance(payload, bytes):
        payload = base64.b64encode(payload).decode("ascii")
    return f"data:image/png;base64,{payload}"


def _first(value: Any) -> Any:
    return value[0] if isinstance(value, list) and value else None


class HttpImageProvider(ImageProvider):
    """Shared plumbing for providers reached over HTTP."""

    label: str = "Image"
    id_prefix: str = "image"

    def __init__(self, settings: GatewaySettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.settings.timeout_seconds, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {self.settings.api_key}"}

    async def _post_json(self, client: httpx.AsyncClient, url: str, body: Dict[str, Any], stage: str = "") -> Any:
        try:
            response = await client.post(url, json=body, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise GatewayError(f"{self.label} API request failed: {exc}") from exc
        return self._decode(response, stage)

    def _decode(self, response: httpx.Response, stage: str = "") -> Any:
        suffix = f" ({stage})" if stage else ""
        if response.is_error:
            raise GatewayError(f"{self.label} API error{suffix}: {response.status_code} - {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayError(f"{self.label} API returned invalid JSON{suffix}") from exc
        if not isinstance(data, dict):
            raise GatewayError(f"{self.label} API returned an unexpected response{suffix}")
        return data

    def _image(self, url: str, prompt: str) -> AcquiredImage:
        return AcquiredImage(url=url, prompt=prompt, id=new_entity_id(self.id_prefix))


class DalleProvider(HttpImageProvider):
    name = "dalle"
    label = "DALL-E"
    id_prefix = "dalle"

    async def generate(self, prompt: str) -> AcquiredImage:
        base_url = self.settings.base_url or "https://api.openai.com/v1"
        body = {
            "model": self.settings.model or "dall-e-3",
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "standard",
        }
        async with self._client() as client:
            data = await self._post_json(client, f"{base_url}/images/generations", body)
        first = _first(data.get("data"))
        url = first.get("url") if isinstance(first, dict) else None
        if not isinstance(url, str) or not url:
            raise GatewayError("No image URL returned from DALL-E API")
        return self._image(url, prompt)


class StabilityProvider(HttpImageProvider):
    name = "stability"
    label = "Stability AI"
    id_prefix = "stability"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Accept"] = "application/json"
        return headers

    async def generate(self, prompt: str) -> AcquiredImage:
        model = self.settings.model or "stable-diffusion-xl-1024-v1-0"
        base_url = self.settings.base_url or "https://api.stability.ai"
        body = {
            "text_prompts": [{"text": prompt, "weight": 1}],
            "cfg_scale": 7,
            "height": 1024,
            "width": 1024,
            "steps": 30,
            "samples": 1,
        }
        async with self._client() as client:
            data = await self._post_json(client, f"{base_url}/v1/generation/{model}/text-to-image", body)
        first = _first(data.get("artifacts"))
        encoded = first.get("base64") if isinstance(first, dict) else None
        if not isinstance(encoded, str) or not encoded:
            raise GatewayError("No image data returned from Stability AI API")
        return self._image(png_data_url(encoded), prompt)


class ReplicateProvider(HttpImageProvider):
    """Replicate runs predictions asynchronously, so creation is followed by status polling."""

    name = "replicate"
    label = "Replicate"
    id_prefix = "replicate"
    default_model = "stability-ai/sdxl:39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Token {self.settings.api_key}"}

    async def generate(self, prompt: str) -> AcquiredImage:
        model = self.settings.model or self.default_model
        base_url = self.settings.base_url or "https://api.replicate.com"
        body = {
            "version": model.split(":", 1)[1] if ":" in model else model,
            "input": {"prompt": prompt, "width": 1024, "height": 1024},
        }
        async with self._client() as client:
            prediction = await self._post_json(client, f"{base_url}/v1/predictions", body, stage="create")
            prediction_id = prediction.get("id")
            if not isinstance(prediction_id, str) or not prediction_id:
                raise GatewayError("No prediction ID returned from Replicate API")
            url = await self._poll(client, f"{base_url}/v1/predictions/{prediction_id}")
        return self._image(url, prompt)

    async def _poll(self, client: httpx.AsyncClient, status_url: str) -> str:
        for _ in range(self.settings.poll_attempts):
            await asyncio.sleep(self.settings.poll_interval_seconds)
            try:
                response = await client.get(status_url, headers=self._headers())
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise GatewayError(f"Replicate API request failed: {exc}") from exc
            status = self._decode(response, stage="status")
            state = status.get("status")
            if state == "succeeded":
                output = status.get("output")
                url = _first(output) if isinstance(output, list) else output
                if isinstance(url, str) and url:
                    return url
                break
            if state in ("failed", "canceled"):
                raise GatewayError(f"Replicate prediction failed: {status.get('error') or 'Unknown error'}")
        raise GatewayError("Replicate prediction timed out or did not complete")


class StableDiffusionProvider(HttpImageProvider):
    name = "stable-diffusion"
    label = "Stable Diffusion"
    id_prefix = "sd"

    async def generate(self, prompt: str) -> AcquiredImage:
        if not self.settings.base_url:
            raise GatewayError("IMAGE_BASE_URL is required for Stable Diffusion provider")
        body = {"prompt": prompt, "model": self.settings.model, "width": 1024, "height": 1024}
        async with self._client() as client:
            data = await self._post_json(client, self.settings.base_url, body)
        url = data.get("image") or data.get("url") or _first(data.get("output"))
        if not isinstance(url, str) or not url:
            raise GatewayError("No image URL returned from Stable Diffusion API")
        return self._image(url, prompt)


class CustomProvider(HttpImageProvider):
    name = "custom"
    label = "Custom Image"
    id_prefix = "custom"

    async def generate(self, prompt: str) -> AcquiredImage:
        if not self.settings.base_url:
            raise GatewayError("IMAGE_BASE_URL is required for custom image provider")
        async with self._client() as client:
            data = await self._post_json(client, self.settings.base_url, {"prompt": prompt, "model": self.settings.model})
        nested = _first(data.get("data"))
        url = (
            data.get("url")
            or data.get("image")
            or data.get("output")
            or (nested.get("url") if isinstance(nested, dict) else None)
        )
        if not isinstance(url, str) or not url:
            raise GatewayError("No image URL returned from custom image API")
        return self._image(url, prompt)


class ImagenProvider(ImageProvider):
    """Google Imagen through the google-genai SDK (Gemini API key or Vertex AI project)."""

    name = "imagen"
    default_model = "imagen-3.0-generate-002"

    def __init__(self, settings: GatewaySettings) -> None:
        self.settings = settings

    def _client(self):
        from google import genai

        if self.settings.google_project_id:
            return genai.Client(
                vertexai=True,
                project=self.settings.google_project_id,
                location=self.settings.google_location,
            )
        return genai.Client(api_key=self.settings.api_key)

    async def generate(self, prompt: str) -> AcquiredImage:
        from google.genai import errors, types

        try:
            client = self._client()
        except ValueError as exc:
            raise GatewayError(f"Imagen client configuration error: {exc}") from exc
        try:
            response = await client.aio.models.generate_images(
                model=self.settings.model or self.default_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(number_of_images=1, aspect_ratio="1:1"),
            )
        except errors.APIError as exc:
            raise GatewayError(f"Imagen API error: {exc}") from exc
        generated = response.generated_images or []
        image = generated[0].image if generated else None
        if image is None or not image.image_bytes:
            raise GatewayError("No image data in Imagen API response")
        return AcquiredImage(url=png_data_url(image.image_bytes), prompt=prompt, id=new_entity_id("imagen"))


class MockProvider(ImageProvider):
    """Placeholder images for development; needs no credentials."""

    name = "mock"
    size = 512

    def __init__(self, delay_seconds: float = 0.5, rng: Optional[random.Random] = None) -> None:
        self.delay_seconds = delay_seconds
        self._rng = rng or random.Random()

    async def generate(self, prompt: str) -> AcquiredImage:
        color = self._rng.choice(MOCK_COLORS)
        payload = await asyncio.to_thread(self.render, prompt, color)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return AcquiredImage(url=png_data_url(payload), prompt=prompt, id=new_entity_id("mock"))

    def render(self, prompt: str, color: str) -> bytes:
        """Draw a diagonal gradient of color with the prompt text and return PNG bytes."""

        start = np.array(Image.new("RGB", (1, 1), color).getpixel((0, 0)), dtype=np.float32)
        end = start * 0.55 + 255 * 0.45
        ramp = np.add.outer(np.arange(self.size), np.arange(self.size)) / float(2 * (self.size - 1))
        pixels = start + (end - start) * ramp[..., None]
        image = Image.fromarray(pixels.astype(np.uint8))

        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default()
        text = prompt[:50] + ("..." if len(prompt) > 50 else "")
        lines = ["Mock Image", *textwrap.wrap(text, 28), "(Development Mode)"]
        y = self.size * 0.4
        for line in lines:
            left, top, right, bottom = draw.textbbox((0, 0), line, font=font)
            draw.text(((self.size - (right - left)) / 2, y), line, fill="white", font=font)
            y += (bottom - top) + 12

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


_HTTP_PROVIDERS = {
    DalleProvider.name: DalleProvider,
    StabilityProvider.name: StabilityProvider,
    ReplicateProvider.name: ReplicateProvider,
    StableDiffusionProvider.name: StableDiffusionProvider,
    CustomProvider.name: CustomProvider,
}


def create_provider(
    settings: GatewaySettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ImageProvider:
    """Instantiate the configured provider after applying the missing-configuration policy."""

    resolved = settings.resolved()
    if resolved.provider == MockProvider.name:
        return MockProvider()
    if resolved.provider == ImagenProvider.name:
        return ImagenProvider(resolved)
    logger.info("Using %s image provider", resolved.provider)
    return _HTTP_PROVIDERS[resolved.provider](resolved, transport=transport)


__all__ = [
    "CustomProvider",
    "DalleProvider",
    "HttpImageProvider",
    "ImagenProvider",
    "MockProvider",
    "ReplicateProvider",
    "StabilityProvider",
    "StableDiffusionProvider",
    "create_provider",
]
