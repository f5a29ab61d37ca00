# Path: core/gateway/gateways.py
# Purpose: Provide the concrete ImageGateway implementations used by the GUI, CLI, and API.
# Layer: core/gateway.
# Details: LocalGateway calls a provider in-process; HttpGateway talks to a remote /api/generate-image route.

from __future__ import annotations

import logging
from typing import Optional

import httpx

from config.settings import GatewaySettings
from core.models.domain import AcquiredImage
from .base import ImageGateway, ImageProvider
from .errors import GatewayError
from .providers import create_provider

logger = logging.getLogger(__name__)


class LocalGateway(ImageGateway):
    """Gateway that runs the configured provider inside the current process."""

    def __init__(self, provider: ImageProvider) -> None:
        self.provider = provider

    async def _generate(self, prompt: str) -> AcquiredImage:
        return await self.provider.generate(prompt)


class HttpGateway(ImageGateway):
    """Gateway that forwards prompts to the generation route of the HTTP API."""

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _generate(self, prompt: str) -> AcquiredImage:
        """
        External calls:
        - api/app.py::generate_image - resolves the prompt with the server-side provider.
        """

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
                response = await client.post(self.endpoint, json={"prompt": prompt})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise GatewayError(f"Network error: {exc}") from exc

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise GatewayError(f"Server returned non-JSON response: {response.text[:100]}")
        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayError(f"Server returned non-JSON response: {response.text[:100]}") from exc

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise GatewayError(message or "Failed to generate image")

        try:
            return AcquiredImage(url=str(data["url"]), prompt=str(data.get("prompt", prompt)), id=str(data["id"]))
        except (KeyError, TypeError) as exc:
            raise GatewayError("Server returned an incomplete image payload") from exc


def create_gateway(
    settings: GatewaySettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ImageGateway:
    """Build the gateway described by settings; an endpoint selects the HTTP gateway."""

    if settings.endpoint:
        logger.info("Forwarding image generation to %s", settings.endpoint)
        return HttpGateway(settings.endpoint, settings.timeout_seconds, transport=transport)
    return LocalGateway(create_provider(settings, transport=transport))


__all__ = ["HttpGateway", "LocalGateway", "create_gateway"]
