# Path: config/settings.py
# Purpose: Provide typed application configuration models.
# Layer: config.
# Details: Centralizes settings for the image gateway, chat provider, board viewport, storage, and logging.

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("dalle", "stability", "replicate", "stable-diffusion", "imagen", "custom", "mock")
PROVIDERS_REQUIRING_BASE_URL = ("stable-diffusion", "custom")


class GatewaySettings(BaseModel):
    """Settings describing which image provider serves prompt-based acquisitions."""

    provider: str = Field(default="mock", description="Identifier of the image generation provider.")
    api_key: Optional[str] = Field(default=None, description="Credential passed to the upstream provider.")
    model: Optional[str] = Field(default=None, description="Provider-specific model override.")
    base_url: Optional[str] = Field(default=None, description="Provider base URL override.")
    google_project_id: Optional[str] = Field(default=None, description="Google Cloud project used by Imagen.")
    google_location: str = Field(default="us-central1", description="Google Cloud region used by Imagen.")
    timeout_seconds: float = Field(default=120.0, description="Upper bound for a single upstream request.")
    poll_interval_seconds: float = Field(default=2.0, description="Delay between prediction status polls.")
    poll_attempts: int = Field(default=60, description="Maximum number of prediction status polls.")
    endpoint: Optional[str] = Field(
        default=None,
        description="URL of a remote /api/generate-image route; when unset providers are called in-process.",
    )

    def resolved(self) -> "GatewaySettings":
        """Return settings with the missing-configuration policy applied.

        Unknown providers are rejected; providers that lack their credentials fall back to ``mock``.
        """

        if self.provider not in PROVIDER_NAMES:
            raise ValueError(f"Unsupported image provider: {self.provider}")
        if self.provider == "mock":
            return self
        if not self.api_key and self.provider != "imagen":
            logger.warning("No API key configured for provider %r, falling back to mock images", self.provider)
            return self.model_copy(update={"provider": "mock"})
        if self.provider == "imagen" and not (self.api_key or self.google_project_id):
            logger.warning("Imagen needs an API key or a Google Cloud project, falling back to mock images")
            return self.model_copy(update={"provider": "mock"})
        if self.provider in PROVIDERS_REQUIRING_BASE_URL and not self.base_url:
            logger.warning("IMAGE_BASE_URL is required for provider %r, falling back to mock images", self.provider)
            return self.model_copy(update={"provider": "mock"})
        return self


class LLMSettings(BaseModel):
    """Settings for the chat completion provider behind the chat route."""

    provider: str = Field(default="openai", description="Identifier of the chat provider.")
    api_key: Optional[str] = Field(default=None, description="Credential passed to the chat provider.")
    model: Optional[str] = Field(default=None, description="Provider-specific model override.")
    base_url: Optional[str] = Field(default=None, description="Provider base URL override.")
    timeout_seconds: float = Field(default=60.0, description="Upper bound for a single chat request.")


class BoardSettings(BaseModel):
    """Settings controlling the initial board viewport."""

    viewport_width: int = Field(default=1280, description="Viewport width in pixels used for placement.")
    viewport_height: int = Field(default=800, description="Viewport height in pixels used for placement.")


class AppSettings(BaseModel):
    """Top-level application settings shared across services and interfaces."""

    storage_path: Path = Field(default=Path("storage/wall.sqlite3"), description="Path to the board key-value store.")
    log_level: str = Field(default="INFO", description="Verbosity level for application logs.")
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    board: BoardSettings = Field(default_factory=BoardSettings)
    api_host: str = Field(default="127.0.0.1", description="Bind address for the HTTP API.")
    api_port: int = Field(default=8000, description="Port for the HTTP API.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Instantiate settings from environment variables when available."""

        env = os.environ if environ is None else environ
        api_key = env.get("IMAGE_API_KEY") or env.get("GEMINI_API_KEY") or env.get("LLM_API_KEY")
        gateway = GatewaySettings(
            provider=env.get("IMAGE_PROVIDER", "mock"),
            api_key=api_key or None,
            model=env.get("IMAGE_MODEL") or None,
            base_url=env.get("IMAGE_BASE_URL") or None,
            google_project_id=env.get("GOOGLE_CLOUD_PROJECT_ID") or None,
            google_location=env.get("GOOGLE_CLOUD_LOCATION", "us-central1"),
            endpoint=env.get("IMAGE_ENDPOINT") or None,
        )
        llm = LLMSettings(
            provider=env.get("LLM_PROVIDER", "openai"),
            api_key=env.get("LLM_API_KEY") or None,
            model=env.get("LLM_MODEL") or None,
            base_url=env.get("LLM_BASE_URL") or None,
        )
        overrides = {}
        if env.get("WALL_STORAGE_PATH"):
            overrides["storage_path"] = Path(env["WALL_STORAGE_PATH"])
        if env.get("WALL_LOG_LEVEL"):
            overrides["log_level"] = env["WALL_LOG_LEVEL"]
        return cls(gateway=gateway, llm=llm, **overrides)


def configure_logging(settings: AppSettings) -> None:
    """Apply the configured log level to the root logger."""

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = [
    "AppSettings",
    "BoardSettings",
    "GatewaySettings",
    "LLMSettings",
    "PROVIDER_NAMES",
    "configure_logging",
]
