# Path: core/gateway/base.py
# Purpose: Define the image acquisition interfaces and their error taxonomy.
# Layer: core/gateway.
# Details: ImageProvider wraps one upstream generator; ImageGateway is the single entry point used by the board.

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from core.models.domain import AcquiredImage
from .errors import AcquisitionValidationError
from .uploads import read_upload


class ImageProvider(ABC):
    """Abstract base class for upstream image generation backends."""

    name: str

    @abstractmethod
    async def generate(self, prompt: str) -> AcquiredImage:
        """Produce an image for prompt or raise GatewayError."""


class ImageGateway(ABC):
    """Resolve prompts and local files into displayable image references."""

    async def acquire_from_prompt(self, prompt: str) -> AcquiredImage:
        """Validate the prompt then delegate to the concrete backend."""

        if not isinstance(prompt, str) or not prompt.strip():
            raise AcquisitionValidationError("Prompt is required")
        return await self._generate(prompt)

    async def acquire_from_file(self, path: Path | str) -> AcquiredImage:
        """Embed a local image file as a data URI.

        External calls:
        - core/gateway/uploads.py::read_upload - validates type and size, then reads off the event loop.
        """

        return await read_upload(Path(path))

    @abstractmethod
    async def _generate(self, prompt: str) -> AcquiredImage:
        """Run a validated prompt through the backend."""
