# Path: core/gateway/uploads.py
# Purpose: Turn a local image file into an acquired image embedded as a data URI.
# Layer: core/gateway.
# Details: Type and size are validated from metadata before the file body is read.

from __future__ import annotations

import asyncio
import base64
import mimetypes
from pathlib import Path
from typing import Tuple

from core.board.geometry import new_entity_id
from core.models.domain import AcquiredImage
from .errors import AcquisitionValidationError, GatewayError

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def validate_upload(path: Path) -> Tuple[str, int]:
    """Return (media_type, size) for an acceptable upload or raise AcquisitionValidationError."""

    media_type, _ = mimetypes.guess_type(path.name)
    if not media_type or not media_type.startswith("image/"):
        raise AcquisitionValidationError("Please select an image file")
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise GatewayError("Failed to read image file") from exc
    if size > MAX_UPLOAD_BYTES:
        raise AcquisitionValidationError("Image file size must be less than 10MB")
    return media_type, size


async def read_upload(path: Path) -> AcquiredImage:
    """Validate then read path off the event loop, producing a data URI image."""

    media_type, _ = validate_upload(path)
    try:
        payload = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise GatewayError("Failed to read image file") from exc
    encoded = base64.b64encode(payload).decode("ascii")
    return AcquiredImage(
        url=f"data:{media_type};base64,{encoded}",
        prompt=path.name,
        id=new_entity_id("upload"),
    )


__all__ = ["MAX_UPLOAD_BYTES", "read_upload", "validate_upload"]
