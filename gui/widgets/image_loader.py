# Path: gui/widgets/image_loader.py
# Purpose: Load picture images from data URIs or remote URLs off the UI thread.
# Layer: gui.
# Details: Runs QRunnable tasks on the global thread pool and reports decoded QImages through a signal.

from __future__ import annotations

import base64
import logging
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal
from PySide6.QtGui import QImage

logger = logging.getLogger(__name__)


class _LoaderSignals(QObject):
    imageLoaded = Signal(str, QImage)


def decode_data_url(url: str) -> Optional[bytes]:
    """Return the payload of a data: URI, or None when url is not one."""

    if not url.startswith("data:") or "," not in url:
        return None
    header, payload = url.split(",", 1)
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


class ImageLoader(QObject):
    """Fetch and decode images for picture frames without blocking the canvas."""

    imageLoaded = Signal(str, QImage)

    def __init__(self, parent: Optional[QObject] = None, timeout_seconds: float = 30.0) -> None:
        super().__init__(parent)
        self._timeout = timeout_seconds
        self._signals = _LoaderSignals()
        self._signals.imageLoaded.connect(self.imageLoaded)
        self._thread_pool = QThreadPool.globalInstance()

    def load(self, url: str) -> None:
        self._thread_pool.start(_ImageLoadTask(url, self._timeout, self._signals))


class _ImageLoadTask(QRunnable):
    """Load one image reference off the UI thread."""

    def __init__(self, url: str, timeout_seconds: float, signals: _LoaderSignals) -> None:
        super().__init__()
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.signals = signals

    def run(self) -> None:
        image = QImage()
        try:
            payload = decode_data_url(self.url)
            if payload is None:
                response = httpx.get(self.url, timeout=self.timeout_seconds, follow_redirects=True)
                response.raise_for_status()
                payload = response.content
            image.loadFromData(payload)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to load image %s: %s", self.url[:80], exc)
        self.signals.imageLoaded.emit(self.url, image)
