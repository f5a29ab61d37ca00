# Path: gui/view_models.py
# Purpose: Provide the view model mediating between GUI interactions and the board engine.
# Layer: gui.
# Details: Owns add-item loading/error state, entity placement, and per-entity interaction controllers.

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from config.settings import AppSettings
from core.board import (
    BoardPersistence,
    EntityStore,
    InteractionController,
    PointerBus,
    SqliteKeyValueStore,
    new_entity_id,
    random_position,
)
from core.gateway import AcquisitionValidationError, GatewayError, ImageGateway, create_gateway
from core.models.domain import DEFAULT_SIZE, WINDOW_STYLES, AcquiredImage, Picture, Viewport, Window

logger = logging.getLogger(__name__)

GENERIC_ACQUISITION_ERROR = "An error occurred"


class AcquisitionInProgressError(RuntimeError):
    """Raised when an add is requested while a previous one is still pending."""


class BoardViewModel:
    """View model encapsulating board mutations and image acquisition for the GUI and CLI."""

    def __init__(
        self,
        store: EntityStore,
        gateway: ImageGateway,
        viewport: Viewport,
        bus: Optional[PointerBus] = None,
        rng: Optional[random.Random] = None,
        persistence: Optional[BoardPersistence] = None,
    ) -> None:
        self.store = store
        self.persistence = persistence
        self.gateway = gateway
        self.viewport = viewport
        self.bus = bus or PointerBus()
        self.loading = False
        self.error = ""
        self._rng = rng or random.Random()
        self._controllers: Dict[str, InteractionController] = {}

    # Viewport
    def set_viewport(self, width: float, height: float) -> None:
        """Record a new viewport size; entities are not repositioned."""

        self.viewport = Viewport(width, height)

    def _current_viewport(self) -> Viewport:
        return self.viewport

    # Acquisition lifecycle
    def begin_acquisition(self) -> None:
        if self.loading:
            raise AcquisitionInProgressError("An image is already being added")
        self.loading = True
        self.error = ""

    def complete_acquisition(self, image: AcquiredImage) -> Optional[Picture]:
        """Hang an acquired image; loading ends whether or not the placement succeeds."""

        try:
            return self.add_picture(image)
        except Exception as exc:  # noqa: BLE001 - any failure must end the loading state
            self.handle_acquisition_error(exc)
            return None
        finally:
            self.loading = False

    def fail_acquisition(self, message: str) -> None:
        self.error = message
        self.loading = False

    def handle_acquisition_error(self, exc: Exception) -> None:
        """Surface a failed acquisition; validation problems are shown but not logged."""

        if isinstance(exc, AcquisitionValidationError):
            message = str(exc)
        elif isinstance(exc, GatewayError):
            logger.error("Error acquiring image: %s", exc)
            message = str(exc)
        else:
            logger.exception("Unexpected error acquiring image")
            message = GENERIC_ACQUISITION_ERROR
        self.fail_acquisition(message)

    async def add_picture_from_prompt(self, prompt: str) -> Optional[Picture]:
        """
        External calls:
        - core/gateway/base.py::ImageGateway.acquire_from_prompt - resolves the prompt into an image.
        """

        return await self._acquire(lambda: self.gateway.acquire_from_prompt(prompt))

    async def add_picture_from_file(self, path: Path | str) -> Optional[Picture]:
        """
        External calls:
        - core/gateway/base.py::ImageGateway.acquire_from_file - validates and embeds the local file.
        """

        return await self._acquire(lambda: self.gateway.acquire_from_file(path))

    async def _acquire(self, request: Callable[[], Awaitable[AcquiredImage]]) -> Optional[Picture]:
        self.begin_acquisition()
        try:
            image = await request()
            return self.complete_acquisition(image)
        except Exception as exc:  # noqa: BLE001 - report every failure back to the caller
            self.handle_acquisition_error(exc)
            return None
        finally:
            self.loading = False

    # Board mutations
    def add_picture(self, image: AcquiredImage) -> Picture:
        """Place image at a random spot; a colliding id is replaced by a fresh one."""

        entity_id = image.id
        if entity_id in self.store:
            entity_id = new_entity_id("picture")
            logger.warning("Image id %s is already on the wall, using %s", image.id, entity_id)
        x, y = random_position(self.viewport, DEFAULT_SIZE, DEFAULT_SIZE, self._rng)
        picture = Picture(id=entity_id, url=image.url, prompt=image.prompt, x=x, y=y)
        self.store.add(picture)
        return picture

    def add_window(self, style: str = WINDOW_STYLES[0]) -> Window:
        if style not in WINDOW_STYLES:
            raise ValueError(f"Unknown window style: {style}")
        x, y = random_position(self.viewport, DEFAULT_SIZE, DEFAULT_SIZE, self._rng)
        window = Window(id=new_entity_id("window"), x=x, y=y, style=style)
        self.store.add(window)
        return window

    def remove(self, entity_id: str) -> None:
        controller = self._controllers.pop(entity_id, None)
        if controller is not None:
            controller.cancel()
        self.store.remove(entity_id)

    def clear_all(self) -> None:
        for controller in self._controllers.values():
            controller.cancel()
        self._controllers.clear()
        self.store.clear_all()

    def set_wall_settings(self, background_color: Optional[str] = None, texture: Optional[str] = None) -> None:
        changes = {}
        if background_color is not None:
            changes["background_color"] = background_color
        if texture is not None:
            changes["texture"] = texture
        if changes:
            self.store.set_wall_settings(**changes)

    # Interaction
    def controller_for(self, entity_id: str) -> InteractionController:
        controller = self._controllers.get(entity_id)
        if controller is None:
            controller = InteractionController(self.store, entity_id, self.bus, self._current_viewport)
            self._controllers[entity_id] = controller
        return controller


def open_board(settings: AppSettings, gateway: Optional[ImageGateway] = None) -> BoardViewModel:
    """Restore the board stored under settings.storage_path and keep it persisted.

    External calls:
    - core/board/persistence.py::BoardPersistence.restore - rehydrates the store from SQLite slots.
    - core/gateway/gateways.py::create_gateway - builds the configured acquisition gateway.
    """

    viewport = Viewport(settings.board.viewport_width, settings.board.viewport_height)
    store = EntityStore()
    persistence = BoardPersistence(SqliteKeyValueStore(settings.storage_path))
    persistence.restore(store, viewport)
    persistence.attach(store)
    return BoardViewModel(
        store, gateway or create_gateway(settings.gateway), viewport, persistence=persistence
    )
