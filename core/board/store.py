# Path: core/board/store.py
# Purpose: Hold the authoritative in-memory board state and expose its mutation operations.
# Layer: core/board.
# Details: Two insertion-ordered collections plus the wall settings singleton; observers hear about every mutation.

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.models.domain import WALL_TEXTURES, Entity, Picture, WallSettings, Window
from .geometry import clamp_size

logger = logging.getLogger(__name__)

PICTURES = "pictures"
WINDOWS = "windows"
SETTINGS = "settings"

Observer = Callable[[str], None]

_SETTINGS_FIELDS = {"background_color", "texture"}


class DuplicateEntityError(ValueError):
    """Raised when an entity id is already present on the board."""


class EntityStore:
    """Single source of truth for pictures, windows, and wall settings.

    Every public mutation notifies subscribers with the name of the affected slot
    (``pictures``, ``windows`` or ``settings``) right after the state changes.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, List[Entity]] = {PICTURES: [], WINDOWS: []}
        self._settings = WallSettings()
        self._observers: List[Observer] = []

    # Read access
    @property
    def pictures(self) -> Tuple[Picture, ...]:
        return tuple(self._collections[PICTURES])  # type: ignore[arg-type]

    @property
    def windows(self) -> Tuple[Window, ...]:
        return tuple(self._collections[WINDOWS])  # type: ignore[arg-type]

    @property
    def settings(self) -> WallSettings:
        return self._settings

    def get(self, entity_id: str) -> Optional[Entity]:
        located = self._locate(entity_id)
        if located is None:
            return None
        slot, index = located
        return self._collections[slot][index]

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and self._locate(entity_id) is not None

    def __len__(self) -> int:
        return sum(len(items) for items in self._collections.values())

    # Observers
    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and return a callable that removes it again."""

        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, slot: str) -> None:
        for observer in list(self._observers):
            observer(slot)

    # Mutations
    def add(self, entity: Entity) -> None:
        if self._locate(entity.id) is not None:
            raise DuplicateEntityError(f"Entity id already on the board: {entity.id}")
        slot = _slot_for(entity)
        self._collections[slot].append(entity)
        logger.debug("Added %s %s", slot[:-1], entity.id)
        self._notify(slot)

    def remove(self, entity_id: str) -> None:
        located = self._locate(entity_id)
        if located is None:
            return
        slot, index = located
        del self._collections[slot][index]
        logger.debug("Removed %s", entity_id)
        self._notify(slot)

    def update_position(self, entity_id: str, x: float, y: float) -> None:
        self._replace(entity_id, x=x, y=y)

    def update_size(self, entity_id: str, width: float, height: float) -> None:
        width, height = clamp_size(width, height)
        self._replace(entity_id, width=width, height=height)

    def set_wall_settings(self, **changes) -> None:
        """Merge the given fields into the wall settings singleton."""

        unknown = set(changes) - _SETTINGS_FIELDS
        if unknown:
            raise ValueError(f"Unknown wall settings: {', '.join(sorted(unknown))}")
        if "texture" in changes and changes["texture"] not in WALL_TEXTURES:
            raise ValueError(f"Unknown wall texture: {changes['texture']}")
        self._settings = dataclasses.replace(self._settings, **changes)
        self._notify(SETTINGS)

    def clear_all(self) -> None:
        for slot in (PICTURES, WINDOWS):
            self._collections[slot] = []
            self._notify(slot)

    def load(
        self,
        pictures: Iterable[Picture] = (),
        windows: Iterable[Window] = (),
        settings: Optional[WallSettings] = None,
    ) -> None:
        """Replace the whole state without notifying observers (used for rehydration)."""

        collections: Dict[str, List[Entity]] = {PICTURES: [], WINDOWS: []}
        seen = set()
        for slot, items in ((PICTURES, pictures), (WINDOWS, windows)):
            for entity in items:
                if entity.id in seen:
                    raise DuplicateEntityError(f"Entity id already on the board: {entity.id}")
                seen.add(entity.id)
                collections[slot].append(entity)
        self._collections = collections
        self._settings = settings or WallSettings()

    # Internals
    def _locate(self, entity_id: str) -> Optional[Tuple[str, int]]:
        for slot, items in self._collections.items():
            for index, entity in enumerate(items):
                if entity.id == entity_id:
                    return slot, index
        return None

    def _replace(self, entity_id: str, **changes) -> None:
        located = self._locate(entity_id)
        if located is None:
            return
        slot, index = located
        items = self._collections[slot]
        items[index] = dataclasses.replace(items[index], **changes)
        self._notify(slot)


def _slot_for(entity: Entity) -> str:
    if isinstance(entity, Picture):
        return PICTURES
    if isinstance(entity, Window):
        return WINDOWS
    raise TypeError(f"Unsupported entity type: {type(entity).__name__}")


__all__ = ["DuplicateEntityError", "EntityStore", "PICTURES", "SETTINGS", "WINDOWS"]
