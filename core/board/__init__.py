# Path: core/board/__init__.py
# Purpose: Package initializer for the board state and interaction engine.
# Layer: core/board.
# Details: Exposes the entity store, persistence adapter, and interaction controller.

from .geometry import clamp, clamp_position, clamp_size, new_entity_id, random_position
from .interaction import (
    BUTTON_OFFSET,
    BUTTON_SIZE,
    HANDLE_SIZE,
    GestureState,
    HitTarget,
    InteractionController,
    PointerBus,
    hit_test,
)
from .persistence import (
    BoardPersistence,
    InMemoryKeyValueStore,
    KeyValueStore,
    SLOT_KEYS,
    SqliteKeyValueStore,
)
from .store import PICTURES, SETTINGS, WINDOWS, DuplicateEntityError, EntityStore

__all__ = [
    "BUTTON_OFFSET",
    "BUTTON_SIZE",
    "HANDLE_SIZE",
    "BoardPersistence",
    "DuplicateEntityError",
    "EntityStore",
    "GestureState",
    "HitTarget",
    "InMemoryKeyValueStore",
    "InteractionController",
    "KeyValueStore",
    "PICTURES",
    "PointerBus",
    "SETTINGS",
    "SLOT_KEYS",
    "SqliteKeyValueStore",
    "WINDOWS",
    "clamp",
    "clamp_position",
    "clamp_size",
    "hit_test",
    "new_entity_id",
    "random_position",
]
