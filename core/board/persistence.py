# Path: core/board/persistence.py
# Purpose: Mirror the entity store into durable key-value storage and rehydrate it at startup.
# Layer: core/board.
# Details: Three independent JSON slots (pictures, windows, settings) stored in SQLite or in memory.

from __future__ import annotations

import json
import math
import logging
import random
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from core.models.domain import (
    DEFAULT_SIZE,
    WINDOW_STYLES,
    BoardSnapshot,
    Picture,
    Viewport,
    WallSettings,
    Window,
)
from .geometry import clamp_size, random_position
from .store import PICTURES, SETTINGS, WINDOWS, EntityStore

logger = logging.getLogger(__name__)

SLOT_KEYS: Dict[str, str] = {
    PICTURES: "wall-pictures",
    WINDOWS: "wall-windows",
    SETTINGS: "wall-settings",
}


class SnapshotError(ValueError):
    """Raised when a stored snapshot cannot be interpreted."""


class KeyValueStore(ABC):
    """Abstract durable string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; absent keys are ignored."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return the currently stored keys."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store used by tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class SqliteKeyValueStore(KeyValueStore):
    """Key-value store persisted in a single SQLite table."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @staticmethod
    def _connect_sqlite(path: Path) -> sqlite3.Connection:
        return sqlite3.connect(path)

    def _ensure_schema(self) -> None:
        with self._connect_sqlite(self.path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        with self._connect_sqlite(self.path) as conn:
            row = conn.execute("SELECT value FROM slots WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connect_sqlite(self.path) as conn:
            conn.execute(
                "INSERT INTO slots (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def delete(self, key: str) -> None:
        with self._connect_sqlite(self.path) as conn:
            conn.execute("DELETE FROM slots WHERE key = ?", (key,))

    def keys(self) -> List[str]:
        with self._connect_sqlite(self.path) as conn:
            rows = conn.execute("SELECT key FROM slots ORDER BY key").fetchall()
        return [row[0] for row in rows]


class BoardPersistence:
    """Keep a durable mirror of an EntityStore.

    ``restore`` reads each slot independently so one corrupt snapshot never blocks
    the others; ``attach`` subscribes to the store and rewrites the affected slot
    after every mutation.
    """

    def __init__(self, backend: KeyValueStore, rng: Optional[random.Random] = None) -> None:
        self.backend = backend
        self._rng = rng or random.Random()
        self._store: Optional[EntityStore] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # Startup
    def read_snapshot(self, viewport: Viewport) -> BoardSnapshot:
        snapshot = BoardSnapshot()
        seen: set = set()
        pictures = self._read_slot(PICTURES)
        if pictures is not None:
            snapshot.pictures = self._coerce_collection(pictures, PICTURES, viewport, seen)
        windows = self._read_slot(WINDOWS)
        if windows is not None:
            snapshot.windows = self._coerce_collection(windows, WINDOWS, viewport, seen)
        settings = self._read_slot(SETTINGS)
        if settings is not None:
            if isinstance(settings, dict):
                snapshot.settings = WallSettings.from_dict(settings)
            else:
                logger.warning("Ignoring stored %s: expected an object", SLOT_KEYS[SETTINGS])
        return snapshot

    def restore(self, store: EntityStore, viewport: Viewport) -> BoardSnapshot:
        """Rehydrate the store from durable storage without writing anything back."""

        snapshot = self.read_snapshot(viewport)
        store.load(snapshot.pictures, snapshot.windows, snapshot.settings)
        logger.info(
            "Restored %d picture(s) and %d window(s) from storage",
            len(snapshot.pictures),
            len(snapshot.windows),
        )
        return snapshot

    def _read_slot(self, slot: str):
        key = SLOT_KEYS[slot]
        try:
            raw = self.backend.get(key)
        except sqlite3.Error as exc:
            logger.warning("Failed to read %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Failed to load saved %s: %s", key, exc)
            return None

    def _coerce_collection(self, payload, slot: str, viewport: Viewport, seen: set) -> list:
        if not isinstance(payload, list):
            logger.warning("Ignoring stored %s: expected a list", SLOT_KEYS[slot])
            return []
        entities = []
        for item in payload:
            try:
                entity = self._coerce_entity(item, slot, viewport)
            except SnapshotError as exc:
                logger.warning("Skipping entry in %s: %s", SLOT_KEYS[slot], exc)
                continue
            if entity.id in seen:
                logger.warning("Skipping duplicate id %s in %s", entity.id, SLOT_KEYS[slot])
                continue
            seen.add(entity.id)
            entities.append(entity)
        return entities

    def _coerce_entity(self, item, slot: str, viewport: Viewport):
        """Build an entity from a stored dict, backfilling geometry missing from older snapshots."""

        if not isinstance(item, dict):
            raise SnapshotError("entry is not an object")
        entity_id = item.get("id")
        if not isinstance(entity_id, str) or not entity_id:
            raise SnapshotError("entry has no id")

        width = _number(item.get("width"), DEFAULT_SIZE)
        height = _number(item.get("height"), DEFAULT_SIZE)
        width, height = clamp_size(width, height)
        x = _number(item.get("x"), None)
        y = _number(item.get("y"), None)
        if x is None or y is None:
            rand_x, rand_y = random_position(viewport, width, height, self._rng)
            x = rand_x if x is None else x
            y = rand_y if y is None else y

        if slot == PICTURES:
            url = item.get("url")
            if not isinstance(url, str) or not url:
                raise SnapshotError(f"picture {entity_id} has no url")
            return Picture(
                id=entity_id,
                url=url,
                prompt=str(item.get("prompt", "")),
                x=x,
                y=y,
                width=width,
                height=height,
            )
        style = item.get("style")
        if style not in WINDOW_STYLES:
            style = WINDOW_STYLES[0]
        return Window(id=entity_id, x=x, y=y, width=width, height=height, style=style)

    # Mirroring
    def attach(self, store: EntityStore) -> None:
        """Start writing snapshots of store after each of its mutations."""

        self.detach()
        self._store = store
        self._unsubscribe = store.subscribe(self.write_slot)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._store = None

    def write_slot(self, slot: str) -> None:
        """Write the current snapshot of one slot; failures are logged, never raised."""

        if self._store is None:
            return
        key = SLOT_KEYS[slot]
        try:
            if slot == SETTINGS:
                self.backend.set(key, json.dumps(self._store.settings.to_dict()))
                return
            items: Iterable = self._store.pictures if slot == PICTURES else self._store.windows
            payload = [entity.to_dict() for entity in items]
            if payload:
                self.backend.set(key, json.dumps(payload))
            else:
                self.backend.delete(key)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Failed to save %s: %s", key, exc)

    def write_all(self) -> None:
        for slot in (PICTURES, WINDOWS, SETTINGS):
            self.write_slot(slot)


def _number(value, default):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        number = float(value)
    except OverflowError:
        return default
    return number if math.isfinite(number) else default


__all__ = [
    "BoardPersistence",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "SLOT_KEYS",
    "SnapshotError",
    "SqliteKeyValueStore",
]
