# Path: core/board/interaction.py
# Purpose: Translate pointer gestures into bounded position and size updates for one wall entity.
# Layer: core/board.
# Details: Idle/Dragging/Resizing state machine; global move/up delivery is scoped to the active gesture.

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

from core.models.domain import Entity, Viewport
from .geometry import clamp_position, clamp_size
from .store import EntityStore

logger = logging.getLogger(__name__)

HANDLE_SIZE = 24.0
BUTTON_SIZE = 32.0
BUTTON_OFFSET = 8.0


class GestureState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class HitTarget(Enum):
    NONE = "none"
    FRAME = "frame"
    RESIZE_HANDLE = "resize_handle"
    REMOVE_BUTTON = "remove_button"


def remove_button_rect(entity: Entity) -> Tuple[float, float, float, float]:
    """Return (x, y, w, h) of the remove button straddling the top-right corner."""

    return (
        entity.x + entity.width - BUTTON_SIZE + BUTTON_OFFSET,
        entity.y - BUTTON_OFFSET,
        BUTTON_SIZE,
        BUTTON_SIZE,
    )


def resize_handle_rect(entity: Entity) -> Tuple[float, float, float, float]:
    return (
        entity.x + entity.width - HANDLE_SIZE,
        entity.y + entity.height - HANDLE_SIZE,
        HANDLE_SIZE,
        HANDLE_SIZE,
    )


def _inside(rect: Tuple[float, float, float, float], px: float, py: float) -> bool:
    x, y, w, h = rect
    return x <= px <= x + w and y <= py <= y + h


def hit_test(entity: Entity, px: float, py: float, controls_visible: bool) -> HitTarget:
    """Classify a pointer position against an entity.

    Embedded controls are tested before the frame so that pressing them never starts a drag.
    """

    if controls_visible:
        if _inside(remove_button_rect(entity), px, py):
            return HitTarget.REMOVE_BUTTON
        if _inside(resize_handle_rect(entity), px, py):
            return HitTarget.RESIZE_HANDLE
    if _inside((entity.x, entity.y, entity.width, entity.height), px, py):
        return HitTarget.FRAME
    return HitTarget.NONE


class PointerListener(Protocol):
    def on_pointer_move(self, x: float, y: float) -> None:
        ...

    def on_pointer_up(self, x: float, y: float) -> None:
        ...


class PointerSubscription:
    """Handle for one listener registered on a PointerBus; release() is idempotent."""

    def __init__(self, bus: "PointerBus", listener: PointerListener) -> None:
        self._bus = bus
        self.listener = listener
        self.active = True

    def release(self) -> None:
        if self.active:
            self.active = False
            self._bus._detach(self)

    def __enter__(self) -> "PointerSubscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class PointerBus:
    """Shared window-level source of pointer move/up events.

    Listeners only receive events while they hold a subscription, so move/up
    keep arriving even when the pointer leaves the originating entity.
    """

    def __init__(self) -> None:
        self._subscriptions: List[PointerSubscription] = []

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: PointerListener) -> PointerSubscription:
        subscription = PointerSubscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def _detach(self, subscription: PointerSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def dispatch_move(self, x: float, y: float) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.listener.on_pointer_move(x, y)

    def dispatch_up(self, x: float, y: float) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.listener.on_pointer_up(x, y)


class InteractionController:
    """Drag and resize state machine for a single entity of an EntityStore."""

    def __init__(
        self,
        store: EntityStore,
        entity_id: str,
        bus: PointerBus,
        viewport: Callable[[], Viewport],
    ) -> None:
        self.store = store
        self.entity_id = entity_id
        self.bus = bus
        self._viewport = viewport
        self.state = GestureState.IDLE
        self.hovered = False
        self._anchor: Tuple[float, float] = (0.0, 0.0)
        self._resize_origin: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
        self._subscription: Optional[PointerSubscription] = None

    @property
    def controls_visible(self) -> bool:
        return self.hovered or self.state is not GestureState.IDLE

    def pointer_enter(self) -> None:
        self.hovered = True

    def pointer_leave(self) -> None:
        self.hovered = False

    def pointer_down(self, px: float, py: float) -> HitTarget:
        """Start a gesture if the press lands on the frame or the resize handle.

        Returns what was hit so the caller can act on the remove button.
        """

        entity = self.store.get(self.entity_id)
        if entity is None or self.state is not GestureState.IDLE:
            return HitTarget.NONE
        target = hit_test(entity, px, py, self.controls_visible)
        if target is HitTarget.RESIZE_HANDLE:
            self._resize_origin = (px, py, entity.width, entity.height)
            self._enter(GestureState.RESIZING)
        elif target is HitTarget.FRAME:
            self._anchor = (px - entity.x, py - entity.y)
            self._enter(GestureState.DRAGGING)
        return target

    def on_pointer_move(self, px: float, py: float) -> None:
        entity = self.store.get(self.entity_id)
        if entity is None:
            self._exit()
            return
        if self.state is GestureState.DRAGGING:
            ax, ay = self._anchor
            x, y = clamp_position(px - ax, py - ay, entity.width, entity.height, self._viewport())
            self.store.update_position(self.entity_id, x, y)
        elif self.state is GestureState.RESIZING:
            sx, sy, sw, sh = self._resize_origin
            width, height = clamp_size(sw + (px - sx), sh + (py - sy))
            self.store.update_size(self.entity_id, width, height)

    def on_pointer_up(self, px: float, py: float) -> None:
        self._exit()

    def cancel(self) -> None:
        """Drop any gesture in progress, e.g. when the entity's view is destroyed."""

        self._exit()

    def _enter(self, state: GestureState) -> None:
        self.state = state
        self._subscription = self.bus.subscribe(self)
        logger.debug("%s entered %s", self.entity_id, state.value)

    def _exit(self) -> None:
        if self._subscription is not None:
            self._subscription.release()
            self._subscription = None
        self.state = GestureState.IDLE


__all__ = [
    "BUTTON_OFFSET",
    "BUTTON_SIZE",
    "GestureState",
    "HANDLE_SIZE",
    "HitTarget",
    "InteractionController",
    "PointerBus",
    "PointerListener",
    "PointerSubscription",
    "hit_test",
    "remove_button_rect",
    "resize_handle_rect",
]
