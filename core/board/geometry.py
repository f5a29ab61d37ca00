# Path: core/board/geometry.py
# Purpose: Provide clamping and placement helpers for positioned wall entities.
# Layer: core/board.
# Details: Pure functions shared by the interaction controller, persistence migration, and entity factories.

from __future__ import annotations

import random
import uuid
from typing import Optional, Tuple

from core.models.domain import DEFAULT_SIZE, MAX_SIZE, MIN_SIZE, Viewport

PLACEMENT_MARGIN = 100


def clamp(value: float, lower: float, upper: float) -> float:
    """Pin value into [lower, upper]; an inverted range pins to lower."""

    return max(lower, min(value, upper))


def clamp_size(width: float, height: float) -> Tuple[float, float]:
    return clamp(width, MIN_SIZE, MAX_SIZE), clamp(height, MIN_SIZE, MAX_SIZE)


def clamp_position(x: float, y: float, width: float, height: float, viewport: Viewport) -> Tuple[float, float]:
    """Keep the whole rectangle inside the viewport, pinning to the top-left when it cannot fit."""

    return (
        clamp(x, 0.0, viewport.width - width),
        clamp(y, 0.0, viewport.height - height),
    )


def random_position(
    viewport: Viewport,
    width: float = DEFAULT_SIZE,
    height: float = DEFAULT_SIZE,
    rng: Optional[random.Random] = None,
) -> Tuple[float, float]:
    """Pick a random top-left corner so the entity lands fully inside the viewport.

    A margin is kept from the right and bottom edges when the viewport is large enough.
    """

    rng = rng or random
    return (
        rng.uniform(0.0, _placement_span(viewport.width, width)),
        rng.uniform(0.0, _placement_span(viewport.height, height)),
    )


def _placement_span(extent: float, size: float) -> float:
    span = extent - size - PLACEMENT_MARGIN
    if span <= 0:
        span = extent - size
    return max(0.0, span)


def new_entity_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


__all__ = ["PLACEMENT_MARGIN", "clamp", "clamp_position", "clamp_size", "new_entity_id", "random_position"]
