# Path: core/models/__init__.py
# Purpose: Package initializer for domain models.
# Layer: core/models.
# Details: Re-exports entity dataclasses and board constants for convenience.

from .domain import (
    DEFAULT_SIZE,
    MAX_SIZE,
    MIN_SIZE,
    WALL_TEXTURES,
    WINDOW_STYLES,
    AcquiredImage,
    BoardSnapshot,
    Entity,
    Picture,
    Viewport,
    WallSettings,
    Window,
)

__all__ = [
    "DEFAULT_SIZE",
    "MAX_SIZE",
    "MIN_SIZE",
    "WALL_TEXTURES",
    "WINDOW_STYLES",
    "AcquiredImage",
    "BoardSnapshot",
    "Entity",
    "Picture",
    "Viewport",
    "WallSettings",
    "Window",
]
