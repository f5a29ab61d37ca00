# Path: core/models/domain.py
# Purpose: Define domain models shared across the board store, persistence, gateway, and GUI layers.
# Layer: core/models.
# Details: Frozen dataclasses keep entity ids immutable; mutations go through dataclasses.replace.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Union

DEFAULT_SIZE = 250
MIN_SIZE = 150
MAX_SIZE = 500

WINDOW_STYLES = ("rectangular", "arched", "circular", "gothic", "bay")
WALL_TEXTURES = ("none", "brick", "wood", "plaster", "concrete", "lines")

DEFAULT_BACKGROUND_COLOR = "#FEF3C7"
DEFAULT_TEXTURE = "lines"


@dataclass(frozen=True)
class Viewport:
    """Visible board area in pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class AcquiredImage:
    """Displayable image reference produced by the acquisition gateway."""

    url: str
    prompt: str
    id: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "prompt": self.prompt, "id": self.id}


@dataclass(frozen=True)
class Picture:
    """Generated or uploaded image placed on the wall."""

    id: str
    url: str
    prompt: str
    x: float
    y: float
    width: float = DEFAULT_SIZE
    height: float = DEFAULT_SIZE

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "prompt": self.prompt,
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class Window:
    """Decorative window frame placed on the wall."""

    id: str
    x: float
    y: float
    width: float = DEFAULT_SIZE
    height: float = DEFAULT_SIZE
    style: str = "rectangular"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "style": self.style,
        }


@dataclass(frozen=True)
class WallSettings:
    """Global wall appearance shared by every entity."""

    background_color: str = DEFAULT_BACKGROUND_COLOR
    texture: str = DEFAULT_TEXTURE

    def to_dict(self) -> Dict[str, str]:
        return {"backgroundColor": self.background_color, "texture": self.texture}

    @classmethod
    def from_dict(cls, payload: dict) -> "WallSettings":
        texture = payload.get("texture", DEFAULT_TEXTURE)
        if texture not in WALL_TEXTURES:
            texture = DEFAULT_TEXTURE
        return cls(
            background_color=str(payload.get("backgroundColor", DEFAULT_BACKGROUND_COLOR)),
            texture=texture,
        )


Entity = Union[Picture, Window]


@dataclass
class BoardSnapshot:
    """Full board state as restored from durable storage."""

    pictures: list = field(default_factory=list)
    windows: list = field(default_factory=list)
    settings: WallSettings = field(default_factory=WallSettings)
