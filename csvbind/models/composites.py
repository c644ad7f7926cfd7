from __future__ import annotations

from dataclasses import dataclass

"""Composite value types assembled from a single delimited cell.

These are produced by the conversion pipeline when a column is declared with
auto_convert=True, e.g. a position column "1.5,0,3" -> Vector3(1.5, 0.0, 3.0).
"""

__all__ = [
    "Vector2",
    "Vector3",
    "Vector4",
    "Color",
    "NAMED_COLORS",
]


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class Vector4:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


@dataclass(frozen=True)
class Color:
    """RGBA colour. Components are stored as given (no normalization)."""
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Parse '#RRGGBB' or '#RRGGBBAA' into 0..1 float components."""
        digits = value.lstrip("#")
        if len(digits) not in (6, 8):
            raise ValueError(f"invalid hex colour '{value}'")
        channels = [int(digits[i:i + 2], 16) / 255 for i in range(0, len(digits), 2)]
        return cls(*channels)


NAMED_COLORS: dict[str, Color] = {
    "red": Color(1.0, 0.0, 0.0),
    "green": Color(0.0, 1.0, 0.0),
    "blue": Color(0.0, 0.0, 1.0),
    "white": Color(1.0, 1.0, 1.0),
    "black": Color(0.0, 0.0, 0.0),
    "yellow": Color(1.0, 0.92, 0.016),
    "cyan": Color(0.0, 1.0, 1.0),
    "magenta": Color(1.0, 0.0, 1.0),
    "gray": Color(0.5, 0.5, 0.5),
    "grey": Color(0.5, 0.5, 0.5),
    "clear": Color(0.0, 0.0, 0.0, 0.0),
}
