"""Parser for DAT 256-colour palette files."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

NUM_COLORS = 256
_BYTES_PER_COLOR = 3
_MASK = 0xFF


def _to_composite(w: int, x: int, y: int, z: int) -> int:
    return (w << 24) | (x << 16) | (y << 8) | z


def _to_components(value: int) -> tuple[int, int, int, int]:
    return (value >> 24) & _MASK, (value >> 16) & _MASK, (value >> 8) & _MASK, value & _MASK


@dataclass
class DATColor:
    """A palette colour. It is always reported as fully opaque."""

    r: int = 0
    g: int = 0
    b: int = 0
    _alpha: int = field(default=0, repr=False)

    @property
    def a(self) -> int:
        """The alpha component, always opaque."""
        return _MASK

    @property
    def rgba(self) -> int:
        """The colour packed as 0xRRGGBBAA."""
        return _to_composite(self.r, self.g, self.b, self._alpha)

    @rgba.setter
    def rgba(self, value: int) -> None:
        self.r, self.g, self.b, self._alpha = _to_components(value)

    @property
    def bgra(self) -> int:
        """The colour packed as 0xBBGGRRAA."""
        return _to_composite(self.b, self.g, self.r, self._alpha)

    @bgra.setter
    def bgra(self, value: int) -> None:
        self.b, self.g, self.r, self._alpha = _to_components(value)


@dataclass
class DATPalette:
    """A 256-colour palette."""

    colors: list[DATColor] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self) -> Iterator[DATColor]:
        return iter(self.colors)

    def get_color(self, index: int) -> DATColor:
        """Return the colour at an index."""
        if not 0 <= index < len(self.colors):
            raise IndexError(f"cannot find color index '{index}' in palette")
        return self.colors[index]


def load(data: bytes) -> DATPalette:
    """Parse DAT palette data: 256 colours stored as blue, green, red bytes."""
    needed = NUM_COLORS * _BYTES_PER_COLOR
    if len(data) < needed:
        raise ValueError(f"DAT palette needs {needed} bytes, got {len(data)}")
    colors = [
        DATColor(r=data[i + 2], g=data[i + 1], b=data[i])
        for i in range(0, needed, _BYTES_PER_COLOR)
    ]
    return DATPalette(colors)