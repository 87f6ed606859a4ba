"""Parser for PL2 palette transform files."""

from __future__ import annotations

from dataclasses import dataclass

_NUM_COLORS = 256
_TRANSFORM_SIZE = 256
_COLOR_SIZE = 4
_COLOR24_SIZE = 3
_NUM_TEXT_COLORS = 13

_TRANSFORM_COUNT = 32 + 16 + 1 + 3 * 256 + 256 + 256 + 111 + 3 + 14 + 256 + 1

PL2_SIZE = (
    _NUM_COLORS * _COLOR_SIZE
    + _TRANSFORM_COUNT * _TRANSFORM_SIZE
    + _NUM_TEXT_COLORS * _COLOR24_SIZE
    + _NUM_TEXT_COLORS * _TRANSFORM_SIZE
)


@dataclass(frozen=True)
class PL2Color:
    """An RGB colour stored with a padding byte."""

    r: int
    g: int
    b: int


@dataclass(frozen=True)
class PL2Color24Bits:
    """A packed RGB colour."""

    r: int
    g: int
    b: int


@dataclass(frozen=True)
class PL2Palette:
    """A 256-colour palette."""

    colors: tuple[PL2Color, ...]


@dataclass(frozen=True)
class PL2PaletteTransform:
    """A mapping of each palette index to another."""

    indices: bytes


@dataclass(frozen=True)
class PL2:
    """The palette and all palette transforms of a PL2 file."""

    base_palette: PL2Palette
    light_level_variations: tuple[PL2PaletteTransform, ...]
    inv_color_variations: tuple[PL2PaletteTransform, ...]
    selected_unit_shift: PL2PaletteTransform
    alpha_blend: tuple[tuple[PL2PaletteTransform, ...], ...]
    additive_blend: tuple[PL2PaletteTransform, ...]
    multiplicative_blend: tuple[PL2PaletteTransform, ...]
    hue_variations: tuple[PL2PaletteTransform, ...]
    red_tones: PL2PaletteTransform
    green_tones: PL2PaletteTransform
    blue_tones: PL2PaletteTransform
    unknown_variations: tuple[PL2PaletteTransform, ...]
    max_component_blend: tuple[PL2PaletteTransform, ...]
    darkened_color_shift: PL2PaletteTransform
    text_colors: tuple[PL2Color24Bits, ...]
    text_color_shifts: tuple[PL2PaletteTransform, ...]


class _Cursor:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError("unexpected end of PL2 data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def transform(self) -> PL2PaletteTransform:
        return PL2PaletteTransform(self.take(_TRANSFORM_SIZE))

    def transforms(self, count: int) -> tuple[PL2PaletteTransform, ...]:
        return tuple(self.transform() for _ in range(count))


def load(data: bytes) -> PL2:
    """Parse PL2 file data."""
    if len(data) < PL2_SIZE:
        raise ValueError(f"PL2 data needs {PL2_SIZE} bytes, got {len(data)}")
    cursor = _Cursor(data)

    colors = []
    for _ in range(_NUM_COLORS):
        r, g, b, _pad = cursor.take(_COLOR_SIZE)
        colors.append(PL2Color(r, g, b))

    return PL2(
        base_palette=PL2Palette(tuple(colors)),
        light_level_variations=cursor.transforms(32),
        inv_color_variations=cursor.transforms(16),
        selected_unit_shift=cursor.transform(),
        alpha_blend=tuple(cursor.transforms(256) for _ in range(3)),
        additive_blend=cursor.transforms(256),
        multiplicative_blend=cursor.transforms(256),
        hue_variations=cursor.transforms(111),
        red_tones=cursor.transform(),
        green_tones=cursor.transform(),
        blue_tones=cursor.transform(),
        unknown_variations=cursor.transforms(14),
        max_component_blend=cursor.transforms(256),
        darkened_color_shift=cursor.transform(),
        text_colors=tuple(
            PL2Color24Bits(*cursor.take(_COLOR24_SIZE)) for _ in range(_NUM_TEXT_COLORS)
        ),
        text_color_shifts=cursor.transforms(_NUM_TEXT_COLORS),
    )