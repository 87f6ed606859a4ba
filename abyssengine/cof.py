"""Parser for COF composite animation description files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

_UNKNOWN_BYTE_COUNT = 21
_NUM_HEADER_BYTES = 4 + _UNKNOWN_BYTE_COUNT
_NUM_LAYER_BYTES = 9
_HEADER_NUM_LAYERS = 0
_HEADER_FRAMES_PER_DIR = 1
_HEADER_NUM_DIRS = 2
_HEADER_SPEED = _NUM_HEADER_BYTES - 1
_HEADER_PADDING = 3

_LAYER_TYPE = 0
_LAYER_SHADOW = 1
_LAYER_SELECTABLE = 2
_LAYER_TRANSPARENT = 3
_LAYER_DRAW_EFFECT = 4
_LAYER_WEAPON_CLASS = 5

_SUPPORTED_DIRECTION_COUNTS = (4, 8, 16, 32, 64)


@dataclass
class CofLayer:
    """A single layer of a COF file."""

    type: int = 0
    shadow: int = 0
    selectable: bool = False
    transparent: bool = False
    draw_effect: int = 0
    weapon_class: str = ""


@dataclass
class COF:
    """The contents of a COF file."""

    number_of_directions: int = 0
    frames_per_direction: int = 0
    number_of_layers: int = 0
    speed: int = 0
    cof_layers: list[CofLayer] = field(default_factory=list)
    composite_layers: dict[int, int] = field(default_factory=dict)
    animation_frames: list[int] = field(default_factory=list)
    priority: list[list[list[int]]] = field(default_factory=list)


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def read_bytes(self, count: int) -> bytes:
        if self.position + count > len(self._data):
            raise ValueError("unexpected end of COF data")
        chunk = self._data[self.position:self.position + count]
        self.position += count
        return chunk

    def skip(self, count: int) -> None:
        self.position += count


def load(data: bytes) -> COF:
    """Parse COF file data."""
    reader = _Reader(data)
    header = reader.read_bytes(_NUM_HEADER_BYTES)

    result = COF(
        number_of_layers=header[_HEADER_NUM_LAYERS],
        frames_per_direction=header[_HEADER_FRAMES_PER_DIR],
        number_of_directions=header[_HEADER_NUM_DIRS],
        speed=header[_HEADER_SPEED],
    )
    reader.skip(_HEADER_PADDING)

    for index in range(result.number_of_layers):
        raw = reader.read_bytes(_NUM_LAYER_BYTES)
        weapon = raw[_LAYER_WEAPON_CLASS:].replace(b"\0", b"").decode("latin-1").strip()
        layer = CofLayer(
            type=raw[_LAYER_TYPE],
            shadow=raw[_LAYER_SHADOW],
            selectable=raw[_LAYER_SELECTABLE] > 0,
            transparent=raw[_LAYER_TRANSPARENT] > 0,
            draw_effect=raw[_LAYER_DRAW_EFFECT],
            weapon_class=weapon,
        )
        result.cof_layers.append(layer)
        result.composite_layers[layer.type] = index

    result.animation_frames = list(reader.read_bytes(result.frames_per_direction))

    layers = result.number_of_layers
    frames = result.frames_per_direction
    priority = reader.read_bytes(frames * result.number_of_directions * layers)
    per_direction = frames * layers
    result.priority = [
        [
            list(priority[d * per_direction + f * layers:d * per_direction + (f + 1) * layers])
            for f in range(frames)
        ]
        for d in range(result.number_of_directions)
    ]

    return result


def dir64_to_cof(direction: int, num_directions: int) -> int:
    """Map one of 64 world directions to a COF direction index.

    Unsupported direction counts map to 0.
    """
    if num_directions not in _SUPPORTED_DIRECTION_COUNTS:
        return 0
    if not 0 <= direction < 64:
        raise IndexError(f"direction {direction} out of range")
    step = 64 // num_directions
    return ((direction + step // 2) // step) % num_directions