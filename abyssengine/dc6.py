"""Parser and decoder for DC6 sprite files."""

from __future__ import annotations

import copy
import struct
from dataclasses import dataclass, field

_END_OF_SCANLINE = 0x80
_MAX_RUN_LENGTH = 0x7F
_TERMINATION_SIZE = 4
_TERMINATOR_SIZE = 3


@dataclass
class DC6Frame:
    """A single frame of a DC6 file."""

    flipped: int = 0
    width: int = 0
    height: int = 0
    offset_x: int = 0
    offset_y: int = 0
    unknown: int = 0
    next_block: int = 0
    length: int = 0
    frame_data: bytes = b""
    terminator: bytes = b""


@dataclass
class DC6:
    """The contents of a DC6 file."""

    version: int = 0
    flags: int = 0
    encoding: int = 0
    termination: bytes = b""
    directions: int = 0
    frames_per_direction: int = 0
    frame_pointers: list[int] = field(default_factory=list)
    frames: list[DC6Frame] = field(default_factory=list)

    def decode_frame(self, frame_index: int) -> bytes:
        """Decode a frame into palette indices, one byte per pixel, top row first."""
        frame = self.frames[frame_index]
        width = frame.width
        data = frame.frame_data
        pixels = bytearray(width * frame.height)
        x = 0
        y = frame.height - 1
        offset = 0

        while True:
            if offset >= len(data):
                raise ValueError("DC6 frame data ended before the last scanline")
            value = data[offset]
            offset += 1

            if value == _END_OF_SCANLINE:
                if y == 0:
                    break
                y -= 1
                x = 0
            elif value & _END_OF_SCANLINE:
                x += value & _MAX_RUN_LENGTH
            else:
                start = x + y * width
                run = data[offset:offset + value]
                if start < 0 or start + value > len(pixels) or len(run) != value:
                    raise ValueError("DC6 frame data is corrupt")
                pixels[start:start + value] = run
                offset += value
                x += value

        return bytes(pixels)

    def clone(self) -> DC6:
        """Return an independent copy."""
        return copy.deepcopy(self)


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def unpack(self, fmt: str) -> tuple:
        size = struct.calcsize(fmt)
        if self.position + size > len(self._data):
            raise ValueError("unexpected end of DC6 data")
        values = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return values

    def read_bytes(self, count: int) -> bytes:
        if self.position + count > len(self._data):
            raise ValueError("unexpected end of DC6 data")
        chunk = self._data[self.position:self.position + count]
        self.position += count
        return chunk


def load(data: bytes) -> DC6:
    """Parse DC6 file data."""
    reader = _Reader(data)
    dc6 = DC6()

    dc6.version, dc6.flags, dc6.encoding = reader.unpack("<iII")
    dc6.termination = reader.read_bytes(_TERMINATION_SIZE)
    dc6.directions, dc6.frames_per_direction = reader.unpack("<II")

    frame_count = dc6.directions * dc6.frames_per_direction
    dc6.frame_pointers = [reader.unpack("<I")[0] for _ in range(frame_count)]

    for _ in range(frame_count):
        (flipped, width, height, offset_x, offset_y, unknown, next_block, length) = (
            reader.unpack("<IIIiiIII")
        )
        dc6.frames.append(
            DC6Frame(
                flipped=flipped,
                width=width,
                height=height,
                offset_x=offset_x,
                offset_y=offset_y,
                unknown=unknown,
                next_block=next_block,
                length=length,
                frame_data=reader.read_bytes(length),
                terminator=reader.read_bytes(_TERMINATOR_SIZE),
            )
        )

    return dc6