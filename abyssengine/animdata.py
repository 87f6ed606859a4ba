"""Parser for AnimData.d2 animation speed and event tables.

The file is little-endian and holds 256 blocks. Each block starts with a
uint32 record count (0 to 67), followed by that many records of: an 8-byte
null-terminated name, uint32 frames per direction, uint16 speed, two bytes
of padding and 144 per-frame event bytes. The game runs at 25 frames per
second and a record plays at 25 * speed / 256 frames per second.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from enum import IntEnum

NUM_BLOCKS = 256
MAX_RECORDS_PER_BLOCK = 67
NUM_EVENTS = 144
SPEED_DIVISOR = 256
SPEED_BASE_FPS = 25

_NAME_SIZE = 8
_SPEED_PADDING = 2
_MILLISECONDS = 1000


class AnimationEvent(IntEnum):
    """An event that can happen on a frame of animation."""

    NONE = 0
    ATTACK = 1
    MISSILE = 2
    SOUND = 3
    SKILL = 4


@dataclass
class AnimationDataRecord:
    """A single record of an AnimData.d2 file."""

    name: str = ""
    frames_per_direction: int = 0
    speed: int = 0
    events: dict[int, int] = field(default_factory=dict)

    def fps(self) -> float:
        """Return the frames per second of this animation."""
        return SPEED_BASE_FPS * float(self.speed) / SPEED_DIVISOR

    def frame_duration_ms(self) -> float:
        """Return how many milliseconds one frame is displayed."""
        fps = self.fps()
        if fps == 0:
            return math.inf
        return _MILLISECONDS / fps


@dataclass
class AnimationData:
    """The contents of an AnimData.d2 file."""

    entries: dict[str, list[AnimationDataRecord]] = field(default_factory=dict)
    blocks: list[list[AnimationDataRecord]] = field(default_factory=list)

    def get_record_names(self) -> list[str]:
        """Return the names of all records."""
        return list(self.entries)

    def get_records(self, name: str) -> list[AnimationDataRecord]:
        """Return every record with the given name."""
        return list(self.entries.get(name, []))

    def get_record(self, name: str) -> AnimationDataRecord | None:
        """Return the last record with the given name, or None."""
        records = self.entries.get(name)
        return records[-1] if records else None


def hash_name(name: str) -> int:
    """Return the one-byte hash of a record name."""
    return sum(name.upper().encode("utf-8")) % NUM_BLOCKS


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def unpack(self, fmt: str) -> tuple:
        size = struct.calcsize(fmt)
        if self.position + size > len(self._data):
            raise ValueError("unexpected end of animation data")
        values = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return values

    def read_bytes(self, count: int) -> bytes:
        if self.position + count > len(self._data):
            raise ValueError("unexpected end of animation data")
        chunk = self._data[self.position:self.position + count]
        self.position += count
        return chunk

    def skip(self, count: int) -> None:
        self.position += count


def _event(value: int) -> int:
    try:
        return AnimationEvent(value)
    except ValueError:
        return value


def load(data: bytes) -> AnimationData:
    """Parse AnimData.d2 file data."""
    reader = _Reader(data)
    animdata = AnimationData()

    for _ in range(NUM_BLOCKS):
        (record_count,) = reader.unpack("<I")
        if record_count > MAX_RECORDS_PER_BLOCK:
            raise ValueError(f"more than {MAX_RECORDS_PER_BLOCK} records in block")

        records = []
        for _ in range(record_count):
            name_bytes = reader.read_bytes(_NAME_SIZE)
            if name_bytes[-1] != 0:
                raise ValueError(
                    "animdata AnimationDataRecord name missing null terminator byte"
                )
            name = name_bytes.replace(b"\0", b"").decode("latin-1")
            frames, speed = reader.unpack("<IH")
            reader.skip(_SPEED_PADDING)
            event_bytes = reader.read_bytes(NUM_EVENTS)
            events = {
                index: _event(value)
                for index, value in enumerate(event_bytes)
                if value != AnimationEvent.NONE
            }
            record = AnimationDataRecord(name, frames, speed, events)
            records.append(record)
            animdata.entries.setdefault(name, []).append(record)

        animdata.blocks.append(records)

    if reader.position != len(data):
        raise ValueError("unable to parse animation data")

    return animdata