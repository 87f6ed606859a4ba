"""Parser for TBL string table files."""

from __future__ import annotations

import struct
from contextlib import suppress
from dataclasses import dataclass

_CRC_BYTE_COUNT = 2


@dataclass
class _HashEntry:
    is_active: bool
    index: int
    hash_value: int
    index_string: int
    name_string: int
    name_length: int


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if self.position < 0 or self.position + size > len(self._data):
            raise ValueError("unexpected end of string table data")
        (value,) = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return value

    def byte(self) -> int:
        return self._unpack("<B")

    def uint16(self) -> int:
        return self._unpack("<H")

    def uint32(self) -> int:
        return self._unpack("<I")

    def read_bytes(self, count: int) -> bytes:
        if self.position < 0 or self.position + count > len(self._data):
            raise ValueError("unexpected end of string table data")
        chunk = self._data[self.position:self.position + count]
        self.position += count
        return chunk


def _read_key(reader: _Reader) -> str:
    chars = bytearray()
    while True:
        try:
            value = reader.byte()
        except ValueError:
            break
        if value == 0:
            break
        chars.append(value)
    return chars.decode("latin-1")


def load_text_dictionary(data: bytes) -> dict[str, str]:
    """Parse a string table into a mapping of keys to strings.

    Keys "x" and "X" are replaced by "#" and the entry's hash index; the first
    entry of a repeated key wins.
    """
    reader = _Reader(data)
    lookup: dict[str, str] = {}

    with suppress(ValueError):
        reader.read_bytes(_CRC_BYTE_COUNT)

    number_of_elements = reader.uint16()
    hash_table_size = reader.uint32()

    try:
        reader.byte()
    except ValueError as error:
        raise ValueError("error reading Version record") from error

    for _ in range(3):  # string offset, max retries, file size
        with suppress(ValueError):
            reader.uint32()

    for _ in range(number_of_elements):
        reader.uint16()

    entries = [
        _HashEntry(
            is_active=reader.byte() > 0,
            index=reader.uint16(),
            hash_value=reader.uint32(),
            index_string=reader.uint32(),
            name_string=reader.uint32(),
            name_length=reader.uint16(),
        )
        for _ in range(hash_table_size)
    ]

    for index, entry in enumerate(entries):
        if not entry.is_active:
            continue

        reader.position = entry.name_string
        value = reader.read_bytes((entry.name_length - 1) & 0xFFFF).decode(
            "utf-8", "replace"
        )

        reader.position = entry.index_string
        key = _read_key(reader)
        if key in ("x", "X"):
            key = f"#{index}"

        lookup.setdefault(key, value)

    return lookup