"""Parser and pixel decoder for DT1 map tile files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

KNOWN_MAJOR_VERSION = 7
KNOWN_MINOR_VERSION = 6
NUM_SUB_TILES = 25

_NUM_UNKNOWN_HEADER_BYTES = 260
_NUM_UNKNOWN_TILE_BYTES_1 = 4
_NUM_UNKNOWN_TILE_BYTES_2 = 4
_NUM_UNKNOWN_TILE_BYTES_3 = 7
_NUM_UNKNOWN_TILE_BYTES_4 = 12
_BLOCK_DATA_LENGTH = 256

_ISO_X_JUMP = (14, 12, 10, 8, 6, 4, 2, 0, 2, 4, 6, 8, 10, 12, 14)
_ISO_PIXELS = (4, 8, 12, 16, 20, 24, 28, 32, 28, 24, 20, 16, 12, 8, 4)


class BlockDataFormat(IntEnum):
    """How the pixel data of a block is encoded."""

    RLE = 0
    ISOMETRIC = 1


@dataclass
class Block:
    """A block of pixel data within a tile."""

    x: int = 0
    y: int = 0
    grid_x: int = 0
    grid_y: int = 0
    format: BlockDataFormat = BlockDataFormat.RLE
    encoded_data: bytes = b""
    length: int = 0
    file_offset: int = 0


@dataclass
class MaterialFlags:
    """The material a tile is made of."""

    other: bool = False
    water: bool = False
    wood_object: bool = False
    inside_stone: bool = False
    outside_stone: bool = False
    dirt: bool = False
    sand: bool = False
    wood: bool = False
    lava: bool = False
    snow: bool = False

    @classmethod
    def from_bits(cls, data: int) -> MaterialFlags:
        """Decode material flags from their 16-bit field."""
        return cls(
            other=bool(data & 0x0001),
            water=bool(data & 0x0002),
            wood_object=bool(data & 0x0004),
            inside_stone=bool(data & 0x0008),
            outside_stone=bool(data & 0x0010),
            dirt=bool(data & 0x0020),
            sand=bool(data & 0x0040),
            wood=bool(data & 0x0080),
            lava=bool(data & 0x0100),
            snow=bool(data & 0x0400),
        )


_SUB_TILE_FIELDS = (
    ("block_walk", "BlockWalk"),
    ("block_los", "BlockLOS"),
    ("block_jump", "BlockJump"),
    ("block_player_walk", "BlockPlayerWalk"),
    ("unknown1", "Unknown1"),
    ("block_light", "BlockLight"),
    ("unknown2", "Unknown2"),
    ("unknown3", "Unknown3"),
)


@dataclass
class SubTileFlags:
    """Movement and visibility flags of one sub-tile."""

    block_walk: bool = False
    block_los: bool = False
    block_jump: bool = False
    block_player_walk: bool = False
    unknown1: bool = False
    block_light: bool = False
    unknown2: bool = False
    unknown3: bool = False

    @classmethod
    def from_byte(cls, data: int) -> SubTileFlags:
        """Decode sub-tile flags from their byte, lowest bit first."""
        return cls(
            **{attr: bool(data & (1 << bit)) for bit, (attr, _) in enumerate(_SUB_TILE_FIELDS)}
        )

    def combine(self, other: SubTileFlags) -> None:
        """Set every flag that is set in other."""
        for attr, _ in _SUB_TILE_FIELDS:
            setattr(self, attr, getattr(self, attr) or getattr(other, attr))

    def debug_string(self) -> str:
        """Return the names of the set flags, each followed by a space."""
        return "".join(f"{label} " for attr, label in _SUB_TILE_FIELDS if getattr(self, attr))


@dataclass
class Tile:
    """A map tile and its blocks."""

    direction: int = 0
    roof_height: int = 0
    material_flags: MaterialFlags = field(default_factory=MaterialFlags)
    height: int = 0
    width: int = 0
    type: int = 0
    style: int = 0
    sequence: int = 0
    rarity_frame_index: int = 0
    sub_tile_flags: list[SubTileFlags] = field(
        default_factory=lambda: [SubTileFlags() for _ in range(NUM_SUB_TILES)]
    )
    block_header_pointer: int = 0
    block_header_size: int = 0
    blocks: list[Block] = field(default_factory=list)


@dataclass
class DT1:
    """The contents of a DT1 file."""

    tiles: list[Tile] = field(default_factory=list)


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def unpack(self, fmt: str) -> tuple:
        size = struct.calcsize(fmt)
        if self.position < 0 or self.position + size > len(self._data):
            raise ValueError("unexpected end of DT1 data")
        values = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return values

    def read_bytes(self, count: int) -> bytes:
        if count < 0:
            raise ValueError("negative block length in DT1 data")
        if self.position < 0 or self.position + count > len(self._data):
            raise ValueError("unexpected end of DT1 data")
        chunk = self._data[self.position:self.position + count]
        self.position += count
        return chunk

    def skip(self, count: int) -> None:
        self.position += count


def _read_tile(reader: _Reader) -> Tile:
    tile = Tile()
    tile.direction, tile.roof_height, material, tile.height, tile.width = reader.unpack(
        "<ihHii"
    )
    tile.material_flags = MaterialFlags.from_bits(material)
    reader.skip(_NUM_UNKNOWN_TILE_BYTES_1)
    tile.type, tile.style, tile.sequence, tile.rarity_frame_index = reader.unpack("<iiii")
    reader.skip(_NUM_UNKNOWN_TILE_BYTES_2)
    tile.sub_tile_flags = [
        SubTileFlags.from_byte(value) for value in reader.read_bytes(NUM_SUB_TILES)
    ]
    reader.skip(_NUM_UNKNOWN_TILE_BYTES_3)
    tile.block_header_pointer, tile.block_header_size, num_blocks = reader.unpack("<iii")
    if num_blocks < 0:
        raise ValueError("negative block count in DT1 data")
    tile.blocks = [Block() for _ in range(num_blocks)]
    reader.skip(_NUM_UNKNOWN_TILE_BYTES_4)
    return tile


def _read_blocks(reader: _Reader, tile: Tile) -> None:
    reader.position = tile.block_header_pointer
    for block in tile.blocks:
        block.x, block.y = reader.unpack("<hh")
        reader.skip(2)
        block.grid_x, block.grid_y, format_value, block.length = reader.unpack("<BBhi")
        block.format = (
            BlockDataFormat.ISOMETRIC if format_value == 1 else BlockDataFormat.RLE
        )
        reader.skip(2)
        (block.file_offset,) = reader.unpack("<i")

    for block in tile.blocks:
        reader.position = tile.block_header_pointer + block.file_offset
        block.encoded_data = reader.read_bytes(block.length)


def load_dt1(data: bytes) -> DT1:
    """Parse DT1 file data."""
    reader = _Reader(data)

    major, minor = reader.unpack("<ii")
    if major != KNOWN_MAJOR_VERSION or minor != KNOWN_MINOR_VERSION:
        raise ValueError(
            f"expected to have a version of 7.6, but got {major}.{minor} instead"
        )

    reader.skip(_NUM_UNKNOWN_HEADER_BYTES)
    number_of_tiles, position = reader.unpack("<ii")
    if number_of_tiles < 0:
        raise ValueError("negative tile count in DT1 data")
    reader.position = position

    result = DT1(tiles=[_read_tile(reader) for _ in range(number_of_tiles)])
    for tile in result.tiles:
        _read_blocks(reader, tile)
    return result


def _write(pixels: bytearray, offset: int, chunk: bytes) -> None:
    if offset < 0 or offset + len(chunk) > len(pixels):
        raise IndexError("tile pixel write out of range")
    pixels[offset:offset + len(chunk)] = chunk


def _take(data: bytes, start: int, count: int) -> bytes:
    chunk = data[start:start + count]
    if len(chunk) != count:
        raise IndexError("block data ended early")
    return chunk


def decode_tile_gfx_data(
    blocks: list[Block], pixels: bytearray, tile_y_offset: int, tile_width: int
) -> None:
    """Decode the blocks of a tile into pixels, a palette-indexed bytearray."""
    for block in blocks:
        data = block.encoded_data
        if block.format == BlockDataFormat.ISOMETRIC:
            idx = 0
            remaining = _BLOCK_DATA_LENGTH
            y = 0
            while remaining > 0:
                count = _ISO_PIXELS[y]
                remaining -= count
                offset = (block.y + y + tile_y_offset) * tile_width + block.x + _ISO_X_JUMP[y]
                _write(pixels, offset, _take(data, idx, count))
                idx += count
                y += 1
            continue

        x = 0
        y = 0
        idx = 0
        remaining = block.length
        while remaining > 0:
            skip, count = _take(data, idx, 2)
            idx += 2
            remaining -= 2

            if skip == 0 and count == 0:
                x = 0
                y += 1
                continue

            x += skip
            remaining -= count
            offset = (block.y + y + tile_y_offset) * tile_width + block.x + x
            _write(pixels, offset, _take(data, idx, count))
            idx += count
            x += count