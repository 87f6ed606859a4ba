"""Parser for DS1 map "stamp" files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

MAX_ACT_NUMBER = 5

_SUB_TYPE_1 = 1
_SUB_TYPE_2 = 2

_DIR_LOOKUP = (
    0x00, 0x01, 0x02, 0x01, 0x02, 0x03, 0x03, 0x05, 0x05, 0x06,
    0x06, 0x07, 0x07, 0x08, 0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x0E,
    0x0F, 0x10, 0x11, 0x12, 0x14,
)


class LayerStreamType(IntEnum):
    """The kind of data held by one layer stream of a DS1 file."""

    WALL1 = 0
    WALL2 = 1
    WALL3 = 2
    WALL4 = 3
    ORIENTATION1 = 4
    ORIENTATION2 = 5
    ORIENTATION3 = 6
    ORIENTATION4 = 7
    FLOOR1 = 8
    FLOOR2 = 9
    SHADOW = 10
    SUBSTITUTE = 11


_WALLS = range(LayerStreamType.WALL1, LayerStreamType.WALL4 + 1)
_ORIENTATIONS = range(LayerStreamType.ORIENTATION1, LayerStreamType.ORIENTATION4 + 1)
_FLOORS = range(LayerStreamType.FLOOR1, LayerStreamType.FLOOR2 + 1)


@dataclass
class Path:
    """A point on an NPC's walking path and the action taken there."""

    position: tuple[float, float] = (0.0, 0.0)
    action: int = 0


@dataclass
class Object:
    """A game world object placed on the map."""

    type: int = 0
    id: int = 0
    x: int = 0
    y: int = 0
    flags: int = 0
    paths: list[Path] = field(default_factory=list)


@dataclass
class FloorShadowRecord:
    """A floor or shadow record of a tile."""

    prop1: int = 0
    sequence: int = 0
    unknown1: int = 0
    style: int = 0
    unknown2: int = 0
    hidden: bool = False
    random_index: int = 0
    animated: bool = False
    y_adjust: int = 0


@dataclass
class WallRecord:
    """A wall record of a tile."""

    type: int = 0
    zero: int = 0
    prop1: int = 0
    sequence: int = 0
    unknown1: int = 0
    style: int = 0
    unknown2: int = 0
    hidden: bool = False
    random_index: int = 0
    y_adjust: int = 0


@dataclass
class SubstitutionRecord:
    """A substitution record of a tile."""

    unknown: int = 0


@dataclass
class SubstitutionGroup:
    """A substitution group of a DS1 file."""

    tile_x: int = 0
    tile_y: int = 0
    width_in_tiles: int = 0
    height_in_tiles: int = 0
    unknown: int = 0


@dataclass
class TileRecord:
    """All layers of one map tile."""

    floors: list[FloorShadowRecord] = field(default_factory=list)
    walls: list[WallRecord] = field(default_factory=list)
    shadows: list[FloorShadowRecord] = field(default_factory=list)
    substitutions: list[SubstitutionRecord] = field(default_factory=list)


@dataclass
class DS1:
    """The contents of a DS1 file."""

    files: list[str] = field(default_factory=list)
    objects: list[Object] = field(default_factory=list)
    tiles: list[list[TileRecord]] = field(default_factory=list)
    substitution_groups: list[SubstitutionGroup] = field(default_factory=list)
    version: int = 0
    width: int = 0
    height: int = 0
    act: int = 1
    substitution_type: int = 0
    number_of_walls: int = 0
    number_of_floors: int = 0
    number_of_shadow_layers: int = 1
    number_of_substitution_layers: int = 0
    substitution_groups_num: int = 0


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.position = 0

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if self.position < 0 or self.position + size > len(self._data):
            raise ValueError("unexpected end of DS1 data")
        (value,) = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return value

    def int32(self) -> int:
        return self._unpack("<i")

    def uint32(self) -> int:
        return self._unpack("<I")

    def byte(self) -> int:
        return self._unpack("<B")

    def skip(self, count: int) -> None:
        self.position += count

    def c_string(self) -> str:
        chars = bytearray()
        while (value := self.byte()) != 0:
            chars.append(value)
        return chars.decode("latin-1")


def _count(value: int, what: str) -> int:
    if value < 0:
        raise ValueError(f"negative {what} count in DS1 data")
    return value


def _set_tile_bits(record, dw: int) -> None:
    record.prop1 = dw & 0x000000FF
    record.sequence = (dw & 0x00003F00) >> 8
    record.unknown1 = (dw & 0x000FC000) >> 14
    record.style = (dw & 0x03F00000) >> 20
    record.unknown2 = (dw & 0x7C000000) >> 26
    record.hidden = (dw & 0x80000000) != 0


def _layer_stream_types(ds1: DS1) -> list[LayerStreamType]:
    if ds1.version < 4:
        return [
            LayerStreamType.WALL1,
            LayerStreamType.FLOOR1,
            LayerStreamType.ORIENTATION1,
            LayerStreamType.SUBSTITUTE,
            LayerStreamType.SHADOW,
        ]

    streams: list[LayerStreamType] = []
    for i in range(ds1.number_of_walls):
        streams.append(LayerStreamType(LayerStreamType.WALL1 + i))
        streams.append(LayerStreamType(LayerStreamType.ORIENTATION1 + i))
    for i in range(ds1.number_of_floors):
        streams.append(LayerStreamType(LayerStreamType.FLOOR1 + i))
    if ds1.number_of_shadow_layers > 0:
        streams.append(LayerStreamType.SHADOW)
    if ds1.number_of_substitution_layers > 0:
        streams.append(LayerStreamType.SUBSTITUTE)
    return streams


def _layer(records: list, index: int, kind: str):
    if not 0 <= index < len(records):
        raise ValueError(f"DS1 tile has no {kind} layer {index}")
    return records[index]


def _load_layer_streams(ds1: DS1, reader: _Reader, streams: list[LayerStreamType]) -> None:
    for stream in streams:
        for row in ds1.tiles:
            for tile in row:
                dw = reader.uint32()
                if stream in _WALLS:
                    wall = _layer(tile.walls, stream - LayerStreamType.WALL1, "wall")
                    _set_tile_bits(wall, dw)
                elif stream in _ORIENTATIONS:
                    wall = _layer(
                        tile.walls, stream - LayerStreamType.ORIENTATION1, "wall"
                    )
                    orientation = dw & 0x000000FF
                    if ds1.version < 7 and orientation < len(_DIR_LOOKUP):
                        orientation = _DIR_LOOKUP[orientation]
                    wall.type = orientation
                    wall.zero = (dw >> 8) & 0xFF
                elif stream in _FLOORS:
                    floor = _layer(tile.floors, stream - LayerStreamType.FLOOR1, "floor")
                    _set_tile_bits(floor, dw)
                elif stream == LayerStreamType.SHADOW:
                    _set_tile_bits(_layer(tile.shadows, 0, "shadow"), dw)
                elif stream == LayerStreamType.SUBSTITUTE:
                    _layer(tile.substitutions, 0, "substitution").unknown = dw


def _load_objects(ds1: DS1, reader: _Reader) -> None:
    if ds1.version < 2:
        ds1.objects = []
        return
    count = _count(reader.int32(), "object")
    ds1.objects = []
    for _ in range(count):
        obj_type, obj_id, x, y, flags = (reader.int32() for _ in range(5))
        ds1.objects.append(Object(type=obj_type, id=obj_id, x=x, y=y, flags=flags))


def _load_substitutions(ds1: DS1, reader: _Reader) -> None:
    has_substitutions = ds1.version >= 12 and ds1.substitution_type in (
        _SUB_TYPE_1,
        _SUB_TYPE_2,
    )
    ds1.substitution_groups = []
    if not has_substitutions:
        return

    if ds1.version >= 18:
        try:
            reader.uint32()
        except ValueError:
            pass

    count = _count(reader.int32(), "substitution group")
    for _ in range(count):
        tile_x, tile_y, width, height, unknown = (reader.int32() for _ in range(5))
        ds1.substitution_groups.append(
            SubstitutionGroup(
                tile_x=tile_x,
                tile_y=tile_y,
                width_in_tiles=width,
                height_in_tiles=height,
                unknown=unknown,
            )
        )


def _load_npc_paths(ds1: DS1, reader: _Reader, obj: Object, num_paths: int) -> None:
    if not obj.paths:
        obj.paths = [Path() for _ in range(num_paths)]
    if len(obj.paths) < num_paths:
        raise ValueError("DS1 NPC path count does not match earlier entry")

    for index in range(num_paths):
        px = reader.int32()
        py = reader.int32()
        path = Path(position=(float(px), float(py)))
        if ds1.version >= 15:
            path.action = reader.int32()
        obj.paths[index] = path


def _load_npcs(ds1: DS1, reader: _Reader) -> None:
    if ds1.version < 14:
        return

    count = _count(reader.int32(), "NPC")
    for _ in range(count):
        num_paths = _count(reader.int32(), "path")
        npc_x = reader.int32()
        npc_y = reader.int32()

        owner = next((o for o in ds1.objects if o.x == npc_x and o.y == npc_y), None)
        if owner is not None:
            _load_npc_paths(ds1, reader, owner, num_paths)
        elif ds1.version >= 15:
            reader.skip(num_paths * 3)
        else:
            reader.skip(num_paths * 2)


def load_ds1(data: bytes) -> DS1:
    """Parse DS1 file data."""
    reader = _Reader(data)
    ds1 = DS1()

    ds1.version = reader.int32()
    ds1.width = reader.int32() + 1
    ds1.height = reader.int32() + 1
    if ds1.width < 0 or ds1.height < 0:
        raise ValueError("negative DS1 dimensions")

    if ds1.version >= 8:
        ds1.act = min(MAX_ACT_NUMBER, reader.int32() + 1)

    if ds1.version >= 10:
        ds1.substitution_type = reader.int32()
        if ds1.substitution_type in (_SUB_TYPE_1, _SUB_TYPE_2):
            ds1.number_of_substitution_layers = 1

    if ds1.version >= 3:
        count = _count(reader.int32(), "file")
        ds1.files = [reader.c_string() for _ in range(count)]

    if 9 <= ds1.version <= 13:
        reader.skip(8)

    if ds1.version >= 4:
        ds1.number_of_walls = _count(reader.int32(), "wall")
        if ds1.version >= 16:
            ds1.number_of_floors = _count(reader.int32(), "floor")
        else:
            ds1.number_of_floors = 1

    streams = _layer_stream_types(ds1)

    ds1.tiles = [
        [
            TileRecord(
                floors=[FloorShadowRecord() for _ in range(ds1.number_of_floors)],
                walls=[WallRecord() for _ in range(ds1.number_of_walls)],
                shadows=[FloorShadowRecord() for _ in range(ds1.number_of_shadow_layers)],
                substitutions=[
                    SubstitutionRecord() for _ in range(ds1.number_of_substitution_layers)
                ],
            )
            for _ in range(ds1.width)
        ]
        for _ in range(ds1.height)
    ]

    _load_layer_streams(ds1, reader, streams)
    _load_objects(ds1, reader)
    _load_substitutions(ds1, reader)
    _load_npcs(ds1, reader)

    return ds1