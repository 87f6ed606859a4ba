"""Parser and decoder for DCC compressed animation files."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

DCC_FILE_SIGNATURE = 0x74

_DIRECTION_OFFSET_MULTIPLIER = 8
_CELL_SIZE = 4
_CRAZY_BIT_TABLE = (0, 1, 2, 4, 6, 8, 10, 12, 14, 16, 20, 24, 26, 28, 30, 32)
_PIXEL_MASK_LOOKUP = (0, 1, 1, 2, 1, 2, 2, 3, 1, 2, 2, 3, 2, 3, 3, 4)
_BOX_LIMIT = 100000

_DIR_LOOKUP = {
    4: (
        0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 1, 1, 1, 1,
        1, 1, 1, 1, 1, 1, 1, 1, 2, 2, 2, 2, 2, 2, 2, 2,
        2, 2, 2, 2, 2, 2, 2, 2, 3, 3, 3, 3, 3, 3, 3, 3,
        3, 3, 3, 3, 3, 3, 3, 3, 0, 0, 0, 0, 0, 0, 0, 0,
    ),
    8: (
        4, 4, 4, 4, 0, 0, 0, 0, 0, 0, 0, 0, 5, 5, 5, 5,
        5, 5, 5, 5, 1, 1, 1, 1, 1, 1, 1, 1, 6, 6, 6, 6,
        6, 6, 6, 6, 2, 2, 2, 2, 2, 2, 2, 2, 7, 7, 7, 7,
        7, 7, 7, 7, 3, 3, 3, 3, 3, 3, 3, 3, 4, 4, 4, 4,
    ),
    16: (
        4, 4, 8, 8, 8, 8, 0, 0, 0, 0, 9, 9, 9, 9, 5, 5,
        5, 5, 10, 10, 10, 10, 1, 1, 1, 1, 11, 11, 11, 11, 6, 6,
        6, 6, 12, 12, 12, 12, 2, 2, 2, 2, 13, 13, 13, 13, 7, 7,
        7, 7, 14, 14, 14, 14, 3, 3, 3, 3, 15, 15, 15, 15, 4, 4,
    ),
    32: (
        4, 16, 16, 8, 8, 17, 17, 0, 0, 18, 18, 9, 9, 19, 19, 5,
        5, 20, 20, 10, 10, 21, 21, 1, 1, 22, 22, 11, 11, 23, 23, 6,
        6, 24, 24, 12, 12, 25, 25, 2, 2, 26, 26, 13, 13, 27, 27, 7,
        7, 28, 28, 14, 14, 29, 29, 3, 3, 30, 30, 15, 15, 31, 31, 4,
    ),
    64: (
        4, 32, 16, 33, 8, 34, 17, 35, 0, 36, 18, 37, 9, 38, 19, 39,
        5, 40, 20, 41, 10, 42, 21, 43, 1, 44, 22, 45, 11, 46, 23, 47,
        6, 48, 24, 49, 12, 50, 25, 51, 2, 52, 26, 53, 13, 54, 27, 55,
        7, 56, 28, 57, 14, 58, 29, 59, 3, 60, 30, 61, 15, 62, 31, 63,
    ),
}


def dir64_to_dcc(direction: int, num_directions: int) -> int:
    """Map one of 64 world directions to a DCC direction index.

    Unsupported direction counts map to 0.
    """
    table = _DIR_LOOKUP.get(num_directions)
    if table is None:
        return 0
    if not 0 <= direction < len(table):
        raise IndexError(f"direction {direction} out of range")
    return table[direction]


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


class _BitReader:
    """Reads little-endian bit fields, least significant bit first."""

    __slots__ = ("data", "offset", "bits_read")

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset
        self.bits_read = 0

    def copy(self) -> _BitReader:
        return _BitReader(self.data, self.offset)

    def get_bit(self) -> int:
        index = self.offset >> 3
        if not 0 <= index < len(self.data):
            raise ValueError("unexpected end of DCC data")
        bit = (self.data[index] >> (self.offset & 7)) & 1
        self.offset += 1
        self.bits_read += 1
        return bit

    def get_bits(self, count: int) -> int:
        result = 0
        for i in range(count):
            result |= self.get_bit() << i
        return result

    def get_signed_bits(self, count: int) -> int:
        if count == 0:
            return 0
        value = self.get_bits(count)
        if value & (1 << (count - 1)):
            value -= 1 << count
        return value

    def get_byte(self) -> int:
        return self.get_bits(8)

    def get_uint32(self) -> int:
        return self.get_bits(32)

    def get_int32(self) -> int:
        return self.get_signed_bits(32)

    def skip_bits(self, count: int) -> None:
        self.offset += count
        self.bits_read += count


@dataclass
class Rectangle:
    """An axis-aligned rectangle."""

    left: int = 0
    top: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass
class DCCCell:
    """A cell of a direction or frame, and where it was last drawn."""

    width: int = 0
    height: int = 0
    x_offset: int = 0
    y_offset: int = 0
    last_width: int = 0
    last_height: int = 0
    last_x_offset: int = 0
    last_y_offset: int = 0


@dataclass
class DCCPixelBufferEntry:
    """Up to four palette values of a cell and the frame cell it belongs to."""

    value: list[int] = field(default_factory=lambda: [0, 0, 0, 0])
    frame: int = -1
    frame_cell_index: int = -1


@dataclass
class DCCDirectionFrame:
    """A frame of one direction of a DCC file."""

    box: Rectangle = field(default_factory=Rectangle)
    cells: list[DCCCell] = field(default_factory=list)
    pixel_data: bytes = b""
    width: int = 0
    height: int = 0
    x_offset: int = 0
    y_offset: int = 0
    number_of_optional_bytes: int = 0
    number_of_coded_bytes: int = 0
    horizontal_cell_count: int = 0
    vertical_cell_count: int = 0
    frame_is_bottom_up: bool = False


@dataclass
class DCCDirection:
    """One decoded direction of a DCC file."""

    out_size_coded: int = 0
    compression_flags: int = 0
    variable0_bits: int = 0
    width_bits: int = 0
    height_bits: int = 0
    x_offset_bits: int = 0
    y_offset_bits: int = 0
    optional_data_bits: int = 0
    coded_bytes_bits: int = 0
    equal_cells_bitstream_size: int = 0
    pixel_mask_bitstream_size: int = 0
    encoding_type_bitstream_size: int = 0
    raw_pixel_codes_bitstream_size: int = 0
    frames: list[DCCDirectionFrame] = field(default_factory=list)
    palette_entries: bytearray = field(default_factory=lambda: bytearray(256))
    box: Rectangle = field(default_factory=Rectangle)
    cells: list[DCCCell] = field(default_factory=list)
    pixel_data: bytes = b""
    horizontal_cell_count: int = 0
    vertical_cell_count: int = 0
    pixel_buffer: list[DCCPixelBufferEntry] = field(default_factory=list)


@dataclass
class DCC:
    """The contents of a DCC file."""

    signature: int = 0
    version: int = 0
    number_of_directions: int = 0
    frames_per_direction: int = 0
    directions: list[DCCDirection] = field(default_factory=list)
    direction_offsets: list[int] = field(default_factory=list)

    def clone(self) -> DCC:
        """Return an independent copy."""
        return copy.deepcopy(self)


def _split(total: int, count: int, first: int | None = None) -> list[int]:
    """Cell sizes along one axis: an optional first size, inner 4s, the remainder."""
    if count == 1:
        return [total]
    if first is None:
        return [_CELL_SIZE] * (count - 1) + [total - _CELL_SIZE * (count - 1)]
    return [first] + [_CELL_SIZE] * (count - 2) + [total - first - _CELL_SIZE * (count - 2)]


def _decode_frame(bits: _BitReader, direction: DCCDirection) -> DCCDirectionFrame:
    frame = DCCDirectionFrame()
    bits.get_bits(direction.variable0_bits)
    frame.width = bits.get_bits(direction.width_bits)
    frame.height = bits.get_bits(direction.height_bits)
    frame.x_offset = bits.get_signed_bits(direction.x_offset_bits)
    frame.y_offset = bits.get_signed_bits(direction.y_offset_bits)
    frame.number_of_optional_bytes = bits.get_bits(direction.optional_data_bits)
    frame.number_of_coded_bytes = bits.get_bits(direction.coded_bytes_bits)
    frame.frame_is_bottom_up = bits.get_bit() == 1

    if frame.frame_is_bottom_up:
        raise ValueError("bottom-up DCC frames are not supported")

    frame.box = Rectangle(
        left=frame.x_offset,
        top=frame.y_offset - frame.height + 1,
        width=frame.width,
        height=frame.height,
    )
    return frame


def _frame_cell_count(extent: int, first: int) -> int:
    if extent - first <= 1:
        return 1
    rest = extent - first - 1
    count = 2 + rest // _CELL_SIZE
    if rest % _CELL_SIZE == 0:
        count -= 1
    return count


def _recalculate_frame_cells(frame: DCCDirectionFrame, direction: DCCDirection) -> None:
    origin_x = frame.box.left - direction.box.left
    origin_y = frame.box.top - direction.box.top
    first_width = _CELL_SIZE - origin_x % _CELL_SIZE
    first_height = _CELL_SIZE - origin_y % _CELL_SIZE

    frame.horizontal_cell_count = _frame_cell_count(frame.width, first_width)
    frame.vertical_cell_count = _frame_cell_count(frame.height, first_height)

    widths = _split(frame.width, frame.horizontal_cell_count, first_width)
    heights = _split(frame.height, frame.vertical_cell_count, first_height)

    frame.cells = []
    offset_y = origin_y
    for height in heights:
        offset_x = origin_x
        for width in widths:
            frame.cells.append(
                DCCCell(width=width, height=height, x_offset=offset_x, y_offset=offset_y)
            )
            offset_x += width
        offset_y += height


def _calculate_cells(direction: DCCDirection) -> None:
    box = direction.box
    direction.horizontal_cell_count = 1 + _tdiv(box.width - 1, _CELL_SIZE)
    direction.vertical_cell_count = 1 + _tdiv(box.height - 1, _CELL_SIZE)
    if direction.horizontal_cell_count <= 0 or direction.vertical_cell_count <= 0:
        raise ValueError("invalid DCC direction dimensions")

    widths = _split(box.width, direction.horizontal_cell_count)
    heights = _split(box.height, direction.vertical_cell_count)

    direction.cells = []
    for y, height in enumerate(heights):
        for x, width in enumerate(widths):
            direction.cells.append(
                DCCCell(
                    width=width,
                    height=height,
                    x_offset=x * _CELL_SIZE,
                    y_offset=y * _CELL_SIZE,
                )
            )


def _fill_pixel_buffer(
    direction: DCCDirection,
    pcd: _BitReader,
    ec: _BitReader,
    pm: _BitReader,
    et: _BitReader,
    rp: _BitReader,
) -> None:
    max_cell_x = sum(frame.horizontal_cell_count for frame in direction.frames)
    max_cell_y = sum(frame.vertical_cell_count for frame in direction.frames)
    buffer = [DCCPixelBufferEntry() for _ in range(max_cell_x * max_cell_y)]
    direction.pixel_buffer = buffer

    cell_buffer: list[DCCPixelBufferEntry | None] = [None] * (
        direction.horizontal_cell_count * direction.vertical_cell_count
    )
    pb_index = -1
    pixel_mask = 0

    for frame_index, frame in enumerate(direction.frames):
        origin_cell_x = (frame.box.left - direction.box.left) // _CELL_SIZE
        origin_cell_y = (frame.box.top - direction.box.top) // _CELL_SIZE

        for cell_y in range(frame.vertical_cell_count):
            current_cell_y = cell_y + origin_cell_y

            for cell_x in range(frame.horizontal_cell_count):
                current_cell = (
                    origin_cell_x + cell_x + current_cell_y * direction.horizontal_cell_count
                )

                if cell_buffer[current_cell] is not None:
                    equal = ec.get_bit() if direction.equal_cells_bitstream_size > 0 else 0
                    if equal:
                        continue
                    pixel_mask = pm.get_bits(4)
                else:
                    pixel_mask = 0x0F

                pixel_stack = [0, 0, 0, 0]
                last_pixel = 0
                number_of_pixel_bits = _PIXEL_MASK_LOOKUP[pixel_mask]
                if number_of_pixel_bits and direction.encoding_type_bitstream_size > 0:
                    encoding_type = et.get_bit()
                else:
                    encoding_type = 0

                decoded_pixels = 0
                for i in range(number_of_pixel_bits):
                    if encoding_type:
                        pixel_stack[i] = rp.get_bits(8)
                    else:
                        displacement = pcd.get_bits(4)
                        pixel_stack[i] = last_pixel + displacement
                        while displacement == 15:
                            displacement = pcd.get_bits(4)
                            pixel_stack[i] += displacement

                    if pixel_stack[i] == last_pixel:
                        pixel_stack[i] = 0
                        break
                    last_pixel = pixel_stack[i]
                    decoded_pixels += 1

                old_entry = cell_buffer[current_cell]
                pb_index += 1
                entry = buffer[pb_index]
                current = decoded_pixels - 1

                for i in range(4):
                    if pixel_mask & (1 << i):
                        if current >= 0:
                            entry.value[i] = pixel_stack[current] & 0xFF
                            current -= 1
                        else:
                            entry.value[i] = 0
                    else:
                        entry.value[i] = old_entry.value[i]

                cell_buffer[current_cell] = entry
                entry.frame = frame_index
                entry.frame_cell_index = cell_x + cell_y * frame.horizontal_cell_count

    palette = direction.palette_entries
    for entry in buffer[:pb_index + 1]:
        entry.value = [palette[value] for value in entry.value]


def _generate_frames(direction: DCCDirection, pcd: _BitReader) -> None:
    pb_idx = 0
    for cell in direction.cells:
        cell.last_width = -1
        cell.last_height = -1

    stride = direction.box.width
    size = direction.box.width * direction.box.height
    buffer = bytearray(size)

    for frame_index, frame in enumerate(direction.frames):
        pixels = bytearray(size)

        for cell_index, cell in enumerate(frame.cells):
            buffer_cell = direction.cells[
                cell.x_offset // _CELL_SIZE
                + (cell.y_offset // _CELL_SIZE) * direction.horizontal_cell_count
            ]
            entry = direction.pixel_buffer[pb_idx]

            if entry.frame != frame_index or entry.frame_cell_index != cell_index:
                if cell.width != buffer_cell.last_width or cell.height != buffer_cell.last_height:
                    for y in range(cell.height):
                        row = cell.x_offset + (y + cell.y_offset) * stride
                        buffer[row:row + cell.width] = bytes(cell.width)
                else:
                    for fy in range(cell.height):
                        for fx in range(cell.width):
                            buffer[fx + cell.x_offset + (fy + cell.y_offset) * stride] = buffer[
                                fx
                                + buffer_cell.last_x_offset
                                + (fy + buffer_cell.last_y_offset) * stride
                            ]
                    for fy in range(cell.height):
                        row = cell.x_offset + (fy + cell.y_offset) * stride
                        pixels[row:row + cell.width] = buffer[row:row + cell.width]
            else:
                values = entry.value
                if values[0] == values[1]:
                    for y in range(cell.height):
                        row = cell.x_offset + (y + cell.y_offset) * stride
                        buffer[row:row + cell.width] = bytes([values[0]]) * cell.width
                else:
                    bits_to_read = 2 if values[1] != values[2] else 1
                    for y in range(cell.height):
                        for x in range(cell.width):
                            buffer[x + cell.x_offset + (y + cell.y_offset) * stride] = values[
                                pcd.get_bits(bits_to_read)
                            ]

                for fy in range(cell.height):
                    row = cell.x_offset + (fy + cell.y_offset) * stride
                    pixels[row:row + cell.width] = buffer[row:row + cell.width]
                pb_idx += 1

            buffer_cell.last_width = cell.width
            buffer_cell.last_height = cell.height
            buffer_cell.last_x_offset = cell.x_offset
            buffer_cell.last_y_offset = cell.y_offset

        frame.cells = []
        frame.pixel_data = bytes(pixels)

    direction.cells = []
    direction.pixel_data = b""
    direction.pixel_buffer = []


def _decode_direction(bits: _BitReader, frames_per_direction: int) -> DCCDirection:
    direction = DCCDirection(
        out_size_coded=bits.get_uint32(),
        compression_flags=bits.get_bits(2),
        variable0_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        width_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        height_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        x_offset_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        y_offset_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        optional_data_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
        coded_bytes_bits=_CRAZY_BIT_TABLE[bits.get_bits(4)],
    )

    min_x = min_y = _BOX_LIMIT
    max_x = max_y = -_BOX_LIMIT
    for _ in range(frames_per_direction):
        frame = _decode_frame(bits, direction)
        direction.frames.append(frame)
        min_x = min(frame.box.left, min_x)
        min_y = min(frame.box.top, min_y)
        max_x = max(frame.box.right, max_x)
        max_y = max(frame.box.bottom, max_y)

    direction.box = Rectangle(left=min_x, top=min_y, width=max_x - min_x, height=max_y - min_y)

    if direction.optional_data_bits > 0:
        raise ValueError("optional bits in DCC data are not supported")

    if direction.compression_flags & 0x2:
        direction.equal_cells_bitstream_size = bits.get_bits(20)

    direction.pixel_mask_bitstream_size = bits.get_bits(20)

    if direction.compression_flags & 0x1:
        direction.encoding_type_bitstream_size = bits.get_bits(20)
        direction.raw_pixel_codes_bitstream_size = bits.get_bits(20)

    entry_count = 0
    for index in range(256):
        if bits.get_bit():
            direction.palette_entries[entry_count] = index
            entry_count += 1

    # Each bitstream starts at an arbitrary bit offset right after the previous one.
    equal_cells = bits.copy()
    bits.skip_bits(direction.equal_cells_bitstream_size)
    pixel_mask = bits.copy()
    bits.skip_bits(direction.pixel_mask_bitstream_size)
    encoding_type = bits.copy()
    bits.skip_bits(direction.encoding_type_bitstream_size)
    raw_pixel_codes = bits.copy()
    bits.skip_bits(direction.raw_pixel_codes_bitstream_size)
    pixel_codes = bits.copy()

    _calculate_cells(direction)
    for frame in direction.frames:
        _recalculate_frame_cells(frame, direction)

    _fill_pixel_buffer(
        direction, pixel_codes, equal_cells, pixel_mask, encoding_type, raw_pixel_codes
    )
    _generate_frames(direction, pixel_codes)

    for stream, expected in (
        (equal_cells, direction.equal_cells_bitstream_size),
        (pixel_mask, direction.pixel_mask_bitstream_size),
        (encoding_type, direction.encoding_type_bitstream_size),
        (raw_pixel_codes, direction.raw_pixel_codes_bitstream_size),
    ):
        if stream.bits_read != expected:
            raise ValueError("Did not read the correct number of bits!")

    bits.skip_bits(pixel_codes.bits_read)
    return direction


def load(data: bytes) -> DCC:
    """Parse and decode DCC file data."""
    data = bytes(data)
    bits = _BitReader(data)
    result = DCC()

    result.signature = bits.get_byte()
    if result.signature != DCC_FILE_SIGNATURE:
        raise ValueError("signature expected to be 0x74 but it is not")

    result.version = bits.get_byte()
    result.number_of_directions = bits.get_byte()
    result.frames_per_direction = bits.get_int32()

    if bits.get_int32() != 1:
        raise ValueError("this value isn't 1. It has to be 1")

    bits.get_int32()  # total size coded

    for _ in range(result.number_of_directions):
        offset = bits.get_int32()
        result.direction_offsets.append(offset)
        try:
            direction = _decode_direction(
                _BitReader(data, offset * _DIRECTION_OFFSET_MULTIPLIER),
                result.frames_per_direction,
            )
        except IndexError as error:
            raise ValueError("corrupt DCC direction data") from error
        result.directions.append(direction)

    return result