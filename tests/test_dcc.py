import struct

import pytest

from abyssengine.dcc import DCC, Rectangle, dir64_to_dcc, load


class BitWriter:
    def __init__(self):
        self.bits = []

    def write(self, value, count):
        for i in range(count):
            self.bits.append((value >> i) & 1)

    def to_bytes(self):
        out = bytearray((len(self.bits) + 7) // 8)
        for index, bit in enumerate(self.bits):
            out[index // 8] |= bit << (index % 8)
        return bytes(out)


def direction_bytes(
    frames,
    *,
    compression=0,
    ec_bits=(),
    pm_bits=(),
    pcd=(),
    palette=(10, 20),
    optional_index=0,
    bottom_up=0,
    pm_size=None,
):
    optional_width = {0: 0, 1: 1}[optional_index]
    w = BitWriter()
    w.write(0, 32)
    w.write(compression, 2)
    for index in (0, 5, 5, 5, 5, optional_index, 0):
        w.write(index, 4)
    for fw, fh, fx, fy in frames:
        w.write(fw, 8)
        w.write(fh, 8)
        w.write(fx & 0xFF, 8)
        w.write(fy & 0xFF, 8)
        w.write(0, optional_width)
        w.write(bottom_up, 1)
    if compression & 2:
        w.write(len(ec_bits), 20)
    w.write(len(pm_bits) if pm_size is None else pm_size, 20)
    for i in range(256):
        w.write(1 if i in palette else 0, 1)
    for bit in ec_bits:
        w.write(bit, 1)
    for bit in pm_bits:
        w.write(bit, 1)
    for value, count in pcd:
        w.write(value, count)
    return w.to_bytes()


def build_dcc(direction, frames_per_direction, signature=0x74, check=1):
    header = struct.pack("<BBBiii", signature, 6, 1, frames_per_direction, check, 0)
    offset = len(header) + 4
    return header + struct.pack("<i", offset) + direction


DISPLACEMENTS = [(1, 4), (0, 4)]
FRAME0_PIXELS = [(0, 1), (1, 1), (1, 1), (0, 1)]
FRAME1_PIXELS = [(1, 1), (1, 1), (0, 1), (0, 1)]


def single_frame_dcc(**kwargs):
    frames = [kwargs.pop("frame", (2, 2, 0, 1))]
    pcd = kwargs.pop("pcd", DISPLACEMENTS + FRAME0_PIXELS)
    return build_dcc(direction_bytes(frames, pcd=pcd, **kwargs), 1)


def test_single_frame_decodes_pixels():
    dcc = load(single_frame_dcc())
    assert dcc.signature == 0x74
    assert dcc.number_of_directions == 1
    assert dcc.frames_per_direction == 1
    assert len(dcc.directions) == 1
    direction = dcc.directions[0]
    assert direction.palette_entries[:2] == bytes([10, 20])
    assert direction.box == Rectangle(0, 0, 2, 2)
    frame = direction.frames[0]
    assert (frame.width, frame.height) == (2, 2)
    assert frame.pixel_data == bytes([20, 10, 10, 20])


def test_decoding_releases_working_buffers():
    direction = load(single_frame_dcc()).directions[0]
    assert direction.cells == []
    assert direction.pixel_buffer == []
    assert direction.frames[0].cells == []
    assert direction.frames[0].horizontal_cell_count == 1
    assert direction.frames[0].vertical_cell_count == 1


def test_box_extents_follow_frame():
    direction = load(single_frame_dcc()).directions[0]
    assert direction.box.right == 2
    assert direction.box.bottom == 2


def test_negative_offset_is_sign_extended():
    direction = load(single_frame_dcc(frame=(2, 2, -2, 1))).directions[0]
    frame = direction.frames[0]
    assert frame.x_offset == -2
    assert frame.box.left == -2
    assert direction.box.left == -2
    assert frame.pixel_data == bytes([20, 10, 10, 20])


def test_second_frame_with_pixel_mask_reuses_colours():
    frames = [(2, 2, 0, 1), (2, 2, 0, 1)]
    data = build_dcc(
        direction_bytes(
            frames,
            pm_bits=(0, 0, 0, 0),
            pcd=DISPLACEMENTS + FRAME0_PIXELS + FRAME1_PIXELS,
        ),
        2,
    )
    direction = load(data).directions[0]
    assert direction.pixel_mask_bitstream_size == 4
    assert direction.frames[0].pixel_data == bytes([20, 10, 10, 20])
    assert direction.frames[1].pixel_data == bytes([10, 10, 20, 20])


def test_equal_cell_copies_previous_frame():
    frames = [(2, 2, 0, 1), (2, 2, 0, 1)]
    data = build_dcc(
        direction_bytes(
            frames,
            compression=2,
            ec_bits=(1,),
            pcd=DISPLACEMENTS + FRAME0_PIXELS,
        ),
        2,
    )
    direction = load(data).directions[0]
    assert direction.equal_cells_bitstream_size == 1
    assert direction.frames[1].pixel_data == direction.frames[0].pixel_data
    assert direction.frames[0].pixel_data == bytes([20, 10, 10, 20])


def test_bad_signature():
    with pytest.raises(ValueError, match="signature"):
        load(build_dcc(direction_bytes([(2, 2, 0, 1)]), 1, signature=0x75))


def test_check_value_must_be_one():
    with pytest.raises(ValueError, match="has to be 1"):
        load(build_dcc(direction_bytes([(2, 2, 0, 1)]), 1, check=2))


def test_optional_bits_rejected():
    with pytest.raises(ValueError, match="optional"):
        load(single_frame_dcc(optional_index=1))


def test_bottom_up_frames_rejected():
    with pytest.raises(ValueError, match="bottom-up"):
        load(single_frame_dcc(bottom_up=1))


def test_unread_bitstream_is_detected():
    with pytest.raises(ValueError, match="number of bits"):
        load(single_frame_dcc(pm_bits=(0, 0, 0, 0)))


def test_truncated_data():
    data = single_frame_dcc()
    with pytest.raises(ValueError):
        load(data[:25])


def test_clone_is_independent():
    dcc = load(single_frame_dcc())
    clone = dcc.clone()
    assert clone == dcc
    clone.directions[0].box.left = 5
    clone.directions.append(clone.directions[0])
    assert dcc.directions[0].box.left == 0
    assert len(dcc.directions) == 1
    assert isinstance(clone, DCC)


@pytest.mark.parametrize("count", [4, 8, 16, 32, 64])
def test_dir64_covers_every_direction(count):
    results = {dir64_to_dcc(direction, count) for direction in range(64)}
    assert results == set(range(count))


def test_dir64_pinned_values():
    assert dir64_to_dcc(0, 8) == 4
    assert dir64_to_dcc(8, 16) == 0
    assert dir64_to_dcc(63, 64) == 63


def test_dir64_unsupported_count_is_zero():
    assert dir64_to_dcc(10, 5) == 0


def test_dir64_direction_out_of_range():
    with pytest.raises(IndexError):
        dir64_to_dcc(64, 8)
    with pytest.raises(IndexError):
        dir64_to_dcc(-1, 8)