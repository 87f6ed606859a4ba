import struct

import pytest

from abyssengine.animdata import (
    NUM_BLOCKS,
    SPEED_BASE_FPS,
    AnimationData,
    AnimationDataRecord,
    AnimationEvent,
    hash_name,
    load,
)


def _record(name: bytes, frames: int, speed: int, events=None) -> bytes:
    event_bytes = bytearray(144)
    for index, value in (events or {}).items():
        event_bytes[index] = value
    return name.ljust(8, b"\0")[:8] + struct.pack("<IHH", frames, speed, 0) + bytes(event_bytes)


def _file(blocks: dict) -> bytes:
    out = bytearray()
    for index in range(NUM_BLOCKS):
        records = blocks.get(index, [])
        out += struct.pack("<I", len(records))
        for record in records:
            out += record
    return bytes(out)


def _sample() -> bytes:
    return _file(
        {
            0: [_record(b"AAA", 8, 256, {3: AnimationEvent.ATTACK})],
            7: [
                _record(b"BBB", 10, 128),
                _record(b"AAA", 12, 512, {0: AnimationEvent.SOUND, 143: AnimationEvent.SKILL}),
            ],
        }
    )


def test_load():
    animdata = load(_sample())
    assert sorted(animdata.get_record_names()) == ["AAA", "BBB"]
    assert len(animdata.blocks) == NUM_BLOCKS
    assert len(animdata.blocks[7]) == 2
    assert animdata.blocks[1] == []


def test_load_record_fields():
    animdata = load(_sample())
    records = animdata.get_records("AAA")
    assert [r.frames_per_direction for r in records] == [8, 12]
    assert records[0].events == {3: AnimationEvent.ATTACK}
    assert records[1].events == {0: AnimationEvent.SOUND, 143: AnimationEvent.SKILL}
    assert animdata.get_record("AAA").speed == 512


def test_load_bad_data_trailing_bytes():
    with pytest.raises(ValueError):
        load(_sample() + b"\0")


def test_load_bad_data_truncated():
    with pytest.raises(ValueError):
        load(_sample()[:-1])


def test_load_missing_null_terminator():
    data = _file({0: [b"ABCDEFGH" + struct.pack("<IHH", 1, 1, 0) + bytes(144)]})
    with pytest.raises(ValueError, match="null terminator"):
        load(data)


def test_load_too_many_records():
    data = struct.pack("<I", 68) + bytes(10)
    with pytest.raises(ValueError, match="67"):
        load(data)


def test_get_record_names():
    animdata = AnimationData(
        entries={
            "a": [AnimationDataRecord()],
            "b": [AnimationDataRecord()],
            "c": [AnimationDataRecord()],
        }
    )
    assert len(animdata.get_record_names()) == 3


def test_get_records():
    animdata = AnimationData(
        entries={
            "a": [
                AnimationDataRecord(name="a", speed=1, frames_per_direction=1),
                AnimationDataRecord(name="a", speed=2, frames_per_direction=2),
                AnimationDataRecord(name="a", speed=3, frames_per_direction=3),
            ]
        }
    )
    assert len(animdata.get_records("a")) == 3
    assert len(animdata.get_records("b")) == 0


def test_get_record():
    animdata = AnimationData(
        entries={
            "a": [
                AnimationDataRecord(name="a", speed=1, frames_per_direction=1),
                AnimationDataRecord(name="a", speed=2, frames_per_direction=2),
                AnimationDataRecord(name="a", speed=3, frames_per_direction=3),
            ]
        }
    )
    assert animdata.get_record("a").speed == 3
    assert animdata.get_record("missing") is None


def test_fps():
    record = AnimationDataRecord()
    record.speed = 256
    assert record.fps() == float(SPEED_BASE_FPS)
    record.speed = 512
    assert record.fps() == float(SPEED_BASE_FPS) * 2
    record.speed = 128
    assert record.fps() == float(SPEED_BASE_FPS) / 2


def test_frame_duration_ms():
    record = AnimationDataRecord(speed=256)
    assert record.frame_duration_ms() == 1000 / SPEED_BASE_FPS
    assert AnimationDataRecord(speed=0).frame_duration_ms() == float("inf")


def test_hash_name_case_insensitive():
    assert hash_name("a") == hash_name("A") == ord("A")
    assert 0 <= hash_name("some long animation name") < NUM_BLOCKS