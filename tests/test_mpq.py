import io
import struct
import zlib

import pytest

from abyssengine.mpq import MPQ, Block, FileFlag, Hash
from abyssengine.mpqcrypto import encrypt, hash_string

MASK = 0xFFFFFFFF
SECTOR = 512
EMPTY = 0xFFFFFFFF

PLAIN_DATA = bytes((i * 7) % 251 for i in range(1300))
TEXT_DATA = b"abcdefgh" * 200


def _pack_words(words):
    return struct.pack(f"<{len(words)}I", *words)


def _sectors(data):
    return [data[i:i + SECTOR] for i in range(0, len(data), SECTOR)]


def _encrypt_chunk(chunk, key):
    whole = len(chunk) // 4 * 4
    words = list(struct.unpack(f"<{whole // 4}I", chunk[:whole]))
    return _pack_words(encrypt(words, key)) + chunk[whole:]


def _plain(data, position, name):
    return data


def _compressed_sectors(data, position, name):
    bodies = []
    for chunk in _sectors(data):
        packed = b"\x02" + zlib.compress(chunk)
        bodies.append(packed if len(packed) < len(chunk) else chunk)
    offsets = [4 * (len(bodies) + 1)]
    for body in bodies:
        offsets.append(offsets[-1] + len(body))
    return _pack_words(offsets) + b"".join(bodies)


def _single_zlib(data, position, name):
    return b"\x02" + zlib.compress(data)


def _encrypted_fix_key(data, position, name):
    base = name.rsplit("\\", 1)[-1]
    seed = ((hash_string(base, 3) + position) & MASK) ^ len(data)
    return b"".join(
        _encrypt_chunk(chunk, (seed + index) & MASK)
        for index, chunk in enumerate(_sectors(data))
    )


def _fixed(payload):
    return lambda data, position, name: payload


def _build(tmp_path, files, filename="archive.mpq"):
    payloads = []
    blocks = []
    position = 32
    for name, flags, data, make in files:
        payload = make(data, position, name)
        blocks.append([position, len(payload), len(data), int(flags)])
        payloads.append(payload)
        position += len(payload)

    hash_words = []
    for index, (name, *_rest) in enumerate(files):
        hash_words += [hash_string(name, 1), hash_string(name, 2), 0, index]
    hash_words += [EMPTY] * 4
    hash_bytes = _pack_words(encrypt(hash_words, hash_string("(hash table)", 3)))

    block_words = [word for block in blocks for word in block]
    block_bytes = _pack_words(encrypt(block_words, hash_string("(block table)", 3)))

    hash_offset = position
    block_offset = hash_offset + len(hash_bytes)
    archive_size = block_offset + len(block_bytes)
    header = struct.pack(
        "<4sIIHHIIII",
        b"MPQ\x1a",
        32,
        archive_size,
        0,
        0,
        hash_offset,
        block_offset,
        len(hash_words) // 4,
        len(blocks),
    )
    path = tmp_path / filename
    path.write_bytes(header + b"".join(payloads) + hash_bytes + block_bytes)
    return path


def test_read_plain_multi_sector_file(tmp_path):
    path = _build(tmp_path, [("data\\plain.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file("data\\plain.bin") == PLAIN_DATA


def test_read_is_case_insensitive_on_names(tmp_path):
    path = _build(tmp_path, [("data\\plain.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file("DATA\\PLAIN.BIN") == PLAIN_DATA
        assert mpq.blocks[0].file_name == "data\\plain.bin"


def test_read_zlib_compressed_sectors(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.COMPRESS
    path = _build(tmp_path, [("text.txt", flags, TEXT_DATA, _compressed_sectors)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file("text.txt") == TEXT_DATA


def test_read_single_unit_zlib(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.COMPRESS | FileFlag.SINGLE_UNIT
    path = _build(tmp_path, [("one.txt", flags, TEXT_DATA, _single_zlib)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file("one.txt") == TEXT_DATA


def test_read_single_unit_imploded(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.IMPLODE | FileFlag.SINGLE_UNIT
    imploded = bytes.fromhex("00048224258f807f")
    path = _build(tmp_path, [("ai.txt", flags, b"AIAIAIAIAIAIA", _fixed(imploded))])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file("ai.txt") == b"AIAIAIAIAIAIA"


def test_read_encrypted_with_fix_key(tmp_path):
    name = "data\\global\\excel\\armor.txt"
    flags = FileFlag.EXISTS | FileFlag.ENCRYPTED | FileFlag.FIX_KEY
    path = _build(tmp_path, [(name, flags, PLAIN_DATA, _encrypted_fix_key)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_file(name) == PLAIN_DATA


def test_encrypted_without_fix_key_fails(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.ENCRYPTED
    path = _build(tmp_path, [("enc.bin", flags, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        with pytest.raises(ValueError, match="encryption key"):
            mpq.read_file("enc.bin")


def test_unsupported_compression_raises(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.COMPRESS | FileFlag.SINGLE_UNIT
    path = _build(tmp_path, [("huff.bin", flags, bytes(10), _fixed(b"\x01xx"))])
    with MPQ.from_file(path) as mpq:
        with pytest.raises(ValueError, match="huffman"):
            mpq.read_file("huff.bin")


def test_patch_file_is_rejected(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.PATCH_FILE
    path = _build(tmp_path, [("patch.bin", flags, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        with pytest.raises(ValueError, match="patching"):
            mpq.read_file("patch.bin")


def test_contains_and_missing_file(tmp_path):
    path = _build(tmp_path, [("present.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        assert mpq.contains("present.bin") is True
        assert mpq.contains("absent.bin") is False
        with pytest.raises(FileNotFoundError):
            mpq.read_file("absent.bin")


def test_listfile(tmp_path):
    listing = b"data\\a.txt\r\ndata\\b.txt\r\n\x00\x00"
    path = _build(tmp_path, [("(listfile)", FileFlag.EXISTS, listing, _plain)])
    with MPQ.from_file(path) as mpq:
        assert mpq.listfile() == ["data\\a.txt", "data\\b.txt"]


def test_read_text_file(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.COMPRESS
    path = _build(tmp_path, [("text.txt", flags, TEXT_DATA, _compressed_sectors)])
    with MPQ.from_file(path) as mpq:
        assert mpq.read_text_file("text.txt") == TEXT_DATA.decode("ascii")


def test_open_reads_header_only(tmp_path):
    path = _build(tmp_path, [("present.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.open(path) as mpq:
        assert mpq.header.magic == b"MPQ\x1a"
        assert mpq.header.header_size == 32
        assert mpq.size == path.stat().st_size
        assert mpq.path == str(path)
        assert mpq.contains("present.bin") is False


def test_invalid_magic(tmp_path):
    path = tmp_path / "bad.mpq"
    path.write_bytes(b"NOPE" + bytes(28))
    with pytest.raises(ValueError, match="invalid mpq header"):
        MPQ.open(path)


def test_truncated_header(tmp_path):
    path = tmp_path / "short.mpq"
    path.write_bytes(b"MPQ\x1a")
    with pytest.raises(ValueError, match="failed to read header"):
        MPQ.open(path)


def test_case_insensitive_archive_name(tmp_path):
    _build(tmp_path, [("x.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)], "archive.mpq")
    with MPQ.from_file(tmp_path / "ARCHIVE.MPQ") as mpq:
        assert mpq.read_file("x.bin") == PLAIN_DATA


def test_data_stream_seek_and_read(tmp_path):
    flags = FileFlag.EXISTS | FileFlag.COMPRESS
    path = _build(tmp_path, [("text.txt", flags, TEXT_DATA, _compressed_sectors)])
    with MPQ.from_file(path) as mpq:
        stream = mpq.read_file_stream("text.txt")
        assert stream.read(10) == TEXT_DATA[:10]
        assert stream.seek(600) == 600
        assert stream.read(5) == TEXT_DATA[600:605]
        assert stream.seek(-4, io.SEEK_END) == len(TEXT_DATA) - 4
        assert stream.read() == TEXT_DATA[-4:]
        assert stream.read(3) == b""


def test_data_stream_close(tmp_path):
    path = _build(tmp_path, [("plain.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        stream = mpq.read_file_stream("plain.bin")
        stream.close()
        with pytest.raises(ValueError):
            stream.read(1)


def test_context_manager_closes_archive(tmp_path):
    path = _build(tmp_path, [("plain.bin", FileFlag.EXISTS, PLAIN_DATA, _plain)])
    with MPQ.from_file(path) as mpq:
        pass
    with pytest.raises(ValueError):
        mpq.read_file("plain.bin")


def test_block_has_flag():
    block = Block(flags=FileFlag.EXISTS | FileFlag.COMPRESS)
    assert block.has_flag(FileFlag.COMPRESS) is True
    assert block.has_flag(FileFlag.ENCRYPTED) is False
    assert FileFlag.EXISTS == 0x80000000


def test_hash_name64():
    entry = Hash(a=0x12345678, b=0x9ABCDEF0)
    assert entry.name64 == 0x123456789ABCDEF0