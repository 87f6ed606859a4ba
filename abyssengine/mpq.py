"""Reading files out of MPQ archives."""

from __future__ import annotations

import io
import os
import struct
import zlib
from dataclasses import dataclass, field
from enum import IntFlag
from pathlib import Path
from typing import BinaryIO, Iterator

from abyssengine.mpqcrypto import (
    decrypt,
    decrypt_bytes,
    decrypt_table,
    hash_filename,
    hash_string,
)

_MASK = 0xFFFFFFFF
_MAGIC = b"MPQ\x1a"
_HEADER_FORMAT = "<4sIIHHIIII"
_HEADER_SIZE = struct.calcsize(_HEADER_FORMAT)
_NO_BLOCK = 0xFFFFFFFF
_SECTOR_BASE = 0x200


class FileFlag(IntFlag):
    """Flags of a file record in the block table."""

    IMPLODE = 0x00000100
    COMPRESS = 0x00000200
    ENCRYPTED = 0x00010000
    FIX_KEY = 0x00020000
    PATCH_FILE = 0x00100000
    SINGLE_UNIT = 0x01000000
    DELETE_MARKER = 0x02000000
    SECTOR_CRC = 0x04000000
    EXISTS = 0x80000000


@dataclass
class Header:
    """The header at the start of an MPQ archive."""

    magic: bytes = _MAGIC
    header_size: int = 0
    archive_size: int = 0
    format_version: int = 0
    block_size: int = 0
    hash_table_offset: int = 0
    block_table_offset: int = 0
    hash_table_entries: int = 0
    block_table_entries: int = 0


@dataclass
class Hash:
    """An entry of the hash table."""

    a: int = 0
    b: int = 0
    locale: int = 0
    platform: int = 0
    block_index: int = 0

    @property
    def name64(self) -> int:
        """Both name hashes joined into one 64-bit value."""
        return (self.a << 32) | self.b


@dataclass
class Block:
    """An entry of the block table."""

    file_position: int = 0
    compressed_file_size: int = 0
    uncompressed_file_size: int = 0
    flags: FileFlag = FileFlag(0)
    file_name: str = ""
    encryption_seed: int = 0

    def has_flag(self, flag: FileFlag) -> bool:
        """Return True if any bit of flag is set."""
        return bool(self.flags & flag)

    def _calculate_encryption_seed(self, file_name: str) -> None:
        base_name = file_name[file_name.rfind("\\") + 1:]
        seed = hash_string(base_name, 3)
        self.encryption_seed = ((seed + self.file_position) & _MASK) ^ self.uncompressed_file_size


@dataclass
class PatchInfo:
    """Patch information of a patch file."""

    length: int = 0
    flags: int = 0
    data_size: int = 0
    md5: bytes = bytes(16)


@dataclass
class MpqFileRecord:
    """Where a file lives and whether it patches another archive's file."""

    mpq_file: str = ""
    is_patch: bool = False
    unpatched_mpq_file: str = ""


# --- PKWare DCL "implode" decompression ---------------------------------

_MAX_BITS = 13
_LIT_LENGTHS = (
    11, 124, 8, 7, 28, 7, 188, 13, 76, 4, 10, 8, 12, 10, 12, 10, 8, 23, 8,
    9, 7, 6, 7, 8, 7, 6, 55, 8, 23, 24, 12, 11, 7, 9, 11, 12, 6, 7, 22, 5,
    7, 24, 6, 11, 9, 6, 7, 22, 7, 11, 38, 7, 9, 8, 25, 11, 8, 11, 9, 12,
    8, 12, 5, 38, 5, 38, 5, 11, 7, 5, 6, 21, 6, 10, 53, 8, 7, 24, 10, 27,
    44, 253, 253, 253, 252, 252, 252, 13, 12, 45, 12, 45, 12, 61, 12, 45,
    44, 173,
)
_LEN_LENGTHS = (2, 35, 36, 53, 38, 23)
_DIST_LENGTHS = (2, 20, 53, 230, 247, 151, 248)
_LEN_BASE = (3, 2, 4, 5, 6, 7, 8, 9, 10, 12, 16, 24, 40, 72, 136, 264)
_LEN_EXTRA = (0, 0, 0, 0, 0, 0, 0, 0, 1, 2, 3, 4, 5, 6, 7, 8)
_END_LENGTH = 519


def _build_huffman(compact: tuple[int, ...]) -> tuple[list[int], list[int]]:
    lengths: list[int] = []
    for value in compact:
        lengths.extend([value & 15] * ((value >> 4) + 1))

    counts = [0] * (_MAX_BITS + 1)
    for length in lengths:
        counts[length] += 1

    offsets = [0] * (_MAX_BITS + 1)
    for length in range(1, _MAX_BITS):
        offsets[length + 1] = offsets[length] + counts[length]

    symbols = [0] * len(lengths)
    for symbol, length in enumerate(lengths):
        if length:
            symbols[offsets[length]] = symbol
            offsets[length] += 1
    return counts, symbols


_LIT_CODE = _build_huffman(_LIT_LENGTHS)
_LEN_CODE = _build_huffman(_LEN_LENGTHS)
_DIST_CODE = _build_huffman(_DIST_LENGTHS)


class _BitInput:
    def __init__(self, data: bytes):
        self._data = data
        self._position = 0
        self._buffer = 0
        self._count = 0

    def bits(self, count: int) -> int:
        while self._count < count:
            if self._position >= len(self._data):
                raise ValueError("imploded data ended early")
            self._buffer |= self._data[self._position] << self._count
            self._position += 1
            self._count += 8
        value = self._buffer & ((1 << count) - 1)
        self._buffer >>= count
        self._count -= count
        return value

    def decode(self, code_table: tuple[list[int], list[int]]) -> int:
        counts, symbols = code_table
        code = first = index = 0
        for length in range(1, _MAX_BITS + 1):
            code |= self.bits(1) ^ 1
            count = counts[length]
            if code < first + count:
                return symbols[index + code - first]
            index += count
            first = (first + count) << 1
            code <<= 1
        raise ValueError("invalid code in imploded data")


def _explode(data: bytes) -> bytes:
    bits = _BitInput(data)
    literal_coded = bits.bits(8)
    if literal_coded > 1:
        raise ValueError("invalid literal flag in imploded data")
    dict_bits = bits.bits(8)
    if not 4 <= dict_bits <= 6:
        raise ValueError("invalid dictionary size in imploded data")

    out = bytearray()
    while True:
        if bits.bits(1):
            symbol = bits.decode(_LEN_CODE)
            length = _LEN_BASE[symbol] + bits.bits(_LEN_EXTRA[symbol])
            if length == _END_LENGTH:
                break
            shift = 2 if length == 2 else dict_bits
            distance = (bits.decode(_DIST_CODE) << shift) + bits.bits(shift) + 1
            if distance > len(out):
                raise ValueError("imploded data refers before the start of output")
            for _ in range(length):
                out.append(out[-distance])
        else:
            out.append(bits.decode(_LIT_CODE) if literal_coded else bits.bits(8))
    return bytes(out)


def _inflate(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as error:
        raise ValueError(f"zlib decompression failed: {error}") from error


_UNSUPPORTED_COMPRESSION = {
    0x01: "huffman decompression not supported",
    0x10: "bzip2 decompression not supported",
    0x12: "lzma decompression not supported",
    0x22: "sparse decompression + deflate decompression not supported",
    0x30: "sparse decompression + bzip2 decompression not supported",
    0x40: "IMA ADPCM mono decompression not supported",
    0x41: "huffman + IMA ADPCM mono decompression not supported",
    0x48: "pk + mpqwav decompression not supported",
    0x80: "IMA ADPCM stereo decompression not supported",
    0x81: "huffman + IMA ADPCM stereo decompression not supported",
    0x88: "pk + wav decompression not supported",
}


def _decompress_multi(data: bytes) -> bytes:
    if not data:
        raise ValueError("compressed block is empty")
    kind, body = data[0], data[1:]
    if kind == 0x02:
        return _inflate(body)
    if kind == 0x08:
        return _explode(body)
    message = _UNSUPPORTED_COMPRESSION.get(kind)
    if message is None:
        message = f"decompression not supported for unknown compression type {kind:X}"
    raise ValueError(message)


# --- Streams ------------------------------------------------------------


class Stream:
    """Reads the contents of one file of an archive, sector by sector."""

    def __init__(self, mpq: MPQ, block: Block, file_name: str):
        self.mpq = mpq
        self.block = block
        self.data = b""
        self.positions: list[int] = []
        self.index = _NO_BLOCK
        self.position = 0

        if block.has_flag(FileFlag.FIX_KEY):
            block._calculate_encryption_seed(file_name)

        self.size = _SECTOR_BASE << mpq.header.block_size

        if block.has_flag(FileFlag.PATCH_FILE):
            raise ValueError("patching is not supported")

        if self._is_packed() and not block.has_flag(FileFlag.SINGLE_UNIT):
            self._load_block_offsets()

    def _is_packed(self) -> bool:
        return self.block.has_flag(FileFlag.COMPRESS) or self.block.has_flag(FileFlag.IMPLODE)

    def _load_block_offsets(self) -> None:
        count = (self.block.uncompressed_file_size + self.size - 1) // self.size + 1
        raw = self.mpq._read_at(self.block.file_position, count * 4)
        positions = list(struct.unpack(f"<{count}I", raw))

        if self.block.has_flag(FileFlag.ENCRYPTED):
            positions = decrypt(positions, (self.block.encryption_seed - 1) & _MASK)
            table_size = count << 2
            if positions[0] != table_size or positions[1] > self.size + table_size:
                raise ValueError("decryption of MPQ failed")

        self.positions = positions

    def read(self, count: int) -> bytes:
        """Read up to count bytes from the current position."""
        if count <= 0:
            return b""
        if self.block.has_flag(FileFlag.SINGLE_UNIT):
            return self._read_single_unit(count)

        parts = []
        remaining = count
        while remaining > 0:
            chunk = self._read_internal(remaining)
            if not chunk:
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    def _read_single_unit(self, count: int) -> bytes:
        if not self.data:
            self.data = self._load_single_unit()
        chunk = self.data[self.position:self.position + count]
        self.position += len(chunk)
        return chunk

    def _read_internal(self, count: int) -> bytes:
        if self.position >= self.block.uncompressed_file_size:
            return b""
        self._buffer_data()
        local = self.position % self.size
        chunk = self.data[local:local + count]
        self.position += len(chunk)
        return chunk

    def _buffer_data(self) -> None:
        block_index = self.position // self.size
        if block_index == self.index:
            return
        expected = min(
            self.block.uncompressed_file_size - block_index * self.size, self.size
        )
        self.data = self._load_block(block_index, expected)
        self.index = block_index

    def _decrypt(self, data: bytes, key_offset: int) -> bytes:
        if self.block.has_flag(FileFlag.ENCRYPTED) and self.block.uncompressed_file_size > 3:
            if self.block.encryption_seed == 0:
                raise ValueError("unable to determine encryption key")
            return decrypt_bytes(data, (key_offset + self.block.encryption_seed) & _MASK)
        return data

    def _load_block(self, block_index: int, expected: int) -> bytes:
        if self._is_packed():
            offset = self.positions[block_index]
            to_read = self.positions[block_index + 1] - offset
        else:
            offset = block_index * self.size
            to_read = expected

        data = self.mpq._read_at(offset + self.block.file_position, to_read)
        data = self._decrypt(data, block_index)

        if self.block.has_flag(FileFlag.COMPRESS) and to_read != expected:
            if not self.block.has_flag(FileFlag.SINGLE_UNIT):
                return _decompress_multi(data)
            return _explode(data)

        if self.block.has_flag(FileFlag.IMPLODE) and to_read != expected:
            return _explode(data)

        return data

    def _load_single_unit(self) -> bytes:
        block = self.block
        data = self.mpq._read_at(block.file_position, block.compressed_file_size)
        data = self._decrypt(data, 0)

        if block.compressed_file_size == block.uncompressed_file_size:
            return data
        if block.has_flag(FileFlag.COMPRESS):
            return _decompress_multi(data)
        if block.has_flag(FileFlag.IMPLODE):
            return _explode(data)
        return data


class MpqDataStream:
    """A seekable file-like reader over one file of an archive."""

    def __init__(self, stream: Stream):
        self._stream: Stream | None = stream

    def _open_stream(self) -> Stream:
        if self._stream is None:
            raise ValueError("stream is closed")
        return self._stream

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes, or everything that is left if size is negative."""
        stream = self._open_stream()
        if size < 0:
            size = max(0, stream.block.uncompressed_file_size - stream.position)
        return stream.read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the read position and return the new one."""
        stream = self._open_stream()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = stream.position + offset
        elif whence == io.SEEK_END:
            position = stream.block.uncompressed_file_size + offset
        else:
            raise ValueError(f"invalid whence {whence}")
        if position < 0:
            raise ValueError("negative seek position")
        stream.position = position
        return position

    def close(self) -> None:
        """Release the underlying stream."""
        self._stream = None


# --- Archive ------------------------------------------------------------


def _open_ignore_case(file_name: str | os.PathLike) -> BinaryIO:
    path = Path(file_name)
    try:
        return open(path, "rb")
    except FileNotFoundError:
        directory = path.parent
        wanted = path.name.casefold()
        for entry in os.listdir(directory):
            if entry.casefold() == wanted:
                return open(directory / entry, "rb")
        raise


def _quads(words: list[int]) -> Iterator[tuple[int, int, int, int]]:
    words_iter = iter(words)
    return zip(words_iter, words_iter, words_iter, words_iter)


class MPQ:
    """An open MPQ archive."""

    def __init__(self, file_path: str, file: BinaryIO, header: Header):
        self.file_path = file_path
        self._file = file
        self.header = header
        self.hashes: dict[int, Hash] = {}
        self.blocks: list[Block] = []

    @classmethod
    def open(cls, file_name: str | os.PathLike) -> MPQ:
        """Open an archive and read only its header."""
        file = _open_ignore_case(file_name)
        try:
            header = cls._read_header(file)
        except (ValueError, EOFError) as error:
            file.close()
            raise ValueError(f"failed to read header: {error}") from error
        return cls(os.fspath(file_name), file, header)

    @classmethod
    def from_file(cls, file_name: str | os.PathLike) -> MPQ:
        """Open an archive and read its header, hash table and block table."""
        mpq = cls.open(file_name)
        for reader, what in ((mpq._read_hash_table, "hash"), (mpq._read_block_table, "block")):
            try:
                reader()
            except (ValueError, EOFError) as error:
                mpq.close()
                raise ValueError(f"failed to read {what} table: {error}") from error
        return mpq

    @staticmethod
    def _read_header(file: BinaryIO) -> Header:
        file.seek(0)
        raw = file.read(_HEADER_SIZE)
        if len(raw) != _HEADER_SIZE:
            raise EOFError("header is truncated")
        header = Header(*struct.unpack(_HEADER_FORMAT, raw))
        if header.magic != _MAGIC:
            raise ValueError("invalid mpq header")
        return header

    def _read_at(self, offset: int, count: int) -> bytes:
        self._file.seek(offset)
        data = self._file.read(count)
        if len(data) != count:
            raise EOFError("archive data ended early")
        return data

    def _read_hash_table(self) -> None:
        self._file.seek(self.header.hash_table_offset)
        words = decrypt_table(self._file, self.header.hash_table_entries, "(hash table)")
        self.hashes = {}
        for a, b, locale_platform, block_index in _quads(words):
            entry = Hash(
                a=a,
                b=b,
                locale=locale_platform >> 16,
                platform=locale_platform & 0xFFFF,
                block_index=block_index,
            )
            self.hashes[entry.name64] = entry

    def _read_block_table(self) -> None:
        self._file.seek(self.header.block_table_offset)
        words = decrypt_table(self._file, self.header.block_table_entries, "(block table)")
        self.blocks = [
            Block(
                file_position=position,
                compressed_file_size=compressed,
                uncompressed_file_size=uncompressed,
                flags=FileFlag(flags),
            )
            for position, compressed, uncompressed, flags in _quads(words)
        ]

    def _get_file_block_data(self, file_name: str) -> Block:
        entry = self.hashes.get(hash_filename(file_name))
        if entry is None:
            raise FileNotFoundError(f"file not found: {file_name}")
        if entry.block_index >= len(self.blocks):
            raise ValueError("invalid block index")
        return self.blocks[entry.block_index]

    def _create_stream(self, file_name: str) -> Stream:
        block = self._get_file_block_data(file_name)
        block.file_name = file_name.lower()
        return Stream(self, block, file_name)

    def read_file(self, file_name: str) -> bytes:
        """Return the whole contents of a file in the archive."""
        stream = self._create_stream(file_name)
        expected = stream.block.uncompressed_file_size
        data = stream.read(expected)
        if len(data) != expected:
            raise EOFError(f"{file_name} ended early")
        return data

    def read_file_stream(self, file_name: str) -> MpqDataStream:
        """Return a seekable reader over a file in the archive."""
        return MpqDataStream(self._create_stream(file_name))

    def read_text_file(self, file_name: str) -> str:
        """Return a file in the archive as text."""
        return self.read_file(file_name).decode("utf-8", "replace")

    def listfile(self) -> list[str]:
        """Return the names listed in the archive's (listfile)."""
        raw = self.read_file("(listfile)").decode("utf-8", "replace").rstrip("\x00")
        return raw.splitlines()

    def contains(self, file_name: str) -> bool:
        """Return True if the archive holds a file of that name."""
        return hash_filename(file_name) in self.hashes

    @property
    def path(self) -> str:
        """The archive's file path."""
        return self.file_path

    @property
    def size(self) -> int:
        """The archive size given in the header."""
        return self.header.archive_size

    def close(self) -> None:
        """Close the archive file."""
        self._file.close()

    def __enter__(self) -> MPQ:
        return self

    def __exit__(self, *args) -> None:
        self.close()