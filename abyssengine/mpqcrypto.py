"""Hashing and encryption primitives of the MPQ archive format."""

from __future__ import annotations

import struct
from functools import lru_cache
from typing import BinaryIO

_MASK = 0xFFFFFFFF
_SEED2_START = 0xEEEEEEEE


@lru_cache(maxsize=None)
def _crypto_table() -> tuple[int, ...]:
    table = [0] * 0x500
    seed = 0x00100001
    for index1 in range(0x100):
        index2 = index1
        for _ in range(5):
            seed = (seed * 125 + 3) % 0x2AAAAB
            high = (seed & 0xFFFF) << 0x10
            seed = (seed * 125 + 3) % 0x2AAAAB
            low = seed & 0xFFFF
            table[index2] = high | low
            index2 += 0x100
    return tuple(table)


def _next_seed(seed: int) -> int:
    return ((((~seed) << 21) + 0x11111111) | (seed >> 11)) & _MASK


def hash_string(key: str, hash_type: int) -> int:
    """Hash a string case-insensitively with the given hash type (0 to 4)."""
    table = _crypto_table()
    seed1 = 0x7FED7FED
    seed2 = _SEED2_START
    for char in key.upper():
        value = ord(char)
        seed1 = table[hash_type * 0x100 + value] ^ ((seed1 + seed2) & _MASK)
        seed2 = (value + seed1 + seed2 + (seed2 << 5) + 3) & _MASK
    return seed1


def hash_filename(key: str) -> int:
    """Return the 64-bit name hash used to look files up in the hash table."""
    return (hash_string(key, 1) << 32) | hash_string(key, 2)


def decrypt(data: list[int], seed: int) -> list[int]:
    """Decrypt a sequence of 32-bit words and return the plain words."""
    table = _crypto_table()
    seed &= _MASK
    seed2 = _SEED2_START
    result = []
    for word in data:
        seed2 = (seed2 + table[0x400 + (seed & 0xFF)]) & _MASK
        plain = (word ^ (seed + seed2)) & _MASK
        seed = _next_seed(seed)
        seed2 = (plain + seed2 + (seed2 << 5) + 3) & _MASK
        result.append(plain)
    return result


def encrypt(data: list[int], seed: int) -> list[int]:
    """Encrypt a sequence of 32-bit words and return the encrypted words."""
    table = _crypto_table()
    seed &= _MASK
    seed2 = _SEED2_START
    result = []
    for word in data:
        seed2 = (seed2 + table[0x400 + (seed & 0xFF)]) & _MASK
        encrypted = (word ^ (seed + seed2)) & _MASK
        seed = _next_seed(seed)
        seed2 = (word + seed2 + (seed2 << 5) + 3) & _MASK
        result.append(encrypted)
    return result


def decrypt_bytes(data: bytes, seed: int) -> bytes:
    """Decrypt bytes as little-endian words; a trailing partial word is kept as is."""
    whole = len(data) // 4 * 4
    words = struct.unpack(f"<{whole // 4}I", data[:whole])
    plain = struct.pack(f"<{len(words)}I", *decrypt(list(words), seed))
    return plain + bytes(data[whole:])


def decrypt_table(stream: BinaryIO, size: int, name: str) -> list[int]:
    """Read and decrypt a table of size 16-byte entries keyed by its name."""
    count = size * 4
    raw = stream.read(count * 4)
    if len(raw) != count * 4:
        raise EOFError(f"{name} ended early")
    words = struct.unpack(f"<{count}I", raw)
    return decrypt(list(words), hash_string(name, 3))