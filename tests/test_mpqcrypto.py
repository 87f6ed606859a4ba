import io
import struct

import pytest

from abyssengine.mpqcrypto import (
    decrypt,
    decrypt_bytes,
    decrypt_table,
    encrypt,
    hash_filename,
    hash_string,
)

WORDS = [0, 1, 0xDEADBEEF, 0xFFFFFFFF, 12345678, 42, 7, 0x80000000]


def test_table_keys_match_format():
    assert hash_string("(hash table)", 3) == 0xC3AF3770
    assert hash_string("(block table)", 3) == 0xEC83B3A3


def test_hash_is_case_insensitive():
    assert hash_string("data\\global\\excel\\armor.txt", 0) == hash_string(
        "DATA\\GLOBAL\\EXCEL\\ARMOR.TXT", 0
    )
    assert hash_filename("(listfile)") == hash_filename("(LISTFILE)")


def test_hash_filename_combines_two_hashes():
    key = "(listfile)"
    combined = hash_filename(key)
    assert combined >> 32 == hash_string(key, 1)
    assert combined & 0xFFFFFFFF == hash_string(key, 2)


def test_hash_types_differ():
    values = {hash_string("(listfile)", kind) for kind in range(5)}
    assert len(values) == 5
    assert all(0 <= value <= 0xFFFFFFFF for value in values)


@pytest.mark.parametrize("seed", [0, 1, 0xC3AF3770, 0xFFFFFFFF])
def test_encrypt_decrypt_round_trip(seed):
    encrypted = encrypt(WORDS, seed)
    assert len(encrypted) == len(WORDS)
    assert encrypted != WORDS
    assert decrypt(encrypted, seed) == WORDS


def test_decrypt_does_not_modify_input():
    encrypted = encrypt(WORDS, 99)
    copy = list(encrypted)
    decrypt(encrypted, 99)
    assert encrypted == copy


def test_decrypt_bytes_matches_word_decrypt():
    seed = 0x1234
    encrypted = encrypt(WORDS, seed)
    raw = struct.pack(f"<{len(encrypted)}I", *encrypted)
    assert decrypt_bytes(raw, seed) == struct.pack(f"<{len(WORDS)}I", *WORDS)


def test_decrypt_bytes_keeps_trailing_bytes():
    seed = 77
    encrypted = encrypt(WORDS[:2], seed)
    raw = struct.pack("<2I", *encrypted) + b"\x01\x02\x03"
    plain = decrypt_bytes(raw, seed)
    assert plain[:8] == struct.pack("<2I", *WORDS[:2])
    assert plain[8:] == b"\x01\x02\x03"


def test_decrypt_table_round_trip():
    words = WORDS[:8]
    name = "(hash table)"
    encrypted = encrypt(words, hash_string(name, 3))
    stream = io.BytesIO(struct.pack(f"<{len(encrypted)}I", *encrypted))
    assert decrypt_table(stream, 2, name) == words


def test_decrypt_table_short_stream():
    with pytest.raises(EOFError):
        decrypt_table(io.BytesIO(bytes(12)), 1, "(block table)")