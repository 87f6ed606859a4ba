import pytest

from abyssengine.enums import RegionId
from abyssengine.resource import (
    MusicDef,
    get_font_charset,
    get_label_modifier,
    get_language_literal,
    get_music_def,
)


@pytest.mark.parametrize(
    "code, expected",
    [(0x00, "ENG"), (0x02, "DEU"), (0x0A, "POL"), (0x0B, "RUS"), (0x0C, "ENG")],
)
def test_language_literal(code, expected):
    assert get_language_literal(code) == expected


def test_unknown_language_code_gives_empty_string():
    assert get_language_literal(0x7F) == ""


@pytest.mark.parametrize(
    "language, expected",
    [("ENG", "LATIN"), ("POL", "LATIN2"), ("RUS", "CYR"), ("JPN", "JPN"), ("XXX", "")],
)
def test_font_charset(language, expected):
    assert get_font_charset(language) == expected


def test_label_modifier():
    assert get_label_modifier("POL") == 1
    assert get_label_modifier("ENG") == 0
    assert get_label_modifier("unknown") == 0


def test_every_language_code_has_a_charset():
    charsets = [get_font_charset(get_language_literal(code)) for code in range(0x0D)]
    assert charsets == [
        "LATIN",
        "LATIN",
        "LATIN",
        "LATIN",
        "LATIN",
        "LATIN",
        "JPN",
        "KOR",
        "LATIN",
        "CHI",
        "LATIN2",
        "CYR",
        "LATIN",
    ]


def test_music_def_for_region():
    music = get_music_def(RegionId.ACT5_LAVA)
    assert music.region is RegionId.ACT5_LAVA
    assert music.music_file == "/data/global/music/Act5/nihlathakmusic.wav"
    assert music.in_town is False


def test_shared_music_between_regions():
    assert get_music_def(RegionId.ACT1_JAIL).music_file == get_music_def(
        RegionId.ACT1_MONESTARY
    ).music_file


def test_unknown_region_falls_back_to_first_definition():
    fallback = get_music_def(RegionId.NONE)
    assert fallback == get_music_def(RegionId.ACT1_TOWN)
    assert fallback == MusicDef(
        RegionId.ACT1_TOWN, False, "/data/global/music/Act1/town1.wav"
    )


def test_every_region_but_none_has_its_own_definition():
    for region in RegionId:
        if region is RegionId.NONE:
            continue
        assert get_music_def(region).region is region