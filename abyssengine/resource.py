"""Language tables and background music definitions per region."""

from __future__ import annotations

from dataclasses import dataclass

from abyssengine.enums import RegionId

BGM_ACT1_CAVES = "/data/global/music/Act1/caves.wav"
BGM_ACT1_CRYPT = "/data/global/music/Act1/crypt.wav"
BGM_ACT1_MONASTERY = "/data/global/music/Act1/monastery.wav"
BGM_ACT1_TOWN1 = "/data/global/music/Act1/town1.wav"
BGM_ACT1_TRISTRAM = "/data/global/music/Act1/tristram.wav"
BGM_ACT1_WILD = "/data/global/music/Act1/wild.wav"
BGM_ACT2_DESERT = "/data/global/music/Act2/desert.wav"
BGM_ACT2_HAREM = "/data/global/music/Act2/harem.wav"
BGM_ACT2_LAIR = "/data/global/music/Act2/lair.wav"
BGM_ACT2_SANCTUARY = "/data/global/music/Act2/sanctuary.wav"
BGM_ACT2_SEWER = "/data/global/music/Act2/sewer.wav"
BGM_ACT2_TOMBS = "/data/global/music/Act2/tombs.wav"
BGM_ACT2_TOWN2 = "/data/global/music/Act2/town2.wav"
BGM_ACT3_JUNGLE = "/data/global/music/Act3/jungle.wav"
BGM_ACT3_KURAST = "/data/global/music/Act3/kurast.wav"
BGM_ACT3_KURAST_SEWER = "/data/global/music/Act3/kurastsewer.wav"
BGM_ACT3_SPIDER = "/data/global/music/Act3/spider.wav"
BGM_ACT3_TOWN3 = "/data/global/music/Act3/town3.wav"
BGM_ACT4_MESA = "/data/global/music/Act4/mesa.wav"
BGM_ACT4_TOWN4 = "/data/global/music/Act4/town4.wav"
BGM_ACT5_BAAL = "/data/global/music/Act5/baal.wav"
BGM_ACT5_SIEGE = "/data/global/music/Act5/siege.wav"
BGM_ACT5_XTOWN = "/data/global/music/Act5/xtown.wav"
BGM_ACT5_XTEMPLE = "/data/global/music/Act5/xtemple.wav"
BGM_ACT5_ICE_CAVES = "/data/global/music/Act5/icecaves.wav"
BGM_ACT5_NIHLATHAK = "/data/global/music/Act5/nihlathakmusic.wav"

_LANGUAGES = {
    0x00: "ENG",
    0x01: "ESP",
    0x02: "DEU",
    0x03: "FRA",
    0x04: "POR",
    0x05: "ITA",
    0x06: "JPN",
    0x07: "KOR",
    0x08: "SIN",
    0x09: "CHI",
    0x0A: "POL",
    0x0B: "RUS",
    0x0C: "ENG",
}

_CHARSETS = {
    "ENG": "LATIN",
    "ESP": "LATIN",
    "DEU": "LATIN",
    "FRA": "LATIN",
    "POR": "LATIN",
    "ITA": "LATIN",
    "JPN": "JPN",
    "KOR": "KOR",
    "SIN": "LATIN",
    "CHI": "CHI",
    "POL": "LATIN2",
    "RUS": "CYR",
}

# Offset of string-table labels in a localised table relative to the English one.
_LABEL_MODIFIERS = {
    "ENG": 0,
    "ESP": 0,
    "DEU": 0,
    "FRA": 0,
    "POR": 0,
    "ITA": 0,
    "JPN": 0,
    "KOR": 0,
    "SIN": 0,
    "CHI": 0,
    "POL": 1,
    "RUS": 0,
}


def get_language_literal(code: int) -> str:
    """Return the three-letter language name for a language code, or ''."""
    return _LANGUAGES.get(code, "")


def get_font_charset(language: str) -> str:
    """Return the font charset used by a language, or ''."""
    return _CHARSETS.get(language, "")


def get_label_modifier(language: str) -> int:
    """Return the label offset of a language's string tables."""
    return _LABEL_MODIFIERS.get(language, 0)


@dataclass(frozen=True)
class MusicDef:
    """The background music of a region."""

    region: RegionId
    in_town: bool
    music_file: str


_MUSIC_DEFS = (
    MusicDef(RegionId.ACT1_TOWN, False, BGM_ACT1_TOWN1),
    MusicDef(RegionId.ACT1_WILDERNESS, False, BGM_ACT1_WILD),
    MusicDef(RegionId.ACT1_CAVE, False, BGM_ACT1_CAVES),
    MusicDef(RegionId.ACT1_CRYPT, False, BGM_ACT1_CRYPT),
    MusicDef(RegionId.ACT1_MONESTARY, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_COURTYARD, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_BARRACKS, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_JAIL, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_CATHEDRAL, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_CATACOMBS, False, BGM_ACT1_MONASTERY),
    MusicDef(RegionId.ACT1_TRISTRAM, False, BGM_ACT1_TRISTRAM),
    MusicDef(RegionId.ACT2_TOWN, False, BGM_ACT2_TOWN2),
    MusicDef(RegionId.ACT2_SEWER, False, BGM_ACT2_SEWER),
    MusicDef(RegionId.ACT2_HAREM, False, BGM_ACT2_HAREM),
    MusicDef(RegionId.ACT2_BASEMENT, False, BGM_ACT2_HAREM),
    MusicDef(RegionId.ACT2_DESERT, False, BGM_ACT2_DESERT),
    MusicDef(RegionId.ACT2_TOMB, False, BGM_ACT2_TOMBS),
    MusicDef(RegionId.ACT2_LAIR, False, BGM_ACT2_LAIR),
    MusicDef(RegionId.ACT2_ARCANE, False, BGM_ACT2_SANCTUARY),
    MusicDef(RegionId.ACT3_TOWN, False, BGM_ACT3_TOWN3),
    MusicDef(RegionId.ACT3_JUNGLE, False, BGM_ACT3_JUNGLE),
    MusicDef(RegionId.ACT3_KURAST, False, BGM_ACT3_KURAST),
    MusicDef(RegionId.ACT3_SPIDER, False, BGM_ACT3_SPIDER),
    MusicDef(RegionId.ACT3_DUNGEON, False, BGM_ACT3_KURAST_SEWER),
    MusicDef(RegionId.ACT3_SEWER, False, BGM_ACT3_KURAST_SEWER),
    MusicDef(RegionId.ACT4_TOWN, False, BGM_ACT4_TOWN4),
    MusicDef(RegionId.ACT4_MESA, False, BGM_ACT4_MESA),
    MusicDef(RegionId.ACT4_LAVA, False, BGM_ACT4_MESA),
    MusicDef(RegionId.ACT5_TOWN, False, BGM_ACT5_XTOWN),
    MusicDef(RegionId.ACT5_SIEGE, False, BGM_ACT5_SIEGE),
    MusicDef(RegionId.ACT5_BARRICADE, False, BGM_ACT5_SIEGE),
    MusicDef(RegionId.ACT5_TEMPLE, False, BGM_ACT5_XTEMPLE),
    MusicDef(RegionId.ACT5_ICE_CAVES, False, BGM_ACT5_ICE_CAVES),
    MusicDef(RegionId.ACT5_BAAL, False, BGM_ACT5_BAAL),
    MusicDef(RegionId.ACT5_LAVA, False, BGM_ACT5_NIHLATHAK),
)


def get_music_def(region: RegionId) -> MusicDef:
    """Return the music of a region, falling back to the first definition."""
    return next((d for d in _MUSIC_DEFS if d.region == region), _MUSIC_DEFS[0])