# abyssengine

Pure-Python readers for the data formats used by a classic isometric
action role-playing game, together with the engine's configuration file
handling and its resource lookup tables. There are no third-party
dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Purpose |
| --- | --- |
| `abyssengine.configuration` | `Configuration` dataclass with `to_dict`, `from_dict` and `save`; `load(path)`, `default_config()`, `default_path()`, `local_config_path()` |
| `abyssengine.enums` | `RegionId`, `Key`, `KeyMod`, `MouseButton`, `MouseButtonMod` |
| `abyssengine.resource` | `get_language_literal`, `get_font_charset`, `get_label_modifier`, `get_music_def(region)` returning a `MusicDef` |
| `abyssengine.txt` | `DataDictionary` for tab-separated spreadsheet tables |
| `abyssengine.tbl` | `load_text_dictionary(data)` turns a string table into a `dict` |
| `abyssengine.pl2` | `load(data)` returns a `PL2` with the base palette and all palette transforms |
| `abyssengine.dat` | `load(data)` returns a `DATPalette` of 256 `DATColor`s |
| `abyssengine.animdata` | `load(data)` returns `AnimationData`; records give `fps()` and `frame_duration_ms()`; `hash_name` |
| `abyssengine.cof` | `load(data)` returns a `COF` with its `CofLayer`s; `dir64_to_cof` |
| `abyssengine.dc6` | `load(data)` returns a `DC6`; `DC6.decode_frame` and `DC6.clone` |
| `abyssengine.dcc` | `load(data)` decodes a `DCC` into per-frame pixel data; `dir64_to_dcc` |
| `abyssengine.dt1` | `load_dt1(data)` returns a `DT1`; `decode_tile_gfx_data` draws blocks into a `bytearray` |
| `abyssengine.ds1` | `load_ds1(data)` returns a `DS1` map stamp |
| `abyssengine.mpqcrypto` | `hash_string`, `hash_filename`, `encrypt`, `decrypt`, `decrypt_bytes`, `decrypt_table` |
| `abyssengine.mpq` | `MPQ` archive reader with `read_file`, `read_file_stream`, `read_text_file`, `listfile`, `contains` |

## Examples

Reading a sprite out of an archive:

```python
from abyssengine import dc6
from abyssengine.mpq import MPQ

with MPQ.from_file("d2data.mpq") as archive:
    name = "/data/global/ui/CURSOR/ohand.DC6"
    if archive.contains(name):
        sprite = dc6.load(archive.read_file(name))
        pixels = sprite.decode_frame(0)  # one palette index per pixel
```

`MPQ.open` reads only the header; `MPQ.from_file` also reads the hash and
block tables and is what you need before reading files. `read_file_stream`
returns an `MpqDataStream` with `read`, `seek` and `close`.

Reading a palette:

```python
from abyssengine import dat

with open("pal.dat", "rb") as fh:
    palette = dat.load(fh.read())
colour = palette.get_color(10)
print(colour.r, colour.g, colour.b, hex(colour.rgba))
```

Walking a data table (rows whose first column is `Expansion` are skipped):

```python
from abyssengine.txt import DataDictionary

with open("Levels.txt", "rb") as fh:
    table = DataDictionary(fh.read())
for row in table:
    print(row.get_string("Name"), row.get_number("Id"))
```

Looking up music for a region:

```python
from abyssengine.enums import RegionId
from abyssengine.resource import get_music_def

print(get_music_def(RegionId.ACT2_DESERT).music_file)
```

Loading or creating the engine configuration:

```python
from abyssengine.configuration import default_config, load

try:
    config = load()          # reads the file at default_path()
except FileNotFoundError:
    config = default_config()
    config.save()            # writes indented JSON to config.path
```

## Errors

Parsers raise `ValueError` when the data does not match the expected
format or ends early. The archive reader also raises `FileNotFoundError`
for names that are not in the archive and `EOFError` when file data in
the archive is truncated.

## What this package does not do

- It is a set of data readers, not a running game: there is no main loop,
  no window or rendering, no audio and no input handling. `Key`,
  `MouseButton` and their modifier enums are plain value definitions.
- The archive reader handles zlib and PKWare "implode" compression only.
  Huffman, bzip2, LZMA, sparse and IMA ADPCM audio compression, and patch
  files, raise `ValueError`. It cannot create or modify archives.
- The DCC decoder rejects bottom-up frames and frames with optional data.
- No command-line tool is installed.