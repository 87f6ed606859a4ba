"""Readers for game archive, palette, sprite, tile, map and table formats, and engine configuration."""

__version__ = "0.1.0"

__all__ = [
    "animdata",
    "cof",
    "configuration",
    "dat",
    "dc6",
    "dcc",
    "ds1",
    "dt1",
    "enums",
    "mpq",
    "mpqcrypto",
    "pl2",
    "resource",
    "tbl",
    "txt",
]