"""Engine configuration: defaults, JSON persistence and loading."""

from __future__ import annotations

import json
import os
import posixpath
import struct
import sys
from dataclasses import dataclass, field

CONFIG_DIR_NAME = "OpenDiablo2"
CONFIG_FILE_NAME = "config.json"

_DEFAULT_SFX_VOLUME = 1.0
_DEFAULT_BGM_VOLUME = 0.3

_WINDOWS_LOAD_ORDER = [
    "Patch_D2.mpq",
    "d2exp.mpq",
    "d2xmusic.mpq",
    "d2xtalk.mpq",
    "d2xvideo.mpq",
    "d2data.mpq",
    "d2char.mpq",
    "d2music.mpq",
    "d2sfx.mpq",
    "d2video.mpq",
    "d2speech.mpq",
]

_DARWIN_LOAD_ORDER = [
    "Diablo II Patch",
    "Diablo II Expansion Data",
    "Diablo II Expansion Movies",
    "Diablo II Expansion Music",
    "Diablo II Expansion Speech",
    "Diablo II Game Data",
    "Diablo II Graphics",
    "Diablo II Movies",
    "Diablo II Music",
    "Diablo II Sounds",
    "Diablo II Speech",
]

# (attribute, JSON key, type) in file order.
_FIELDS = (
    ("mpq_load_order", "MpqLoadOrder", list),
    ("mpq_path", "MpqPath", str),
    ("ticks_per_second", "TicksPerSecond", int),
    ("fps_cap", "FpsCap", int),
    ("sfx_volume", "SfxVolume", float),
    ("bgm_volume", "BgmVolume", float),
    ("full_screen", "FullScreen", bool),
    ("run_in_background", "RunInBackground", bool),
    ("vsync_enabled", "VsyncEnabled", bool),
    ("backend", "Backend", str),
)
_BY_FOLDED_KEY = {key.casefold(): (attr, key, kind) for attr, key, kind in _FIELDS}


def _convert(key: str, kind: type, value):
    if kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif kind is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif kind is str:
        if isinstance(value, str):
            return value
    elif kind is list:
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
    raise ValueError(f"invalid value for {key}: {value!r}")


@dataclass
class Configuration:
    """The engine's configuration file contents and where it is stored."""

    mpq_load_order: list[str] = field(default_factory=list)
    mpq_path: str = ""
    ticks_per_second: int = 0
    fps_cap: int = 0
    sfx_volume: float = 0.0
    bgm_volume: float = 0.0
    full_screen: bool = False
    run_in_background: bool = False
    vsync_enabled: bool = False
    backend: str = ""
    path: str = ""

    def to_dict(self) -> dict:
        """Return the JSON representation of the configuration."""
        return {key: getattr(self, attr) for attr, key, _ in _FIELDS}

    @classmethod
    def from_dict(cls, data) -> Configuration:
        """Build a configuration from decoded JSON; keys match case-insensitively."""
        if not isinstance(data, dict):
            raise ValueError("configuration must be a JSON object")
        config = cls()
        for name, value in data.items():
            entry = _BY_FOLDED_KEY.get(str(name).casefold())
            if entry is None or value is None:
                continue
            attr, key, kind = entry
            setattr(config, attr, _convert(key, kind, value))
        return config

    def save(self) -> None:
        """Write the configuration as indented JSON to its path."""
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, mode=0o750, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write(json.dumps(self.to_dict(), indent=2))


def _user_config_dir() -> str:
    if sys.platform.startswith("win"):
        directory = os.environ.get("AppData") or os.environ.get("APPDATA")
        if not directory:
            raise OSError("%AppData% is not defined")
        return directory
    if sys.platform == "darwin":
        home = os.environ.get("HOME")
        if not home:
            raise OSError("$HOME is not defined")
        return home + "/Library/Application Support"
    directory = os.environ.get("XDG_CONFIG_HOME")
    if directory:
        return directory
    home = os.environ.get("HOME")
    if not home:
        raise OSError("neither $XDG_CONFIG_HOME nor $HOME are defined")
    return home + "/.config"


def _home_directory() -> str | None:
    try:
        import pwd

        return pwd.getpwuid(os.getuid()).pw_dir
    except (ImportError, KeyError, AttributeError):
        return None


def local_config_path() -> str:
    """Return the config file path next to the running program."""
    return posixpath.join(posixpath.dirname(sys.argv[0]), CONFIG_FILE_NAME)


def default_path() -> str:
    """Return the default config file path in the user's config directory."""
    try:
        config_dir = _user_config_dir()
    except OSError:
        return local_config_path()
    return posixpath.join(config_dir, CONFIG_DIR_NAME, CONFIG_FILE_NAME)


def default_config() -> Configuration:
    """Create a configuration holding the platform's default values."""
    config = Configuration(
        mpq_load_order=list(_WINDOWS_LOAD_ORDER),
        mpq_path="C:/Program Files (x86)/Diablo II",
        ticks_per_second=-1,
        sfx_volume=_DEFAULT_SFX_VOLUME,
        bgm_volume=_DEFAULT_BGM_VOLUME,
        full_screen=False,
        run_in_background=True,
        vsync_enabled=True,
        backend="SDL2",
        path=default_path(),
    )

    if sys.platform.startswith("win"):
        if struct.calcsize("P") == 4:
            config.mpq_path = "C:/Program Files/Diablo II"
    elif sys.platform == "darwin":
        config.mpq_path = "/Applications/Diablo II/"
        config.mpq_load_order = list(_DARWIN_LOAD_ORDER)
    elif sys.platform.startswith("linux"):
        home = _home_directory()
        if home is not None:
            config.mpq_path = posixpath.join(
                home, ".wine/drive_c/Program Files (x86)/Diablo II"
            )

    return config


def load(path: str | None = None) -> Configuration:
    """Load the configuration file at path, or at the default location."""
    file_path = path if path is not None else default_path()
    with open(file_path, encoding="utf-8") as handle:
        data = json.load(handle)
    config = Configuration.from_dict(data)
    config.path = file_path
    return config