[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "abyssengine"
version = "0.1.0"
description = "Readers for the data file formats of a classic action role-playing game: MPQ archives, palettes, sprites, tiles, maps and tables, plus engine configuration."
requires-python = ">=3.10"
dependencies = []
keywords = ["arpg", "game-engine", "mpq", "dc6", "dcc", "dt1", "ds1", "cof", "palette", "file-formats"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Role-Playing",
    "Topic :: File Formats",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["abyssengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
