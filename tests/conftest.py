"""Pytest fixtures for namegen tests."""

import os
import random
import string
import tempfile
from pathlib import Path

# Keep config, favorites and logs out of the real home directory. Must run
# before namegen is imported since storage paths are resolved at import time.
os.environ.setdefault("NAMEGEN_HOME", tempfile.mkdtemp(prefix="namegen-tests-"))

import pytest  # noqa: E402

from namegen.table import NameTable  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point every storage location at a fresh directory per test."""
    import namegen.config
    import namegen.favorites.manager
    import namegen.logging

    home = tmp_path / "home"
    monkeypatch.setattr(namegen.config, "CONFIG_DIR", home)
    monkeypatch.setattr(namegen.config, "CONFIG_FILE", home / "config.toml")
    monkeypatch.setattr(namegen.favorites.manager, "FAVORITES_DIR", home / "favorites")
    monkeypatch.setattr(namegen.logging, "LOGS_DIR", home / "logs")
    namegen.logging.set_logger(None)
    return home


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def small_table_data() -> dict:
    return {
        "firstNames": {
            "german": {
                "female": {
                    "1980": ["Sabine", "Anna"],
                    "1990": ["Anna", "Lena"],
                },
                "male": {
                    "1990": ["Lukas"],
                },
            },
        },
        "lastNames": {
            "german": ["Bauer", "Klein"],
        },
    }


@pytest.fixture
def small_table(small_table_data) -> NameTable:
    """Female/german/1990 = Anna, Lena; german last names = Bauer, Klein."""
    return NameTable.from_dict(small_table_data)


@pytest.fixture
def small_table_file(tmp_path, small_table_data) -> Path:
    import json

    path = tmp_path / "names.json"
    path.write_text(json.dumps(small_table_data), encoding="utf-8")
    return path


@pytest.fixture
def large_table() -> NameTable:
    """60 first names per bucket and 3 last names per letter a-z."""
    first = [f"{letter.upper()}{suffix}" for letter in string.ascii_lowercase[:20]
             for suffix in ("ara", "ino", "elle")]
    last = [f"{letter.upper()}{suffix}" for letter in string.ascii_lowercase
            for suffix in ("mann", "berg", "feld")]
    return NameTable.from_dict({
        "firstNames": {
            "german": {
                "female": {"1980": first[:30], "1990": first[30:]},
            },
        },
        "lastNames": {"german": last},
    })
