"""Static name table: nationality -> gender -> decade -> first names.

The table is loaded once from a JSON document:

    {
        "firstNames": {"german": {"female": {"1990": ["Anna", "Lena"]}}},
        "lastNames": {"german": ["Bauer", "Klein"]}
    }

Lookups never raise. A missing key or a table that failed to load yields an
empty list, which the generator treats as "no candidate available".
"""

import json
import logging
from pathlib import Path
from typing import Any

from namegen.config import is_any_decade

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_NAMES_FILE = DATA_DIR / "names.json"


def _unique(names: list[str]) -> list[str]:
    """Drop duplicates and blanks, keeping first-occurrence order."""
    seen: set[str] = set()
    result = []
    for name in names:
        if not isinstance(name, str):
            continue
        name = name.strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


def _decade_sort_key(label: str) -> tuple[int, str]:
    # Numeric decades first in chronological order, anything else after
    return (0, f"{int(label):06d}") if label.isdigit() else (1, label)


class NameTable:
    """Immutable lookup table of candidate first and last names.

    Usage:
        table = NameTable.load(Path("names.json"))
        table.first_names_for("female", "german", "1990")
        table.last_names_for("german")
    """

    def __init__(
        self,
        first_names: dict[str, dict[str, dict[str, list[str]]]] | None = None,
        last_names: dict[str, list[str]] | None = None,
        source: Path | None = None,
        loaded: bool = True,
    ) -> None:
        self._first: dict[str, dict[str, dict[str, tuple[str, ...]]]] = {}
        self._last: dict[str, tuple[str, ...]] = {}
        self.source = source
        self.loaded = loaded
        self._ingest(first_names or {}, last_names or {})

    def _ingest(
        self,
        first_names: dict[str, Any],
        last_names: dict[str, Any],
    ) -> None:
        for nationality, genders in first_names.items():
            if not isinstance(genders, dict):
                logger.warning(f"Skipping first names for {nationality!r}: expected an object")
                continue
            self._first[nationality] = {}
            for gender, decades in genders.items():
                if not isinstance(decades, dict):
                    logger.warning(f"Skipping {nationality}/{gender}: expected decade object")
                    continue
                self._first[nationality][gender] = {
                    str(decade): tuple(_unique(names))
                    for decade, names in decades.items()
                    if isinstance(names, list)
                }

        for nationality, names in last_names.items():
            if not isinstance(names, list):
                logger.warning(f"Skipping last names for {nationality!r}: expected a list")
                continue
            self._last[nationality] = tuple(_unique(names))

    @classmethod
    def from_dict(cls, data: Any, source: Path | None = None) -> "NameTable":
        """Build a table from a parsed JSON document.

        A document without the two top-level objects produces an unloaded
        (empty) table rather than an exception.
        """
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("firstNames"), dict)
            or not isinstance(data.get("lastNames"), dict)
        ):
            logger.error("Name table must contain 'firstNames' and 'lastNames' objects")
            return cls.empty(source)
        return cls(data["firstNames"], data["lastNames"], source=source)

    @classmethod
    def load(cls, path: Path | None = None) -> "NameTable":
        """Load a table from a JSON file (bundled table by default)."""
        path = path or DEFAULT_NAMES_FILE
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.error(f"Name table not found: {path}")
            return cls.empty(path)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to load name table {path}: {e}")
            return cls.empty(path)

        table = cls.from_dict(data, source=path)
        if table.loaded:
            logger.debug(
                f"Loaded name table {path}: {len(table.nationalities())} nationalities"
            )
        return table

    @classmethod
    def empty(cls, source: Path | None = None) -> "NameTable":
        """A table in the "not loaded" state."""
        return cls(source=source, loaded=False)

    def reload(self) -> "NameTable":
        """Re-read the source file. Returns a new table."""
        return NameTable.load(self.source)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def first_names_for(self, gender: str, nationality: str, decade: str | None) -> list[str]:
        """Candidate first names for a gender/nationality/decade bucket.

        The any-sentinel returns the union of every decade in chronological
        order with duplicates removed.
        """
        if not self.loaded:
            return []

        decades = self._first.get(nationality, {}).get(gender)
        if decades is None:
            logger.debug(f"No first names for {nationality}/{gender}")
            return []

        if is_any_decade(decade):
            pool: list[str] = []
            for label in sorted(decades, key=_decade_sort_key):
                pool.extend(decades[label])
            return _unique(pool)

        names = decades.get(decade)
        if names is None:
            logger.debug(
                f"No first names for {nationality}/{gender}/{decade}; "
                f"available decades: {sorted(decades)}"
            )
            return []
        return list(names)

    def last_names_for(self, nationality: str) -> list[str]:
        """Candidate last names for a nationality."""
        if not self.loaded:
            return []
        return list(self._last.get(nationality, ()))

    def nationalities(self) -> list[str]:
        return sorted(set(self._first) | set(self._last))

    def genders(self, nationality: str) -> list[str]:
        return sorted(self._first.get(nationality, {}))

    def decades(self, gender: str, nationality: str) -> list[str]:
        decades = self._first.get(nationality, {}).get(gender, {})
        return sorted(decades, key=_decade_sort_key)

    def validate(self) -> list[str]:
        """Check table structure and return a list of problems found.

        An empty list means every nationality has last names and every
        gender/decade bucket has at least one first name.
        """
        if not self.loaded:
            return [f"Name table not loaded ({self.source})"]

        problems = []
        for nationality in self.nationalities():
            if nationality not in self._first:
                problems.append(f"{nationality}: no first names")
            if not self._last.get(nationality):
                problems.append(f"{nationality}: no last names")
            for gender, decades in self._first.get(nationality, {}).items():
                if not decades:
                    problems.append(f"{nationality}/{gender}: no decades")
                for decade, names in decades.items():
                    if not names:
                        problems.append(f"{nationality}/{gender}/{decade}: empty list")
        return problems

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameTable):
            return NotImplemented
        return (
            self.loaded == other.loaded
            and self._first == other._first
            and self._last == other._last
        )
