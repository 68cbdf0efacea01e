"""Persistent favorites collection.

This module provides the FavoritesManager class for CRUD operations on
favorited names and their detail records, plus tag filtering, search and
JSON import/export.

Storage: ~/.namegen/favorites/favorites.json and details.json. Writes are
synchronous and last write wins.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from namegen.config import CONFIG_DIR, _file_lock
from namegen.favorites.matcher import FavoriteMatcher
from namegen.favorites.models import FavoritePerson, FavoritesStats, PersonDetails
from namegen.models.names import GeneratedName

logger = logging.getLogger(__name__)

FAVORITES_DIR = CONFIG_DIR / "favorites"
FAVORITES_FILENAME = "favorites.json"
DETAILS_FILENAME = "details.json"

# Fields update_favorite() may change
_UPDATABLE_FIELDS = (
    "first_name", "last_name", "gender", "nationality", "decade",
    "notes", "tags", "image_path",
)


def _validate_id(value: str) -> bool:
    """Validate an ID string for safety."""
    if not value or len(value) > 64:
        return False
    if ".." in value or "/" in value or "\\" in value:
        return False
    return True


class FavoritesManager:
    """High-level manager for the favorites collection.

    Usage:
        manager = FavoritesManager()
        person = manager.add_favorite(generated_name, tags=["novel"])
        manager.save_details(person.id, PersonDetails(age="34"))
        manager.list_favorites(tag="novel")
    """

    def __init__(self, storage_dir: Path | None = None) -> None:
        self.storage_dir = storage_dir or FAVORITES_DIR
        self.favorites_file = self.storage_dir / FAVORITES_FILENAME
        self.details_file = self.storage_dir / DETAILS_FILENAME
        self._favorites: dict[str, FavoritePerson] = {}
        self._details: dict[str, PersonDetails] = {}
        self._load()

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def _read_json(self, path: Path, key: str) -> Any:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to load {path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Failed to load {path}: expected an object")
            return None
        return data.get(key)

    def _load(self) -> None:
        """Load favorites and details from storage."""
        self._favorites = {}
        self._details = {}

        with _file_lock("favorites"):
            for item in self._read_json(self.favorites_file, "favorites") or []:
                try:
                    person = FavoritePerson(**item)
                    self._favorites[person.id] = person
                except (ValidationError, TypeError) as e:
                    logger.warning(f"Skipping invalid favorite: {e}")

            for person_id, item in (self._read_json(self.details_file, "details") or {}).items():
                if person_id not in self._favorites:
                    continue
                try:
                    self._details[person_id] = PersonDetails(**item)
                except (ValidationError, TypeError) as e:
                    logger.warning(f"Skipping invalid details for {person_id}: {e}")

    def _save(self) -> None:
        """Save favorites and details to storage."""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        now = datetime.now().isoformat()

        with _file_lock("favorites"):
            self.favorites_file.write_text(
                json.dumps(
                    {
                        "version": "1.0",
                        "updated_at": now,
                        "favorites": [
                            p.model_dump(mode="json") for p in self._favorites.values()
                        ],
                    },
                    indent=2,
                    ensure_ascii=False,
                ),
                encoding="utf-8",
            )
            self.favorites_file.chmod(0o600)

            self.details_file.write_text(
                json.dumps(
                    {
                        "version": "1.0",
                        "updated_at": now,
                        "details": {
                            pid: d.model_dump() for pid, d in self._details.items()
                        },
                    },
                    indent=2,
                    ensure_ascii=False,
                ),
                encoding="utf-8",
            )
            self.details_file.chmod(0o600)

    def _require(self, person_id: str) -> FavoritePerson:
        if not _validate_id(person_id):
            raise ValueError(f"Invalid favorite ID: {person_id}")
        if person_id not in self._favorites:
            raise ValueError(f"Favorite not found: {person_id}")
        return self._favorites[person_id]

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def add_favorite(
        self,
        name: GeneratedName,
        notes: str = "",
        tags: list[str] | None = None,
    ) -> FavoritePerson:
        """Promote a generated name to a favorite.

        Args:
            name: The generated name
            notes: Optional free-text notes
            tags: Optional tags

        Returns:
            The created FavoritePerson (with an empty detail record)
        """
        now = datetime.now()
        person = FavoritePerson(
            id=str(uuid4()),
            first_name=name.first_name,
            last_name=name.last_name,
            gender=name.gender,
            nationality=name.nationality,
            decade=name.decade,
            notes=notes,
            tags=tags or [],
            favorited_at=now,
            updated_at=now,
        )

        self._favorites[person.id] = person
        self._details[person.id] = PersonDetails()
        self._save()
        logger.info(f"Added favorite: {person.full_name} ({person.id})")

        return person

    def get_favorite(self, person_id: str) -> FavoritePerson | None:
        """Get a favorite by ID (or a unique ID prefix)."""
        if not _validate_id(person_id):
            return None
        if person_id in self._favorites:
            return self._favorites[person_id]

        matches = self.find_by_id_prefix(person_id)
        if len(matches) == 1:
            return matches[0]
        return None

    def find_by_id_prefix(self, prefix: str) -> list[FavoritePerson]:
        """All favorites whose ID starts with the prefix."""
        if not _validate_id(prefix):
            return []
        return [p for pid, p in self._favorites.items() if pid.startswith(prefix)]

    def find_by_name(self, first_name: str, last_name: str) -> FavoritePerson | None:
        """Find a favorite by exact (case-insensitive) name."""
        first, last = first_name.lower(), last_name.lower()
        for person in self._favorites.values():
            if person.first_name.lower() == first and person.last_name.lower() == last:
                return person
        return None

    def is_favorite(self, first_name: str, last_name: str) -> bool:
        return self.find_by_name(first_name, last_name) is not None

    def update_favorite(self, person_id: str, **kwargs: Any) -> FavoritePerson:
        """Update fields of an existing favorite.

        Raises:
            ValueError: If the favorite is not found or a field is unknown
        """
        person = self._require(person_id)

        unknown = set(kwargs) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        update_data = person.model_dump()
        update_data.update(kwargs)
        update_data["updated_at"] = datetime.now()

        updated = FavoritePerson(**update_data)
        self._favorites[person_id] = updated
        self._save()
        logger.info(f"Updated favorite: {updated.full_name} ({person_id})")

        return updated

    def remove_favorite(self, person_id: str) -> bool:
        """Remove a favorite and its detail record.

        Returns:
            True if removed, False if not found
        """
        if not _validate_id(person_id) or person_id not in self._favorites:
            return False

        person = self._favorites.pop(person_id)
        self._details.pop(person_id, None)
        self._save()
        logger.info(f"Removed favorite: {person.full_name} ({person_id})")

        return True

    def remove_all(self) -> int:
        """Remove every favorite. Returns the number removed."""
        count = len(self._favorites)
        self._favorites.clear()
        self._details.clear()
        self._save()
        logger.info(f"Removed all {count} favorites")
        return count

    def toggle_favorite(self, name: GeneratedName) -> FavoritePerson | None:
        """Add the name if it isn't a favorite, remove it if it is.

        Returns:
            The new FavoritePerson when added, None when removed
        """
        existing = self.find_by_name(name.first_name, name.last_name)
        if existing:
            self.remove_favorite(existing.id)
            return None
        return self.add_favorite(name)

    def list_favorites(
        self,
        tag: str | None = None,
        query: str | None = None,
    ) -> list[FavoritePerson]:
        """List favorites sorted by first name.

        Args:
            tag: Only favorites carrying this tag
            query: Case-insensitive substring of the first or last name
        """
        people = list(self._favorites.values())

        if tag:
            people = [p for p in people if p.has_tag(tag)]

        if query and query.strip():
            q = query.strip().lower()
            people = [
                p for p in people
                if q in p.first_name.lower() or q in p.last_name.lower()
            ]

        people.sort(key=lambda p: (p.first_name.lower(), p.last_name.lower()))
        return people

    def search(self, query: str, limit: int = 20) -> list[FavoritePerson]:
        """Fuzzy and phonetic search over favorite names, best match first."""
        if not query or len(query) > 200:
            return []
        matcher = FavoriteMatcher(list(self._favorites.values()))
        return [c.person for c in matcher.find(query, limit=limit)]

    # -------------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------------

    def load_details(self, person_id: str) -> PersonDetails:
        """Get the detail record of a favorite, creating an empty one if missing.

        Raises:
            ValueError: If the favorite is not found
        """
        self._require(person_id)
        if person_id not in self._details:
            self._details[person_id] = PersonDetails()
            self._save()
        return self._details[person_id]

    def save_details(self, person_id: str, details: PersonDetails) -> None:
        """Replace the detail record of a favorite.

        Raises:
            ValueError: If the favorite is not found
        """
        self._require(person_id)
        self._details[person_id] = details
        self._save()
        logger.info(f"Saved details for {person_id}")

    def has_details(self, person_id: str) -> bool:
        """True if the favorite has notes or any filled detail field."""
        person = self._favorites.get(person_id)
        if person is None:
            return False
        details = self._details.get(person_id)
        return bool(person.notes.strip()) or (details is not None and not details.is_empty())

    # -------------------------------------------------------------------------
    # Tags and images
    # -------------------------------------------------------------------------

    def all_tags(self) -> list[str]:
        """Every tag in use, sorted."""
        return sorted({t for p in self._favorites.values() for t in p.tags})

    def persons_with_tag(self, tag: str) -> list[FavoritePerson]:
        return self.list_favorites(tag=tag)

    def add_tag(self, person_id: str, tag: str) -> FavoritePerson:
        person = self._require(person_id)
        tag = tag.strip()
        if not tag:
            raise ValueError("Tag cannot be empty")
        return self.update_favorite(person_id, tags=[*person.tags, tag])

    def remove_tag(self, person_id: str, tag: str) -> FavoritePerson:
        person = self._require(person_id)
        remaining = [t for t in person.tags if t.lower() != tag.strip().lower()]
        return self.update_favorite(person_id, tags=remaining)

    def set_image(self, person_id: str, image_path: Path) -> FavoritePerson:
        """Attach an image file to a favorite.

        Raises:
            ValueError: If the favorite or the image file is not found
        """
        self._require(person_id)
        image_path = Path(image_path).expanduser()
        if not image_path.is_file():
            raise ValueError(f"Image not found: {image_path}")
        return self.update_favorite(person_id, image_path=str(image_path.resolve()))

    def clear_image(self, person_id: str) -> FavoritePerson:
        self._require(person_id)
        return self.update_favorite(person_id, image_path=None)

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export_to_json(self, path: Path, tag: str | None = None) -> int:
        """Export favorites (with details) to a JSON file.

        Returns:
            Number of favorites exported
        """
        people = self.list_favorites(tag=tag)
        output = {
            "version": "1.0",
            "exported_at": datetime.now().isoformat(),
            "filters": {"tag": tag},
            "count": len(people),
            "favorites": [
                {
                    **p.model_dump(mode="json"),
                    "details": self._details.get(p.id, PersonDetails()).model_dump(),
                }
                for p in people
            ],
        }

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(output, indent=2, ensure_ascii=False), encoding="utf-8")
        path.chmod(0o600)

        logger.info(f"Exported {len(people)} favorites to {path}")
        return len(people)

    def import_from_json(self, path: Path) -> int:
        """Import favorites from a file written by export_to_json().

        Names already in the collection are skipped. Imported favorites get
        fresh IDs.

        Returns:
            Number of favorites imported

        Raises:
            ValueError: If the file is missing or invalid
        """
        if not path.exists():
            raise ValueError(f"File not found: {path}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")

        items = data.get("favorites", []) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ValueError("Expected 'favorites' to be a list")

        count = 0
        for item in items:
            try:
                first = item.get("first_name", "").strip()
                last = item.get("last_name", "").strip()
                if not first or not last:
                    logger.warning("Skipping favorite with empty name")
                    continue
                if self.is_favorite(first, last):
                    logger.debug(f"Skipping duplicate: {first} {last}")
                    continue

                now = datetime.now()
                person = FavoritePerson(
                    id=str(uuid4()),
                    first_name=first,
                    last_name=last,
                    gender=item.get("gender", "female"),
                    nationality=item.get("nationality", "german"),
                    decade=item.get("decade"),
                    notes=item.get("notes", ""),
                    tags=item.get("tags", []),
                    image_path=item.get("image_path"),
                    favorited_at=item.get("favorited_at", now),
                    updated_at=now,
                )
                details = PersonDetails(**(item.get("details") or {}))
                self._favorites[person.id] = person
                self._details[person.id] = details
                count += 1

            except (AttributeError, TypeError, ValidationError) as e:
                logger.warning(f"Skipping invalid favorite: {e}")

        if count:
            self._save()
        logger.info(f"Imported {count} favorites from {path}")
        return count

    def get_stats(self) -> FavoritesStats:
        """Collection statistics."""
        stats = FavoritesStats()

        for person in self._favorites.values():
            stats.total_favorites += 1
            stats.by_nationality[person.nationality] = (
                stats.by_nationality.get(person.nationality, 0) + 1
            )
            stats.by_gender[person.gender] = stats.by_gender.get(person.gender, 0) + 1
            for tag in person.tags:
                stats.by_tag[tag] = stats.by_tag.get(tag, 0) + 1
            if self.has_details(person.id):
                stats.with_details += 1
            if person.image_path:
                stats.with_image += 1
            if stats.last_updated is None or person.updated_at > stats.last_updated:
                stats.last_updated = person.updated_at

        return stats

    def __len__(self) -> int:
        return len(self._favorites)
