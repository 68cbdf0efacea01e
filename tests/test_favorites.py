"""Tests for the favorites manager."""

import json

import pytest

from namegen.favorites import FavoritesManager, PersonDetails
from namegen.models.names import GeneratedName


def _name(first: str = "Anna", last: str = "Bauer", **overrides) -> GeneratedName:
    params = {
        "first_name": first,
        "last_name": last,
        "gender": "female",
        "nationality": "german",
        "decade": "1990",
    }
    params.update(overrides)
    return GeneratedName(**params)


@pytest.fixture
def manager(tmp_path) -> FavoritesManager:
    return FavoritesManager(storage_dir=tmp_path / "favorites")


class TestCrud:
    def test_add_and_get(self, manager):
        person = manager.add_favorite(_name(), notes="protagonist", tags=["novel"])
        assert manager.get_favorite(person.id) == person
        assert manager.get_favorite(person.id[:8]) == person
        assert person.full_name == "Anna Bauer"
        assert person.decade == "1990"
        assert person.tags == ["novel"]
        assert len(manager) == 1

    def test_shared_id_prefix(self, manager, monkeypatch):
        ids = iter(["abc12345-0000", "abc67890-0000"])
        monkeypatch.setattr("namegen.favorites.manager.uuid4", lambda: next(ids))
        anna = manager.add_favorite(_name())
        lena = manager.add_favorite(_name("Lena", "Klein"))

        assert manager.get_favorite("abc") is None
        assert manager.find_by_id_prefix("abc") == [anna, lena]
        assert manager.find_by_id_prefix("abc6") == [lena]
        assert manager.get_favorite("abc6") == lena
        assert manager.find_by_id_prefix("../x") == []

    def test_persisted_across_instances(self, manager):
        person = manager.add_favorite(_name(), tags=["novel"])
        manager.save_details(person.id, PersonDetails(age="34"))

        reloaded = FavoritesManager(storage_dir=manager.storage_dir)
        assert reloaded.get_favorite(person.id).full_name == "Anna Bauer"
        assert reloaded.load_details(person.id).age == "34"

    def test_new_favorite_has_empty_details(self, manager):
        person = manager.add_favorite(_name())
        assert manager.load_details(person.id).is_empty()
        assert not manager.has_details(person.id)

    def test_find_by_name_is_case_insensitive(self, manager):
        person = manager.add_favorite(_name())
        assert manager.find_by_name("anna", "BAUER") == person
        assert manager.is_favorite("Anna", "Bauer")
        assert not manager.is_favorite("Lena", "Bauer")

    def test_update(self, manager):
        person = manager.add_favorite(_name())
        updated = manager.update_favorite(person.id, notes="changed")
        assert updated.notes == "changed"
        assert updated.updated_at >= person.updated_at
        assert manager.get_favorite(person.id).notes == "changed"

    def test_update_rejects_unknown_fields(self, manager):
        person = manager.add_favorite(_name())
        with pytest.raises(ValueError, match="Cannot update"):
            manager.update_favorite(person.id, id="other")

    def test_unknown_id_raises(self, manager):
        with pytest.raises(ValueError, match="not found"):
            manager.update_favorite("missing", notes="x")
        with pytest.raises(ValueError, match="Invalid"):
            manager.load_details("../etc")

    def test_remove(self, manager):
        person = manager.add_favorite(_name())
        assert manager.remove_favorite(person.id)
        assert not manager.remove_favorite(person.id)
        assert manager.get_favorite(person.id) is None
        assert len(manager) == 0

    def test_remove_all(self, manager):
        manager.add_favorite(_name())
        manager.add_favorite(_name("Lena", "Klein"))
        assert manager.remove_all() == 2
        assert manager.list_favorites() == []

    def test_toggle(self, manager):
        added = manager.toggle_favorite(_name())
        assert added is not None
        assert manager.toggle_favorite(_name()) is None
        assert len(manager) == 0

    def test_list_sorted_by_first_name(self, manager):
        manager.add_favorite(_name("Lena", "Klein"))
        manager.add_favorite(_name("Anna", "Bauer"))
        manager.add_favorite(_name("Mia", "Arnold"))
        assert [p.first_name for p in manager.list_favorites()] == ["Anna", "Lena", "Mia"]

    def test_list_filters(self, manager):
        manager.add_favorite(_name("Lena", "Klein"), tags=["villain"])
        manager.add_favorite(_name("Anna", "Bauer"), tags=["hero"])
        assert [p.first_name for p in manager.list_favorites(tag="HERO")] == ["Anna"]
        assert [p.first_name for p in manager.list_favorites(query="kle")] == ["Lena"]

    def test_corrupt_storage_is_ignored(self, tmp_path):
        storage = tmp_path / "favorites"
        storage.mkdir()
        (storage / "favorites.json").write_text("{broken", encoding="utf-8")
        assert len(FavoritesManager(storage_dir=storage)) == 0

    def test_invalid_records_skipped(self, tmp_path):
        storage = tmp_path / "favorites"
        storage.mkdir()
        (storage / "favorites.json").write_text(json.dumps({
            "favorites": [
                {"id": "a1", "first_name": "Anna", "last_name": "Bauer"},
                {"id": "b2", "first_name": ""},
            ]
        }), encoding="utf-8")
        manager = FavoritesManager(storage_dir=storage)
        assert [p.id for p in manager.list_favorites()] == ["a1"]


class TestDetails:
    def test_save_and_load(self, manager):
        person = manager.add_favorite(_name())
        details = PersonDetails(age="34", characteristics="curious", wants="a boat")
        manager.save_details(person.id, details)
        assert manager.load_details(person.id) == details
        assert manager.has_details(person.id)

    def test_notes_count_as_details(self, manager):
        person = manager.add_favorite(_name(), notes="main character")
        assert manager.has_details(person.id)

    def test_remove_drops_details(self, manager):
        person = manager.add_favorite(_name())
        manager.save_details(person.id, PersonDetails(age="34"))
        manager.remove_favorite(person.id)
        data = json.loads(manager.details_file.read_text(encoding="utf-8"))
        assert person.id not in data["details"]


class TestTagsAndImages:
    def test_add_and_remove_tag(self, manager):
        person = manager.add_favorite(_name())
        manager.add_tag(person.id, "novel")
        manager.add_tag(person.id, " novel ")
        person = manager.add_tag(person.id, "berlin")
        assert person.tags == ["berlin", "novel"]
        person = manager.remove_tag(person.id, "NOVEL")
        assert person.tags == ["berlin"]

    def test_empty_tag_rejected(self, manager):
        person = manager.add_favorite(_name())
        with pytest.raises(ValueError):
            manager.add_tag(person.id, "  ")

    def test_all_tags_and_persons_with_tag(self, manager):
        manager.add_favorite(_name("Anna", "Bauer"), tags=["novel", "berlin"])
        manager.add_favorite(_name("Lena", "Klein"), tags=["novel"])
        assert manager.all_tags() == ["berlin", "novel"]
        assert [p.first_name for p in manager.persons_with_tag("novel")] == ["Anna", "Lena"]

    def test_set_and_clear_image(self, manager, tmp_path):
        image = tmp_path / "anna.jpg"
        image.write_bytes(b"\xff\xd8\xff")
        person = manager.add_favorite(_name())
        person = manager.set_image(person.id, image)
        assert person.image_path == str(image.resolve())
        person = manager.clear_image(person.id)
        assert person.image_path is None

    def test_missing_image_rejected(self, manager, tmp_path):
        person = manager.add_favorite(_name())
        with pytest.raises(ValueError, match="Image not found"):
            manager.set_image(person.id, tmp_path / "nope.jpg")


class TestSearch:
    def test_phonetic_search(self, manager):
        manager.add_favorite(_name("Anna", "Meyer"))
        manager.add_favorite(_name("Lena", "Bauer"))
        assert [p.last_name for p in manager.search("Meier")] == ["Meyer"]

    def test_empty_query(self, manager):
        manager.add_favorite(_name())
        assert manager.search("") == []


class TestImportExport:
    def test_round_trip_with_details(self, manager, tmp_path):
        person = manager.add_favorite(_name(), tags=["novel"])
        manager.save_details(person.id, PersonDetails(age="34"))
        export_path = tmp_path / "export.json"
        assert manager.export_to_json(export_path) == 1

        other = FavoritesManager(storage_dir=tmp_path / "other")
        assert other.import_from_json(export_path) == 1
        imported = other.find_by_name("Anna", "Bauer")
        assert imported.id != person.id
        assert imported.tags == ["novel"]
        assert other.load_details(imported.id).age == "34"

    def test_import_skips_duplicates(self, manager, tmp_path):
        manager.add_favorite(_name())
        export_path = tmp_path / "export.json"
        manager.export_to_json(export_path)
        assert manager.import_from_json(export_path) == 0
        assert len(manager) == 1

    def test_export_by_tag(self, manager, tmp_path):
        manager.add_favorite(_name("Anna", "Bauer"), tags=["novel"])
        manager.add_favorite(_name("Lena", "Klein"))
        export_path = tmp_path / "export.json"
        assert manager.export_to_json(export_path, tag="novel") == 1
        data = json.loads(export_path.read_text(encoding="utf-8"))
        assert data["count"] == 1
        assert data["favorites"][0]["first_name"] == "Anna"

    def test_import_bad_files(self, manager, tmp_path):
        with pytest.raises(ValueError, match="File not found"):
            manager.import_from_json(tmp_path / "missing.json")

        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            manager.import_from_json(broken)

        wrong = tmp_path / "wrong.json"
        wrong.write_text(json.dumps({"favorites": "nope"}), encoding="utf-8")
        with pytest.raises(ValueError, match="list"):
            manager.import_from_json(wrong)


class TestStats:
    def test_stats(self, manager, tmp_path):
        image = tmp_path / "pic.png"
        image.write_bytes(b"png")
        anna = manager.add_favorite(_name("Anna", "Bauer"), tags=["novel"])
        manager.add_favorite(_name("John", "Smith", gender="male", nationality="british"))
        manager.save_details(anna.id, PersonDetails(age="34"))
        manager.set_image(anna.id, image)

        stats = manager.get_stats()
        assert stats.total_favorites == 2
        assert stats.by_nationality == {"german": 1, "british": 1}
        assert stats.by_gender == {"female": 1, "male": 1}
        assert stats.by_tag == {"novel": 1}
        assert stats.with_details == 1
        assert stats.with_image == 1
        assert stats.last_updated is not None

    def test_empty_stats(self, manager):
        stats = manager.get_stats()
        assert stats.total_favorites == 0
        assert stats.last_updated is None
