"""Tests for configuration loading and saving."""

import pytest
import toml

from namegen import config
from namegen.config import (
    GeneratorConfig,
    NamegenConfig,
    _file_lock,
    is_any_decade,
    load_config,
    save_config,
)


class TestAnyDecade:
    @pytest.mark.parametrize("label", ["any", "Any", "all", "Alle", "egal", " EGAL ", None])
    def test_aliases(self, label):
        assert is_any_decade(label)

    @pytest.mark.parametrize("label", ["1990", "", "anything"])
    def test_real_labels(self, label):
        assert not is_any_decade(label)


class TestLoadSave:
    def test_missing_file_creates_defaults(self, isolated_home):
        cfg = load_config()
        assert cfg == NamegenConfig()
        assert config.CONFIG_FILE.exists()
        assert oct(config.CONFIG_FILE.stat().st_mode & 0o777) == "0o600"

    def test_round_trip(self, isolated_home, tmp_path):
        cfg = NamegenConfig(
            names_file=tmp_path / "names.json",
            log_sessions=False,
            generator=GeneratorConfig(history_size=10, seed=7),
        )
        cfg.defaults.gender = "male"
        save_config(cfg)

        loaded = load_config()
        assert loaded.names_file == tmp_path / "names.json"
        assert loaded.log_sessions is False
        assert loaded.defaults.gender == "male"
        assert loaded.generator.history_size == 10
        assert loaded.generator.seed == 7

    def test_none_values_not_written(self, isolated_home):
        save_config(NamegenConfig())
        data = toml.load(config.CONFIG_FILE)
        assert "names_file" not in data
        assert "seed" not in data["generator"]

    def test_invalid_toml_falls_back_to_defaults(self, isolated_home, capsys):
        isolated_home.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text("[defaults\ngender = ", encoding="utf-8")
        assert load_config() == NamegenConfig()
        assert "Failed to load config" in capsys.readouterr().err

    def test_invalid_values_fall_back_to_defaults(self, isolated_home, capsys):
        isolated_home.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text("[defaults]\ncount = 0\n", encoding="utf-8")
        assert load_config() == NamegenConfig()
        assert "Warning" in capsys.readouterr().err

    def test_relative_names_file_rejected(self, isolated_home, capsys):
        isolated_home.mkdir(parents=True, exist_ok=True)
        config.CONFIG_FILE.write_text('names_file = "names.json"\n', encoding="utf-8")
        assert load_config().names_file is None
        assert "absolute" in capsys.readouterr().err


class TestFileLock:
    def test_lock_file_created(self, isolated_home):
        with _file_lock("favorites"):
            assert (isolated_home / "locks" / "favorites.lock").exists()

    @pytest.mark.parametrize("name", ["", "../x", "a/b"])
    def test_invalid_lock_name(self, name):
        with pytest.raises(ValueError):
            with _file_lock(name):
                pass


def test_generator_defaults():
    cfg = GeneratorConfig()
    assert cfg.history_size == 100
    assert cfg.batch_attempts == 30
    assert cfg.batch_attempts_rare == 10
    assert cfg.rare_letters == "yz"
    assert cfg.batch_minimum == 24
    assert cfg.fallback_when_exhausted is False
    assert cfg.seed is None
    assert NamegenConfig().defaults.count == 5
