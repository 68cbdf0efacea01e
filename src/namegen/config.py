"""Configuration management for namegen."""

import fcntl
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import toml
from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path(os.environ.get("NAMEGEN_HOME", Path.home() / ".namegen")).expanduser()
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Decade labels meaning "ignore decade, union all". "any" is canonical;
# the German "Alle" and "Egal" are accepted as well.
ANY_DECADE = "any"
ANY_DECADE_ALIASES = frozenset({"any", "all", "alle", "egal"})


def is_any_decade(label: str | None) -> bool:
    """Return True if the decade label is the any-sentinel (or missing)."""
    if label is None:
        return True
    return label.strip().lower() in ANY_DECADE_ALIASES


# =============================================================================
# File Locking Context Manager
# =============================================================================

@contextmanager
def _file_lock(name: str):
    """Context manager for file-based locking.

    Usage:
        with _file_lock("favorites"):
            # ... critical section ...
    """
    # Validate lock name to prevent path traversal
    if not name or not all(c.isalnum() or c in "_-" for c in name):
        raise ValueError(f"Invalid lock name: {name}")

    lock_dir = CONFIG_DIR / "locks"
    lock_dir.mkdir(parents=True, exist_ok=True)
    lock_file = lock_dir / f"{name}.lock"

    # Create lock file with restricted permissions
    fd = os.open(str(lock_file), os.O_CREAT | os.O_WRONLY, 0o600)
    try:
        lock_fh = os.fdopen(fd, 'w', encoding='utf-8')
    except Exception:
        os.close(fd)
        raise

    try:
        fcntl.flock(lock_fh.fileno(), fcntl.LOCK_EX)
        yield lock_fh
    finally:
        try:
            fcntl.flock(lock_fh.fileno(), fcntl.LOCK_UN)
        except OSError:
            pass
        lock_fh.close()


class DefaultsConfig(BaseModel):
    """Default generation parameters used when the CLI gets no options."""

    gender: str = "female"
    nationality: str = "german"
    decade: str = ANY_DECADE
    use_alliteration: bool = False
    use_double_name: bool = False
    count: int = Field(default=5, ge=1, le=100)


class GeneratorConfig(BaseModel):
    """Tuning for the name generation engine.

    Defaults: a 100-entry recency history, 30 attempts per letter in
    alphabetical mode (10 for Y and Z, which are rare initials) and a repair
    pass when fewer than 24 letters were filled.
    """

    history_size: int = Field(default=100, ge=1)
    batch_attempts: int = Field(default=30, ge=1)
    batch_attempts_rare: int = Field(default=10, ge=1)
    rare_letters: str = "yz"
    batch_minimum: int = Field(default=24, ge=0, le=26)

    # Recent names are filtered unconditionally, so a small pool can run dry.
    # Set True to fall back to the unfiltered pool instead of returning None.
    fallback_when_exhausted: bool = False

    # Fixed seed for reproducible output (None = system randomness)
    seed: int | None = None


class NamegenConfig(BaseModel):
    """Main configuration model."""

    names_file: Path | None = None  # Custom name table (None = bundled table)
    log_sessions: bool = True
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)


def ensure_config_dirs() -> None:
    """Create config directories if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def load_config() -> NamegenConfig:
    """Load configuration from file, or create defaults."""
    if CONFIG_FILE.exists():
        try:
            data = toml.load(CONFIG_FILE)
            if "defaults" in data and isinstance(data["defaults"], dict):
                data["defaults"] = DefaultsConfig(**data["defaults"])
            if "generator" in data and isinstance(data["generator"], dict):
                data["generator"] = GeneratorConfig(**data["generator"])
            if "names_file" in data:
                if isinstance(data["names_file"], str) and data["names_file"]:
                    path_obj = Path(data["names_file"]).expanduser()
                    if not path_obj.is_absolute():
                        raise ValueError(f"Config path must be absolute: names_file={path_obj}")
                    data["names_file"] = path_obj
                else:
                    data["names_file"] = None
            config = NamegenConfig(**data)
        except (toml.TomlDecodeError, ValueError, TypeError) as e:
            # ValidationError subclasses ValueError in pydantic v2
            if isinstance(e, ValidationError):
                print(f"Warning: Config validation failed ({e}), using defaults", file=sys.stderr)
            else:
                print(f"Warning: Failed to load config ({e}), using defaults", file=sys.stderr)
            config = NamegenConfig()
    else:
        config = NamegenConfig()
        save_config(config)

    ensure_config_dirs()
    return config


def save_config(config: NamegenConfig) -> None:
    """Save configuration to file with atomic write."""
    import tempfile

    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(exclude_none=True)
    # TOML has no null and no Path type
    if config.names_file is not None:
        data["names_file"] = str(config.names_file)
    data["defaults"] = config.defaults.model_dump()
    data["generator"] = config.generator.model_dump(exclude_none=True)

    # Write to temporary file first (atomic operation)
    temp_fd, temp_path = tempfile.mkstemp(dir=CONFIG_DIR, prefix=".config_", suffix=".toml.tmp")
    try:
        with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
            toml.dump(data, f)

        os.chmod(temp_path, 0o600)
        os.replace(temp_path, CONFIG_FILE)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
