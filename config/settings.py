"""
Configuration management for embedstore.

Provides the Settings dataclass and utilities for loading it from YAML
files and environment variables.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml


ENV_PREFIX = "EMBEDSTORE_"


def _default_threads() -> int:
    return os.cpu_count() or 1


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Main settings container for embedstore.

    Attributes:
        storage_path: Snapshot file path (None = in-memory only)
        log_level: Logging level
        sync_on_write: Rewrite the snapshot after every successful mutation
        compress_snapshot: zlib-compress the snapshot payload
        parallel_threshold: Candidate count above which scoring runs in parallel
        chunk_size: Rows per parallel scoring task
        num_threads: Number of scoring threads
    """
    storage_path: Optional[str] = "./storage/db"
    log_level: str = "INFO"
    sync_on_write: bool = False
    compress_snapshot: bool = False

    parallel_threshold: int = 10000
    chunk_size: int = 4096
    num_threads: int = field(default_factory=_default_threads)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_env(cls, base: Optional["Settings"] = None) -> "Settings":
        """
        Apply EMBEDSTORE_* environment variables on top of ``base``.

        Example:
            EMBEDSTORE_STORAGE_PATH=/var/lib/embedstore/db
            EMBEDSTORE_SYNC_ON_WRITE=true
        """
        data = (base or cls()).to_dict()

        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.name == "storage_path":
                data[f.name] = raw or None
            elif isinstance(data[f.name], bool):
                data[f.name] = _parse_bool(raw)
            elif isinstance(data[f.name], int):
                data[f.name] = int(raw)
            else:
                data[f.name] = raw

        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        return asdict(self)


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    # Check for config in current directory
    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    # Check environment variable
    env_config = os.environ.get("EMBEDSTORE_CONFIG")
    if env_config:
        return Path(env_config)

    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None, use_env: bool = True) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.
        use_env: Apply EMBEDSTORE_* environment overrides

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    settings = Settings()
    if path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        if data:
            settings = Settings.from_dict(data)

    if use_env:
        settings = Settings.from_env(settings)

    return settings
