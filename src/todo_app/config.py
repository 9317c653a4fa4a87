"""Configuration management for the Todo app."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from .constants import (
    BACKEND_KEYVALUE,
    DB_FILENAME,
    DEFAULT_TAGS,
    KV_FILENAME,
    STORAGE_BACKENDS,
    TODO_STORAGE_KEY,
)

logger = logging.getLogger(__name__)


@dataclass
class ConfigModel:
    """Global configuration model for the Todo app."""

    # Storage
    data_dir: str = "~/.todo-app"
    storage_backend: str = BACKEND_KEYVALUE  # keyvalue, sqlite
    storage_key: str = TODO_STORAGE_KEY
    kv_filename: str = KV_FILENAME
    db_filename: str = DB_FILENAME

    # Tags offered before any todo uses them
    default_tags: List[str] = field(default_factory=lambda: list(DEFAULT_TAGS))

    # Display preferences
    date_format: str = "%Y-%m-%d"
    no_color: bool = False

    def __post_init__(self):
        self.data_dir = os.path.expanduser(self.data_dir)
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"storage_backend must be one of {', '.join(STORAGE_BACKENDS)}, "
                f"got {self.storage_backend!r}"
            )

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {
            "data_dir": self.data_dir,
            "storage_backend": self.storage_backend,
            "storage_key": self.storage_key,
            "kv_filename": self.kv_filename,
            "db_filename": self.db_filename,
            "default_tags": list(self.default_tags),
            "date_format": self.date_format,
            "no_color": self.no_color,
        }
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

        return cls(**{k: v for k, v in data.items() if k in known})

    def get_config_path(self) -> Path:
        """Get the config file path."""
        return Path(self.data_dir) / "config.yaml"

    def get_kv_path(self) -> Path:
        """Get the key-value storage file path."""
        return Path(self.data_dir) / self.kv_filename

    def get_db_path(self) -> Path:
        """Get the SQLite database file path."""
        return Path(self.data_dir) / self.db_filename


class Config:
    """Configuration manager for the Todo app."""

    _instance: Optional[ConfigModel] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Load configuration from file or create default."""
        if cls._instance is not None and config_path is None:
            return cls._instance

        config = ConfigModel()

        if config_path is None:
            config_path = config.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    yaml_content = f.read()
                config = ConfigModel.from_yaml(yaml_content)
                logger.info(f"Loaded configuration from {config_path}")
            except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load config from {config_path}: {e}")
                logger.warning("Using default configuration.")
        else:
            cls.save(config, config_path)
            logger.info(f"Created default configuration at {config_path}")

        cls._instance = config
        return config

    @classmethod
    def save(cls, config: ConfigModel, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = config.get_config_path()

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(config.to_yaml())
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")

    @classmethod
    def get(cls) -> ConfigModel:
        """Get the current configuration instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls, config_path: Optional[Path] = None) -> ConfigModel:
        """Reload configuration from file."""
        cls._instance = None
        return cls.load(config_path)

    @classmethod
    def reset(cls) -> None:
        """Forget the cached configuration (useful for testing)."""
        cls._instance = None


def get_config() -> ConfigModel:
    """Get the current configuration."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file."""
    return Config.load(config_path)


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    Config.save(config, config_path)
