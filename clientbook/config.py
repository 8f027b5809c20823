"""
Configuration management for clientbook stores.

The configuration is stored as a TOML file in the store directory.
It names the data file and records the store's format version.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import tomli_w


CONFIG_FILENAME = "clientbook.toml"
CONFIG_VERSION = 1
DEFAULT_DATA_FILE = "clientbook.json"


@dataclass
class StoreConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    data_file: str = DEFAULT_DATA_FILE

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def data_path(self) -> Path:
        """Path to the JSON data file (relative names resolve inside the store)."""
        return self.path / self.data_file

    def exists(self) -> bool:
        return self.config_path.exists()


def get_default_store_path() -> Path:
    """Store directory: CLIENTBOOK_STORE_PATH if set, else ~/.clientbook."""
    env = os.environ.get("CLIENTBOOK_STORE_PATH")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".clientbook"


def load_config(store_path: Path) -> StoreConfig:
    """
    Load configuration from a store directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    store = data.get("store", {})
    version = store.get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    data_file = data.get("data", {}).get("file", DEFAULT_DATA_FILE)
    if not isinstance(data_file, str) or not data_file:
        raise ValueError(f"Invalid data file in {config_path}: {data_file!r}")

    return StoreConfig(
        path=store_path,
        version=version,
        created=store.get("created", ""),
        data_file=data_file,
    )


def save_config(config: StoreConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
        },
        "data": {
            "file": config.data_file,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path) -> StoreConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    if (store_path / CONFIG_FILENAME).exists():
        return load_config(store_path)
    config = StoreConfig(path=store_path)
    save_config(config)
    return config
