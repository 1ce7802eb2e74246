"""
PageStore Configuration — Load and validate pagestore.yaml at startup.

Usage:
    from pagestore.engine.config import load_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from pagestore.engine.errors import PageStoreConfigError

CONFIG_FILENAME = "pagestore.yaml"
STORAGE_DIR_ENV = "PAGESTORE_STORAGE_DIR"


# ---------------------------------------------------------------------------
# Pydantic models for pagestore.yaml
# ---------------------------------------------------------------------------

class StorageConfig(BaseModel):
    directory: str = "data/pages"
    file_mode: int = 0o640
    max_id_length: int = 100
    temp_suffix: str = ".tmp"

    @field_validator("file_mode", mode="before")
    @classmethod
    def parse_file_mode(cls, v: Union[str, int]) -> int:
        # YAML reads 0640 as a decimal int, so modes are given as strings
        if isinstance(v, str):
            try:
                v = int(v, 8)
            except ValueError:
                raise ValueError(f"file_mode must be an octal string, got '{v}'")
        if not 0 <= v <= 0o777:
            raise ValueError(f"file_mode out of range: {oct(v)}")
        return v

    @field_validator("max_id_length")
    @classmethod
    def validate_max_id_length(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_id_length must be positive")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".pagestore/logs"
    event_log: bool = True
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return v


class BackupConfig(BaseModel):
    directory: str = "data/backups"


class PageStoreConfig(BaseModel):
    """Root model for pagestore.yaml."""
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    backup: BackupConfig = BackupConfig()


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

def _find_project_root() -> Path:
    """Find the project root by looking for pagestore.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    storage_dir = os.environ.get(STORAGE_DIR_ENV)
    if storage_dir:
        raw.setdefault("storage", {})
        raw["storage"]["directory"] = storage_dir
    return raw


def load_config(config_path: Optional[str] = None) -> PageStoreConfig:
    """
    Load and validate pagestore.yaml.

    Args:
        config_path: Explicit path to pagestore.yaml. If None, auto-discovers.

    Returns:
        Validated PageStoreConfig instance. Relative storage, log and backup
        directories are resolved against the config file's directory.
    """
    if config_path is None:
        root = _find_project_root()
        config_path = str(root / CONFIG_FILENAME)

    path = Path(config_path)
    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PageStoreConfigError(f"Invalid YAML in {path}: {e}", config_path=str(path))
        if not isinstance(raw, dict):
            raise PageStoreConfigError(
                f"{path} must contain a mapping at the top level",
                config_path=str(path),
            )

    raw = _apply_env_overrides(raw)

    try:
        config = PageStoreConfig(**raw)
    except ValidationError as e:
        raise PageStoreConfigError(f"Invalid configuration in {path}: {e}", config_path=str(path))

    base = path.parent.resolve()
    config.storage.directory = str(base / config.storage.directory)
    config.logging.directory = str(base / config.logging.directory)
    config.backup.directory = str(base / config.backup.directory)

    return config
