"""Configuration for dataobject."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class DataObjectConfig:
    """Configuration for storage binding, paging defaults and logging."""

    db_path: str = "dataobject.db"
    storage_uri: str | None = None
    sqlite_timeout_s: float = 5.0
    default_page_size: int = 20
    log_level: str = "WARNING"
    log_sql: bool = False


def load_config(path: str | Path) -> DataObjectConfig:
    """Load a DataObjectConfig from a YAML mapping."""
    with open(path, encoding="utf-8") as fh:
        raw: Any = yaml.safe_load(fh)
    if raw is None:
        return DataObjectConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(raw).__name__}")

    known = {f.name for f in fields(DataObjectConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {unknown}")
    return DataObjectConfig(**raw)


def configure_logging(config: DataObjectConfig) -> None:
    """Apply config.log_level to the package logger, adding a handler once."""
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {config.log_level}")

    pkg_logger = logging.getLogger("dataobject")
    pkg_logger.setLevel(level)
    if not pkg_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)-8s %(name)s - %(message)s"))
        pkg_logger.addHandler(handler)
