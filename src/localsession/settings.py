"""Configuration for localsession.

Loads configuration from:
1. localsession.yaml (``session:`` block with gc options)
2. Environment variables (.env)
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from localsession.options import DEFAULT_MAXLIFETIME, DEFAULT_PROBABILITY

CONFIG_FILENAME = "localsession.yaml"


@dataclass(frozen=True)
class SessionConfig:
    """Session store configuration."""
    gc: Any = False
    probability: Any = DEFAULT_PROBABILITY
    maxlifetime: Any = DEFAULT_MAXLIFETIME  # ms past _expire before a sweep may drop a record
    debug: bool = False  # Route sweep messages to the localsession.gc logger
    log_level: str = "INFO"


@dataclass(frozen=True)
class Settings:
    """Complete localsession configuration."""
    project_root: Path
    config_path: Path | None
    session: SessionConfig


def _find_project_root() -> Path:
    """Find project root by looking for localsession.yaml or a .env file."""
    current = Path.cwd().resolve()

    for path in [current] + list(current.parents):
        if (path / CONFIG_FILENAME).exists():
            return path
        if (path / ".env").exists():
            return path

    # Fallback to current directory
    return current


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load and parse YAML config file."""
    if not path.exists():
        return {}

    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings() -> Settings:
    """Load localsession configuration.

    Values from the YAML file are passed through untouched; type and range
    checks happen when the store is built so every source gets the same
    error messages.
    """
    project_root = _find_project_root()

    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    config_file = project_root / CONFIG_FILENAME
    config = _load_yaml_config(config_file)
    if not isinstance(config, dict):
        raise ValueError(f"{CONFIG_FILENAME} must contain a mapping")
    session_config = config.get("session") or {}
    if not isinstance(session_config, dict):
        raise ValueError(f"{CONFIG_FILENAME}: session must be a mapping")

    session = SessionConfig(
        gc=session_config.get("gc", False),
        probability=session_config.get("probability", DEFAULT_PROBABILITY),
        maxlifetime=session_config.get("maxlifetime", DEFAULT_MAXLIFETIME),
        debug=bool(session_config.get("debug", False)),
        log_level=str(session_config.get("log_level", "INFO")).upper(),
    )

    return Settings(
        project_root=project_root,
        config_path=config_file if config_file.exists() else None,
        session=session,
    )
