"""Environment-driven configuration for Roadmap Skill."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

STORAGE_DIR_ENV = "ROADMAP_SKILL_STORAGE_DIR"
TEMPLATES_DIR_ENV = "ROADMAP_SKILL_TEMPLATES_DIR"
LOG_LEVEL_ENV = "ROADMAP_SKILL_LOG_LEVEL"
LOG_FILE_ENV = "ROADMAP_SKILL_LOG_FILE"

DEFAULT_STORAGE_DIR = Path.home() / ".roadmap-skill" / "projects"
BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "project_templates"


def get_storage_dir() -> Path:
    """Directory holding one JSON document per project."""
    env_dir = os.getenv(STORAGE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return DEFAULT_STORAGE_DIR


def get_templates_dir() -> Path:
    """Directory holding project template JSON files."""
    env_dir = os.getenv(TEMPLATES_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return BUNDLED_TEMPLATES_DIR


def get_log_level() -> Union[str, int]:
    level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(
            f"Environment variable {LOG_LEVEL_ENV} has unknown level '{level}'."
        )
    return level


def get_log_file() -> Optional[Path]:
    env_file = os.getenv(LOG_FILE_ENV)
    return Path(env_file).expanduser() if env_file else None
