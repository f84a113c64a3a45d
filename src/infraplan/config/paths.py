"""Config path resolution for the layered config system."""

import os
from pathlib import Path
from typing import Optional

CONFIG_DIR_NAME = ".infraplan"
CONFIG_FILE_NAME = "config.yaml"


def get_defaults_path() -> Path:
    """Get packaged defaults: infraplan/config/defaults.yaml"""
    return Path(__file__).parent / "defaults.yaml"


def get_user_config_dir() -> Path:
    """User config directory: $INFRAPLAN_HOME if set, else ~/.infraplan"""
    override = os.environ.get("INFRAPLAN_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR_NAME


def get_user_config_path() -> Path:
    return get_user_config_dir() / CONFIG_FILE_NAME


def get_project_config_path() -> Optional[Path]:
    """Project config in the working directory, if present."""
    candidate = Path.cwd() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None
