# larrix/config.py
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

DEFAULT_CONFIG_FILE = "larrix.config.json"


class ProjectDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    manifest: Dict[str, Any] = Field(default_factory=dict)


def config_path(project_root: Path, config_file: str = DEFAULT_CONFIG_FILE) -> Path:
    return Path(project_root) / config_file

def validate_project(project_root: Path, config_file: str = DEFAULT_CONFIG_FILE) -> Path:
    path = config_path(project_root, config_file)
    if not path.is_file():
        raise ConfigurationError(
            f"This is not a valid Larrix project. '{config_file}' not found in {Path(project_root)}."
        )
    return path

def load_descriptor(project_root: Path, config_file: str = DEFAULT_CONFIG_FILE) -> ProjectDescriptor:
    path = validate_project(project_root, config_file)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read {config_file}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{config_file} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_file} must contain a JSON object")
    try:
        return ProjectDescriptor(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {config_file}: {e}") from e
