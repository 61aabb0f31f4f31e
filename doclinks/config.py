"""
Configuration for doclinks.

Loads and validates the engine configuration from a YAML file.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)

_ENV_VAR_RE = re.compile(r"\${([^}]+)}")


def substitute_env_vars(value: str) -> str:
    """Replace ``${VAR}`` placeholders with environment variables.

    Unset variables leave the placeholder untouched.
    """
    if not value or not isinstance(value, str):
        return value

    if "${" not in value or "}" not in value:
        return value

    for var in _ENV_VAR_RE.findall(value):
        if var in os.environ:
            value = value.replace(f"${{{var}}}", os.environ[var])
    return value


class LinkProcessingConfig(BaseModel):
    """Dataset layout consumed by the resolver and processor.

    Trusted as given: entries are not validated beyond their type.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    docs_folders: List[str] = Field(
        default_factory=list,
        alias="docsFolders",
        description="Top-level folders under dataset_root that count as in-corpus",
    )
    dataset_root: str = Field(
        ".",
        alias="datasetRoot",
        description="Directory under which all docs folders live",
    )
    exclusion_list: List[str] = Field(
        default_factory=list,
        alias="exclusionList",
        description="Literal href prefixes that are never touched",
    )


class LoggingConfig(BaseModel):
    level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    file: Optional[str] = Field(None, description="Main log file")
    error_log_file: Optional[str] = Field(
        None, description="Separate file for WARNING and above"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Optional[str]) -> str:
        if not value:
            return "INFO"
        level = str(value).strip().upper()
        if level == "WARN":
            level = "WARNING"
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class EngineConfig(BaseModel):
    dataset: LinkProcessingConfig = Field(default_factory=LinkProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    concurrency_limit: int = Field(
        10, ge=1, description="Files processed concurrently by the batch driver"
    )


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


def _substitute_all(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _substitute_all(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_substitute_all(v) for v in data]
    if isinstance(data, str):
        return substitute_env_vars(data)
    return data


def _resolve_path(value: str, base_dir: Path) -> str:
    path = Path(os.path.normpath(value.strip().strip('"').strip("'")))
    if not path.is_absolute():
        path = base_dir / path
    return os.path.normpath(str(path))


def _resolve_paths(config_data: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Anchor relative paths in the config at the config file's directory."""
    dataset = config_data.get("dataset")
    if isinstance(dataset, dict):
        for key in ("dataset_root", "datasetRoot"):
            if isinstance(dataset.get(key), str):
                dataset[key] = _resolve_path(dataset[key], base_dir)

    logging_cfg = config_data.get("logging")
    if isinstance(logging_cfg, dict):
        for key in ("file", "error_log_file"):
            if isinstance(logging_cfg.get(key), str):
                logging_cfg[key] = _resolve_path(logging_cfg[key], base_dir)

    return config_data


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load the engine configuration from a YAML file.

    Args:
        config_path: Path to the YAML file. ``None`` returns the defaults.

    Returns:
        Validated EngineConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: On invalid values.
    """
    if config_path is None:
        return EngineConfig()

    config_path = Path(config_path)
    base_dir = config_path.parent.resolve()

    try:
        data = _substitute_all(_load_yaml_dict(config_path))
        data = _resolve_paths(data, base_dir)
        return EngineConfig(**data)
    except FileNotFoundError:
        log.error("Config file not found: %s", config_path)
        raise
    except yaml.YAMLError as e:
        log.error("Could not parse YAML config %s: %s", config_path, e)
        raise
    except Exception as e:
        log.error("Could not load config %s: %s", config_path, e)
        raise
