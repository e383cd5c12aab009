"""Load curve configs from JSON, TOML or YAML files."""

from __future__ import annotations

import importlib.util
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from amm_core.models import Config
from utils.config_validator import (
    ConfigValidationError,
    validate_config,
    validate_required_fields,
)

LOGGER = logging.getLogger("bonding_amm.config")

SUPPORTED_FORMATS = (".json", ".toml", ".yaml", ".yml")


def load_config(config_path: str | Path) -> dict[str, Any]:
    """Read a config file into a plain mapping."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}. Ensure the path is correct and readable."
        )
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        supported = ", ".join(SUPPORTED_FORMATS)
        raise ConfigValidationError(
            f"Unsupported config format '{suffix}'. Supported formats: {supported}."
        )
    try:
        if suffix == ".json":
            data = json.loads(config_path.read_text(encoding="utf-8"))
        elif suffix == ".toml":
            data = load_toml(config_path)
        else:
            data = load_yaml(config_path)
    except json.JSONDecodeError as exc:
        raise ConfigValidationError(
            f"Invalid JSON in config file {config_path}: {exc}. Validate the file format."
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigValidationError(
            f"Invalid YAML in config file {config_path}: {exc}"
        ) from exc
    except ValueError as exc:
        # tomllib.TOMLDecodeError subclasses ValueError
        if isinstance(exc, ConfigValidationError):
            raise
        raise ConfigValidationError(
            f"Invalid config file {config_path}: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Config file {config_path} must contain a mapping at the top level."
        )
    return data


def load_toml(config_path: Path) -> dict[str, Any]:
    if sys.version_info >= (3, 11):
        import tomllib

        return tomllib.loads(config_path.read_text(encoding="utf-8"))
    if importlib.util.find_spec("tomli") is None:
        raise RuntimeError(
            "TOML config parsing requires Python 3.11+ or the 'tomli' package. Install tomli or use JSON/YAML."
        )
    import tomli

    return tomli.loads(config_path.read_text(encoding="utf-8"))


def load_yaml(config_path: Path) -> dict[str, Any]:
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"YAML config file {config_path} must contain a mapping at the top level."
        )
    return data


def build_config(mapping: dict[str, Any]) -> Config:
    """Validate a raw mapping and return a config ready for use.

    Shape problems raise ``ConfigValidationError``; a well-formed config that
    breaks an invariant raises the matching ``AmmError``.
    """
    validate_required_fields(mapping)
    try:
        config = Config.model_validate(mapping)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid config: {exc}") from exc
    validate_config(config)
    LOGGER.info(
        "Loaded %s config: fee=%s quote_threshold=%s",
        config.curve_model.kind,
        config.fee_basis_points,
        config.migration_quote_threshold,
    )
    return config


def config_from_file(config_path: str | Path) -> Config:
    return build_config(load_config(config_path))
