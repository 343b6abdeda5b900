# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: YAML on disk to a validated, frozen RelAttnConfig.

  1. Read the file
  2. Parse as YAML into a plain dict
  3. Validate with pydantic
  4. Return the frozen config

Any failure stops immediately with a ConfigError subclass; there are no
fallback defaults for a broken file.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from relattn.config.exceptions import ConfigLoadError, ConfigValidationError
from relattn.config.schema import RelAttnConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed mapping.

    Raises:
        ConfigLoadError: If the file is missing, unreadable, not valid YAML,
            or does not contain a mapping at the top level.
    """
    if not config_path.is_file():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping, got {type(parsed).__name__}"
        )
    return parsed


def parse_config(data: dict[str, Any], source: str = "<dict>") -> RelAttnConfig:
    """
    Validate an already-parsed mapping.

    Raises:
        ConfigValidationError: On any schema violation.
    """
    try:
        return RelAttnConfig.model_validate(data)
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {source}:\n{err}") from err


def load_config(config_path: Path) -> RelAttnConfig:
    """
    Load, validate and freeze a config file.

    Args:
        config_path: Path to a YAML config file.

    Returns:
        A validated, frozen RelAttnConfig.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations.
    """
    return parse_config(_read_yaml_file(config_path), source=str(config_path))
