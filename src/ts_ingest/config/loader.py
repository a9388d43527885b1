"""
YAML configuration loader.

Loads import settings from a YAML file, falling back to environment
variables when no file is given.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .settings import ImportSettings

logger = logging.getLogger(__name__)


def read_config_file(file_path: Union[str, Path]) -> dict[str, Any]:
    """
    Read a YAML configuration file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Parsed configuration as dictionary (empty dict for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        RuntimeError: If the file is not valid YAML or not a mapping
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RuntimeError(f"Invalid YAML in {file_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise RuntimeError(
            f"Config file {file_path} must contain a mapping, "
            f"got {type(config).__name__}"
        )
    return config


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    fallback_to_env: bool = True,
) -> ImportSettings:
    """
    Load import settings from a YAML file or environment variables.

    Priority:
    1. YAML file (if provided and exists)
    2. Environment variables (if fallback_to_env=True)
    3. Defaults

    Args:
        config_path: Path to the YAML config file
        fallback_to_env: Whether to fall back to environment variables

    Returns:
        ImportSettings instance
    """
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            return ImportSettings.from_dict(read_config_file(path))
        if not fallback_to_env:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.warning(
            f"Config file {config_path} not found, falling back to environment"
        )

    if fallback_to_env:
        return ImportSettings.from_env()
    return ImportSettings()
