"""Configuration loading.

Settings are read from a JSON file and merged over ``DEFAULT_CONFIG``. The
file is looked up in this order: explicit path, ``$TOPOBUS_CONFIG``,
``config.json`` in the working directory.
"""
import copy
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from topobus.utils.config_validator import ConfigValidationError, ConfigValidator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TOPOBUS_CONFIG"

DEFAULT_CONFIG = {
    "general": {
        "default_project_name": "TopoBus Project",
        "preferred_language": None,
        "group_address_style": "ThreeLevel",
        "scan_nested_archives": True,
    },
    "graph": {
        "unknown_bucket": "unknown",
    },
}


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_path(path: Optional[str]) -> Optional[Path]:
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    local = Path('config.json')
    if local.exists():
        return local
    return None


def load_config(path: Optional[str] = None) -> Dict:
    """
    Load and validate the configuration.

    Args:
        path: Optional explicit path to a JSON config file

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If an explicitly named file does not exist
        ConfigValidationError: If the merged configuration is invalid
    """
    config_path = _resolve_config_path(path)
    user_config = {}
    if config_path is not None:
        logger.debug(f"Loading configuration from {config_path}")
        with open(config_path, encoding='utf8') as f:
            user_config = json.load(f)
        if not isinstance(user_config, dict):
            raise ConfigValidationError(f"Configuration must be a JSON object: {config_path}")

    config = _deep_merge(DEFAULT_CONFIG, user_config)
    ConfigValidator().validate(config)
    return config


def default_config() -> Dict:
    """Return a fresh copy of the built-in defaults."""
    return copy.deepcopy(DEFAULT_CONFIG)


def resolve_config(config: Optional[Dict] = None) -> Dict:
    """
    Merge a caller-supplied configuration over the defaults and validate it.

    Args:
        config: Partial configuration dictionary, or None for the defaults

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigValidationError: If the merged configuration is invalid
    """
    if config is None:
        return default_config()
    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration must be a JSON object")
    merged = _deep_merge(DEFAULT_CONFIG, config)
    ConfigValidator().validate(merged)
    return merged
