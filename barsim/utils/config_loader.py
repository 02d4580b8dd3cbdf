# barsim/utils/config_loader.py
"""
Configuration loading utilities with environment variable support.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..models.config import AppConfig


DEFAULT_CONFIG_PATH = "configs/config.yaml"


def substitute_env_vars(config_str: str) -> str:
    """
    Substitute environment variables in config string.

    Args:
        config_str: Configuration string with ${VAR_NAME} placeholders

    Returns:
        Configuration string with environment variables substituted
    """
    pattern = r'\$\{([^}]+)\}'

    def replacer(match):
        var_name = match.group(1)
        # VAR_NAME:default_value
        if ':' in var_name:
            var_name, default_value = var_name.split(':', 1)
            return os.getenv(var_name, default_value)
        return os.getenv(var_name, match.group(0))  # Keep original if not found

    return re.sub(pattern, replacer, config_str)


def _read_yaml_mapping(config_path: str) -> Dict[str, Any]:
    """Read YAML file into a mapping with environment substitution."""
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r', encoding='utf-8') as f:
        config_content = f.read()

    config_data = yaml.safe_load(substitute_env_vars(config_content))

    if not isinstance(config_data, dict):
        raise ValueError("Configuration file must contain a YAML mapping")

    return config_data


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries where override wins."""
    merged = dict(base)
    for key, value in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(value, dict)
        ):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AppConfig:
    """
    Load configuration from YAML file with environment variable substitution.

    Args:
        config_path: Path to configuration file (DEFAULT_CONFIG_PATH when omitted)
        overrides: Nested mapping merged over the file contents

    Returns:
        Parsed configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If configuration is invalid
    """
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        config_data = _read_yaml_mapping(path)
        if overrides:
            config_data = _merge_dicts(config_data, overrides)

        return AppConfig(**config_data)

    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in configuration file: {e}")
    except FileNotFoundError:
        raise
    except Exception as e:
        raise ValueError(f"Error loading configuration: {e}")


def save_config(config: AppConfig, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save
        config_path: Destination path
    """
    path_obj = Path(config_path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(path_obj, 'w', encoding='utf-8') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)


def get_default_config() -> AppConfig:
    """
    Get default configuration for development/testing.

    Returns:
        Default configuration object
    """
    default_config = {
        "data": {
            "symbols": ["AAPL"],
            "frequency": "1d",
            "start": "2013-01-01",
            "end": "2013-12-31",
            "calendar": "weekdays",
            "use_synthetic": True
        },
        "backtest": {
            "initial_cash": 100000.0,
            "allow_margin": False,
            "commission_per_share": 0.0,
            "commission_per_trade": 0.0,
            "seed": 42
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None
        }
    }

    return AppConfig(**default_config)
