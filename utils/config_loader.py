#!/usr/bin/env python3
"""
Configuration loading for Microhal.

Settings come from YAML files in a configs directory. The base file
`microhal.yaml` is read first, then `microhal_<environment>.yaml` is merged
over it when present. Anything neither file sets falls back to DEFAULT_CONFIG.
"""

import os
import copy
import yaml

from models.microhal.errors import ConfigurationError

DEFAULT_CONFIG = {
    "microhal": {
        "name": "microhal",
        "order": 5,
        "max_length": 100,
        "save_interval": 60.0,
        "data_dir": "data",
        "outbound_queue_size": 1,
    },
    "logging": {
        "level": "INFO",
        "log_file": None,
        "console_json": True,
    },
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def find_config_dir():
    """
    Locate the configs directory by walking up from this file.

    Returns:
        str or None: Path of the first `configs` directory found
    """
    current_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = current_dir

    # Stop at filesystem root
    while project_root != os.path.dirname(project_root):
        if os.path.isdir(os.path.join(project_root, "configs")):
            return os.path.join(project_root, "configs")
        project_root = os.path.dirname(project_root)
    return None


def _read_yaml(path, logger=None):
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error loading config from {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    if logger:
        logger.info("Config loaded", extra={"metrics": {"config_path": path}})
    return data


def _merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(environment="development", config_dir=None, logger=None):
    """
    Load and validate the Microhal configuration.

    Args:
        environment (str): Selects the `microhal_<environment>.yaml` override
        config_dir (str, optional): Directory holding the YAML files; found
                                    automatically when omitted
        logger: Logger instance for logging which files were read

    Returns:
        dict: Validated configuration with `microhal` and `logging` sections

    Raises:
        ConfigurationError: If a file cannot be parsed or a value is invalid
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_dir = config_dir or find_config_dir()

    if config_dir:
        default_config_path = os.path.join(config_dir, "microhal.yaml")
        env_config_path = os.path.join(config_dir, f"microhal_{environment}.yaml")

        for path in (default_config_path, env_config_path):
            if os.path.exists(path):
                config = _merge(config, _read_yaml(path, logger))
    elif logger:
        logger.warning("No configs directory found, using defaults", extra={
            "metrics": {"environment": environment}
        })

    validate_config(config)
    return config


def validate_config(config):
    """
    Check configuration values, raising ConfigurationError on the first bad one.
    """
    settings = config.get("microhal")
    if not isinstance(settings, dict):
        raise ConfigurationError("Config section 'microhal' must be a mapping")

    name = settings.get("name")
    if not isinstance(name, str) or not name or os.sep in name:
        raise ConfigurationError(f"Invalid instance name: {name!r}")

    for key in ("order", "max_length"):
        value = settings.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}")

    if settings["max_length"] < settings["order"]:
        raise ConfigurationError(
            f"max_length must be at least the order (got {settings['max_length']}, "
            f"expected at least {settings['order']})")

    save_interval = settings.get("save_interval")
    if isinstance(save_interval, bool) or not isinstance(save_interval, (int, float)) \
            or save_interval <= 0:
        raise ConfigurationError(
            f"'save_interval' must be a positive number, got {save_interval!r}")

    queue_size = settings.get("outbound_queue_size")
    if isinstance(queue_size, bool) or not isinstance(queue_size, int) or queue_size < 0:
        raise ConfigurationError(
            f"'outbound_queue_size' must be a non-negative integer, got {queue_size!r}")

    if not isinstance(settings.get("data_dir"), str):
        raise ConfigurationError("'data_dir' must be a path")

    logging_settings = config.get("logging")
    if not isinstance(logging_settings, dict):
        raise ConfigurationError("Config section 'logging' must be a mapping")
    level = str(logging_settings.get("level", "")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level: {logging_settings.get('level')!r}")
    logging_settings["level"] = level
