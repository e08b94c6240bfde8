"""Configuration loading utilities."""

from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(__file__).parent


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML config file.

    Relative names resolve against the config/ directory; absolute paths are
    read as given so deployments can point at their own rate tables.
    """
    config_path = Path(filename)
    if not config_path.is_absolute():
        config_path = CONFIG_DIR / config_path
    with open(config_path) as f:
        return yaml.safe_load(f) or {}
