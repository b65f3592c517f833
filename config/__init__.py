"""Configuration loading utilities."""

from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(__file__).parent


def load_yaml_config(filename: str | Path) -> dict[str, Any]:
    """Load a YAML config file.

    Relative names resolve against the config/ directory; absolute paths
    are read as given.
    """
    config_path = CONFIG_DIR / filename
    with open(config_path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {config_path}")
    return data
