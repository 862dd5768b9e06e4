# PATH: config/__init__.py
"""
Configuration loading utilities for ARBSCOPE.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.exceptions import ConfigError


CONFIG_DIR = Path(__file__).parent
SCANNER_CONFIG_FILE = "scanner.yaml"


def load_yaml(filename: str, config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory (or an absolute path)
        config_dir: Directory to resolve filename against (default: this package)

    Returns:
        Parsed YAML as dict
    """
    filepath = Path(filename)
    if not filepath.is_absolute():
        filepath = (config_dir or CONFIG_DIR) / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}", details={"path": str(filepath)})

    if not isinstance(data, dict):
        raise ConfigError(
            f"Top level of {filepath} must be a mapping",
            details={"path": str(filepath)},
        )
    return data
