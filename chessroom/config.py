import copy
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger

CONFIG_ENV_VAR = "CHESSROOM_CONFIG"
DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULT_CONFIG: Dict = {
    'server': {'host': '0.0.0.0', 'port': 8000},
    'game': {'expire_seconds': 60 * 60 * 12, 'max_name_length': 32},
    'chat': {'max_message_length': 255},
    'logging': {'level': 'INFO', 'file': 'logs/chessroom.log'}
}


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict:
    """
    Load configuration from a YAML file on top of the defaults.

    Args:
        config_path: Path to the YAML file. Falls back to the CHESSROOM_CONFIG
            environment variable, then to config/config.yaml

    Returns:
        Configuration dictionary
    """
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))
    if not path.exists():
        logger.warning(f"Configuration file not found at {path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path) as f:
        loaded = yaml.safe_load(f) or {}
    logger.info(f"Configuration loaded from {path}")
    return _merge(DEFAULT_CONFIG, loaded)
