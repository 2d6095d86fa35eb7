# File: src/slashkeeper/config/node_config.py

import yaml
import os
from typing import Dict, Any

from ..params import SlashingParams
from ..utils.config import Config

class NodeConfig:
    """YAML-backed settings for a node embedding the slashing module"""

    def __init__(self, config_path: str = Config.DEFAULT_CONFIG_PATH):
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_path):
            return self._create_default_config()

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def _create_default_config(self) -> Dict[str, Any]:
        config = {
            "storage": {
                "db_path": Config.DEFAULT_DB_PATH
            },
            "slashing": SlashingParams().to_dict(),
            "api": {
                "host": Config.API_HOST,
                "port": Config.API_PORT
            },
            "monitoring": {
                "metrics_port": Config.METRICS_PORT,
                "log_dir": "logs",
                "log_level": "INFO"
            }
        }
        self._write(config)
        return config

    def _write(self, config: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.config_path, 'w') as f:
            yaml.safe_dump(config, f, sort_keys=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        try:
            keys = key.split('.')
            value = self.config
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def update(self, key: str, value: Any):
        """Update configuration value."""
        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            config = config.setdefault(k, {})
        config[keys[-1]] = value
        self._write(self.config)

    def slashing_params(self) -> SlashingParams:
        """Validated params from the slashing section"""
        return SlashingParams.from_dict(self.get("slashing", {}))
