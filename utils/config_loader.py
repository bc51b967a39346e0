# ============================================================
# FILE: utils/config_loader.py
# ============================================================

import yaml
from pathlib import Path
from typing import Dict, Any

from utils.exceptions import ConfigurationError

class Config:
    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self.config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")
        
        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {self.config_path}: {e}", cause=e)
        
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config root must be a mapping: {self.config_path}")
        return data
    
    def get(self, key: str, default=None):
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, default)
            else:
                return default
        return value
    
    def reload(self):
        self.config = self._load_config()
