"""
Configuration management for CryptoReg Pulse.

Handles loading and accessing configuration from YAML files and environment variables.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class Config:
    """Configuration manager for the CryptoReg Pulse pipeline."""

    # Default configuration values
    DEFAULTS: Dict[str, Any] = {
        "paths": {
            "base_dir": None,  # Set dynamically
            "data": "data",
            "events": "data/events.json",
            "history": "data/history.json",
            "logs": "logs",
        },
        "api": {
            "url": "https://cpw-tracker.p.rapidapi.com/",
            "host": "cpw-tracker.p.rapidapi.com",
            "key_env": "RAPIDAPI_KEY",
            "timeout": 30,
            "lookback_days": 7,
        },
        "queries": [
            {"entities": "cryptocurrency exchanges", "topic": "regulatory action"},
            {"entities": "cryptocurrency exchanges", "topic": "sanctions"},
            {"entities": "DeFi protocols", "topic": "regulatory action"},
            {"entities": "financial regulators", "topic": "cryptocurrency enforcement"},
        ],
        "history": {
            "max_weeks": 52,
        },
        "analysis": {
            "enabled": True,
            "provider": "github",
            "model": "gpt-4o-mini",
            "anthropic_model": "claude-3-5-haiku-latest",
            "endpoint": "https://models.inference.ai.azure.com/chat/completions",
            "token_envs": ["GITHUB_TOKEN", "GH_TOKEN"],
            "max_events": 20,
            "temperature": 0.3,
            "max_tokens": 1000,
            "timeout": 60,
        },
        "classifier": {},
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file_enabled": True,
        },
    }

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}
    _base_dir: Optional[Path] = None

    def __new__(cls) -> "Config":
        """Singleton pattern to ensure single configuration instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Initialize configuration if not already done."""
        if self._initialized:
            return
        self._initialized = True
        self._config = copy.deepcopy(self.DEFAULTS)
        self._base_dir = self._find_base_dir()
        self._load_config_file()

    def _find_base_dir(self) -> Path:
        """Find the base directory of the CryptoReg Pulse installation."""
        # Check environment variable first
        env_base = os.environ.get("CRYPTOREG_BASE_DIR")
        if env_base:
            return Path(env_base)

        # scripts/cryptoreg/config.py -> scripts/cryptoreg -> scripts -> base
        current_file = Path(__file__).resolve()
        return current_file.parent.parent.parent

    def _load_config_file(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_path = self._base_dir / "config" / "config.yaml"
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
                self._merge_config(file_config)

        self._config["paths"]["base_dir"] = str(self._base_dir)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        """Deep merge new configuration into existing configuration."""
        for key, value in new_config.items():
            if key in self._config and isinstance(self._config[key], dict) and isinstance(value, dict):
                self._config[key].update(value)
            else:
                self._config[key] = value

    @property
    def base_dir(self) -> Path:
        """Get the base directory path."""
        return self._base_dir

    @property
    def data_dir(self) -> Path:
        """Get the data directory holding the persisted artifacts."""
        return self._base_dir / self._config["paths"]["data"]

    @property
    def events_path(self) -> Path:
        """Get the event store file path."""
        return self._base_dir / self._config["paths"]["events"]

    @property
    def history_path(self) -> Path:
        """Get the weekly history file path."""
        return self._base_dir / self._config["paths"]["history"]

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self._base_dir / self._config["paths"]["logs"]

    @property
    def queries(self) -> List[Dict[str, str]]:
        """Get the configured entity/topic query pairs."""
        return self._config["queries"]

    @property
    def max_history_weeks(self) -> int:
        """Get the number of weekly snapshots retained."""
        return int(self._config["history"].get("max_weeks", 52))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.

        Supports dot notation for nested keys (e.g., 'api.timeout').
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def reload(self) -> None:
        """Reload configuration from file."""
        self._config = copy.deepcopy(self.DEFAULTS)
        self._load_config_file()


# Global configuration instance
config = Config()
