"""
Configuration Manager - Backend settings stored as JSON

Lookup order for the settings directory:
    1. BIOCOPILOT_CONFIG_DIR
    2. ~/.biocopilot
    3. <tmp>/biocopilot when the above is not writable
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from services.logger import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "config.json"


def _resolve_config_file() -> Path:
    config_dir = Path(os.environ.get("BIOCOPILOT_CONFIG_DIR") or os.path.expanduser("~/.biocopilot"))
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir / CONFIG_FILENAME
    except OSError as e:
        logger.warning("Cannot write to %s: %s", config_dir, e)

    tmp_dir = Path(tempfile.gettempdir()) / "biocopilot"
    tmp_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Using temporary config path: %s", tmp_dir / CONFIG_FILENAME)
    return tmp_dir / CONFIG_FILENAME


def default_config() -> dict[str, Any]:
    return {
        "diff": {
            "lookahead": 5,
            "contextLines": 3,
        },
        "semanticScholar": {
            "apiKey": "",
            "baseUrl": "https://api.semanticscholar.org/graph/v1",
            "rateLimitDelay": 1.1,  # public API allows 1 request/sec
            "maxRetries": 3,
            "initialRetryDelay": 2.0,
            "timeout": 30,
        },
        "server": {"host": "0.0.0.0", "port": 8000},
        "logLevel": "INFO",
    }


class ConfigManager:
    """Process-wide settings, read from and written back to a JSON file"""

    _instance = None

    def __init__(self, config_file: Path | None = None):
        self.config_file = config_file or _resolve_config_file()
        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Drop the singleton so the next access re-reads the environment"""
        cls._instance = None

    def _load_config(self) -> dict[str, Any]:
        """Stored values layered over the defaults, one level deep"""
        config = default_config()
        if not self.config_file.exists():
            return config

        try:
            stored = json.loads(self.config_file.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error loading config from %s: %s", self.config_file, e)
            return config

        for key, value in stored.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value
        return config

    def get_config(self) -> dict[str, Any]:
        # Another process may have edited the file
        self._config = self._load_config()
        return self._config.copy()

    def get_scholar_config(self) -> dict[str, Any]:
        """Semantic Scholar settings; SEMANTIC_SCHOLAR_API_KEY overrides the stored key"""
        scholar = dict(self.get_config().get("semanticScholar", {}))
        env_key = os.environ.get("SEMANTIC_SCHOLAR_API_KEY")
        if env_key:
            scholar["apiKey"] = env_key
        return scholar

    def save_config(self, config: dict[str, Any]):
        self._config.update(config)
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.config_file.write_text(json.dumps(self._config, indent=2))
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")
        logger.info("Configuration saved to %s", self.config_file)

    def update_section(self, section: str, values: dict[str, Any]) -> dict[str, Any]:
        """Merge ``values`` into one settings section and persist it"""
        merged = {**self.get_config().get(section, {}), **values}
        self.save_config({section: merged})
        return merged

    def get(self, key: str, default=None):
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        self.save_config({key: value})
