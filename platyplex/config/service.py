"""Centralized configuration service with caching and singleton pattern.

Provides a single point of access to the configuration sections so that the
YAML file is parsed once per process. Core components never reach into the
service themselves; commands read it once and hand explicit settings down.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, Optional

from platyplex.config.config_loader import ConfigLoader


class ConfigService:
    """Thread-safe singleton configuration service with lazy loading."""

    _instance: Optional[ConfigService] = None
    _lock = threading.Lock()

    def __new__(cls) -> ConfigService:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        # Prevent re-initialization
        if self._initialized:
            return

        self._loader: Optional[ConfigLoader] = None
        self._initialized = True

    def load(self, config_path: Optional[Path] = None) -> None:
        """Load the configuration file.

        Args:
            config_path: Optional path to platyplex_config.yaml. If None, uses default.
        """
        loader = ConfigLoader(config_path)
        loader.load_configs()
        with self._lock:
            self._loader = loader

    def _ensure_loaded(self) -> ConfigLoader:
        if self._loader is None:
            self.load()
        return self._loader

    @property
    def loader(self) -> ConfigLoader:
        return self._ensure_loaded()

    def get_general_config(self) -> Dict[str, Any]:
        return self._ensure_loaded().get_general_config()

    def get_ledger_config(self) -> Dict[str, Any]:
        return self._ensure_loaded().get_ledger_config()

    def get_retry_config(self) -> Dict[str, Any]:
        return self._ensure_loaded().get_retry_config()

    def get_upload_config(self) -> Dict[str, Any]:
        return self._ensure_loaded().get_upload_config()

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Force reload of the configuration."""
        self.load(config_path)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        with cls._lock:
            cls._instance = None


def get_config_service() -> ConfigService:
    """Get the singleton ConfigService instance."""
    return ConfigService()
