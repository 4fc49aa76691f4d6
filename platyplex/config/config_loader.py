# platyplex/config/config_loader.py

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from platyplex.config.constants import (
    DEFAULT_CACHE_SUFFIX,
    DEFAULT_ENVIRONMENT,
    DEFAULT_GATEWAY_URL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_RETRY_DELAY_MS,
    LEDGER_ENVIRONMENTS,
)


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _expand_path_str(p: str) -> Path:
    """
    Expand ~ and environment variables in a path string and return a Path.
    """
    return Path(os.path.expandvars(os.path.expanduser(p)))


def _compute_config_dir() -> Path:
    """
    Resolve PLATYPLEX_CONFIG_DIR robustly:
    - If absolute: use it.
    - If relative: resolve against PROJECT_ROOT.
    - If unset: default to PROJECT_ROOT/config.
    """
    raw = os.environ.get("PLATYPLEX_CONFIG_DIR")
    if raw:
        expanded = _expand_path_str(raw)
        return (expanded if expanded.is_absolute()
                else (PROJECT_ROOT / expanded)).resolve()
    return (PROJECT_ROOT / "config").resolve()


CONFIG_DIR = _compute_config_dir()
DEFAULT_CONFIG_PATH = CONFIG_DIR / "platyplex_config.yaml"

# Defaults merged underneath whatever the YAML file provides
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "general": {
        "logs_dir": "logs",
        "cache_suffix": DEFAULT_CACHE_SUFFIX,
    },
    "ledger": {
        "env": DEFAULT_ENVIRONMENT,
        "rpc_url": None,
        "signer": None,
        "owner_address": None,
        "request_timeout_seconds": DEFAULT_REQUEST_TIMEOUT_SECONDS,
    },
    "retry": {
        "enabled": True,
        "max_attempts": DEFAULT_MAX_ATTEMPTS,
        "delay_ms": DEFAULT_RETRY_DELAY_MS,
        "attempt_timeout_seconds": None,
    },
    "upload": {
        "upload_url": None,
        "gateway_url": DEFAULT_GATEWAY_URL,
    },
}


def _split_key(name: str) -> Tuple[str, ...]:
    parts = tuple(p for p in name.split(".") if p)
    if not parts:
        raise KeyError("Config name must not be empty")
    return parts


def _coerce_scalar(value: str) -> Any:
    """Parse a CLI-supplied value the same way YAML would (ints, bools, null)."""
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


class ConfigLoader:
    """
    Loads the YAML configuration file and exposes normalized sections.

    The config path is always explicit (or the project-level default); the
    loader never creates files or directories on its own.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._raw: Dict[str, Any] = {}
        self._merged: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

    @staticmethod
    def _load_yaml_file(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Missing configuration file: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"YAML parsing error in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root in {path} must be a mapping")
        return data

    def load_configs(self) -> None:
        """
        Load YAML configuration into memory and merge it over the defaults.
        """
        self._raw = self._load_yaml_file(self.config_path)
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in self._raw.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        self._merged = self._normalize(merged)

    # -------- Section accessors --------

    def get_general_config(self) -> Dict[str, Any]:
        return dict(self._merged.get("general", {}))

    def get_ledger_config(self) -> Dict[str, Any]:
        return dict(self._merged.get("ledger", {}))

    def get_retry_config(self) -> Dict[str, Any]:
        return dict(self._merged.get("retry", {}))

    def get_upload_config(self) -> Dict[str, Any]:
        return dict(self._merged.get("upload", {}))

    # -------- Raw key access (config get/set/list) --------

    def list_values(self) -> List[Tuple[str, Any]]:
        """Return ``(dotted_name, value)`` pairs for every leaf in the raw file."""
        out: List[Tuple[str, Any]] = []

        def _walk(prefix: str, node: Any) -> None:
            if isinstance(node, dict):
                for k in sorted(node):
                    _walk(f"{prefix}.{k}" if prefix else str(k), node[k])
            else:
                out.append((prefix, node))

        _walk("", self._raw)
        return out

    def get_value(self, name: str) -> Any:
        """Look up a dotted key (``ledger.rpc_url``) in the merged configuration."""
        node: Any = self._merged
        for part in _split_key(name):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(name)
            node = node[part]
        return node

    def set_value(self, name: str, value: str) -> Any:
        """Set a dotted key in the raw file contents; returns the previous value."""
        parts = _split_key(name)
        node = self._raw
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        previous = node.get(parts[-1])
        node[parts[-1]] = _coerce_scalar(value)
        return previous

    def save(self) -> None:
        """Write the raw configuration back to ``config_path``."""
        with self.config_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self._raw, f, sort_keys=False, default_flow_style=False)

    # -------- Internal helpers --------

    @staticmethod
    def _normalize(cfg: Dict[str, Any]) -> Dict[str, Any]:
        general = cfg["general"]
        logs_dir_raw = general.get("logs_dir")
        if logs_dir_raw:
            logs_path = _expand_path_str(str(logs_dir_raw))
            general["logs_dir"] = str(
                logs_path.resolve()
                if logs_path.is_absolute()
                else (PROJECT_ROOT / logs_path).resolve()
            )

        ledger = cfg["ledger"]
        env = ledger.get("env") or DEFAULT_ENVIRONMENT
        if env not in LEDGER_ENVIRONMENTS:
            raise ValueError(
                f"Unknown ledger env {env!r}; expected one of {sorted(LEDGER_ENVIRONMENTS)}"
            )
        ledger["env"] = env

        retry = cfg["retry"]
        try:
            retry["max_attempts"] = max(1, int(retry.get("max_attempts", DEFAULT_MAX_ATTEMPTS)))
            retry["delay_ms"] = max(0, int(retry.get("delay_ms", DEFAULT_RETRY_DELAY_MS)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid retry configuration: {e}") from e
        retry["enabled"] = bool(retry.get("enabled", True))
        return cfg
