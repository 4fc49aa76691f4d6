"""Explicit per-command settings.

A :class:`BatchSettings` is built once per command from the loaded config
sections plus CLI overrides and handed to the operation. Nothing below the
operation layer reads configuration on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

from platyplex.config.constants import DEFAULT_CACHE_SUFFIX, DEFAULT_GATEWAY_URL
from platyplex.core.cache_store import default_cache_path
from platyplex.core.models import RetryPolicy


@dataclass(frozen=True)
class BatchSettings:
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    cache_path: Optional[Path] = None
    use_cache: bool = True
    json_output: bool = False
    append_path: Optional[Path] = None
    gateway_url: str = DEFAULT_GATEWAY_URL
    owner_address: Optional[str] = None
    cache_suffix: str = DEFAULT_CACHE_SUFFIX

    @classmethod
    def from_config(
        cls,
        general_cfg: Dict[str, Any],
        ledger_cfg: Dict[str, Any],
        retry_cfg: Dict[str, Any],
        upload_cfg: Dict[str, Any],
        args: Any = None,
    ) -> "BatchSettings":
        """Combine config sections with parsed CLI arguments.

        CLI flags win over config values: ``--no-retry`` forces a single
        attempt, ``--retry-cache`` overrides the derived cache path and
        ``--no-cache`` disables the cache file entirely.
        """
        policy = RetryPolicy.from_config(retry_cfg)
        if args is not None and getattr(args, "no_retry", False):
            policy = replace(policy, enabled=False)

        retry_cache = getattr(args, "retry_cache", None) if args is not None else None
        append = getattr(args, "append", None) if args is not None else None
        return cls(
            retry_policy=policy,
            cache_path=Path(retry_cache) if retry_cache else None,
            use_cache=not bool(getattr(args, "no_cache", False)),
            json_output=bool(getattr(args, "json", False)),
            append_path=Path(append) if append else None,
            gateway_url=str(upload_cfg.get("gateway_url") or DEFAULT_GATEWAY_URL).rstrip("/"),
            owner_address=ledger_cfg.get("owner_address") or None,
            cache_suffix=str(general_cfg.get("cache_suffix") or DEFAULT_CACHE_SUFFIX),
        )

    def resolve_cache_path(self, input_path: Optional[Path] = None) -> Optional[Path]:
        """Explicit override, else derived from the batch input file, else memory-only."""
        if not self.use_cache:
            return None
        if self.cache_path is not None:
            return self.cache_path
        if input_path is not None:
            return default_cache_path(Path(input_path), self.cache_suffix)
        return None
