"""Build the ledger collaborators for one command run.

All HTTP adapters share a single ``aiohttp.ClientSession`` owned by the
:class:`LedgerContext`; leaving the context closes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from platyplex.config.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    LEDGER_ENVIRONMENTS,
)
from platyplex.core.errors import ValidationError
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import ContentStore, LedgerClient, PricingOracle, WalletFunder
from platyplex.ledger.http_client import (
    HttpContentStore,
    HttpLedgerClient,
    HttpPricingOracle,
    HttpWalletFunder,
    JsonRpcTransport,
)

logger = setup_logger(__name__)


def resolve_rpc_url(ledger_cfg: Dict[str, Any]) -> str:
    """An explicit ``rpc_url`` wins; otherwise the URL of ``env``."""
    rpc_url = ledger_cfg.get("rpc_url")
    if rpc_url:
        return str(rpc_url)
    env = ledger_cfg.get("env") or DEFAULT_ENVIRONMENT
    if env not in LEDGER_ENVIRONMENTS:
        raise ValidationError(
            f"Unknown ledger environment '{env}' (expected one of: {', '.join(LEDGER_ENVIRONMENTS)})"
        )
    return LEDGER_ENVIRONMENTS[env]


@dataclass
class LedgerContext:
    """The collaborators a command needs, plus the session they share."""
    ledger: LedgerClient
    pricing: PricingOracle
    funder: WalletFunder
    content: ContentStore
    session: Optional[aiohttp.ClientSession] = None

    async def close(self) -> None:
        await self.ledger.close()
        if self.session is not None and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "LedgerContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def create_ledger_context(
    ledger_cfg: Dict[str, Any],
    upload_cfg: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
) -> LedgerContext:
    """Create HTTP collaborators from config sections plus CLI overrides.

    Must be called from inside a running event loop (the session binds to it).

    Raises:
        ValidationError: No signer is configured or the environment is unknown.
    """
    overrides = overrides or {}
    merged = dict(ledger_cfg)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    if overrides.get("env") and not overrides.get("rpc_url"):
        # --env on the command line replaces a configured rpc_url
        merged["rpc_url"] = None

    signer = merged.get("signer")
    if not signer:
        raise ValidationError(
            "No signer configured. Set ledger.signer in the config or pass --signer"
        )
    rpc_url = resolve_rpc_url(merged)
    upload_url = upload_cfg.get("upload_url") or rpc_url

    timeout_s = float(merged.get("request_timeout_seconds") or DEFAULT_REQUEST_TIMEOUT_SECONDS)
    session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout_s))
    transport = JsonRpcTransport(session, rpc_url)
    logger.info("Using ledger RPC %s (signer %s)", rpc_url, signer)

    return LedgerContext(
        ledger=HttpLedgerClient(transport, signer),
        pricing=HttpPricingOracle(transport),
        funder=HttpWalletFunder(transport, signer),
        content=HttpContentStore(session, upload_url, signer),
        session=session,
    )
