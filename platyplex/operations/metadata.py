"""Update on-ledger metadata for every asset a selector resolves to."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from platyplex.core.batch_input import is_url
from platyplex.core.errors import ExhaustedRetries, FatalError, ValidationError
from platyplex.core.models import BatchResult, OperationItem
from platyplex.core.retry import RetrySubmitter
from platyplex.core.selectors import SelectorKind, TargetSelector
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import LedgerClient
from platyplex.operations.common import run_batch, submit_ledger_operation
from platyplex.ui.prompts import print_warning

logger = setup_logger(__name__)


def build_changes(
    uri: Optional[str] = None, name: Optional[str] = None, symbol: Optional[str] = None
) -> Dict[str, str]:
    """Collect the requested field changes.

    Raises:
        ValidationError: Nothing to change, or ``uri`` is not a URL.
    """
    changes = {k: v for k, v in (("uri", uri), ("name", name), ("symbol", symbol)) if v}
    if not changes:
        raise ValidationError("At least one of --uri, --name or --symbol must be provided")
    if uri and not is_url(uri):
        raise ValidationError(f"Invalid metadata URI: {uri}")
    return changes


async def resolve_assets(
    selector: TargetSelector, ledger: LedgerClient, submitter: RetrySubmitter
) -> List[str]:
    if selector.kind == SelectorKind.MINT_LIST:
        return list(selector.values)
    try:
        return await submitter.submit(
            lambda: ledger.find_assets(selector), label=f"asset lookup ({selector.describe()})"
        )
    except ExhaustedRetries as e:
        raise FatalError(f"Could not resolve assets for {selector.describe()}: {e}") from e


async def run_update_metadata(
    selector: TargetSelector,
    ledger: LedgerClient,
    settings: BatchSettings,
    *,
    uri: Optional[str] = None,
    name: Optional[str] = None,
    symbol: Optional[str] = None,
    cancel_event: Optional[asyncio.Event] = None,
    submitter: Optional[RetrySubmitter] = None,
) -> BatchResult:
    changes = build_changes(uri, name, symbol)
    submitter = submitter or RetrySubmitter(settings.retry_policy)
    assets = await resolve_assets(selector, ledger, submitter)
    if not assets:
        print_warning(f"No assets matched {selector.describe()}")
    logger.info("Updating metadata of %d asset(s) (%s): %s", len(assets), selector.describe(), changes)

    def _build(item: OperationItem) -> Dict[str, Any]:
        return {"type": "update_metadata", "asset": item.identity, **changes}

    items = [OperationItem(identity=asset) for asset in assets]
    return await run_batch(
        items,
        submit_ledger_operation(ledger, submitter, _build, lambda item: f"metadata update of {item.identity}"),
        settings,
        cache_path=settings.resolve_cache_path(None),
        cancel_event=cancel_event,
    )
