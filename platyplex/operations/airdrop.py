"""Airdrop: transfer each listed asset to its own destination.

Input is ``[{"mint": "<asset>", "to": "<address>"}, ...]``. The retry cache
defaults to ``<input>-cache.json`` next to the input file, so re-running the
same command after a crash or a partial failure only sends what is missing.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from platyplex.core.batch_input import load_airdrop_items
from platyplex.core.models import BatchResult
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import LedgerClient
from platyplex.operations.common import run_batch
from platyplex.operations.transfer import transfer_op

logger = setup_logger(__name__)


async def run_airdrop(
    input_path: Path,
    ledger: LedgerClient,
    settings: BatchSettings,
    *,
    cancel_event: Optional[asyncio.Event] = None,
    submitter: Optional[RetrySubmitter] = None,
) -> BatchResult:
    items = load_airdrop_items(input_path)
    cache_path = settings.resolve_cache_path(input_path)
    logger.info("Airdrop of %d item(s) from %s (cache: %s)", len(items), input_path, cache_path)

    submitter = submitter or RetrySubmitter(settings.retry_policy)
    return await run_batch(
        items,
        transfer_op(ledger, submitter),
        settings,
        cache_path=cache_path,
        cancel_event=cancel_event,
    )
