"""Shared wiring for batch operations: cache, runner, and output."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from platyplex.core.batch_runner import ItemOperation, ResumableBatchRunner
from platyplex.core.cache_store import CacheStore
from platyplex.core.models import BatchResult, OperationItem
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import LedgerClient
from platyplex.ui.batch_display import OutcomeReporter, display_run_summary

logger = setup_logger(__name__)

BeforeRun = Callable[[CacheStore], Awaitable[None]]


async def run_batch(
    items: Sequence[OperationItem],
    op: ItemOperation,
    settings: BatchSettings,
    *,
    cache_path: Optional[Path] = None,
    cancel_event: Optional[asyncio.Event] = None,
    before_run: Optional[BeforeRun] = None,
) -> BatchResult:
    """Lock and load the cache, run every item, and report outcomes.

    ``before_run`` is awaited after the cache is loaded and before the first
    item starts (upload funding hooks in here).
    """
    cache = CacheStore(cache_path)
    reporter = OutcomeReporter(json_mode=settings.json_output, append_path=settings.append_path)
    runner = ResumableBatchRunner(cancel_event=cancel_event, on_outcome=reporter)

    with cache.lock():
        cache.load()
        if before_run is not None:
            await before_run(cache)
        reporter.start()
        try:
            result = await runner.run(items, op, cache)
        finally:
            reporter.finish()

    display_run_summary(result, json_mode=settings.json_output)
    logger.info("Completed with %d errors", result.error_count)
    return result


def submit_ledger_operation(
    ledger: LedgerClient,
    submitter: RetrySubmitter,
    build: Callable[[OperationItem], dict],
    describe: Callable[[OperationItem], str],
) -> ItemOperation:
    """Bind a ledger submission for one item through the retry submitter."""

    async def _op(item: OperationItem):
        operation = build(item)
        return await submitter.submit(
            lambda: ledger.submit_operation(operation), label=describe(item)
        )

    return _op
