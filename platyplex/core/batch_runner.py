"""Resumable, strictly sequential batch execution.

The runner walks items in input order. An identity whose cache record
already carries a transaction id is skipped; anything else is handed to the
item operation. Each success is written into the cache and the full cache is
flushed to disk before the next item starts, so a crash between items never
loses a completed transaction id. A single item's permanent failure is
recorded and the batch moves on; only fatal errors (bad cache, funding,
validation) escape ``run``.

Cancellation is cooperative: it is checked before each item starts. An item
already in flight is allowed to finish or time out.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence

from platyplex.core.cache_store import CacheStore
from platyplex.core.errors import FatalError, ItemError
from platyplex.core.models import (
    BatchResult,
    CacheRecord,
    ItemOutcome,
    ItemStatus,
    OperationItem,
    OperationReceipt,
)
from platyplex.infra.logger import setup_logger
from platyplex.infra.progress import ProgressTracker

logger = setup_logger(__name__)

ItemOperation = Callable[[OperationItem], Awaitable[OperationReceipt]]
OutcomeCallback = Callable[[int, ItemOutcome], Awaitable[None]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResumableBatchRunner:
    """Drive a list of :class:`OperationItem` through an item operation.

    Args:
        cancel_event: Set it to stop before the next item begins.
        on_outcome: Async callback receiving ``(index, outcome)`` as soon as
            each item is settled (used for incremental output).
        clock: Returns the timestamp stored with each success.
        progress_interval: Items between progress log lines.
    """

    def __init__(
        self,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_outcome: Optional[OutcomeCallback] = None,
        clock: Callable[[], datetime] = _utc_now,
        progress_interval: int = 10,
    ) -> None:
        self.cancel_event = cancel_event or asyncio.Event()
        self.on_outcome = on_outcome
        self.clock = clock
        self.progress_interval = progress_interval

    def request_cancel(self) -> None:
        self.cancel_event.set()

    async def run(
        self,
        items: Sequence[OperationItem],
        op: ItemOperation,
        cache: CacheStore,
    ) -> BatchResult:
        """Process every item in order and return outcomes in input order.

        Raises:
            FatalError: The cache could not be persisted, or *op* raised a
                fatal error; the run stops immediately.
        """
        result = BatchResult()
        total = len(items)
        progress = ProgressTracker(total, update_interval=self.progress_interval)
        logger.info("Starting batch of %d item(s) (cache: %s)", total, cache.path or "memory only")

        for index, item in enumerate(items):
            if self.cancel_event.is_set():
                logger.warning(
                    "Cancellation requested; %d item(s) will not be started", total - index
                )
                result.cancelled = True
                for pending in items[index:]:
                    done = cache.completed(pending.identity)
                    if done is not None:
                        outcome = self._skipped(pending, done)
                        await progress.increment_skipped()
                    else:
                        outcome = ItemOutcome(
                            identity=pending.identity,
                            status=ItemStatus.CANCELLED,
                            destination=pending.destination,
                        )
                    result.add(outcome)
                    await self._emit(len(result.outcomes) - 1, outcome)
                break

            outcome = await self._process_item(index, total, item, op, cache)
            result.add(outcome)
            if outcome.status == ItemStatus.SUCCEEDED:
                await progress.increment_completed()
            elif outcome.status == ItemStatus.SKIPPED:
                await progress.increment_skipped()
            else:
                await progress.increment_failed()
            await self._emit(index, outcome)

        await progress.finalize()
        logger.info(
            "Batch finished: %d succeeded, %d skipped, %d failed, %d not started",
            result.succeeded, result.skipped, result.error_count, result.not_started,
        )
        return result

    async def _process_item(
        self,
        index: int,
        total: int,
        item: OperationItem,
        op: ItemOperation,
        cache: CacheStore,
    ) -> ItemOutcome:
        done = cache.completed(item.identity)
        if done is not None:
            if item.destination and done.destination and done.destination != item.destination:
                logger.warning(
                    "%s already completed to %s (txid %s); input now says %s, not resubmitting",
                    item.identity, done.destination, done.transaction_id, item.destination,
                )
            else:
                logger.info("Skipping %s: already completed (txid %s)", item.identity, done.transaction_id)
            return self._skipped(item, done)

        cache.ensure_pending(item.identity, item.destination)
        logger.info("[%d/%d] Submitting %s", index + 1, total, item.identity)
        try:
            receipt = await op(item)
        except FatalError:
            raise
        except ItemError as e:
            logger.error("Item %s failed: %s", item.identity, e)
            return self._failed(item, str(e))
        except Exception as e:
            logger.exception("Item %s failed with an unexpected error", item.identity)
            return self._failed(item, f"{type(e).__name__}: {e}")

        record = cache.record_success(
            item.identity, item.destination, receipt.transaction_id, self.clock()
        )
        cache.persist()
        logger.info("Completed %s (txid %s)", item.identity, receipt.transaction_id)
        return ItemOutcome(
            identity=item.identity,
            status=ItemStatus.SUCCEEDED,
            destination=record.destination,
            transaction_id=record.transaction_id,
            timestamp=record.timestamp,
            details=dict(receipt.details),
        )

    @staticmethod
    def _skipped(item: OperationItem, done: CacheRecord) -> ItemOutcome:
        return ItemOutcome(
            identity=item.identity,
            status=ItemStatus.SKIPPED,
            destination=done.destination,
            transaction_id=done.transaction_id,
            timestamp=done.timestamp,
        )

    @staticmethod
    def _failed(item: OperationItem, error: str) -> ItemOutcome:
        return ItemOutcome(
            identity=item.identity,
            status=ItemStatus.FAILED,
            destination=item.destination,
            error=error,
        )

    async def _emit(self, index: int, outcome: ItemOutcome) -> None:
        if self.on_outcome is None:
            return
        try:
            await self.on_outcome(index, outcome)
        except Exception as cb_exc:
            logger.error(f"on_outcome callback failed for {outcome.identity}: {cb_exc}")
