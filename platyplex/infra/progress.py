"""Progress tracking utilities for batch runs.

Provides progress counting and periodic reporting for long-running batches.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from platyplex.infra.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class ProgressState:
    """Track progress of a batch run."""

    total: int
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    start_time: Optional[datetime] = None

    def __post_init__(self):
        if self.start_time is None:
            self.start_time = datetime.now()

    @property
    def done(self) -> int:
        return self.completed + self.failed + self.skipped

    @property
    def remaining(self) -> int:
        """Get number of remaining items."""
        return self.total - self.done

    @property
    def percent_complete(self) -> float:
        """Get completion percentage."""
        if self.total == 0:
            return 100.0
        return self.done / self.total * 100.0

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    @property
    def estimated_remaining_seconds(self) -> Optional[float]:
        """Estimate remaining time from the rate of attempted (non-skipped) items."""
        attempted = self.completed + self.failed
        if attempted == 0 or self.remaining == 0 or self.elapsed_seconds <= 0:
            return None
        rate = attempted / self.elapsed_seconds
        return self.remaining / rate if rate > 0 else None

    def format_summary(self) -> str:
        """Format progress summary string."""
        elapsed_min = int(self.elapsed_seconds / 60)
        elapsed_sec = int(self.elapsed_seconds % 60)

        summary = (
            f"{self.done}/{self.total} done "
            f"({self.percent_complete:.1f}%) "
            f"[{elapsed_min}m {elapsed_sec}s elapsed"
        )
        if self.skipped > 0:
            summary += f", {self.skipped} already done"
        if self.failed > 0:
            summary += f", {self.failed} failed"

        est_remaining = self.estimated_remaining_seconds
        if est_remaining is not None:
            est_min = int(est_remaining / 60)
            est_sec = int(est_remaining % 60)
            summary += f", ~{est_min}m {est_sec}s remaining"

        summary += "]"
        return summary


def _log_progress(state: ProgressState) -> None:
    logger.info("Progress: %s", state.format_summary())


class ProgressTracker:
    """Async-safe progress tracker with callback support."""

    def __init__(
        self,
        total: int,
        on_update: Optional[Callable[[ProgressState], None]] = _log_progress,
        update_interval: int = 10,
    ):
        """Initialize progress tracker.

        Args:
            total: Total number of items in the batch.
            on_update: Optional callback called on progress updates.
            update_interval: Number of items between progress reports.
        """
        self.state = ProgressState(total=total)
        self.on_update = on_update
        self.update_interval = max(1, update_interval)
        self._lock = asyncio.Lock()

    async def increment_completed(self) -> None:
        async with self._lock:
            self.state.completed += 1
            self._maybe_report()

    async def increment_failed(self) -> None:
        async with self._lock:
            self.state.failed += 1
            self._maybe_report()

    async def increment_skipped(self) -> None:
        async with self._lock:
            self.state.skipped += 1
            self._maybe_report()

    def _maybe_report(self) -> None:
        """Report progress if interval reached."""
        if self.state.done % self.update_interval == 0 or self.state.done == self.state.total:
            self._report()

    def _report(self) -> None:
        if self.on_update:
            try:
                self.on_update(self.state)
            except Exception as e:
                logger.error(f"Progress callback failed: {e}")

    async def finalize(self) -> None:
        """Force final progress report."""
        self._report()
