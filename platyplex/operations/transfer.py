"""Transfer one unit of each listed asset to a single recipient."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Sequence

from platyplex.core.batch_input import is_valid_address
from platyplex.core.batch_runner import ItemOperation
from platyplex.core.errors import ValidationError
from platyplex.core.models import BatchResult, OperationItem
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.ledger.base import LedgerClient
from platyplex.operations.common import run_batch, submit_ledger_operation


def build_transfer(item: OperationItem) -> Dict[str, Any]:
    return {"type": "transfer", "asset": item.identity, "to": item.destination, "amount": 1}


def transfer_op(ledger: LedgerClient, submitter: RetrySubmitter) -> ItemOperation:
    return submit_ledger_operation(
        ledger,
        submitter,
        build_transfer,
        lambda item: f"transfer of {item.identity} to {item.destination}",
    )


async def run_transfer(
    recipient: str,
    mints: Sequence[str],
    ledger: LedgerClient,
    settings: BatchSettings,
    *,
    cancel_event: Optional[asyncio.Event] = None,
    submitter: Optional[RetrySubmitter] = None,
) -> BatchResult:
    """Transfer every mint to *recipient*.

    A cache file is only kept when ``--retry-cache`` was given.

    Raises:
        ValidationError: No mints, or the recipient is not a valid address.
    """
    if not mints:
        raise ValidationError("At least one mint must be defined")
    if not is_valid_address(recipient):
        raise ValidationError(f"Invalid recipient: {recipient}")

    items = [OperationItem(identity=mint, destination=recipient) for mint in mints]
    submitter = submitter or RetrySubmitter(settings.retry_policy)
    return await run_batch(
        items,
        transfer_op(ledger, submitter),
        settings,
        cache_path=settings.resolve_cache_path(None),
        cancel_event=cancel_event,
    )
