"""Mint one asset per metadata URI.

Each target's metadata JSON is fetched and checked first; an unreachable or
invalid document fails that item only. The mint itself goes through the
retry submitter (``--no-retry`` gives a single attempt).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Optional, Sequence

from platyplex.core.batch_input import TargetType, find_targets, load_target_list
from platyplex.core.batch_runner import ItemOperation
from platyplex.core.errors import ExhaustedRetries, ItemValidationError, ValidationError
from platyplex.core.models import BatchResult, OperationItem, OperationReceipt
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import ContentStore, LedgerClient
from platyplex.operations.common import run_batch

logger = setup_logger(__name__)


def validate_metadata(metadata: Any) -> bool:
    """Metadata must be an object with a non-empty string ``name``."""
    if not isinstance(metadata, dict):
        return False
    name = metadata.get("name")
    return isinstance(name, str) and bool(name.strip())


def collect_targets(targets: Sequence[str], json_list: Optional[Path] = None) -> List[str]:
    """Merge positional targets with a ``--json-list`` file and keep URIs only.

    Raises:
        ValidationError: No targets at all, or a target is a local file.
    """
    all_targets = list(targets)
    if json_list is not None:
        all_targets.extend(load_target_list(json_list))
    if not all_targets:
        raise ValidationError(
            "At least one metadata URI or a JSON list must be specified as an argument"
        )

    uris: List[str] = []
    for target, kind in find_targets(all_targets):
        if kind == TargetType.FILE:
            raise ValidationError(
                f"Minting from local metadata files is not supported ({target}); upload it and pass its URI"
            )
        uris.append(target)
    return uris


def mint_op(ledger: LedgerClient, content: ContentStore, submitter: RetrySubmitter) -> ItemOperation:
    async def _mint(item: OperationItem) -> OperationReceipt:
        uri = item.identity
        try:
            metadata = await submitter.submit(
                lambda: content.fetch_json(uri), label=f"metadata fetch for {uri}"
            )
        except ExhaustedRetries as e:
            logger.warning("Failed to fetch metadata at %s: %s", uri, e.last_error)
            raise ItemValidationError("Failed to fetch metadata") from e
        if not validate_metadata(metadata):
            logger.warning("Invalid metadata at %s", uri)
            raise ItemValidationError("Invalid metadata")

        operation = {"type": "mint", "uri": uri, "name": metadata["name"]}
        if item.destination:
            operation["owner"] = item.destination
        receipt = await submitter.submit(
            lambda: ledger.submit_operation(operation), label=f"mint of {uri}"
        )
        details = {"name": metadata["name"]}
        details.update(receipt.details)
        return OperationReceipt(transaction_id=receipt.transaction_id, details=details)

    return _mint


async def run_mint(
    targets: Sequence[str],
    ledger: LedgerClient,
    content: ContentStore,
    settings: BatchSettings,
    *,
    json_list: Optional[Path] = None,
    cancel_event: Optional[asyncio.Event] = None,
    submitter: Optional[RetrySubmitter] = None,
) -> BatchResult:
    """Mint every target URI.

    The cache file derives from ``--json-list`` when one is given; otherwise
    only ``--retry-cache`` enables it.
    """
    uris = collect_targets(targets, json_list)
    items = [OperationItem(identity=uri, destination=settings.owner_address) for uri in uris]
    submitter = submitter or RetrySubmitter(settings.retry_policy)
    return await run_batch(
        items,
        mint_op(ledger, content, submitter),
        settings,
        cache_path=settings.resolve_cache_path(json_list),
        cancel_event=cancel_event,
    )
