"""Upload files to the content store.

Storage for every file not already uploaded is priced and funded once,
before the first upload starts. Uploads then run one file at a time, each
through the retry submitter.
"""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles

from platyplex.core.batch_input import find_files
from platyplex.core.batch_runner import ItemOperation
from platyplex.core.cache_store import CacheStore
from platyplex.core.errors import ItemValidationError, ValidationError
from platyplex.core.funding import plan_and_fund
from platyplex.core.models import BatchResult, OperationItem, OperationReceipt
from platyplex.core.retry import RetrySubmitter
from platyplex.core.settings import BatchSettings
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import ContentStore, PricingOracle, WalletFunder
from platyplex.operations.common import run_batch

logger = setup_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_upload_items(paths: Sequence[str]) -> List[OperationItem]:
    """Expand *paths* into upload items carrying name, size and content type.

    Raises:
        ValidationError: No paths were given, or a file cannot be inspected.
    """
    if not paths:
        raise ValidationError("no files specified")
    items: List[OperationItem] = []
    for path in find_files(paths):
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ValidationError(f"error loading files: {path}: {e}") from e
        content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
        items.append(
            OperationItem(
                identity=str(path),
                payload={"path": str(path), "name": str(path), "size": size, "content_type": content_type},
            )
        )
    return items


async def read_payload(item: OperationItem) -> bytes:
    path = Path(item.payload["path"])
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as e:
        raise ItemValidationError(f"Could not read {path}: {e}") from e


def upload_op(content: ContentStore, submitter: RetrySubmitter, gateway_url: str) -> ItemOperation:
    async def _upload(item: OperationItem) -> OperationReceipt:
        data = await read_payload(item)
        name = item.payload["name"]
        address = await submitter.submit(
            lambda: content.upload_item(data, item.payload["content_type"], name),
            label=f"upload of {name}",
        )
        return OperationReceipt(
            transaction_id=address,
            details={"name": name, "url": f"{gateway_url}/{address}"},
        )

    return _upload


async def run_upload(
    paths: Sequence[str],
    content: ContentStore,
    pricing: PricingOracle,
    funder: WalletFunder,
    settings: BatchSettings,
    *,
    cancel_event: Optional[asyncio.Event] = None,
    submitter: Optional[RetrySubmitter] = None,
) -> BatchResult:
    items = build_upload_items(paths)
    submitter = submitter or RetrySubmitter(settings.retry_policy)

    async def _fund_pending(cache: CacheStore) -> None:
        pending = list({
            item.identity: item for item in items if cache.completed(item.identity) is None
        }.values())
        if not pending:
            logger.info("All %d file(s) already uploaded; nothing to fund", len(items))
            return
        await plan_and_fund(pending, pricing, funder, submitter=submitter)

    return await run_batch(
        items,
        upload_op(content, submitter, settings.gateway_url),
        settings,
        cache_path=settings.resolve_cache_path(None),
        cancel_event=cancel_event,
        before_run=_fund_pending,
    )
