"""Storage cost estimation and up-front funding for upload batches.

``plan_and_fund`` must complete before the first upload of a batch starts:
callers await it and only then hand the same items to the batch runner.
Price quotes are read-only and go through the retry submitter; the funding
payment itself is attempted exactly once so a timed-out-but-applied payment
is never repeated.
"""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import Dict, Optional, Sequence

from platyplex.config.constants import MANIFEST_PLACEHOLDER_ID
from platyplex.core.errors import ExhaustedRetries, ResourceError
from platyplex.core.models import FundingPlan, OperationItem, RetryPolicy
from platyplex.core.retry import RetrySubmitter
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import PricingOracle, WalletFunder

logger = setup_logger(__name__)


def estimate_manifest_size(names: Sequence[str]) -> int:
    """Size in bytes of the path manifest that accompanies an upload."""
    paths: Dict[str, Dict[str, str]] = {}
    for name in names:
        paths[name] = {
            "id": MANIFEST_PLACEHOLDER_ID,
            "ext": PurePath(name).suffix.lstrip("."),
        }
    manifest = {
        "manifest": "arweave/paths",
        "version": "0.1.0",
        "paths": paths,
        "index": {"path": "metadata.json"},
    }
    size = len(json.dumps(manifest).encode("utf-8"))
    logger.debug("Estimated manifest size: %d", size)
    return size


def payload_size(item: OperationItem) -> int:
    """Byte size of an upload item (``size`` in the payload, else ``len(data)``)."""
    size = item.payload.get("size")
    if size is None:
        data = item.payload.get("data")
        if data is None:
            raise ValueError(f"Upload item {item.identity} has neither size nor data")
        size = len(data)
    return int(size)


def estimate_total_bytes(items: Sequence[OperationItem]) -> int:
    names = [str(item.payload.get("name", item.identity)) for item in items]
    return sum(payload_size(item) for item in items) + estimate_manifest_size(names)


async def plan_and_fund(
    items: Sequence[OperationItem],
    pricing_oracle: PricingOracle,
    wallet_funder: WalletFunder,
    *,
    submitter: Optional[RetrySubmitter] = None,
    policy: Optional[RetryPolicy] = None,
) -> FundingPlan:
    """Price the upload of *items* and fund the principal before any upload.

    Args:
        items: Upload items still to be processed.
        pricing_oracle: Quotes the cost of ``total_bytes``.
        wallet_funder: Pays ``required_amount``; awaited to completion.
        submitter: Retry wrapper for the price quote.
        policy: Retry policy for the price quote.

    Returns:
        The :class:`FundingPlan` that was funded.

    Raises:
        ResourceError: The cost could not be quoted or the funding failed.
    """
    submitter = submitter or RetrySubmitter(policy)
    total_bytes = estimate_total_bytes(items) if items else 0
    if total_bytes == 0:
        return FundingPlan(total_bytes=0, unit_price=0.0, required_amount=0)

    try:
        required = await submitter.submit(
            lambda: pricing_oracle.estimate_cost(total_bytes),
            policy,
            label=f"storage cost estimate for {total_bytes} bytes",
        )
    except ExhaustedRetries as e:
        raise ResourceError(f"Could not price upload of {total_bytes} bytes: {e}") from e

    required_amount = int(required)
    plan = FundingPlan(
        total_bytes=total_bytes,
        unit_price=required_amount / total_bytes,
        required_amount=required_amount,
    )
    logger.info(
        "Funding plan: %d item(s), %d bytes, %d required", len(items), total_bytes, required_amount
    )
    if required_amount <= 0:
        return plan

    try:
        funding_txid = await wallet_funder.fund(required_amount)
    except Exception as e:
        raise ResourceError(
            f"Could not fund {required_amount} for {total_bytes} bytes of uploads: {e}"
        ) from e
    logger.info("Funded %d for uploads (tx: %s)", required_amount, funding_txid or "n/a")
    return plan
