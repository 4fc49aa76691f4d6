"""aiohttp adapters for the ledger gateway and the content store.

The ledger, pricing oracle and wallet funder speak JSON-RPC 2.0 through one
:class:`JsonRpcTransport`; content uploads are multipart POSTs. HTTP 429/5xx,
connection failures and timeouts raise :class:`TransientNetworkError`, any
other error reply raises :class:`OperationRejectedError`.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import aiohttp

from platyplex.config.constants import INSUFFICIENT_FUNDS_ERROR_CODE
from platyplex.core.errors import (
    InsufficientFundsError,
    OperationRejectedError,
    TransientNetworkError,
)
from platyplex.core.models import OperationReceipt
from platyplex.core.selectors import TargetSelector
from platyplex.infra.logger import setup_logger
from platyplex.ledger.base import ContentStore, LedgerClient, PricingOracle, WalletFunder

logger = setup_logger(__name__)


# ---------- Response helpers ----------


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header (delta-seconds or HTTP-date)."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        pass
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if dt is None:
        return None
    delta = (dt - datetime.now(timezone.utc)).total_seconds()
    return delta if delta > 0 else None


async def _raise_for_status(resp: aiohttp.ClientResponse, what: str) -> None:
    if resp.status == 200:
        return
    error_text = await resp.text()
    if resp.status == 429 or 500 <= resp.status < 600:
        retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
        logger.warning(
            "Transient error from %s (%s): %s%s",
            what, resp.status, error_text,
            f" (server suggests retry after {retry_after:.0f}s)" if retry_after else "",
        )
        raise TransientNetworkError(f"{what} {resp.status}: {error_text}", retry_after=retry_after)
    logger.error("Non-retryable error from %s (%s): %s", what, resp.status, error_text)
    raise OperationRejectedError(f"{what} {resp.status}: {error_text}", code=resp.status)


# ---------- JSON-RPC transport ----------


class JsonRpcTransport:
    """JSON-RPC 2.0 over a shared ``aiohttp.ClientSession``.

    Connection failures and timeouts surface as :class:`TransientNetworkError`;
    a JSON-RPC ``error`` member surfaces as :class:`OperationRejectedError`
    carrying the error code.
    """

    def __init__(self, session: aiohttp.ClientSession, rpc_url: str) -> None:
        self.session = session
        self.rpc_url = rpc_url
        self._ids = itertools.count(1)

    async def call(self, method: str, params: Dict[str, Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with self.session.post(self.rpc_url, json=payload) as resp:
                await _raise_for_status(resp, method)
                try:
                    data = await resp.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise OperationRejectedError(f"{method}: response is not JSON: {e}") from e
        except (aiohttp.ClientConnectionError, aiohttp.ServerTimeoutError, asyncio.TimeoutError) as e:
            raise TransientNetworkError(f"{method}: {type(e).__name__}: {e}") from e

        if not isinstance(data, dict):
            raise OperationRejectedError(f"{method}: malformed JSON-RPC reply")
        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", error) if isinstance(error, dict) else error
            raise OperationRejectedError(f"{method} rejected: {message}", code=code)
        return data.get("result")


# ---------- Ledger collaborators ----------


class HttpLedgerClient(LedgerClient):
    """Submits operations signed by the configured ``signer`` identity."""

    def __init__(self, transport: JsonRpcTransport, signer: str) -> None:
        self.transport = transport
        self.signer = signer

    async def submit_operation(self, operation: Dict[str, Any]) -> OperationReceipt:
        result = await self.transport.call(
            "submitOperation", {"signer": self.signer, "operation": operation}
        )
        if isinstance(result, str):
            return OperationReceipt(transaction_id=result)
        if not isinstance(result, dict) or not result.get("txid"):
            raise OperationRejectedError(f"submitOperation returned no transaction id: {result!r}")
        details = {k: str(v) for k, v in result.items() if k != "txid" and v is not None}
        return OperationReceipt(transaction_id=str(result["txid"]), details=details)

    async def find_assets(self, selector: TargetSelector) -> List[str]:
        result = await self.transport.call(
            "findAssets", {"kind": selector.kind.value, "values": list(selector.values)}
        )
        if not isinstance(result, list):
            raise OperationRejectedError(f"findAssets returned {type(result).__name__}, expected a list")
        return [str(asset) for asset in result]


class HttpPricingOracle(PricingOracle):
    def __init__(self, transport: JsonRpcTransport) -> None:
        self.transport = transport

    async def estimate_cost(self, byte_count: int) -> int:
        result = await self.transport.call("estimateStorageCost", {"bytes": byte_count})
        if isinstance(result, dict):
            result = result.get("amount")
        if not isinstance(result, (int, float)) or isinstance(result, bool):
            raise OperationRejectedError(f"estimateStorageCost returned {result!r}")
        logger.debug("Storage cost for %d bytes: %s", byte_count, result)
        return int(result)


class HttpWalletFunder(WalletFunder):
    def __init__(self, transport: JsonRpcTransport, signer: str) -> None:
        self.transport = transport
        self.signer = signer

    async def fund(self, amount: int) -> Optional[str]:
        try:
            result = await self.transport.call(
                "fundStorage", {"signer": self.signer, "amount": amount}
            )
        except OperationRejectedError as e:
            if e.code == INSUFFICIENT_FUNDS_ERROR_CODE:
                raise InsufficientFundsError(str(e), code=e.code) from e
            raise
        if isinstance(result, dict):
            result = result.get("txid")
        return str(result) if result else None


class HttpContentStore(ContentStore):
    """Multipart uploads to ``upload_url`` and plain GETs for JSON documents."""

    def __init__(self, session: aiohttp.ClientSession, upload_url: str, signer: str) -> None:
        self.session = session
        self.upload_url = upload_url
        self.signer = signer

    async def upload_item(self, data: bytes, content_type: str, name: str) -> str:
        form = aiohttp.FormData()
        form.add_field("signer", self.signer)
        form.add_field("file", data, filename=name, content_type=content_type)
        try:
            async with self.session.post(self.upload_url, data=form) as resp:
                await _raise_for_status(resp, f"upload {name}")
                reply = await resp.json(content_type=None)
        except (aiohttp.ClientConnectionError, aiohttp.ServerTimeoutError, asyncio.TimeoutError) as e:
            raise TransientNetworkError(f"upload {name}: {type(e).__name__}: {e}") from e
        except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
            raise OperationRejectedError(f"upload {name}: response is not JSON: {e}") from e

        address = reply.get("id") if isinstance(reply, dict) else None
        if not address:
            raise OperationRejectedError(f"No content address for upload: {name}")
        return str(address)

    async def fetch_json(self, uri: str) -> Any:
        try:
            async with self.session.get(uri) as resp:
                await _raise_for_status(resp, f"GET {uri}")
                return await resp.json(content_type=None)
        except (aiohttp.ClientConnectionError, aiohttp.ServerTimeoutError, asyncio.TimeoutError) as e:
            raise TransientNetworkError(f"GET {uri}: {type(e).__name__}: {e}") from e
        except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
            raise OperationRejectedError(f"GET {uri}: response is not JSON: {e}") from e
