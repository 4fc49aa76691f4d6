"""Abstract interfaces for the remote collaborators a batch run consumes.

The batch engine treats these as opaque capabilities: it never builds,
signs, or serializes transactions itself. Concrete adapters live in
``platyplex.ledger.http_client``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from platyplex.core.models import OperationReceipt
from platyplex.core.selectors import TargetSelector


class LedgerClient(ABC):
    """Submit one operation to the ledger on behalf of the configured signer.

    Safe for sequential reuse across items; not specified as thread-safe.
    """

    @abstractmethod
    async def submit_operation(self, operation: Dict[str, Any]) -> OperationReceipt:
        """Submit one operation and return its transaction id.

        Raises:
            TransientNetworkError: Safe to retry.
            OperationRejectedError: The ledger refused the operation.
        """

    @abstractmethod
    async def find_assets(self, selector: TargetSelector) -> List[str]:
        """Resolve a selector into the asset ids it matches."""

    async def close(self) -> None:
        """Release network resources (default: nothing to release)."""


class PricingOracle(ABC):
    """Quote the cost of storing content."""

    @abstractmethod
    async def estimate_cost(self, byte_count: int) -> int:
        """Return the amount (in the ledger's smallest unit) to store *byte_count* bytes."""


class WalletFunder(ABC):
    """Move funds so the submitting principal can pay for storage."""

    @abstractmethod
    async def fund(self, amount: int) -> Optional[str]:
        """Fund *amount*; returns the funding transaction id when known.

        Raises:
            InsufficientFundsError: The underlying balance cannot cover *amount*.
        """


class ContentStore(ABC):
    """Durable content storage addressed by content id."""

    @abstractmethod
    async def upload_item(self, data: bytes, content_type: str, name: str) -> str:
        """Store *data* and return its content address."""

    @abstractmethod
    async def fetch_json(self, uri: str) -> Any:
        """Fetch and decode the JSON document at *uri*."""
