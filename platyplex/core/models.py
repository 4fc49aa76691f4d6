"""Data model shared by the batch engine.

Work items, retry policy, per-item outcomes, the aggregate batch result,
funding plans, and the strictly validated cache record schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from platyplex.config.constants import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY_MS


@dataclass
class OperationItem:
    """One unit of batch work.

    ``identity`` is the stable key used for idempotent resume (an asset id,
    a file path, a target URI). ``payload`` carries operation-specific data.
    """
    identity: str
    payload: Dict[str, Any] = field(default_factory=dict)
    destination: Optional[str] = None


@dataclass(frozen=True)
class OperationReceipt:
    """What a successful remote operation hands back."""
    transaction_id: str
    details: Dict[str, str] = field(default_factory=dict)


class CacheRecord(BaseModel):
    """Persisted outcome for one identity.

    Serialized with the short keys of the cache file: ``to``, ``txid``,
    ``date``. A record carrying a transaction id is final.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    destination: str = Field(alias="to")
    transaction_id: Optional[str] = Field(default=None, alias="txid")
    timestamp: Optional[datetime] = Field(default=None, alias="date")

    @field_validator("transaction_id")
    @classmethod
    def _non_empty_txid(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("txid must not be empty")
        return value

    @property
    def is_complete(self) -> bool:
        return self.transaction_id is not None

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a fixed inter-attempt delay.

    When ``enabled`` is False the operation gets exactly one attempt.
    ``attempt_timeout_seconds`` bounds each individual attempt; a timeout
    counts as a failed attempt.
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_ms: int = DEFAULT_RETRY_DELAY_MS
    enabled: bool = True
    attempt_timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")
        if self.attempt_timeout_seconds is not None and self.attempt_timeout_seconds <= 0:
            raise ValueError("attempt_timeout_seconds must be positive when set")

    @property
    def effective_attempts(self) -> int:
        return self.max_attempts if self.enabled else 1

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000.0

    @classmethod
    def from_config(cls, retry_cfg: Dict[str, Any]) -> "RetryPolicy":
        """Build a policy from the ``retry`` config section."""
        timeout = retry_cfg.get("attempt_timeout_seconds")
        return cls(
            max_attempts=int(retry_cfg.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
            delay_ms=int(retry_cfg.get("delay_ms", DEFAULT_RETRY_DELAY_MS)),
            enabled=bool(retry_cfg.get("enabled", True)),
            attempt_timeout_seconds=float(timeout) if timeout else None,
        )


class ItemStatus(Enum):
    """Final state of one item within a batch run."""
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ItemOutcome:
    """Result entry for one input item, at the item's input position."""
    identity: str
    status: ItemStatus
    destination: Optional[str] = None
    transaction_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    error: Optional[str] = None
    details: Dict[str, str] = field(default_factory=dict)

    def to_output_dict(self) -> Dict[str, Any]:
        """Machine-readable form: ``{target, txId?, <details>, error?}``."""
        out: Dict[str, Any] = {"target": self.identity}
        if self.transaction_id:
            out["txId"] = self.transaction_id
        out.update(self.details)
        if self.status == ItemStatus.SKIPPED:
            out["skipped"] = True
        if self.status == ItemStatus.CANCELLED:
            out["cancelled"] = True
        if self.error:
            out["error"] = self.error
        return out


@dataclass
class BatchResult:
    """Ordered outcomes of a batch run plus aggregate counts."""
    outcomes: List[ItemOutcome] = field(default_factory=list)
    error_count: int = 0
    cancelled: bool = False

    def add(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == ItemStatus.FAILED:
            self.error_count += 1

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ItemStatus.SUCCEEDED)

    @property
    def skipped(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def not_started(self) -> int:
        return self._count(ItemStatus.CANCELLED)

    @property
    def processed(self) -> int:
        """Items that were actually attempted in this run."""
        return self.succeeded + self.error_count

    @property
    def has_failures(self) -> bool:
        return self.error_count > 0

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "total": len(self.outcomes),
            "processed": self.processed,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.error_count,
            "cancelled": self.not_started,
        }


@dataclass(frozen=True)
class FundingPlan:
    """Storage cost for one upload batch, computed before any upload."""
    total_bytes: int
    unit_price: float
    required_amount: int
