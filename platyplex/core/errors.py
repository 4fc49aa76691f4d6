"""Error taxonomy for batch runs.

Fatal errors stop the whole run before (or between) items. Item errors are
recorded against a single item and never propagate past the batch runner.
Network adapters raise transient/rejected errors, which the retry layer
consumes.
"""

from __future__ import annotations

from typing import Optional


class PlatyplexError(Exception):
    """Base class for all application errors."""


# ---------- Fatal (abort the run) ----------


class FatalError(PlatyplexError):
    """An error that aborts the entire run with a non-zero exit code."""


class ValidationError(FatalError):
    """Malformed batch input or command options, detected before any item runs."""


class ResourceError(FatalError):
    """The submitting principal cannot be funded for the planned work."""


class PersistenceError(FatalError):
    """The idempotency cache could not be read, validated, or written."""


# ---------- Per-item (isolated) ----------


class ItemError(PlatyplexError):
    """Failure scoped to a single batch item."""


class ItemValidationError(ItemError):
    """The item itself is unusable (e.g. unreadable or invalid metadata); not retried."""


class PermanentOperationError(ItemError):
    """The operation for an item failed permanently."""


class ExhaustedRetries(PermanentOperationError):
    """Every allowed attempt failed; carries the last underlying error."""

    def __init__(self, label: str, attempts: int, last_error: Optional[BaseException]) -> None:
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"{label} failed after {attempts} attempt(s){detail}")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


# ---------- Raised by network adapters ----------


class TransientNetworkError(PlatyplexError):
    """Error category that is safe to retry (429/5xx/timeouts/connection resets).

    ``retry_after`` carries the server's ``Retry-After`` hint in seconds. It
    is informational only (logged and kept for callers); the retry loop
    always waits the policy's fixed delay.
    """

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class OperationRejectedError(PlatyplexError):
    """The remote side rejected the operation (e.g. a 4xx or JSON-RPC error reply)."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class InsufficientFundsError(OperationRejectedError):
    """The wallet funder reported an insufficient underlying balance."""
