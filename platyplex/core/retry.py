"""Bounded, fixed-delay retry around a single network operation.

The retry loop is tenacity's iterative ``AsyncRetrying``: the attempt count
is enforced by ``stop_after_attempt`` and never by recursion depth. Every
failed attempt is logged at WARNING level with its attempt index; when the
last allowed attempt fails the caller receives :class:`ExhaustedRetries`
carrying the underlying error.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import tenacity

from platyplex.core.errors import ExhaustedRetries, FatalError, TransientNetworkError
from platyplex.core.models import RetryPolicy
from platyplex.infra.logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class RetrySubmitter:
    """Submit zero-argument async operations under a :class:`RetryPolicy`.

    Args:
        policy: Default policy used when ``submit`` is not given one.
        sleep: Awaitable sleep function (injectable for tests).
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def submit(
        self,
        operation: Operation,
        policy: Optional[RetryPolicy] = None,
        *,
        label: str = "operation",
    ) -> T:
        """Run *operation* until it succeeds or the policy is exhausted.

        Args:
            operation: Performs exactly one network attempt per call.
            policy: Overrides the submitter's default policy.
            label: Human-readable name used in log lines and errors.

        Returns:
            The operation's result from the first successful attempt.

        Raises:
            ExhaustedRetries: Every allowed attempt failed.
            FatalError: Raised by *operation*; passed through on the first
                attempt without retrying.
        """
        policy = policy or self.policy
        max_attempts = policy.effective_attempts

        def _log_failed_attempt(retry_state: tenacity.RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            will_retry = retry_state.attempt_number < max_attempts
            logger.warning(
                "Attempt %d/%d for %s failed: %s%s",
                retry_state.attempt_number,
                max_attempts,
                label,
                exc,
                f" (retrying in {policy.delay_ms} ms)" if will_retry else "",
            )

        retrying = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(max_attempts),
            wait=tenacity.wait_fixed(policy.delay_seconds),
            retry=(
                tenacity.retry_if_exception_type(Exception)
                & tenacity.retry_if_not_exception_type(FatalError)
            ),
            after=_log_failed_attempt,
            sleep=self._sleep,
            reraise=False,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(operation, policy, label)
        except tenacity.RetryError as e:
            last = e.last_attempt
            raise ExhaustedRetries(label, last.attempt_number, last.exception()) from last.exception()

    @staticmethod
    async def _attempt(operation: Operation, policy: RetryPolicy, label: str) -> Any:
        if policy.attempt_timeout_seconds is None:
            return await operation()
        try:
            return await asyncio.wait_for(operation(), timeout=policy.attempt_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise TransientNetworkError(
                f"{label} timed out after {policy.attempt_timeout_seconds}s"
            ) from e
