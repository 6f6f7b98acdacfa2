"""Retry policy for outbound calls.

A RetryPolicy wraps any coroutine function and returns an Outcome instead of
raising, so callers decide how a terminal failure is surfaced.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Generic, Optional, TypeVar, Union

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ragchat.errors import ProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRYABLE_STATUSES: FrozenSet[int] = frozenset({429, 500, 502, 503, 504})


def error_status(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an error, or None for transport-level failures."""
    if isinstance(exc, ProviderError):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def is_transport_error(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, ProviderError) and exc.status_code is None


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    attempts: int = 1
    ok: bool = field(default=True, init=False)

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: BaseException
    attempts: int = 1
    ok: bool = field(default=False, init=False)

    def unwrap(self):
        raise self.error


Outcome = Union[Success[T], Failure]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 30.0
    retryable_statuses: FrozenSet[int] = DEFAULT_RETRYABLE_STATUSES

    def is_retryable(self, exc: BaseException) -> bool:
        if is_transport_error(exc):
            return True
        status = error_status(exc)
        return status is not None and status in self.retryable_statuses

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_exponential(multiplier=self.base_delay_s, max=self.max_delay_s),
            retry=retry_if_exception(self.is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> Outcome:
        attempts = 0
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    value = await fn(*args, **kwargs)
        except Exception as e:
            return Failure(error=e, attempts=attempts)
        return Success(value=value, attempts=attempts)
