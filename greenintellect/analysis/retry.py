"""Bounded retry with exponential backoff for one outbound provider request.

Attempts are numbered from 1 to max_retries and run strictly one after the
other. The wait before the next attempt depends on what the last one saw:

    HTTP 429              min(2**attempt * 1000, 10000) ms
    other non-2xx status  min(2**attempt * 500, 5000) ms
    transport exception   min(2**attempt * 500, 5000) ms

No jitter is added. Waits go through an injectable async sleep so the
calling task suspends instead of blocking the event loop.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from greenintellect.analysis.exceptions import TransportError
from greenintellect.logging.logger import Log

RequestFactory = Callable[[], Awaitable[httpx.Response]]
Sleeper = Callable[[float], Awaitable[None]]

RATE_LIMIT_BASE_MS = 1000
RATE_LIMIT_CAP_MS = 10_000
ERROR_BASE_MS = 500
ERROR_CAP_MS = 5000

# Exceptions treated as a failed attempt rather than a bug in the caller.
RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    httpx.HTTPStatusError,
    asyncio.TimeoutError,
    OSError,
)


def rate_limit_delay_ms(attempt: int) -> int:
    return min(2**attempt * RATE_LIMIT_BASE_MS, RATE_LIMIT_CAP_MS)


def error_delay_ms(attempt: int) -> int:
    return min(2**attempt * ERROR_BASE_MS, ERROR_CAP_MS)


def retry_all_statuses(status_code: int) -> bool:
    return True


@dataclass(frozen=True)
class ExecutionResult:
    """Single return shape of the executor: a response or a transport error.

    response is the first 2xx response, or the last response seen once
    retries ran out. error is set instead when the final attempt raised.
    """

    attempts: int
    response: httpx.Response | None = None
    error: TransportError | None = None
    exception: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.response.is_success

    @property
    def status_code(self) -> int | None:
        if self.response is not None:
            return self.response.status_code
        return self.error.status_code if self.error is not None else None

    def unwrap(self) -> httpx.Response:
        """Return the response, or re-raise what the final attempt raised."""
        if self.response is not None:
            return self.response
        if self.exception is not None:
            raise self.exception
        raise self.error or TransportError("Max retries exceeded")


class ResilientRequestExecutor:
    """Runs a request factory until it succeeds or max_retries attempts are spent."""

    def __init__(
        self,
        max_retries: int = 3,
        *,
        sleep: Sleeper = asyncio.sleep,
        should_retry_status: Callable[[int], bool] = retry_all_statuses,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._max_retries = max_retries
        self._sleep = sleep
        self._should_retry_status = should_retry_status

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def execute(self, request: RequestFactory) -> ExecutionResult:
        """Run request with retries.

        Args:
            request: Zero-argument coroutine factory; each call is one attempt.

        Returns:
            ExecutionResult with the first 2xx response, the final non-2xx
            response, or the TransportError from a final attempt that raised.
        """
        for attempt in range(1, self._max_retries + 1):
            is_last = attempt == self._max_retries
            try:
                response = await request()
            except RETRYABLE_EXCEPTIONS as exc:
                Log.warning(f"Attempt {attempt}/{self._max_retries} failed: {exc!r}")
                if is_last:
                    return ExecutionResult(
                        attempts=attempt,
                        error=TransportError(str(exc) or type(exc).__name__, _status_of(exc)),
                        exception=exc,
                    )
                await self._wait(error_delay_ms(attempt))
                continue

            if response.status_code == 429:
                if is_last:
                    Log.warning(f"Rate limit hit on final attempt {attempt}/{self._max_retries}")
                    return ExecutionResult(attempts=attempt, response=response)
                wait_ms = rate_limit_delay_ms(attempt)
                Log.warning(
                    f"Rate limit hit, waiting {wait_ms}ms before retry "
                    f"{attempt}/{self._max_retries}"
                )
                await self._wait(wait_ms)
                continue

            if response.is_success:
                return ExecutionResult(attempts=attempt, response=response)

            if is_last or not self._should_retry_status(response.status_code):
                return ExecutionResult(attempts=attempt, response=response)

            wait_ms = error_delay_ms(attempt)
            Log.warning(f"API error ({response.status_code}), retrying in {wait_ms}ms")
            await self._wait(wait_ms)

        raise AssertionError("unreachable: the loop returns on its final attempt")

    async def _wait(self, delay_ms: int) -> None:
        await self._sleep(delay_ms / 1000)


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None
