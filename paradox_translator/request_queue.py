"""Serializes AI service calls behind a rate limiter and retries failed calls on a fixed schedule."""
import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Optional, Sequence

from aiolimiter import AsyncLimiter
from openai import OpenAIError, RateLimitError

logger = logging.getLogger(__name__)

# The translation service accepts about one request per second.
DEFAULT_MIN_INTERVAL = 1.0

# Backoff before retry 1..5, in seconds.
RETRY_DELAYS = (1.0, 2.0, 8.0, 10.0, 60.0)
MAX_RETRIES = len(RETRY_DELAYS)


@dataclass
class QueueTask:
    id: int
    invoke: Callable[[], Awaitable[Any]]
    future: asyncio.Future
    attempt: int = 0
    last_error: Optional[BaseException] = field(default=None, repr=False)


def is_rate_limited(exc: BaseException) -> bool:
    """True for the provider's "429 Too Many Requests" responses, which are expected and retried quietly."""
    if isinstance(exc, RateLimitError):
        return True
    if getattr(exc, "status_code", None) == 429:
        return True
    return "too many requests" in str(exc).lower()


def retry_after_seconds(exc: BaseException) -> Optional[float]:
    """
    Read the Retry-After header of a provider error, if it has one.

    Supports plain seconds ("12") and milliseconds ("1500ms"). Anything else is ignored.
    """
    if not isinstance(exc, OpenAIError):
        return None
    response = getattr(exc, "response", None)
    headers = getattr(exc, "headers", None) or getattr(response, "headers", None) or {}
    try:
        header = headers.get("Retry-After") or headers.get("retry-after")
    except AttributeError:
        return None
    if not header:
        return None
    header = str(header).strip()
    try:
        if header.endswith("ms"):
            return float(header[:-2]) / 1000
        return float(header)
    except ValueError:
        logger.debug("Ignoring unparseable Retry-After header: %r", header)
        return None


class RateLimitedQueue:
    """
    FIFO queue with a single in-flight task and a ceiling on the call rate.

    Consecutive invocations start at least `min_interval` seconds apart, no matter how
    long each one takes. A failed task is put back at the end of the queue once its
    backoff has elapsed, so a task waiting for a retry never blocks the others. Callers
    must not rely on completion order.
    """

    def __init__(self, min_interval: float = DEFAULT_MIN_INTERVAL, retry_delays: Sequence[float] = RETRY_DELAYS):
        if min_interval <= 0:
            raise ValueError("min_interval must be positive")
        if not retry_delays:
            raise ValueError("retry_delays must contain at least one delay")
        self.min_interval = min_interval
        self.retry_delays = tuple(retry_delays)
        self.max_retries = len(self.retry_delays)
        self._limiter = AsyncLimiter(max_rate=1, time_period=min_interval)
        self._pending: Deque[QueueTask] = deque()
        self._drain_task: Optional[asyncio.Task] = None
        self._ids = itertools.count(1)

    async def enqueue(self, invoke: Callable[[], Awaitable[Any]]) -> Any:
        """
        Schedule a zero-argument coroutine function and wait for its result.

        Raises:
            Exception: The last error of the task once all retries are exhausted.
        """
        loop = asyncio.get_running_loop()
        task = QueueTask(id=next(self._ids), invoke=invoke, future=loop.create_future())
        self._pending.append(task)
        self._ensure_draining()
        return await task.future

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            task = self._pending.popleft()
            if task.future.done():
                # Caller went away.
                continue
            async with self._limiter:
                if task.future.done():
                    continue
                try:
                    result = await task.invoke()
                except Exception as exc:
                    self._handle_failure(task, exc)
                else:
                    if not task.future.done():
                        task.future.set_result(result)

    def _handle_failure(self, task: QueueTask, exc: Exception) -> None:
        task.last_error = exc
        if task.attempt >= self.max_retries:
            logger.error("Request %d failed after %d retries: %s", task.id, self.max_retries, exc)
            if not task.future.done():
                task.future.set_exception(exc)
            return

        delay = self.retry_delays[task.attempt]
        retry_after = retry_after_seconds(exc)
        if retry_after is not None:
            delay = max(delay, retry_after)
        task.attempt += 1

        if is_rate_limited(exc):
            logger.debug("Request %d was rate limited; retrying in %.2f seconds (%d/%d)",
                         task.id, delay, task.attempt, self.max_retries)
        else:
            logger.warning("Request %d failed: %s: %s", task.id, exc.__class__.__name__, exc)
            logger.info("Retrying request %d in %.2f seconds (%d/%d)",
                        task.id, delay, task.attempt, self.max_retries)

        asyncio.get_running_loop().call_later(delay, self._requeue, task)

    def _requeue(self, task: QueueTask) -> None:
        if task.future.done():
            return
        self._pending.append(task)
        self._ensure_draining()
