import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_MAX_CONCURRENT = 2
_DEFAULT_COOLDOWN_SECONDS = 0.5


class DispatcherClosedError(RuntimeError):
    pass


class CooldownDispatcher:
    """Bounded FIFO worker pool for rate-limited upstream calls.

    ``max_concurrent`` workers consume jobs from a single FIFO queue, so jobs
    start in submission order and no more than ``max_concurrent`` run at once.
    After finishing a job a worker sleeps ``cooldown_seconds`` before it takes
    the next one; that sleep is what keeps a provider's request rate down.

    Workers are started lazily on the first ``submit`` (they need a running
    loop) and stopped by ``close``.
    """

    def __init__(
        self,
        *,
        max_concurrent: int = _DEFAULT_MAX_CONCURRENT,
        cooldown_seconds: float = _DEFAULT_COOLDOWN_SECONDS,
        name: str = "dispatcher",
    ) -> None:
        self._max_concurrent = max(1, int(max_concurrent))
        self._cooldown_seconds = max(0.0, float(cooldown_seconds))
        self._name = name
        self._queue: Optional[asyncio.Queue] = None
        self._workers: list[asyncio.Task] = []
        self._in_flight = 0
        self._closed = False

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def queued(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_started(self) -> None:
        if self._queue is not None:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"{self._name}-worker-{index}")
            for index in range(self._max_concurrent)
        ]
        logger.debug(
            "%s started %d workers (cooldown %.3fs)",
            self._name,
            self._max_concurrent,
            self._cooldown_seconds,
        )

    async def submit(self, job: Callable[[], Awaitable[T]]) -> T:
        """Queue *job* and wait for its result (or exception)."""
        if self._closed:
            raise DispatcherClosedError(f"{self._name} is closed")
        self._ensure_started()
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        await self._queue.put((job, future))
        return await future

    async def _worker(self, index: int) -> None:
        while True:
            job, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                self._in_flight += 1
                try:
                    result: Any = await job()
                except asyncio.CancelledError:
                    if not future.done():
                        future.set_exception(DispatcherClosedError(f"{self._name} closed during dispatch"))
                    raise
                except Exception as exc:
                    if not future.done():
                        future.set_exception(exc)
                else:
                    if not future.done():
                        future.set_result(result)
                finally:
                    self._in_flight -= 1
            finally:
                self._queue.task_done()
            if self._cooldown_seconds:
                await asyncio.sleep(self._cooldown_seconds)

    async def close(self) -> None:
        """Stop the workers and fail every job still waiting in the queue."""
        if self._closed:
            return
        self._closed = True
        for task in self._workers:
            task.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        if self._queue is not None:
            while not self._queue.empty():
                _job, future = self._queue.get_nowait()
                if not future.done():
                    future.set_exception(DispatcherClosedError(f"{self._name} closed before dispatch"))
        logger.debug("%s closed", self._name)
