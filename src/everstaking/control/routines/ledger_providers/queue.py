import asyncio
import logging
from typing import Awaitable, Callable, Optional

log = logging.getLogger("ledger")


class RunGetQueue(object):
    """
    Serializes get-method executions: one call at a time, FIFO, shared by all callers.
    The worker task is started lazily on the running loop.
    """

    def __init__(self, executor: Callable[..., Awaitable]):
        self._executor = executor
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def _ensure_worker(self):
        if self._worker is None or self._worker.done():
            self._queue = asyncio.Queue()
            self._worker = asyncio.create_task(self._process())

    async def _process(self):
        while True:
            args, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                result = await self._executor(*args)
                if not future.done():
                    future.set_result(result)
            except Exception as ex:
                if not future.done():
                    future.set_exception(ex)
            finally:
                self._queue.task_done()

    def pending(self) -> int:
        return self._queue.qsize() if self._queue else 0

    async def submit(self, *args):
        self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((args, future))
        return await future

    async def close(self):
        if self._worker and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                log.debug("Run-get worker stopped")
        self._worker = None
