"""Ordered single-consumer delivery of output values to handlers."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import HandlerError, MaxPendingOutputsExceededError
from .types import OutputValue

logger = logging.getLogger(__name__)

_CLOSE = object()
_STOP = object()


class OutputChannel:
    """
    FIFO queue drained by exactly one task.

    Producers call ``push()`` synchronously from anywhere in the evaluated
    expression; the drain task awaits ``deliver(value)`` for one value at a
    time, so handler work never overlaps and delivery order equals push order.

    ``close()`` lets the queue drain and then ends the loop; ``stop()`` throws
    away whatever is still queued and ends the loop once the in-flight
    delivery (if any) returns.
    """

    def __init__(
        self,
        deliver: Callable[[OutputValue], Awaitable[None]],
        maxsize: int = 0,
        name: str = "output-channel",
    ):
        self._deliver = deliver
        self._queue: asyncio.Queue = asyncio.Queue()
        self._maxsize = maxsize
        self._task: Optional[asyncio.Task] = None
        self._pending = 0
        self.name = name
        self.closed = False
        self.stopped = False
        self.delivered = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        """Values queued but not yet handed to ``deliver``."""
        return self._pending

    def start(self) -> None:
        """Create the drain task. Must be called from a running event loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._drain(), name=self.name)

    def push(self, value: OutputValue, force: bool = False) -> bool:
        """
        Queue ``value`` for delivery.

        Returns False (and logs) when the channel no longer accepts values.
        Raises MaxPendingOutputsExceededError when bounded and full, unless
        ``force`` is set. Unlike the other producer-side failures this one
        reaches user code and ends the run as errored.
        """
        if self.stopped:
            self.dropped += 1
            logger.warning("%s: %s value received after channel stopped; dropped", self.name, value.type)
            return False
        if self.closed:
            self.dropped += 1
            logger.warning("%s: value pushed after done (%s); dropped", self.name, value.type)
            return False
        if self._maxsize and not force and self._pending >= self._maxsize:
            raise MaxPendingOutputsExceededError(self._maxsize)

        self._pending += 1
        self._queue.put_nowait(value)
        return True

    def close(self) -> None:
        """Deliver what is queued, then end the drain loop."""
        if self.closed or self.stopped:
            return
        self.closed = True
        self._queue.put_nowait(_CLOSE)

    def stop(self) -> int:
        """Discard queued values and end the drain loop. Returns the discard count."""
        if self.stopped:
            return 0
        self.stopped = True

        discarded = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            if item is not _CLOSE and item is not _STOP:
                discarded += 1
        self._pending = 0
        self.dropped += discarded

        self._queue.put_nowait(_STOP)
        if discarded:
            logger.info("%s: stopped with %d undelivered value(s)", self.name, discarded)
        return discarded

    async def join(self) -> None:
        """Wait for the drain loop to exit."""
        if self._task is not None:
            await self._task

    async def drained(self) -> None:
        """Wait until every value pushed so far has been delivered (or discarded)."""
        await self._queue.join()

    async def _drain(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is _CLOSE or item is _STOP:
                    return
                self._pending -= 1
                if self.stopped:
                    continue
                try:
                    await self._deliver(item)
                    self.delivered += 1
                except Exception as e:
                    error = e if isinstance(e, HandlerError) else HandlerError(str(e), output_type=item.type)
                    logger.error(
                        "%s: output handler failed for %r output: %s",
                        self.name, item.type, error, exc_info=e,
                    )
            finally:
                self._queue.task_done()
