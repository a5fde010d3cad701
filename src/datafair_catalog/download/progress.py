import asyncio
import logging

from datafair_catalog.context import ProgressSink

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Cumulative byte counter with at most one notification in flight.

    A new notification is only dispatched once the previous one has been
    acknowledged by the sink, so fast streams cannot pile up pending calls.
    """

    def __init__(self, sink: ProgressSink | None, task_name: str) -> None:
        self._sink = sink
        self._task_name = task_name
        self._pending: asyncio.Task[None] | None = None
        self._reported = 0
        self.total_bytes = 0

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    def add(self, nbytes: int) -> None:
        self.total_bytes += nbytes
        if self._sink is None or self._pending is not None:
            return
        self._reported = self.total_bytes
        self._pending = asyncio.create_task(self._notify(self.total_bytes))

    async def _notify(self, count: int) -> None:
        if self._sink is None:
            return
        try:
            await self._sink.progress(self._task_name, count)
        except Exception:
            logger.warning("Progress notification failed", exc_info=True)
        finally:
            self._pending = None

    async def settle(self) -> None:
        if self._pending is not None:
            await self._pending

    async def flush(self) -> None:
        """Wait for the in-flight notification, then report the final count."""
        await self.settle()
        if self._sink is not None and self._reported != self.total_bytes:
            self._reported = self.total_bytes
            await self._notify(self.total_bytes)
