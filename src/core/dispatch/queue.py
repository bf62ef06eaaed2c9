"""
Sequential dispatch of dependent follow-up requests.

A single dissection produces N instruction steps, each needing its own image.
Entries run strictly in submission order, one at a time, with a minimum
delay between them so a burst of steps stays under the image-generation
rate limit.
"""

import asyncio
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple

from common.constants import DispatchConstants
from common.enums import QueueState
from common.exceptions import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass
class QueueEntry:
    """Unit of deferred work."""

    execute: Callable[[], Awaitable[Any]]
    id: str = field(default_factory=lambda: f"entry_{uuid.uuid4().hex[:8]}")


class SequentialDispatchQueue:
    """FIFO single-flight executor: ``idle -> draining -> idle``."""

    def __init__(
        self,
        inter_entry_delay_ms: int = DispatchConstants.DEFAULT_INTER_ENTRY_DELAY_MS,
        name: str = "dispatch",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize dispatch queue

        Args:
            inter_entry_delay_ms: Minimum delay between one entry settling and the next starting
            name: Queue name for logging
            sleep: Awaitable sleep taking seconds, injectable for tests
        """
        if inter_entry_delay_ms < 0:
            raise InvalidParameterError(
                "inter_entry_delay_ms", inter_entry_delay_ms, "must be >= 0"
            )

        self.inter_entry_delay_ms = inter_entry_delay_ms
        self.name = name
        self._sleep = sleep
        self._pending: Deque[Tuple[QueueEntry, asyncio.Future]] = deque()
        self._worker: Optional[asyncio.Task] = None
        self._active: Optional[QueueEntry] = None
        self._last_settled_at: Optional[float] = None

        # Statistics
        self.completed_count = 0
        self.failed_count = 0
        self.cancelled_count = 0

    @property
    def state(self) -> QueueState:
        if self._worker is not None and not self._worker.done():
            return QueueState.DRAINING
        return QueueState.IDLE

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def active_entry_id(self) -> Optional[str]:
        return self._active.id if self._active else None

    def enqueue(self, entry: QueueEntry) -> asyncio.Future:
        """
        Submit an entry for sequential execution.

        Must be called from within the running event loop.

        Returns:
            Future resolving to the entry's result or raising its error
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append((entry, future))

        logger.debug(f"[{self.name}] Enqueued {entry.id} ({len(self._pending)} pending)")

        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())

        return future

    def cancel(self) -> int:
        """
        Drop all entries that have not started yet.

        The entry currently executing runs to completion. Futures of dropped
        entries are cancelled.

        Returns:
            Number of entries dropped
        """
        dropped = 0
        while self._pending:
            entry, future = self._pending.popleft()
            future.cancel()
            dropped += 1

        self.cancelled_count += dropped
        if dropped:
            logger.info(f"[{self.name}] Cancelled {dropped} pending entries")
        return dropped

    async def wait_idle(self) -> None:
        """Wait until every submitted entry has settled."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    async def _wait_for_spacing(self) -> None:
        """Sleep until the inter-entry delay since the last settled entry has elapsed."""
        if self._last_settled_at is None or self.inter_entry_delay_ms <= 0:
            return

        elapsed_ms = (asyncio.get_running_loop().time() - self._last_settled_at) * 1000
        remaining_ms = self.inter_entry_delay_ms - elapsed_ms
        if remaining_ms > 0:
            await self._sleep(remaining_ms / 1000)

    async def _drain(self) -> None:
        logger.debug(f"[{self.name}] Draining")

        while self._pending:
            await self._wait_for_spacing()
            if not self._pending:
                break  # cancelled while waiting

            entry, future = self._pending.popleft()

            if future.cancelled():
                # Caller stopped waiting before the entry started
                self.cancelled_count += 1
                continue

            self._active = entry
            try:
                result = await entry.execute()
            except Exception as e:
                self.failed_count += 1
                logger.debug(f"[{self.name}] Entry {entry.id} failed: {e}")
                if not future.done():
                    future.set_exception(e)
            else:
                self.completed_count += 1
                if not future.done():
                    future.set_result(result)
            finally:
                self._active = None
                self._last_settled_at = asyncio.get_running_loop().time()

        logger.debug(f"[{self.name}] Idle")
