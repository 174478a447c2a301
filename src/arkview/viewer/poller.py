"""Snapshot poller: a cancellable periodic task feeding the viewer store.

Every tick allocates the next sequence number and starts a fetch without
waiting for the previous one, so a slow edge never stretches the period.
Results are handed to ViewerStore.apply_snapshot, which drops any response
that completes after a newer one. Once stopped, no result is applied.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from arkview.source.client import EdgeClientError

if TYPE_CHECKING:
    from arkview.model.snapshot import Snapshot
    from arkview.viewer.store import ViewerStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


class SnapshotSource(Protocol):
    """Anything that can produce the current snapshot (e.g. EdgeClient)."""

    async def fetch_snapshot(self) -> Snapshot: ...


class SnapshotPoller:
    """Periodically fetch snapshots into a ViewerStore.

    Usage:
        async with SnapshotPoller(client, store):
            ...  # store receives a snapshot every interval

    ``start`` acquires the timer and ``stop`` releases it; ``stop`` is
    idempotent and also cancels fetches still in flight.
    """

    def __init__(
        self,
        source: SnapshotSource,
        store: ViewerStore,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self._source = source
        self._store = store
        self._interval = interval
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self._next_sequence = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def in_flight(self) -> int:
        """Number of fetches started but not finished."""
        return len(self._in_flight)

    def start(self) -> None:
        """Start the periodic task. Must be called from a running event loop."""
        if self._active:
            return
        self._active = True
        self._timer = asyncio.get_running_loop().create_task(self._run())
        logger.info("Snapshot poller started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        """Cancel the timer and any in-flight fetches."""
        if not self._active:
            return
        self._active = False

        tasks = [*self._in_flight]
        if self._timer is not None:
            tasks.append(self._timer)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._in_flight.clear()
        logger.info("Snapshot poller stopped")

    async def poll_once(self) -> bool:
        """Run a single fetch outside the timer and wait for it.

        Returns:
            True if the fetched snapshot was applied to the store.
        """
        return await self._poll(self._allocate_sequence(), from_timer=False)

    async def __aenter__(self) -> SnapshotPoller:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    def _allocate_sequence(self) -> int:
        self._next_sequence += 1
        return self._next_sequence

    async def _run(self) -> None:
        """Timer loop: one fetch per interval, first one immediately."""
        loop = asyncio.get_running_loop()
        while self._active:
            task = loop.create_task(self._poll(self._allocate_sequence(), from_timer=True))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            await asyncio.sleep(self._interval)

    async def _poll(self, sequence: int, from_timer: bool) -> bool:
        try:
            snapshot = await self._source.fetch_snapshot()
        except EdgeClientError as e:
            logger.warning("Poll %d skipped: %s", sequence, e, extra={"sequence": sequence})
            return False
        except Exception:
            logger.exception("Poll %d failed unexpectedly", sequence)
            return False

        if from_timer and not self._active:
            return False
        applied = self._store.apply_snapshot(snapshot, sequence)
        logger.debug(
            "Poll %d: %d agents (%s)",
            sequence,
            len(snapshot),
            "applied" if applied else "stale",
            extra={"sequence": sequence},
        )
        return applied
