"""Viewer store: the single owner of mutable view state.

Holds the latest snapshot, the projection axes and the selection set. State
changes only through the transitions below; frames are derived from it by
the pure projection functions.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from arkview.model.snapshot import Snapshot
from arkview.projection.axes import ProjectionAxes
from arkview.projection.projector import ViewFrame, project

logger = logging.getLogger(__name__)


class ViewerStore:
    """Thread-safe view state.

    Snapshots arrive tagged with the sequence number of the poll tick that
    requested them. A snapshot older than the last applied one is discarded,
    so a slow response can never overwrite a newer view.
    """

    def __init__(self, axes: ProjectionAxes = ProjectionAxes.XY) -> None:
        self._snapshot = Snapshot()
        self._sequence = 0
        self._axes = ProjectionAxes(axes)
        self._selection: frozenset[str] = frozenset()
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Snapshot:
        with self._lock:
            return self._snapshot

    @property
    def sequence(self) -> int:
        """Sequence number of the applied snapshot (0 before the first)."""
        with self._lock:
            return self._sequence

    @property
    def axes(self) -> ProjectionAxes:
        with self._lock:
            return self._axes

    @property
    def selection(self) -> frozenset[str]:
        with self._lock:
            return self._selection

    def apply_snapshot(self, snapshot: Snapshot, sequence: int) -> bool:
        """Replace the snapshot unless a newer one has already been applied.

        Args:
            snapshot: Snapshot from one poll tick.
            sequence: That tick's sequence number.

        Returns:
            True if the snapshot was applied, False if it was stale.
        """
        with self._lock:
            if sequence <= self._sequence:
                logger.debug(
                    "Discarding stale snapshot %d (current %d)", sequence, self._sequence
                )
                return False
            self._snapshot = snapshot
            self._sequence = sequence
            return True

    def set_axes(self, axes: ProjectionAxes | str) -> ProjectionAxes:
        """Select a projection plane.

        Raises:
            ValueError: If ``axes`` is not one of xy, yz, xz.
        """
        new_axes = ProjectionAxes(axes)
        with self._lock:
            self._axes = new_axes
        logger.info("Projection axes set to %s", new_axes.value)
        return new_axes

    def set_selection(self, agent_ids: Iterable[str]) -> frozenset[str]:
        """Replace the selection set with ``agent_ids``."""
        selection = frozenset(agent_ids)
        with self._lock:
            self._selection = selection
        return selection

    def clear_selection(self) -> None:
        self.set_selection(())

    def frame(self) -> ViewFrame:
        """Derive the frame for the current state."""
        with self._lock:
            snapshot = self._snapshot
            axes = self._axes
            selection = self._selection
            sequence = self._sequence
        return project(snapshot, axes, selection, sequence=sequence)
