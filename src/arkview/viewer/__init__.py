"""Viewer state, agent table adapter and snapshot polling."""

from arkview.viewer.poller import SnapshotPoller, SnapshotSource
from arkview.viewer.store import ViewerStore
from arkview.viewer.table import AgentRow, agent_row, agent_rows, selection_from_row_state

__all__ = [
    "AgentRow",
    "SnapshotPoller",
    "SnapshotSource",
    "ViewerStore",
    "agent_row",
    "agent_rows",
    "selection_from_row_state",
]
