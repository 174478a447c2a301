"""Domain model: Vector3, Agent, Snapshot."""

from arkview.model.agent import Agent, Vector3
from arkview.model.snapshot import Snapshot, normalize, snapshot_from_response

__all__ = [
    "Agent",
    "Snapshot",
    "Vector3",
    "normalize",
    "snapshot_from_response",
]
