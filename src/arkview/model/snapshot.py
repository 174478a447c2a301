"""Snapshot model: the normalized agent list for one polling cycle.

A Snapshot is rebuilt wholesale from every neighbours query response.
Raw records missing a kind or a local translation are expected (agents
without kinematic data yet) and are dropped without raising.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from arkview.model.agent import Agent, Vector3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Ordered, immutable collection of agents from one response."""

    agents: tuple[Agent, ...] = ()
    timestamp: Any = None

    def __len__(self) -> int:
        return len(self.agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self.agents)

    def ids(self) -> frozenset[str]:
        """Ids of all agents in the snapshot."""
        return frozenset(agent.id for agent in self.agents)

    def get(self, agent_id: str) -> Agent | None:
        """Look up an agent by id."""
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None


def _resolve_translation(record: Mapping[str, Any]) -> Vector3 | None:
    """Extract ``transform.localTranslation`` as a Vector3, or None."""
    transform = record.get("transform")
    if not isinstance(transform, Mapping):
        return None
    translation = transform.get("localTranslation")
    if not isinstance(translation, Mapping):
        return None
    try:
        x, y, z = (float(translation[axis]) for axis in ("x", "y", "z"))
    except (KeyError, TypeError, ValueError):
        return None
    if not all(math.isfinite(value) for value in (x, y, z)):
        return None
    return Vector3(x=x, y=y, z=z)


def normalize(raw_neighbors: Mapping[str, Any], timestamp: Any = None) -> Snapshot:
    """Build a Snapshot from the ``neighbors`` mapping of a query response.

    Args:
        raw_neighbors: Mapping of agent id to raw record. A record may carry
            ``kind`` and ``transform.localTranslation {x, y, z}``.
        timestamp: Opaque server timestamp carried along unchanged.

    Returns:
        Snapshot with one Agent per fully-resolvable record, in the
        insertion order of ``raw_neighbors``.
    """
    agents: list[Agent] = []
    for agent_id, record in raw_neighbors.items():
        if not isinstance(record, Mapping):
            continue
        kind = record.get("kind")
        position = _resolve_translation(record)
        if kind is None or position is None:
            logger.debug("Skipping agent %s without kind or translation", agent_id)
            continue
        agents.append(Agent(id=str(agent_id), kind=str(kind), position=position))
    return Snapshot(agents=tuple(agents), timestamp=timestamp)


def snapshot_from_response(response: Mapping[str, Any]) -> Snapshot:
    """Normalize a whole ``/api/edge/neighbors/_query`` response body."""
    return normalize(response.get("neighbors") or {}, timestamp=response.get("timestamp"))
