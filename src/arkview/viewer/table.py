"""Agent table adapter: rows out, selection set back in."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from arkview.model.agent import Agent
    from arkview.model.snapshot import Snapshot


class AgentRow(BaseModel):
    """One row of the agent table."""

    id: str = Field(description="Agent ID")
    kind: str = Field(description="Agent kind")
    x: float = Field(description="X position")
    y: float = Field(description="Y position")
    z: float = Field(description="Z position")


def agent_row(agent: Agent) -> AgentRow:
    return AgentRow(
        id=agent.id,
        kind=agent.kind,
        x=agent.position.x,
        y=agent.position.y,
        z=agent.position.z,
    )


def agent_rows(snapshot: Snapshot) -> list[AgentRow]:
    """Table rows in snapshot order."""
    return [agent_row(agent) for agent in snapshot]


def selection_from_row_state(row_state: Mapping[str, bool]) -> frozenset[str]:
    """Convert a row-selection state ({row id: selected}) to a selection set."""
    return frozenset(row_id for row_id, selected in row_state.items() if selected)
