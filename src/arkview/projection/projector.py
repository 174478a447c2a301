"""Frame projector: Snapshot + view selections to a renderable ViewFrame.

Converts the current snapshot, projection axes and selection set into
dataclasses suitable for any rendering surface. Each ViewFrame is a complete
description of one frame: grid, camera and one marker per agent.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from arkview.projection.axes import ProjectionAxes
from arkview.projection.camera import CameraPose, compute_camera_pose, project_point
from arkview.projection.extent import compute_extent

if TYPE_CHECKING:
    from arkview.model.agent import Agent
    from arkview.model.snapshot import Snapshot


# Grid always has the same number of cells, whatever its extent
GRID_DIVISIONS = 20
GRID_CENTER_COLOR = "#00ffff"
GRID_COLOR = "#00ff00"

# Grids are drawn in the XZ plane by default; rotate onto the viewed plane
GRID_ROTATIONS: dict[ProjectionAxes, tuple[float, float, float]] = {
    ProjectionAxes.XY: (math.pi / 2, 0.0, 0.0),
    ProjectionAxes.YZ: (0.0, 0.0, math.pi / 2),
    ProjectionAxes.XZ: (0.0, 0.0, 0.0),
}

# Marker edge length as a fraction of the grid extent
SELECTED_MARKER_RATIO = 1 / 70
MARKER_RATIO = 1 / 100

SELECTED_MARKER_COLOR = "red"
MARKER_COLOR = "black"


@dataclass
class MarkerVisual:
    """A cube marking one agent.

    ``position`` is the agent's raw 3D position; the camera does the axis
    mapping. ``u``/``v`` are the same point in screen units for 2D surfaces.
    """

    id: str
    kind: str
    position: tuple[float, float, float]
    u: float
    v: float
    size: float
    color: str = MARKER_COLOR
    selected: bool = False


@dataclass
class GridVisual:
    """Reference grid lying on the viewed plane."""

    size: float
    divisions: int = GRID_DIVISIONS
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    center_color: str = GRID_CENTER_COLOR
    color: str = GRID_COLOR


@dataclass
class ViewFrame:
    """Everything a rendering surface needs for one frame."""

    sequence: int
    axes: ProjectionAxes
    extent: float
    camera: CameraPose
    grid: GridVisual
    markers: list[MarkerVisual] = field(default_factory=list)


def project(
    snapshot: Snapshot,
    axes: ProjectionAxes,
    selection: Iterable[str] = (),
    sequence: int = 0,
) -> ViewFrame:
    """Project a snapshot onto the chosen plane.

    Args:
        snapshot: Agents of the current polling cycle.
        axes: Projection plane.
        selection: Ids to highlight. Ids absent from the snapshot are ignored.
        sequence: Poll sequence number the snapshot came from.

    Returns:
        ViewFrame with a freshly computed extent, camera and grid.
    """
    axes = ProjectionAxes(axes)
    selected_ids = frozenset(selection)
    extent = compute_extent(snapshot, axes)
    camera = compute_camera_pose(extent, axes)

    return ViewFrame(
        sequence=sequence,
        axes=axes,
        extent=extent,
        camera=camera,
        grid=build_grid(extent, axes),
        markers=[
            _project_agent(agent, camera, extent, agent.id in selected_ids)
            for agent in snapshot
        ],
    )


def build_grid(extent: float, axes: ProjectionAxes) -> GridVisual:
    """Grid spanning ``2 * extent`` on the viewed plane."""
    return GridVisual(size=2 * extent, rotation=GRID_ROTATIONS[ProjectionAxes(axes)])


def marker_size(extent: float, selected: bool) -> float:
    """Marker edge length, proportional to the grid extent."""
    ratio = SELECTED_MARKER_RATIO if selected else MARKER_RATIO
    return extent * ratio


def _project_agent(agent: Agent, camera: CameraPose, extent: float, selected: bool) -> MarkerVisual:
    position = agent.position.as_tuple()
    u, v = project_point(camera, position)
    return MarkerVisual(
        id=agent.id,
        kind=agent.kind,
        position=position,
        u=u,
        v=v,
        size=marker_size(extent, selected),
        color=SELECTED_MARKER_COLOR if selected else MARKER_COLOR,
        selected=selected,
    )
