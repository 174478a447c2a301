"""Projection engine: grid extent, camera pose and view frames."""

from arkview.projection.axes import ProjectionAxes
from arkview.projection.camera import CameraPose, compute_camera_pose, project_point
from arkview.projection.extent import DEFAULT_EXTENT, compute_extent
from arkview.projection.projector import (
    GridVisual,
    MarkerVisual,
    ViewFrame,
    build_grid,
    marker_size,
    project,
)

__all__ = [
    "DEFAULT_EXTENT",
    "CameraPose",
    "GridVisual",
    "MarkerVisual",
    "ProjectionAxes",
    "ViewFrame",
    "build_grid",
    "compute_camera_pose",
    "compute_extent",
    "marker_size",
    "project",
    "project_point",
]
