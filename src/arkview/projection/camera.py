"""Camera pose state machine keyed by projection axes.

Every pose is looked up from a fixed table and rebuilt from scratch; a new
axes selection never rotates the previous camera. Frames recompute the pose
each time, so a renderer that resets camera rotation between frames is
corrected on the next frame without any per-frame patching.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from arkview.projection.axes import ProjectionAxes

Vec3 = tuple[float, float, float]

# Largest integer exactly representable as a float64
MAX_SAFE_INTEGER = 2**53 - 1

# Camera distance along the depth axis, far beyond any grid extent
CAMERA_DISTANCE = MAX_SAFE_INTEGER / 10
FAR_PLANE = MAX_SAFE_INTEGER / 5
NEAR_PLANE = 0.0

# View bounds are 10% wider than the grid extent
VIEW_MARGIN = 1.1


@dataclass(frozen=True)
class _PoseSpec:
    depth_direction: Vec3  # unit vector from origin towards the camera
    rotation: Vec3  # Euler XYZ, radians
    camera_right: Vec3
    camera_up: Vec3
    flip_vertical: bool


_POSE_TABLE: dict[ProjectionAxes, _PoseSpec] = {
    ProjectionAxes.XY: _PoseSpec(
        depth_direction=(0.0, 0.0, 1.0),
        rotation=(0.0, 0.0, 0.0),
        camera_right=(1.0, 0.0, 0.0),
        camera_up=(0.0, 1.0, 0.0),
        flip_vertical=False,
    ),
    ProjectionAxes.YZ: _PoseSpec(
        depth_direction=(1.0, 0.0, 0.0),
        rotation=(math.pi / 2, math.pi / 2, 0.0),
        camera_right=(0.0, 1.0, 0.0),
        camera_up=(0.0, 0.0, 1.0),
        flip_vertical=False,
    ),
    # Looking down from +y puts -z at the top; the vertical flip restores +z
    ProjectionAxes.XZ: _PoseSpec(
        depth_direction=(0.0, 1.0, 0.0),
        rotation=(-math.pi / 2, 0.0, 0.0),
        camera_right=(1.0, 0.0, 0.0),
        camera_up=(0.0, 0.0, -1.0),
        flip_vertical=True,
    ),
}


@dataclass(frozen=True)
class CameraPose:
    """Orthographic camera looking at the origin along one depth axis.

    ``screen_right`` and ``screen_up`` are the world directions shown to the right of and
    above the screen centre, with any vertical flip already applied.
    ``camera_up`` is the unflipped up vector of the camera itself and
    ``scale`` is the camera scale a scene-graph renderer should apply.
    """

    axes: ProjectionAxes
    position: Vec3
    rotation: Vec3
    direction: Vec3
    camera_up: Vec3
    screen_right: Vec3
    screen_up: Vec3
    scale: Vec3
    flip_vertical: bool
    left: float
    right: float
    top: float
    bottom: float
    near: float = NEAR_PLANE
    far: float = FAR_PLANE


def compute_camera_pose(grid_extent: float, axes: ProjectionAxes) -> CameraPose:
    """Build the camera pose for an extent and projection plane.

    Args:
        grid_extent: Grid half-width ``g``; the view spans ``±1.1 g``.
        axes: Projection plane to face.

    Returns:
        A fresh CameraPose, independent of any previously returned pose.
    """
    spec = _POSE_TABLE[ProjectionAxes(axes)]
    position = _scale(spec.depth_direction, CAMERA_DISTANCE)
    direction = _scale(spec.depth_direction, -1.0)
    screen_up = _scale(spec.camera_up, -1.0) if spec.flip_vertical else spec.camera_up
    bound = grid_extent * VIEW_MARGIN

    return CameraPose(
        axes=ProjectionAxes(axes),
        position=position,
        rotation=spec.rotation,
        direction=direction,
        camera_up=spec.camera_up,
        screen_right=spec.camera_right,
        screen_up=screen_up,
        scale=(1.0, -1.0 if spec.flip_vertical else 1.0, 1.0),
        flip_vertical=spec.flip_vertical,
        left=-bound,
        right=bound,
        top=bound,
        bottom=-bound,
    )


def project_point(pose: CameraPose, point: Vec3) -> tuple[float, float]:
    """Screen coordinates (u, v) of a 3D point in world units.

    ``u`` grows to the right and ``v`` grows upwards; depth is discarded.
    """
    return (_dot(point, pose.screen_right), _dot(point, pose.screen_up))


def _scale(v: Vec3, k: float) -> Vec3:
    # 0.0 * -1.0 is -0.0; keep zeros positive for clean serialisation
    return (v[0] * k + 0.0, v[1] * k + 0.0, v[2] * k + 0.0)


def _dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]
