"""Grid extent: a power-of-ten half-width bounding every visible point.

Snapping to powers of ten keeps the grid scale stable while agents drift;
it only jumps when the furthest agent crosses a decade boundary.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arkview.model.snapshot import Snapshot
    from arkview.projection.axes import ProjectionAxes

# Extent used when no agent is visible or every agent sits on the origin
DEFAULT_EXTENT = 1.0

# Largest extent whose grid size (2g) and view bounds (1.1g) stay finite
MAX_EXTENT = 1e307


def max_abs_coordinate(snapshot: Snapshot, axes: ProjectionAxes) -> float | None:
    """Largest finite absolute coordinate on the plane, or None if there is none."""
    values = [
        abs(agent.position.component(axis)) for agent in snapshot for axis in axes.plane
    ]
    finite = [value for value in values if math.isfinite(value)]
    if not finite:
        return None
    return max(finite)


def round_up_to_power_of_ten(m: float) -> float:
    """Smallest power of ten greater than or equal to ``m`` (0 < ``m`` <= MAX_EXTENT)."""
    exponent = math.ceil(math.log10(m))
    # log10 may land a hair off an exact decade; settle on the tight power
    if 10.0**exponent < m:
        exponent += 1
    elif 10.0 ** (exponent - 1) >= m:
        exponent -= 1
    return 10.0**exponent


def compute_extent(snapshot: Snapshot, axes: ProjectionAxes) -> float:
    """Compute the grid extent ``g`` for a snapshot on the given plane.

    Args:
        snapshot: Agents of the current polling cycle.
        axes: Projection plane whose two coordinates are examined.

    Returns:
        ``10 ** ceil(log10(m))`` where ``m`` is the largest absolute plane
        coordinate, DEFAULT_EXTENT when ``m`` is undefined or zero, and
        MAX_EXTENT when ``m`` lies beyond it. Non-finite coordinates are
        not counted.
    """
    m = max_abs_coordinate(snapshot, axes)
    if m is None or m <= 0.0:
        return DEFAULT_EXTENT
    if m >= MAX_EXTENT:
        return MAX_EXTENT
    return round_up_to_power_of_ten(m)
