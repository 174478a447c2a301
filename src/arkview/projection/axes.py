"""Projection axes: which coordinate plane is shown on screen."""

from __future__ import annotations

from enum import StrEnum


class ProjectionAxes(StrEnum):
    """Selectable projection planes.

    The first letter is the horizontal screen axis, the second the vertical
    one; the remaining coordinate is depth.
    """

    XY = "xy"
    YZ = "yz"
    XZ = "xz"

    @property
    def horizontal(self) -> str:
        return self.value[0]

    @property
    def vertical(self) -> str:
        return self.value[1]

    @property
    def plane(self) -> tuple[str, str]:
        """The two coordinates examined for this plane."""
        return (self.horizontal, self.vertical)

    @property
    def depth(self) -> str:
        """The coordinate orthogonal to the view."""
        (axis,) = {"x", "y", "z"} - set(self.value)
        return axis
