"""Agent dataclass: a tracked entity reported by the edge service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Vector3:
    """A point in 3D space."""

    x: float
    y: float
    z: float

    def component(self, axis: str) -> float:
        """Return the coordinate named by ``axis`` ('x', 'y' or 'z')."""
        if axis == "x":
            return self.x
        if axis == "y":
            return self.y
        if axis == "z":
            return self.z
        raise ValueError(f"Unknown axis: {axis}")

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Agent:
    """An agent as seen in one polling cycle.

    Only agents whose kind and local translation are both known exist;
    there is no partially-populated Agent.
    """

    id: str
    kind: str
    position: Vector3
