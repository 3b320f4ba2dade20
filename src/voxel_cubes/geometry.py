"""
Geometric Primitives

Immutable 3D vector used for cube centers, extents, mesh vertices and
texture coordinates. Only the arithmetic the cube pipeline needs is
provided: component-wise addition/subtraction and uniform scaling.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vector3:
    """Three-component float vector (value type)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_float(cls, value: float) -> "Vector3":
        """Create a vector with all three components set to ``value``."""
        return cls(value, value, value)

    def __add__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> "Vector3":
        if isinstance(factor, Vector3):
            return NotImplemented
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return self * -1.0

    def scale_by(self, other: "Vector3") -> "Vector3":
        """Component-wise product (per-axis scaling)."""
        return Vector3(self.x * other.x, self.y * other.y, self.z * other.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z
