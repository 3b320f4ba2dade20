"""
Axis-Aligned Cubes

A Cube is one box of the output model: a center, full per-axis extents,
a material and an optional texture quad shared by all six faces. Unit
cubes produced from a grid also remember the cell they came from, which
is what the merge optimizer reasons about.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .geometry import Vector3
from .material import Material

Cell = Tuple[int, int, int]
TextureBasis = Tuple[int, int]
TextureQuad = Tuple[Vector3, Vector3, Vector3, Vector3]

UNIT_EXTENT: Cell = (1, 1, 1)


@dataclass
class Cube:
    """
    Single axis-aligned box.

    Attributes:
        position: Center of the box
        scale: Full extents along x, y and z
        material: Surface material
        texture_quad: Optional 4 texture coordinates, one per face corner
        cell: Grid cell of the box's minimum corner (None if not grid-based)
        extent: Number of grid cells covered along each axis
        texture_basis: (width, height) the texture quad was computed for
    """

    position: Vector3
    scale: Vector3
    material: Material
    texture_quad: Optional[TextureQuad] = None
    cell: Optional[Cell] = None
    extent: Cell = UNIT_EXTENT
    texture_basis: Optional[TextureBasis] = None

    @property
    def min_corner(self) -> Vector3:
        half = self.scale * 0.5
        return Vector3(
            self.position.x - abs(half.x),
            self.position.y - abs(half.y),
            self.position.z - abs(half.z),
        )

    @property
    def max_corner(self) -> Vector3:
        half = self.scale * 0.5
        return Vector3(
            self.position.x + abs(half.x),
            self.position.y + abs(half.y),
            self.position.z + abs(half.z),
        )

    @property
    def is_unit(self) -> bool:
        """True if the cube covers exactly one grid cell."""
        return self.cell is not None and tuple(self.extent) == UNIT_EXTENT

    @property
    def cell_count(self) -> int:
        ex, ey, ez = self.extent
        return ex * ey * ez

    def contains(self, point: Vector3) -> bool:
        """
        Check whether a point lies inside the box (boundary inclusive).

        Args:
            point: Point to test

        Returns:
            True if every coordinate is within the box's min/max on that axis
        """
        lo = self.min_corner
        hi = self.max_corner
        return (
            lo.x <= point.x <= hi.x and
            lo.y <= point.y <= hi.y and
            lo.z <= point.z <= hi.z
        )

    def overlaps(self, other: "Cube") -> bool:
        """Check whether two boxes share interior volume (touching faces do not count)."""
        a_lo, a_hi = self.min_corner, self.max_corner
        b_lo, b_hi = other.min_corner, other.max_corner
        return (
            a_lo.x < b_hi.x and b_lo.x < a_hi.x and
            a_lo.y < b_hi.y and b_lo.y < a_hi.y and
            a_lo.z < b_hi.z and b_lo.z < a_hi.z
        )

    def cells(self):
        """Iterate over the grid cells covered by this cube."""
        if self.cell is None:
            return
        x0, y0, z0 = self.cell
        ex, ey, ez = self.extent
        for x in range(x0, x0 + ex):
            for y in range(y0, y0 + ey):
                for z in range(z0, z0 + ez):
                    yield (x, y, z)


@dataclass(frozen=True)
class CellMapping:
    """
    Maps integer grid cells to world-space cube centers.

    center(cell) = origin + step * cell (component-wise). The default
    puts pixel columns on +x, pixel rows on -y (so the image is upright)
    and extrusion layers on +z, one unit per cell.
    """

    origin: Vector3 = Vector3(0.0, 0.0, 0.0)
    step: Vector3 = Vector3(1.0, -1.0, 1.0)

    @classmethod
    def scaled(cls, voxel_scale: float) -> "CellMapping":
        return cls(step=Vector3(1.0, -1.0, 1.0) * voxel_scale)

    def center(self, cell: Cell) -> Vector3:
        x, y, z = cell
        return self.origin + self.step.scale_by(Vector3(x, y, z))

    @property
    def cube_scale(self) -> Vector3:
        return Vector3(abs(self.step.x), abs(self.step.y), abs(self.step.z))


def cell_texture_coordinate(cell: Cell, basis: TextureBasis) -> Vector3:
    """Texture coordinate of a single cell: (column / width, -row / height, 0)."""
    width, height = basis
    return Vector3(cell[0] / width, -cell[1] / height, 0.0)


def cell_texture_quad(cell: Cell, basis: TextureBasis) -> TextureQuad:
    """Texture quad for a unit cube: the cell coordinate on every corner."""
    coord = cell_texture_coordinate(cell, basis)
    return (coord, coord, coord, coord)


def footprint_texture_quad(cell: Cell, extent: Cell, basis: TextureBasis) -> TextureQuad:
    """
    Texture quad spanning the footprint of a merged cuboid.

    The four corners of the covered column/row rectangle are mapped into
    the same (column / width, -row / height) space used for single cells,
    in the corner order of the +z face: (+x, +y), (-x, +y), (-x, -y), (+x, -y).
    Right columns (+x) get u1, top rows (+y) get v0.
    """
    width, height = basis
    u0 = cell[0] / width
    u1 = (cell[0] + extent[0]) / width
    v0 = -cell[1] / height
    v1 = -(cell[1] + extent[1]) / height
    return (
        Vector3(u1, v0, 0.0),
        Vector3(u0, v0, 0.0),
        Vector3(u0, v1, 0.0),
        Vector3(u1, v1, 0.0),
    )
