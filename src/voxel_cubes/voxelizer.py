"""
Voxel Grid and Cube Builder

This module provides:
- VoxelGrid: Dense 3D RGBA array of cells
- CubeBuilder: Converts a VoxelGrid into one unit Cube per opaque cell

An image of width W and height H becomes a W x H x thickness grid:
cell x = pixel column, cell y = pixel row, cell z = extrusion layer.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

import numpy as np

from .cube import CellMapping, Cube, cell_texture_quad
from .material import Color, Material
from .progress import ProgressSink, resolve

logger = logging.getLogger(__name__)


@dataclass
class VoxelGrid:
    """
    Dense 3D voxel grid with RGBA color support.

    Colors are stored as float64 in [0, 1]; a cell with alpha 0 is empty.

    Coordinate system: X = image column, Y = image row, Z = layer
    """

    size_x: int
    size_y: int
    size_z: int
    _data: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        """Initialize the voxel grid data array."""
        self._data = np.zeros(
            (self.size_x, self.size_y, self.size_z, 4),
            dtype=np.float64
        )

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "VoxelGrid":
        """
        Wrap an existing (X, Y, Z, 4) array.

        Integer arrays are treated as 8-bit channels and normalized to [0, 1].
        """
        if rgba.ndim != 4 or rgba.shape[3] != 4:
            raise ValueError("Voxel array must have shape (X, Y, Z, 4)")

        grid = cls(*rgba.shape[:3])
        grid._data = _normalize_channels(rgba)
        return grid

    @classmethod
    def from_image(cls, rgba: np.ndarray, thickness: int = 1) -> "VoxelGrid":
        """
        Build a grid from an (H, W, 4) image, extruded ``thickness`` layers.

        Args:
            rgba: RGBA image array, uint8 or float in [0, 1]
            thickness: Number of layers along z

        Returns:
            VoxelGrid of shape (W, H, thickness)
        """
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError("Color array must have shape (H, W, 4)")
        if thickness < 1:
            raise ValueError(f"Thickness must be at least 1, got {thickness}")

        columns = np.transpose(_normalize_channels(rgba), (1, 0, 2))
        data = np.repeat(columns[:, :, np.newaxis, :], thickness, axis=2)

        grid = cls(data.shape[0], data.shape[1], data.shape[2])
        grid._data = np.ascontiguousarray(data)
        return grid

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Get grid dimensions (x, y, z)."""
        return (self.size_x, self.size_y, self.size_z)

    @property
    def data(self) -> np.ndarray:
        """Get the raw RGBA data array."""
        return self._data

    def occupancy(self, alpha_threshold: float = 0.0) -> np.ndarray:
        """Get binary occupancy mask (True where alpha > threshold)."""
        return self._data[:, :, :, 3] > alpha_threshold

    def count_voxels(self, alpha_threshold: float = 0.0) -> int:
        """Count the number of solid voxels."""
        return int(np.sum(self.occupancy(alpha_threshold)))

    def iterate_voxels(self, alpha_threshold: float = 0.0) -> Iterator[Tuple[int, int, int, np.ndarray]]:
        """
        Iterate over all solid voxels in (x, y, z) scan order.

        Yields:
            Tuples of (x, y, z, rgba)
        """
        indices = np.argwhere(self.occupancy(alpha_threshold))
        for x, y, z in indices:
            yield (int(x), int(y), int(z), self._data[x, y, z].copy())


def _normalize_channels(rgba: np.ndarray) -> np.ndarray:
    """Convert 8-bit or float channels to float64 in [0, 1]."""
    if np.issubdtype(rgba.dtype, np.integer):
        return rgba.astype(np.float64) / 255.0
    return rgba.astype(np.float64)


class MaterialMode(Enum):
    """How cube materials are derived from cells."""
    TEXTURE = "texture"   # Shared white material sampling the source image
    COLOR = "color"       # One material per distinct cell color


class CubeBuilder:
    """
    Converts a voxel grid into unit cubes.

    Every cell with alpha above the threshold becomes a unit cube centered
    where the cell mapping puts it. Fully transparent cells never produce
    a cube.
    """

    def __init__(
        self,
        mapping: Optional[CellMapping] = None,
        material_mode: Union[str, MaterialMode] = MaterialMode.TEXTURE,
        texture_index: int = 0,
        alpha_threshold: float = 0.0
    ):
        """
        Initialize the builder.

        Args:
            mapping: Cell to world-space mapping (default: unit spacing, y inverted)
            material_mode: TEXTURE or COLOR
            texture_index: Texture registry index used in TEXTURE mode
            alpha_threshold: Cells with alpha > threshold (0-1) become cubes
        """
        if isinstance(material_mode, str):
            material_mode = MaterialMode(material_mode)

        self.mapping = mapping or CellMapping()
        self.material_mode = material_mode
        self.texture_index = texture_index
        self.alpha_threshold = alpha_threshold

    def material_for(self, rgba: np.ndarray) -> Material:
        """Material of a single cell."""
        if self.material_mode == MaterialMode.TEXTURE:
            return Material.textured(self.texture_index)

        material = Material.from_color(
            Color(float(rgba[0]), float(rgba[1]), float(rgba[2]))
        )
        alpha = float(rgba[3])
        if alpha < 1.0:
            material = replace(material, dissolve=alpha)
        return material

    def build(
        self,
        grid: VoxelGrid,
        progress: Optional[ProgressSink] = None
    ) -> List[Cube]:
        """
        Create one unit cube per opaque cell.

        Args:
            grid: Source voxel grid
            progress: Optional progress sink (one step per cube)

        Returns:
            Unit cubes in (x, y, z) scan order, each tagged with its cell
        """
        progress = resolve(progress)
        progress.start("building cubes", grid.count_voxels(self.alpha_threshold))

        textured = self.material_mode == MaterialMode.TEXTURE
        basis = (grid.size_x, grid.size_y)
        scale = self.mapping.cube_scale

        cubes: List[Cube] = []
        for x, y, z, rgba in grid.iterate_voxels(self.alpha_threshold):
            cell = (x, y, z)
            cubes.append(Cube(
                position=self.mapping.center(cell),
                scale=scale,
                material=self.material_for(rgba),
                texture_quad=cell_texture_quad(cell, basis) if textured else None,
                cell=cell,
                texture_basis=basis if textured else None,
            ))
            progress.advance()
        progress.finish()

        logger.debug(
            "Built %d unit cubes from %s grid (%s mode)",
            len(cubes), grid.shape, self.material_mode.value
        )
        return cubes
