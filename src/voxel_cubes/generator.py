"""
Main CubeMeshGenerator Class

This is the primary interface for the cube mesh pipeline.
It orchestrates:
1. Image loading
2. Cube building (one unit cube per opaque pixel/voxel)
3. Greedy merging of adjacent compatible cubes
4. Mesh emission
5. Export to .obj/.mtl

Example Usage:
    generator = CubeMeshGenerator(material_mode="color")
    generator.load_image("sprite.png")
    generator.build_cubes()
    generator.optimize()
    generator.build_mesh()
    generator.export_obj("output")   # output.obj + output.mtl
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from .cube import CellMapping, Cube
from .exporters import OBJExporter
from .greedy_merge import GreedyMerger
from .ingestion import ImageLoader
from .mesh import MeshModel
from .progress import ProgressSink, resolve
from .voxelizer import CubeBuilder, MaterialMode, VoxelGrid

logger = logging.getLogger(__name__)

DEFAULT_TEXTURE_NAME = "texture.png"


class CubeMeshGenerator:
    """
    High-level interface for converting pixel art into cube meshes.

    Attributes:
        grid: The current voxel grid
        cubes: Unit cubes built from the grid
        merged_cubes: Cubes after greedy merging
        mesh: The current mesh model
    """

    def __init__(
        self,
        alpha_threshold: int = 0,
        voxel_scale: float = 1.0,
        material_mode: Union[str, MaterialMode] = MaterialMode.TEXTURE,
        thickness: int = 1,
        merge: bool = True,
        deduplicate_vertices: bool = True,
        progress: Optional[ProgressSink] = None
    ):
        """
        Initialize the generator.

        Args:
            alpha_threshold: Pixels with alpha > threshold (0-255) become cubes
            voxel_scale: Edge length of one cube in output units
            material_mode: "texture" (shared textured material) or "color"
                (one material per pixel color)
            thickness: Number of cube layers the image is extruded along z
            merge: If True, merge adjacent compatible cubes before emitting
            deduplicate_vertices: Re-use identical vertices in the mesh
            progress: Progress sink handed to every stage
        """
        if isinstance(material_mode, str):
            material_mode = MaterialMode(material_mode)

        self.alpha_threshold = alpha_threshold
        self.voxel_scale = voxel_scale
        self.material_mode = material_mode
        self.thickness = thickness
        self.merge = merge
        self.deduplicate_vertices = deduplicate_vertices
        self.progress = resolve(progress)

        self._image_loader: Optional[ImageLoader] = None
        self._texture_name: str = DEFAULT_TEXTURE_NAME
        self._grid: Optional[VoxelGrid] = None
        self._cubes: Optional[List[Cube]] = None
        self._merged: Optional[List[Cube]] = None
        self._mesh: Optional[MeshModel] = None

    def load_image(
        self,
        image_path: Union[str, Path],
        texture_name: Optional[str] = None
    ) -> "CubeMeshGenerator":
        """
        Load a pixel art image.

        Args:
            image_path: Path to the sprite image (PNG recommended)
            texture_name: Name written to map_Kd in texture mode
                (default: the image path as given)

        Returns:
            self for method chaining
        """
        self._image_loader = ImageLoader()
        self._image_loader.load(image_path)
        self._texture_name = texture_name if texture_name is not None else str(image_path)
        self._reset(grid=True)
        return self

    def load_array(
        self,
        rgba_array: np.ndarray,
        texture_name: Optional[str] = None
    ) -> "CubeMeshGenerator":
        """
        Load image data from a numpy array.

        Args:
            rgba_array: RGBA image array of shape (H, W, 4)
            texture_name: Name written to map_Kd in texture mode

        Returns:
            self for method chaining
        """
        self._image_loader = ImageLoader()
        self._image_loader.load_from_array(rgba_array)
        self._texture_name = texture_name or DEFAULT_TEXTURE_NAME
        self._reset(grid=True)
        return self

    def _reset(self, grid: bool = False):
        if grid:
            self._grid = None
            self._cubes = None
        self._merged = None
        self._mesh = None

    def _builder(self) -> CubeBuilder:
        return CubeBuilder(
            mapping=CellMapping.scaled(self.voxel_scale),
            material_mode=self.material_mode,
            texture_index=0,
            alpha_threshold=self.alpha_threshold / 255.0,
        )

    def _textures(self) -> List[str]:
        if self.material_mode == MaterialMode.TEXTURE:
            return [self._texture_name]
        return []

    def build_cubes(self) -> "CubeMeshGenerator":
        """
        Convert the loaded image into unit cubes.

        Returns:
            self for method chaining
        """
        if self._image_loader is None:
            raise RuntimeError("No image loaded. Call load_image() first.")

        self._grid = VoxelGrid.from_image(self._image_loader.color_image, self.thickness)
        self._cubes = self._builder().build(self._grid, self.progress)
        self._reset()
        return self

    def optimize(self) -> "CubeMeshGenerator":
        """
        Merge adjacent compatible cubes into larger cuboids.

        Returns:
            self for method chaining
        """
        if self._cubes is None:
            self.build_cubes()

        merger = GreedyMerger()
        self._merged = merger.merge(self._cubes, self.progress)
        self._mesh = None

        logger.info(
            "Optimized %d cubes into %d", len(self._cubes), len(self._merged)
        )
        return self

    def build_mesh(self) -> "CubeMeshGenerator":
        """
        Emit the current cubes into a new mesh model.

        Uses the merged cubes when merging is enabled, running the
        optimizer first if needed.

        Returns:
            self for method chaining
        """
        if self._cubes is None:
            self.build_cubes()
        if self.merge and self._merged is None:
            self.optimize()

        self._mesh = MeshModel.from_cubes(
            self.cubes,
            textures=self._textures(),
            deduplicate_vertices=self.deduplicate_vertices,
            progress=self.progress,
        )
        return self

    def export_obj(
        self,
        base_path: Union[str, Path],
        mtl_reference: Optional[str] = None
    ) -> Tuple[Path, Path]:
        """
        Export to ``<base>.obj`` and ``<base>.mtl``.

        Args:
            base_path: Output path without extension
            mtl_reference: Text after ``mtllib`` (default: the .mtl file name)

        Returns:
            Tuple of (obj_path, mtl_path)
        """
        if self._mesh is None:
            self.build_mesh()

        exporter = OBJExporter(mtl_reference=mtl_reference)
        return exporter.export(self._mesh, base_path, self.progress)

    def run(self, base_path: Union[str, Path]) -> Tuple[Path, Path]:
        """Run every remaining stage and export."""
        self.build_cubes()
        if self.merge:
            self.optimize()
        self.build_mesh()
        return self.export_obj(base_path)

    @property
    def grid(self) -> Optional[VoxelGrid]:
        """Get the current voxel grid."""
        return self._grid

    @property
    def unit_cubes(self) -> List[Cube]:
        """Unit cubes as built from the grid."""
        return list(self._cubes or [])

    @property
    def cubes(self) -> List[Cube]:
        """Cubes that will be (or were) emitted."""
        if self.merge and self._merged is not None:
            return list(self._merged)
        return self.unit_cubes

    @property
    def mesh(self) -> Optional[MeshModel]:
        """Get the current mesh model."""
        return self._mesh

    @property
    def cube_count(self) -> int:
        return len(self.cubes)

    @property
    def vertex_count(self) -> int:
        if self._mesh is None:
            return 0
        return len(self._mesh.vertices)

    @property
    def face_count(self) -> int:
        if self._mesh is None:
            return 0
        return len(self._mesh.faces)

    @property
    def material_count(self) -> int:
        if self._mesh is None:
            return 0
        return len(self._mesh.materials)

    def get_mesh_stats(self) -> dict:
        """
        Get mesh statistics including greedy merging effectiveness.

        Returns:
            Dictionary with mesh statistics
        """
        if self._cubes is None:
            return {"error": "No cubes built"}

        merged = self._merged
        if merged is None:
            merged = GreedyMerger().merge(self._cubes)

        textures = self._textures()
        naive_mesh = MeshModel.from_cubes(
            self._cubes, textures, self.deduplicate_vertices
        )
        merged_mesh = MeshModel.from_cubes(
            merged, textures, self.deduplicate_vertices
        )

        stats = compare_mesh_stats(merged_mesh, naive_mesh)
        stats["unit_cubes"] = len(self._cubes)
        stats["merged_cubes"] = len(merged)
        stats["materials"] = len(merged_mesh.materials)
        stats["grid_size"] = self._grid.shape if self._grid is not None else None
        return stats

    def preview(self) -> dict:
        """
        Get a preview of the current state.

        Returns:
            Dictionary with current state information
        """
        info = {
            "image_loaded": self._image_loader is not None,
            "cubes_built": self._cubes is not None,
            "optimized": self._merged is not None,
            "meshed": self._mesh is not None,
        }

        if self._image_loader:
            info["image_size"] = self._image_loader.size

        if self._cubes is not None:
            info["unit_cubes"] = len(self._cubes)

        if self._merged is not None:
            info["merged_cubes"] = len(self._merged)

        if self._mesh:
            info.update(self._mesh.stats())

        return info


def compare_mesh_stats(merged_mesh: MeshModel, naive_mesh: MeshModel) -> dict:
    """
    Compare statistics between merged and unmerged meshes.

    Args:
        merged_mesh: Mesh emitted from merged cubes
        naive_mesh: Mesh emitted from unit cubes

    Returns:
        Dictionary with comparison statistics
    """
    merged_verts = len(merged_mesh.vertices)
    naive_verts = len(naive_mesh.vertices)
    merged_faces = len(merged_mesh.faces)
    naive_faces = len(naive_mesh.faces)

    reduction_verts = (1 - merged_verts / naive_verts) * 100 if naive_verts > 0 else 0
    reduction_faces = (1 - merged_faces / naive_faces) * 100 if naive_faces > 0 else 0

    return {
        "merged_vertices": merged_verts,
        "naive_vertices": naive_verts,
        "merged_faces": merged_faces,
        "naive_faces": naive_faces,
        "vertex_reduction_percent": reduction_verts,
        "face_reduction_percent": reduction_faces,
    }


class BatchProcessor:
    """
    Batch processing for multiple images.

    Use this for converting a directory of sprites with consistent settings.
    """

    def __init__(self, **generator_kwargs):
        """
        Initialize the batch processor.

        Args:
            **generator_kwargs: Arguments passed to CubeMeshGenerator
        """
        self.generator_kwargs = generator_kwargs

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        pattern: str = "*.png"
    ) -> List[str]:
        """
        Process all images in a directory.

        Args:
            input_dir: Input directory
            output_dir: Output directory
            pattern: Glob pattern for input files

        Returns:
            List of output base paths
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        outputs = []

        for image_path in sorted(input_dir.glob(pattern)):
            generator = CubeMeshGenerator(**self.generator_kwargs)
            generator.load_image(
                image_path,
                texture_name=os.path.relpath(image_path, output_dir)
            )

            base_path = output_dir / image_path.stem
            generator.run(base_path)
            outputs.append(str(base_path))

        logger.info("Processed %d images from %s", len(outputs), input_dir)
        return outputs
