"""
Voxel Cubes
===========

Convert pixel art (or any RGBA voxel grid) into a cube mesh written as
Wavefront .obj + .mtl.

Every opaque pixel becomes a unit cube; adjacent cubes that share a
material are greedily merged into larger cuboids before the mesh is
emitted, so the output keeps the same surface with far fewer faces.

Key Features:
- Texture mode (image as diffuse map) or color mode (material per color)
- Greedy cuboid merging with Numba JIT compilation
- Value-deduplicated materials and vertices
- Byte-exact .obj/.mtl text output

Example Usage:
    from voxel_cubes import CubeMeshGenerator

    generator = CubeMeshGenerator(material_mode="color")
    generator.load_image("sprite.png")
    generator.run("output")   # output.obj + output.mtl
"""

__version__ = "1.0.0"
__author__ = "Voxel Cubes Team"

from .geometry import Vector3
from .material import Color, Material, MaterialRegistry
from .cube import Cube, CellMapping
from .mesh import MeshModel, Face
from .voxelizer import VoxelGrid, CubeBuilder, MaterialMode
from .greedy_merge import GreedyMerger, merge_cubes
from .exporters import OBJExporter, format_obj, format_mtl
from .generator import CubeMeshGenerator, BatchProcessor

__all__ = [
    "Vector3",
    "Color",
    "Material",
    "MaterialRegistry",
    "Cube",
    "CellMapping",
    "MeshModel",
    "Face",
    "VoxelGrid",
    "CubeBuilder",
    "MaterialMode",
    "GreedyMerger",
    "merge_cubes",
    "OBJExporter",
    "format_obj",
    "format_mtl",
    "CubeMeshGenerator",
    "BatchProcessor",
]
