"""
Mesh Model and Cube Emitter

The mesh model is the in-memory equivalent of an .obj/.mtl pair:
vertices, texture coordinates, quad faces, deduplicated materials and the
texture files those materials reference. It only ever grows; indices
handed out stay valid for the lifetime of the model.

Cubes are emitted one at a time with ``add_cube``:
1. 8 corners = (+-0.5) * scale + position, in a fixed corner order
2. 6 quads through a fixed face-to-corner table
3. Material interned, every face stamped with its id
4. Optional texture quad appended once and shared by all 6 faces
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .cube import Cube
from .geometry import Vector3
from .material import Material, MaterialRegistry
from .progress import ProgressSink, resolve

logger = logging.getLogger(__name__)


# Corner signs in emission order
CUBE_CORNERS = (
    (1.0, 1.0, 1.0),
    (1.0, 1.0, -1.0),
    (1.0, -1.0, 1.0),
    (1.0, -1.0, -1.0),
    (-1.0, 1.0, 1.0),
    (-1.0, 1.0, -1.0),
    (-1.0, -1.0, 1.0),
    (-1.0, -1.0, -1.0),
)

# 1-based corner indices of each quad
CUBE_FACES = (
    (1, 2, 4, 3),  # +x
    (5, 6, 8, 7),  # -x
    (1, 5, 7, 3),  # +z (front)
    (2, 6, 8, 4),  # -z
    (1, 2, 6, 5),  # +y
    (3, 4, 8, 7),  # -y
)


@dataclass(frozen=True)
class Face:
    """
    Quad face.

    Indices are 0-based positions in the owning model's lists; exporters
    shift them to the 1-based text convention.
    """

    vertices: Tuple[int, int, int, int]
    material: int
    texture_coordinates: Optional[Tuple[int, int, int, int]] = None


class MeshModel:
    """
    Append-only mesh store fed by the cube emitter.

    Attributes:
        vertices: Vertex positions
        texture_coordinates: Texture coordinates (z unused)
        faces: Quad faces
        materials: Deduplicated material registry
        textures: Texture file names referenced by materials
    """

    def __init__(self, deduplicate_vertices: bool = True):
        """
        Args:
            deduplicate_vertices: Re-use the index of an identical vertex
                instead of appending a copy
        """
        self.deduplicate_vertices = deduplicate_vertices
        self.vertices: List[Vector3] = []
        self.texture_coordinates: List[Vector3] = []
        self.faces: List[Face] = []
        self.materials = MaterialRegistry()
        self.textures: List[str] = []
        self._vertex_index: Dict[Vector3, int] = {}

    def register_texture(self, name: str) -> int:
        """Get the index of a texture file name, adding it if new."""
        if name in self.textures:
            return self.textures.index(name)
        self.textures.append(name)
        return len(self.textures) - 1

    def intern_material(self, material: Material) -> int:
        return self.materials.intern(material)

    def add_vertex(self, vertex: Vector3) -> int:
        """Add a vertex and return its 0-based index."""
        if self.deduplicate_vertices:
            index = self._vertex_index.get(vertex)
            if index is not None:
                return index
        index = len(self.vertices)
        self.vertices.append(vertex)
        self._vertex_index.setdefault(vertex, index)
        return index

    def add_cube(self, cube: Cube) -> List[Face]:
        """
        Emit one cube (unit or merged) into the model.

        Args:
            cube: Cube to emit

        Returns:
            The 6 faces that were appended
        """
        half = cube.scale * 0.5
        corner_ids = []
        for sx, sy, sz in CUBE_CORNERS:
            offset = Vector3(sx, sy, sz).scale_by(half)
            corner_ids.append(self.add_vertex(offset + cube.position))

        texture_ids = None
        if cube.texture_quad is not None:
            first = len(self.texture_coordinates)
            self.texture_coordinates.extend(cube.texture_quad)
            texture_ids = tuple(range(first, first + len(cube.texture_quad)))

        material_id = self.intern_material(cube.material)

        emitted = []
        for a, b, c, d in CUBE_FACES:
            face = Face(
                vertices=(
                    corner_ids[a - 1],
                    corner_ids[b - 1],
                    corner_ids[c - 1],
                    corner_ids[d - 1],
                ),
                material=material_id,
                texture_coordinates=texture_ids,
            )
            self.faces.append(face)
            emitted.append(face)
        return emitted

    def add_cubes(
        self,
        cubes: Iterable[Cube],
        progress: Optional[ProgressSink] = None
    ) -> "MeshModel":
        """
        Emit a sequence of cubes in order.

        Args:
            cubes: Cubes to emit
            progress: Optional progress sink (one step per cube)

        Returns:
            self for method chaining
        """
        cubes = list(cubes)
        progress = resolve(progress)
        progress.start("emitting cubes", len(cubes))
        for cube in cubes:
            self.add_cube(cube)
            progress.advance()
        progress.finish()

        logger.debug(
            "Emitted %d cubes: %d vertices, %d faces, %d materials",
            len(cubes), len(self.vertices), len(self.faces), len(self.materials)
        )
        return self

    @classmethod
    def from_cubes(
        cls,
        cubes: Iterable[Cube],
        textures: Iterable[str] = (),
        deduplicate_vertices: bool = True,
        progress: Optional[ProgressSink] = None
    ) -> "MeshModel":
        mesh = cls(deduplicate_vertices=deduplicate_vertices)
        for name in textures:
            mesh.register_texture(name)
        return mesh.add_cubes(cubes, progress)

    def stats(self) -> dict:
        return {
            "vertices": len(self.vertices),
            "texture_coordinates": len(self.texture_coordinates),
            "faces": len(self.faces),
            "materials": len(self.materials),
            "textures": len(self.textures),
        }
