"""
Materials and Material Deduplication

A material bundles the colors written to the .mtl file together with the
optional opacity, illumination model and diffuse texture reference.
Materials are immutable values: two materials are the same material iff
every field (optional ones included) is equal, which is what the
registry uses to hand out stable integer ids.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Color:
    """RGB color with float channels (conventionally 0-1, never clamped)."""

    r: float
    g: float
    b: float

    @classmethod
    def from_rgb8(cls, r: int, g: int, b: int) -> "Color":
        """Build a color from 8-bit channel values (0-255)."""
        return cls(r / 255.0, g / 255.0, b / 255.0)


WHITE = Color(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Material:
    """
    Surface description for a group of faces.

    The three colors are required; every optional field defaults to
    absent (None) and is only written to the .mtl file when set.

    Attributes:
        ambient_color: Ka
        diffuse_color: Kd
        specular_color: Ks
        dissolve: Opacity, 0 (transparent) to 1 (opaque)
        diffuse_texture_index: Index into the mesh texture registry (map_Kd)
        illumination_model: illum code
    """

    ambient_color: Color
    diffuse_color: Color
    specular_color: Color
    dissolve: Optional[float] = None
    diffuse_texture_index: Optional[int] = None
    illumination_model: Optional[int] = None

    @classmethod
    def from_color(cls, color: Color) -> "Material":
        """Plain colored material: ambient and diffuse from ``color``, white specular."""
        return cls(
            ambient_color=color,
            diffuse_color=color,
            specular_color=WHITE,
        )

    @classmethod
    def textured(cls, texture_index: int) -> "Material":
        """White material that takes its color from a diffuse texture."""
        return cls(
            ambient_color=WHITE,
            diffuse_color=WHITE,
            specular_color=WHITE,
            diffuse_texture_index=texture_index,
        )


class MaterialRegistry:
    """
    Value-deduplicated, append-only list of materials.

    ``intern`` hands out the id of the first structurally-equal material
    ever inserted, so ids are assigned in first-seen order starting at 0.
    """

    def __init__(self):
        self._materials: List[Material] = []
        self._ids: Dict[Material, int] = {}

    def intern(self, material: Material) -> int:
        """
        Get the id for ``material``, registering it on first sight.

        Args:
            material: Material value to look up

        Returns:
            Stable integer id of the canonical (first-inserted) instance
        """
        material_id = self._ids.get(material)
        if material_id is None:
            material_id = len(self._materials)
            self._materials.append(material)
            self._ids[material] = material_id
        return material_id

    def __getitem__(self, material_id: int) -> Material:
        return self._materials[material_id]

    def __len__(self) -> int:
        return len(self._materials)

    def __iter__(self) -> Iterator[Material]:
        return iter(self._materials)
