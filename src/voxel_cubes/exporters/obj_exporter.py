"""
Wavefront OBJ/MTL Exporter

Serializes a MeshModel into the two text files 3D tools expect:

.obj:
    mtllib <material file>
    v x y z            (one per vertex)
    vt u v             (one per texture coordinate)
    usemtl m<id>       (whenever the material changes)
    f v/t v/t v/t v/t  (or f v v v v without texture coordinates)

.mtl:
    newmtl m<id>
    Ka r g b / Kd r g b / Ks r g b
    d <opacity>        (optional)
    illum <code>       (optional)
    map_Kd <file>      (optional)

Face and texture indices are 1-based. Numbers with no fractional part are
printed with one decimal digit (1.0), everything else at full precision.
"""

import logging
import math
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..material import Color
from ..mesh import MeshModel
from ..progress import ProgressSink, resolve

logger = logging.getLogger(__name__)


def format_float(value: float) -> str:
    """Format a number for the text formats (1.0, 0.25, -3.0, ...)."""
    value = float(value)
    if math.isfinite(value) and value == math.floor(value):
        return f"{value:.1f}"
    return repr(value)


def _color_line(key: str, color: Color) -> str:
    return f"{key} {format_float(color.r)} {format_float(color.g)} {format_float(color.b)}"


def format_obj(
    mesh: MeshModel,
    mtl_reference: Union[str, Path],
    progress: Optional[ProgressSink] = None
) -> str:
    """
    Render the geometry text for a mesh.

    Args:
        mesh: Populated mesh model
        mtl_reference: Material file path written after ``mtllib``
        progress: Optional progress sink (one step per line group)

    Returns:
        Complete .obj file content
    """
    progress = resolve(progress)
    progress.start("writing geometry", 3)

    lines: List[str] = [f"mtllib {mtl_reference}"]

    for v in mesh.vertices:
        lines.append(f"v {format_float(v.x)} {format_float(v.y)} {format_float(v.z)}")
    progress.advance()

    for vt in mesh.texture_coordinates:
        lines.append(f"vt {format_float(vt.x)} {format_float(vt.y)}")
    progress.advance()

    last_material = None
    for face in mesh.faces:
        if face.material != last_material:
            lines.append(f"usemtl m{face.material}")
            last_material = face.material

        if face.texture_coordinates is not None:
            refs = [
                f"{v + 1}/{t + 1}"
                for v, t in zip(face.vertices, face.texture_coordinates)
            ]
        else:
            refs = [str(v + 1) for v in face.vertices]
        lines.append("f " + " ".join(refs))
    progress.advance()
    progress.finish()

    return "\n".join(lines) + "\n"


def format_mtl(mesh: MeshModel) -> str:
    """
    Render the material text for a mesh.

    Args:
        mesh: Populated mesh model

    Returns:
        Complete .mtl file content
    """
    lines: List[str] = []
    for i, material in enumerate(mesh.materials):
        lines.append(f"newmtl m{i}")
        lines.append(_color_line("Ka", material.ambient_color))
        lines.append(_color_line("Kd", material.diffuse_color))
        lines.append(_color_line("Ks", material.specular_color))
        if material.dissolve is not None:
            lines.append(f"d {format_float(material.dissolve)}")
        if material.illumination_model is not None:
            lines.append(f"illum {material.illumination_model}")
        if material.diffuse_texture_index is not None:
            lines.append(f"map_Kd {mesh.textures[material.diffuse_texture_index]}")

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


class OBJExporter:
    """
    Export a MeshModel to a .obj/.mtl file pair.

    Both texts are rendered before anything is written, so a mesh that
    cannot be rendered leaves no partial output behind.
    """

    def __init__(self, mtl_reference: Optional[str] = None):
        """
        Initialize the exporter.

        Args:
            mtl_reference: Text written after ``mtllib``. Defaults to the file
                name of the .mtl written next to the .obj.
        """
        self.mtl_reference = mtl_reference

    def paths_for(self, base_path: Union[str, Path]) -> Tuple[Path, Path]:
        """Derive the (.obj, .mtl) paths from a base name."""
        base_path = Path(base_path)
        return (
            base_path.with_name(base_path.name + ".obj"),
            base_path.with_name(base_path.name + ".mtl"),
        )

    def export(
        self,
        mesh: MeshModel,
        base_path: Union[str, Path],
        progress: Optional[ProgressSink] = None
    ) -> Tuple[Path, Path]:
        """
        Export mesh to ``<base>.obj`` and ``<base>.mtl``.

        Args:
            mesh: Populated mesh model
            base_path: Output path without extension
            progress: Optional progress sink

        Returns:
            Tuple of (obj_path, mtl_path)
        """
        obj_path, mtl_path = self.paths_for(base_path)
        reference = self.mtl_reference if self.mtl_reference is not None else mtl_path.name

        mtl_text = format_mtl(mesh)
        obj_text = format_obj(mesh, reference, progress)

        with open(mtl_path, "w", encoding="utf-8") as f:
            f.write(mtl_text)
        with open(obj_path, "w", encoding="utf-8") as f:
            f.write(obj_text)

        logger.info(
            "Wrote %s (%d vertices, %d faces) and %s (%d materials)",
            obj_path, len(mesh.vertices), len(mesh.faces),
            mtl_path, len(mesh.materials)
        )
        return obj_path, mtl_path
