"""
Export modules.

Supported formats:
- Wavefront (.obj + .mtl) - Universal text format with per-face materials
"""

from .obj_exporter import OBJExporter, format_obj, format_mtl, format_float

__all__ = ["OBJExporter", "format_obj", "format_mtl", "format_float"]
