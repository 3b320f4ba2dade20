"""
Unit tests for the Voxel Cubes pipeline.
"""

import io
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import numpy as np
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_cubes import CubeMeshGenerator, BatchProcessor
from voxel_cubes.cli import main
from voxel_cubes.cube import CellMapping
from voxel_cubes.geometry import Vector3
from voxel_cubes.ingestion import ImageLoader
from voxel_cubes.material import Color, Material
from voxel_cubes.progress import ConsoleProgress
from voxel_cubes.voxelizer import VoxelGrid, CubeBuilder, MaterialMode


RED = [255, 0, 0, 255]
GREEN = [0, 255, 0, 255]
CLEAR = [0, 0, 0, 0]


def sprite(rows) -> np.ndarray:
    return np.array(rows, dtype=np.uint8)


def save_png(path: Path, rgba: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(rgba).save(path)
    return path


class RecordingProgress:
    """Progress sink that remembers every call."""

    def __init__(self):
        self.stages = []
        self.advanced = 0
        self.finished = 0

    def start(self, stage, total):
        self.stages.append((stage, total))

    def advance(self, amount=1):
        self.advanced += amount

    def finish(self):
        self.finished += 1


class TestVoxelGrid(unittest.TestCase):
    """Tests for VoxelGrid class."""

    def test_create_grid(self):
        """Test grid creation."""
        grid = VoxelGrid(16, 16, 4)
        assert grid.shape == (16, 16, 4)
        assert grid.count_voxels() == 0

    def test_from_image_layout(self):
        """Image columns map to x, rows to y, layers to z."""
        image = sprite([[RED, GREEN, CLEAR]])
        grid = VoxelGrid.from_image(image, thickness=2)

        assert grid.shape == (3, 1, 2)
        assert grid.count_voxels() == 4
        assert list(grid.data[1, 0, 1]) == [0.0, 1.0, 0.0, 1.0]
        assert grid.data[2, 0, 0, 3] == 0.0
        assert list(grid.occupancy()[:, 0, 0]) == [True, True, False]

    def test_from_image_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            VoxelGrid.from_image(np.zeros((4, 4, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            VoxelGrid.from_image(np.zeros((4, 4, 4), dtype=np.uint8), thickness=0)

    def test_iterate_scan_order(self):
        """Cells are visited x-major, then y, then z."""
        image = sprite([[RED, RED], [RED, CLEAR]])
        cells = [(x, y, z) for x, y, z, _ in VoxelGrid.from_image(image).iterate_voxels()]
        assert cells == [(0, 0, 0), (0, 1, 0), (1, 0, 0)]


class TestCubeBuilder(unittest.TestCase):
    """Tests for unit cube construction."""

    def test_transparent_pixels_skipped(self):
        """Only pixels with alpha > 0 become cubes."""
        image = sprite([[RED, CLEAR], [CLEAR, GREEN]])
        cubes = CubeBuilder(material_mode="color").build(VoxelGrid.from_image(image))

        assert len(cubes) == 2
        assert [cube.cell for cube in cubes] == [(0, 0, 0), (1, 1, 0)]
        assert cubes[1].position == Vector3(1.0, -1.0, 0.0)

    def test_color_mode_materials(self):
        """Color mode uses the pixel color with a white specular."""
        image = sprite([[RED, GREEN]])
        cubes = CubeBuilder(material_mode=MaterialMode.COLOR).build(VoxelGrid.from_image(image))

        assert cubes[0].material == Material.from_color(Color(1.0, 0.0, 0.0))
        assert cubes[0].material.specular_color == Color(1.0, 1.0, 1.0)
        assert cubes[1].material.diffuse_color == Color(0.0, 1.0, 0.0)
        assert cubes[0].texture_quad is None
        assert cubes[0].material.dissolve is None

    def test_color_mode_partial_alpha(self):
        """Semi-transparent pixels carry their opacity as dissolve."""
        image = sprite([[[255, 0, 0, 51]]])
        cubes = CubeBuilder(material_mode="color").build(VoxelGrid.from_image(image))
        assert cubes[0].material.dissolve == 0.2

    def test_texture_mode(self):
        """Texture mode shares one white material and per-pixel coordinates."""
        image = sprite([[RED, GREEN], [GREEN, RED]])
        cubes = CubeBuilder(material_mode="texture", texture_index=0).build(
            VoxelGrid.from_image(image)
        )

        assert len(cubes) == 4
        assert len({cube.material for cube in cubes}) == 1
        assert cubes[0].material == Material.textured(0)
        assert cubes[0].material.diffuse_color == Color(1.0, 1.0, 1.0)

        last = cubes[-1]
        assert last.cell == (1, 1, 0)
        assert last.texture_basis == (2, 2)
        assert last.texture_quad == (Vector3(0.5, -0.5, 0.0),) * 4

    def test_thickness(self):
        """Every layer of an extruded image gets its own cubes."""
        image = sprite([[RED, CLEAR, RED]])
        cubes = CubeBuilder(material_mode="color").build(VoxelGrid.from_image(image, 3))

        assert len(cubes) == 6
        assert {cube.cell[2] for cube in cubes} == {0, 1, 2}

    def test_cell_mapping_scale(self):
        image = sprite([[RED, RED]])
        cubes = CubeBuilder(CellMapping.scaled(2.0), material_mode="color").build(
            VoxelGrid.from_image(image)
        )
        assert cubes[1].position == Vector3(2.0, 0.0, 0.0)
        assert cubes[1].scale == Vector3(2.0, 2.0, 2.0)


class TestImageLoader(unittest.TestCase):
    """Tests for image loading."""

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ImageLoader().load("/nonexistent/sprite.png")

    def test_undecodable_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.png"
            path.write_bytes(b"not an image")
            with self.assertRaises(ValueError):
                ImageLoader().load(path)

    def test_load_png(self):
        """PNG files come back as (H, W, 4) uint8."""
        with tempfile.TemporaryDirectory() as tmp:
            path = save_png(Path(tmp) / "sprite.png", sprite([[RED, CLEAR, GREEN]]))
            loader = ImageLoader().load(path)

            assert loader.size == (3, 1)
            assert loader.color_image.dtype == np.uint8
            assert list(loader.color_image[0, 2]) == GREEN

    def test_bad_array_shape(self):
        with self.assertRaises(ValueError):
            ImageLoader().load_from_array(np.zeros((4, 4), dtype=np.uint8))


class TestCubeMeshGenerator(unittest.TestCase):
    """Tests for the full pipeline."""

    def test_requires_image(self):
        with self.assertRaises(RuntimeError):
            CubeMeshGenerator().build_cubes()

    def test_color_pair_round_trip(self):
        """Two identical pixels export as one cuboid with one material."""
        generator = CubeMeshGenerator(material_mode="color")
        generator.load_array(sprite([[RED, RED]]))

        with tempfile.TemporaryDirectory() as tmp:
            obj_path, mtl_path = generator.run(Path(tmp) / "model")
            obj_lines = obj_path.read_text().splitlines()
            mtl_text = mtl_path.read_text()

        assert generator.cube_count == 1
        assert generator.vertex_count == 8
        assert generator.face_count == 6
        assert generator.material_count == 1

        assert obj_lines[0] == "mtllib model.mtl"
        assert obj_lines[1] == "v 1.5 0.5 0.5"
        assert obj_lines[8] == "v -0.5 -0.5 -0.5"
        assert obj_lines.count("usemtl m0") == 1
        assert len([line for line in obj_lines if line.startswith("f ")]) == 6
        assert not any(line.startswith("vt ") for line in obj_lines)

        assert mtl_text == "newmtl m0\nKa 1.0 0.0 0.0\nKd 1.0 0.0 0.0\nKs 1.0 1.0 1.0\n"

    def test_texture_mode_export(self):
        """Texture mode writes a single textured material."""
        generator = CubeMeshGenerator()
        generator.load_array(sprite([[RED, GREEN], [GREEN, RED]]), texture_name="art/sprite.png")

        with tempfile.TemporaryDirectory() as tmp:
            obj_path, mtl_path = generator.run(Path(tmp) / "model")
            obj_lines = obj_path.read_text().splitlines()
            mtl_lines = mtl_path.read_text().splitlines()

        assert generator.cube_count == 1
        assert mtl_lines == [
            "newmtl m0",
            "Ka 1.0 1.0 1.0",
            "Kd 1.0 1.0 1.0",
            "Ks 1.0 1.0 1.0",
            "map_Kd art/sprite.png",
        ]
        assert len([line for line in obj_lines if line.startswith("vt ")]) == 4
        assert "f 1/1 2/2 4/3 3/4" in obj_lines

    def test_no_merge(self):
        """With merging off every pixel stays a cube."""
        generator = CubeMeshGenerator(material_mode="color", merge=False)
        generator.load_array(sprite([[RED, RED, RED]]))
        generator.build_mesh()

        assert generator.cube_count == 3
        assert generator.face_count == 18
        assert generator.vertex_count == 16

    def test_no_vertex_dedup(self):
        generator = CubeMeshGenerator(
            material_mode="color", merge=False, deduplicate_vertices=False
        )
        generator.load_array(sprite([[RED, RED, RED]]))
        generator.build_mesh()

        assert generator.vertex_count == 24

    def test_thickness_merges_to_block(self):
        generator = CubeMeshGenerator(material_mode="color", thickness=3)
        generator.load_array(sprite([[RED, RED], [RED, RED]]))
        generator.build_mesh()

        assert len(generator.unit_cubes) == 12
        assert generator.cube_count == 1
        assert generator.cubes[0].extent == (2, 2, 3)

    def test_alpha_threshold(self):
        generator = CubeMeshGenerator(material_mode="color", alpha_threshold=128)
        generator.load_array(sprite([[[255, 0, 0, 100], [0, 255, 0, 200]]]))
        generator.build_cubes()

        assert len(generator.unit_cubes) == 1
        assert generator.unit_cubes[0].cell == (1, 0, 0)

    def test_voxel_scale(self):
        generator = CubeMeshGenerator(material_mode="color", voxel_scale=0.5, merge=False)
        generator.load_array(sprite([[RED]]))
        generator.build_mesh()

        assert generator.mesh.vertices[0] == Vector3(0.25, 0.25, 0.25)

    def test_mesh_stats(self):
        """Merging a solid square shrinks the mesh."""
        generator = CubeMeshGenerator(material_mode="color")
        generator.load_array(np.full((4, 4, 4), 255, dtype=np.uint8))
        generator.build_cubes()

        stats = generator.get_mesh_stats()
        assert stats["unit_cubes"] == 16
        assert stats["merged_cubes"] == 1
        assert stats["merged_faces"] == 6
        assert stats["naive_faces"] == 96
        assert stats["merged_vertices"] == 8
        assert stats["naive_vertices"] == 50
        assert stats["face_reduction_percent"] > 90
        assert stats["grid_size"] == (4, 4, 1)

    def test_mesh_stats_before_build(self):
        assert "error" in CubeMeshGenerator().get_mesh_stats()

    def test_fully_transparent_image(self):
        """An empty sprite still exports (empty) files."""
        generator = CubeMeshGenerator(material_mode="color")
        generator.load_array(np.zeros((2, 2, 4), dtype=np.uint8))

        with tempfile.TemporaryDirectory() as tmp:
            obj_path, mtl_path = generator.run(Path(tmp) / "empty")
            assert obj_path.read_text() == "mtllib empty.mtl\n"
            assert mtl_path.read_text() == ""

    def test_preview(self):
        generator = CubeMeshGenerator()
        generator.load_array(sprite([[RED, CLEAR]]))
        generator.build_mesh()

        info = generator.preview()
        assert info["image_size"] == (2, 1)
        assert info["unit_cubes"] == 1
        assert info["meshed"]
        assert info["faces"] == 6

    def test_progress_stages(self):
        """Every stage reports to the injected sink."""
        progress = RecordingProgress()
        generator = CubeMeshGenerator(material_mode="color", progress=progress)
        generator.load_array(sprite([[RED, RED]]))

        with tempfile.TemporaryDirectory() as tmp:
            generator.run(Path(tmp) / "model")

        names = [stage for stage, _ in progress.stages]
        assert names == ["building cubes", "merging cubes", "emitting cubes", "writing geometry"]
        assert progress.stages[0] == ("building cubes", 2)
        assert progress.finished == 4


class TestConsoleProgress(unittest.TestCase):

    def test_percent_lines(self):
        stream = io.StringIO()
        progress = ConsoleProgress(stream=stream, step_percent=25)
        progress.start("stage", 4)
        for _ in range(4):
            progress.advance()
        progress.finish()

        assert stream.getvalue().splitlines() == [
            "stage: 0/4",
            "stage: 25%",
            "stage: 50%",
            "stage: 75%",
            "stage: 100%",
            "stage: done (4/4)",
        ]


class TestBatchProcessor(unittest.TestCase):

    def test_process_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            input_dir = Path(tmp) / "sprites"
            output_dir = Path(tmp) / "models"
            save_png(input_dir / "b.png", sprite([[RED]]))
            save_png(input_dir / "a.png", sprite([[GREEN, GREEN]]))
            (input_dir / "notes.txt").write_text("ignored")

            outputs = BatchProcessor().process_directory(input_dir, output_dir)

            assert [Path(p).name for p in outputs] == ["a", "b"]
            assert (output_dir / "a.obj").exists()
            assert (output_dir / "b.mtl").exists()
            mtl_lines = (output_dir / "a.mtl").read_text().splitlines()
            assert "map_Kd ../sprites/a.png" in mtl_lines


class TestCLI(unittest.TestCase):
    """Tests for the command-line entry point."""

    def run_cli(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_missing_input(self):
        code, _, err = self.run_cli(["/nonexistent/sprite.png"])
        assert code == 1
        assert err.startswith("Error:")

    def test_no_input(self):
        code, _, err = self.run_cli([])
        assert code == 1
        assert "No input file" in err

    def test_undecodable_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "broken.png"
            path.write_bytes(b"not an image")

            code, _, err = self.run_cli([str(path), "-o", str(Path(tmp) / "out")])

            assert code == 1
            assert "Error:" in err
            assert not (Path(tmp) / "out.obj").exists()

    def test_convert_color(self):
        with tempfile.TemporaryDirectory() as tmp:
            image = save_png(Path(tmp) / "sprite.png", sprite([[RED, RED], [GREEN, CLEAR]]))
            base = Path(tmp) / "model"

            code, out, _ = self.run_cli([str(image), "-o", str(base), "--mode", "color", "--stats"])

            assert code == 0
            assert "Mesh Statistics" in out
            mtl_text = (Path(tmp) / "model.mtl").read_text()
            assert mtl_text.count("newmtl") == 2
            assert (Path(tmp) / "model.obj").read_text().startswith("mtllib model.mtl\n")

    def test_convert_texture_relative_path(self):
        """map_Kd points at the input relative to the output directory."""
        with tempfile.TemporaryDirectory() as tmp:
            image = save_png(Path(tmp) / "sprites" / "hero.png", sprite([[RED]]))
            output_dir = Path(tmp) / "models"
            output_dir.mkdir()

            code, _, _ = self.run_cli([str(image), "-o", str(output_dir / "hero")])

            assert code == 0
            mtl_lines = (output_dir / "hero.mtl").read_text().splitlines()
            assert mtl_lines[-1] == "map_Kd ../sprites/hero.png"

    def test_default_output_next_to_input(self):
        with tempfile.TemporaryDirectory() as tmp:
            image = save_png(Path(tmp) / "hero.png", sprite([[RED]]))

            code, _, _ = self.run_cli([str(image), "--no-optimize"])

            assert code == 0
            assert (Path(tmp) / "hero.obj").exists()
            mtl_lines = (Path(tmp) / "hero.mtl").read_text().splitlines()
            assert mtl_lines[-1] == "map_Kd hero.png"

    def test_batch(self):
        with tempfile.TemporaryDirectory() as tmp:
            save_png(Path(tmp) / "in" / "one.png", sprite([[RED]]))
            output_dir = Path(tmp) / "out"

            code, out, _ = self.run_cli(["--batch", str(Path(tmp) / "in"), "--output-dir", str(output_dir)])

            assert code == 0
            assert "Processed 1 files" in out
            assert (output_dir / "one.obj").exists()

    def test_batch_missing_directory(self):
        code, _, err = self.run_cli(["--batch", "/nonexistent/dir"])
        assert code == 1
        assert "Error:" in err


if __name__ == "__main__":
    unittest.main(verbosity=2)
