#!/usr/bin/env python3
"""
Voxel Cubes Demo Script

This script demonstrates the full cube mesh pipeline by:
1. Creating synthetic test sprites (no external images needed)
2. Building unit cubes and merging them
3. Exporting .obj/.mtl pairs in both material modes
4. Printing statistics and comparisons

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

from PIL import Image

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_cubes import CubeMeshGenerator
from voxel_cubes.greedy_merge import GreedyMerger, covered_cells
from voxel_cubes.voxelizer import VoxelGrid, CubeBuilder


def create_test_sprite_circle(size: int = 32) -> np.ndarray:
    """Create a two-tone disc sprite."""
    rgba = np.zeros((size, size, 4), dtype=np.uint8)

    center = size // 2
    radius = size // 2 - 2

    for y in range(size):
        for x in range(size):
            dist = np.sqrt((x - center) ** 2 + (y - center) ** 2)
            if dist < radius / 2:
                rgba[y, x] = [250, 220, 90, 255]   # Yolk
            elif dist < radius:
                rgba[y, x] = [240, 240, 240, 255]  # White

    return rgba


def create_test_sprite_stripes(size: int = 32) -> np.ndarray:
    """Create horizontal color bands (best case for merging)."""
    rgba = np.zeros((size, size, 4), dtype=np.uint8)
    colors = [
        [228, 3, 3, 255],
        [255, 140, 0, 255],
        [255, 237, 0, 255],
        [0, 128, 38, 255],
        [36, 64, 142, 255],
        [115, 41, 130, 255],
    ]

    band = max(1, size // len(colors))
    for y in range(size):
        rgba[y, :] = colors[min(y // band, len(colors) - 1)]

    return rgba


def create_test_sprite_character(size: int = 32) -> np.ndarray:
    """Create a simple character-like sprite."""
    rgba = np.zeros((size, size, 4), dtype=np.uint8)

    cx = size // 2

    # Body (rectangle)
    rgba[size // 4:size - size // 6, cx - size // 6:cx + size // 6] = [80, 120, 180, 255]

    # Head (circle)
    head_cy = size // 6
    head_radius = size // 8
    for y in range(size):
        for x in range(size):
            if (x - cx) ** 2 + (y - head_cy) ** 2 < head_radius ** 2:
                rgba[y, x] = [220, 180, 150, 255]

    return rgba


def create_test_sprite_noise(size: int = 32, seed: int = 7) -> np.ndarray:
    """Create a noisy sprite (worst case for merging)."""
    rng = np.random.RandomState(seed)
    palette = np.array([
        [0, 0, 0, 0],
        [200, 60, 60, 255],
        [60, 200, 60, 255],
        [60, 60, 200, 255],
    ], dtype=np.uint8)
    return palette[rng.randint(0, len(palette), size=(size, size))]


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Voxel Cubes - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    test_sprites = [
        ("circle", create_test_sprite_circle(32)),
        ("stripes", create_test_sprite_stripes(36)),
        ("character", create_test_sprite_character(64)),
        ("noise", create_test_sprite_noise(24)),
    ]

    total_start = time.time()

    for name, rgba in test_sprites:
        print(f"\n--- Processing: {name} ---")
        print(f"Input size: {rgba.shape[1]}x{rgba.shape[0]} pixels")

        sprite_start = time.time()

        # Texture mode needs the image next to the .mtl
        texture_path = output_dir / f"{name}.png"
        Image.fromarray(rgba).save(texture_path)

        for mode in ["texture", "color"]:
            generator = CubeMeshGenerator(
                material_mode=mode,
                voxel_scale=0.1,
                thickness=2
            )
            generator.load_array(rgba, texture_name=texture_path.name)

            build_start = time.time()
            generator.build_cubes()
            build_time = time.time() - build_start

            merge_start = time.time()
            generator.optimize()
            merge_time = time.time() - merge_start

            generator.build_mesh()
            obj_path, mtl_path = generator.export_obj(output_dir / f"{name}_{mode}")

            print(f"  {mode}:")
            print(f"    Cube building: {build_time*1000:.1f}ms")
            print(f"    Merging: {merge_time*1000:.1f}ms")
            print(f"    Cubes: {len(generator.unit_cubes)} -> {generator.cube_count}")
            print(f"    Vertices: {generator.vertex_count}")
            print(f"    Faces: {generator.face_count}")
            print(f"    Materials: {generator.material_count}")
            print(f"    Saved: {obj_path}")
            print(f"    Saved: {mtl_path}")

        # Merged vs one cube per pixel
        stats = generator.get_mesh_stats()
        print(f"\n  Merging Effectiveness (color mode):")
        print(f"    Vertex reduction: {stats['vertex_reduction_percent']:.1f}%")
        print(f"    Face reduction: {stats['face_reduction_percent']:.1f}%")

        sprite_time = time.time() - sprite_start
        print(f"    Total time: {sprite_time*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_greedy_merging():
    """Benchmark greedy merging on solid blocks."""
    print("\n--- Greedy Merging Benchmark ---\n")

    sizes = [8, 16, 32, 48]

    for size in sizes:
        grid = VoxelGrid.from_array(np.full((size, size, size, 4), 255, dtype=np.uint8))
        cubes = CubeBuilder(material_mode="color").build(grid)

        merger = GreedyMerger()
        start = time.time()
        merged = merger.merge(cubes)
        merge_time = time.time() - start

        if covered_cells(merged) != covered_cells(cubes):
            raise RuntimeError("Merging changed the covered cells")

        print(f"Grid size: {size}x{size}x{size}")
        print(f"  Merge: {merge_time*1000:.1f}ms")
        print(f"  Cubes: {len(cubes)} -> {len(merged)}")
        print(f"  Stats: {merger.last_stats}")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_greedy_merging()
