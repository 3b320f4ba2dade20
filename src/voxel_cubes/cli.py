"""
Command-Line Interface for Voxel Cubes

Usage:
    voxcubes input.png -o output
    voxcubes input.png -o output --mode color --thickness 2
    voxcubes --batch sprites/ --output-dir models/

"""

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .generator import BatchProcessor, CubeMeshGenerator
from .progress import ConsoleProgress, NullProgress


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="voxcubes",
        description="Voxel Cubes - Convert pixel art into cube meshes (.obj + .mtl)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  voxcubes sprite.png -o model
      Write model.obj and model.mtl, textured with sprite.png

  voxcubes sprite.png -o model --mode color
      One material per pixel color instead of a texture

  voxcubes sprite.png -o model --thickness 4 --scale 0.1
      Extrude 4 layers deep, 0.1 units per cube

  voxcubes --batch sprites/ --output-dir models/
      Batch process all PNGs in sprites directory

Material Modes:
  texture - Shared white material with the image as diffuse map (default)
  color   - Material per distinct pixel color
        """
    )

    # Input
    parser.add_argument(
        "input",
        nargs="?",
        help="Input image file (PNG recommended)"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        help="Output base path; .obj and .mtl are appended (default: input name)"
    )

    # Cube settings
    parser.add_argument(
        "-m", "--mode",
        choices=["texture", "color"],
        default="texture",
        help="Material mode (default: texture)"
    )

    parser.add_argument(
        "--thickness",
        type=int,
        default=1,
        help="Number of cube layers along z (default: 1)"
    )

    parser.add_argument(
        "--alpha-threshold",
        type=int,
        default=0,
        help="Pixels with alpha above this become cubes (0-255, default: 0)"
    )

    parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Cube edge length in output units (default: 1.0)"
    )

    # Meshing settings
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Emit one cube per pixel (no greedy merging, for debugging)"
    )

    parser.add_argument(
        "--no-dedup-vertices",
        action="store_true",
        help="Write every cube corner even when it repeats"
    )

    # Batch processing
    parser.add_argument(
        "--batch",
        help="Batch process directory of images"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for batch processing"
    )

    parser.add_argument(
        "--pattern",
        default="*.png",
        help="File pattern for batch processing (default: *.png)"
    )

    # Misc
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with progress and statistics"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print mesh statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def generator_options(args) -> dict:
    return {
        "alpha_threshold": args.alpha_threshold,
        "voxel_scale": args.scale,
        "material_mode": args.mode,
        "thickness": args.thickness,
        "merge": not args.no_optimize,
        "deduplicate_vertices": not args.no_dedup_vertices,
    }


def process_single(args) -> int:
    """Process a single image file."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    # Determine output path
    if args.output:
        output_base = Path(args.output)
    else:
        output_base = input_path.with_suffix("")

    start_time = time.time()

    try:
        generator = CubeMeshGenerator(
            progress=ConsoleProgress() if args.verbose else NullProgress(),
            **generator_options(args)
        )

        if args.verbose:
            print(f"Loading: {input_path}")

        generator.load_image(
            input_path,
            texture_name=os.path.relpath(input_path, output_base.parent)
        )

        if args.verbose:
            print("Building cubes...")
        generator.build_cubes()

        if not args.no_optimize:
            if args.verbose:
                print("Merging cubes...")
            generator.optimize()

        if args.verbose:
            print("Generating mesh...")
        generator.build_mesh()

        if args.stats or args.verbose:
            stats = generator.get_mesh_stats()
            print("\nMesh Statistics:")
            print(f"  Unit cubes: {stats['unit_cubes']}")
            print(f"  Merged cubes: {stats['merged_cubes']}")
            print(f"  Materials: {stats['materials']}")
            print(f"  Merged vertices: {stats['merged_vertices']}")
            print(f"  Naive vertices: {stats['naive_vertices']}")
            print(f"  Vertex reduction: {stats['vertex_reduction_percent']:.1f}%")
            print(f"  Face reduction: {stats['face_reduction_percent']:.1f}%")

        obj_path, mtl_path = generator.export_obj(output_base)
        if args.verbose:
            print(f"Exported: {obj_path}")
            print(f"Exported: {mtl_path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_batch(args) -> int:
    """Process a batch of images."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else batch_dir / "output"
    output_dir.mkdir(parents=True, exist_ok=True)

    start_time = time.time()

    try:
        processor = BatchProcessor(**generator_options(args))

        outputs = processor.process_directory(
            batch_dir,
            output_dir,
            pattern=args.pattern
        )

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if args.batch:
        return process_batch(args)
    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
