#!/usr/bin/env python3
"""
Voxel Cubes Web Interface

A small Gradio UI for turning pixel art into cube meshes (.obj + .mtl).

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile
import numpy as np
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from voxel_cubes import CubeMeshGenerator

TEXTURE_FILE = "texture.png"


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Bring grayscale/RGB/RGBA uploads to (H, W, 4) uint8."""
    if image.ndim == 2:
        return np.stack([image, image, image, np.full_like(image, 255)], axis=-1).astype(np.uint8)
    if image.shape[2] == 3:
        alpha = np.full((*image.shape[:2], 1), 255, dtype=np.uint8)
        return np.concatenate([image.astype(np.uint8), alpha], axis=-1)
    return image.astype(np.uint8)


def process_image(
    image,
    material_mode: str,
    thickness: int,
    voxel_scale: float,
    alpha_threshold: int,
    optimize: bool
):
    """
    Convert an uploaded image and export it.

    Returns preview path, stats text, and file paths for downloads.
    """
    if image is None:
        return None, "Please upload an image first.", None, None
    if not isinstance(image, np.ndarray):
        return None, "Invalid image format.", None, None

    rgba = to_rgba(image)
    mode = "texture" if material_mode == "Texture" else "color"

    generator = CubeMeshGenerator(
        alpha_threshold=int(alpha_threshold),
        voxel_scale=voxel_scale,
        material_mode=mode,
        thickness=int(thickness),
        merge=optimize
    )
    generator.load_array(rgba, texture_name=TEXTURE_FILE)
    generator.build_cubes()

    if not generator.unit_cubes:
        return None, "No opaque pixels above the alpha threshold.", None, None

    export_dir = Path(tempfile.mkdtemp(prefix="voxcubes_"))
    if mode == "texture":
        # map_Kd refers to this file next to the .mtl
        Image.fromarray(rgba).save(export_dir / TEXTURE_FILE)

    obj_path, mtl_path = generator.run(export_dir / "model")
    stats = generator.get_mesh_stats()

    stats_text = f"""## Conversion Complete!

| Metric | Value |
|--------|-------|
| Input Size | {rgba.shape[1]} x {rgba.shape[0]} pixels |
| Grid Size | {stats['grid_size']} |
| Unit Cubes | {stats['unit_cubes']:,} |
| Cubes Written | {generator.cube_count:,} |
| Materials | {generator.material_count:,} |
| Vertices | {generator.vertex_count:,} |
| Faces | {generator.face_count:,} |
| Vertex Reduction | {stats['vertex_reduction_percent']:.1f}% |
| Face Reduction | {stats['face_reduction_percent']:.1f}% |

**Settings:** {material_mode}, Thickness={thickness}, Scale={voxel_scale}, Optimize={optimize}
"""

    return str(obj_path), stats_text, str(obj_path), str(mtl_path)


def create_demo_image(style: str):
    """Create a demo sprite for testing."""
    if not style:
        return None

    size = 32
    rgba = np.zeros((size, size, 4), dtype=np.uint8)

    if style == "Heart":
        for y in range(size):
            for x in range(size):
                u = (x - size / 2 + 0.5) / (size / 2.5)
                v = (size / 2 - y - 2) / (size / 2.5)
                if (u * u + v * v - 1) ** 3 - u * u * v ** 3 < 0:
                    rgba[y, x] = [220, 40, 60, 255]

    elif style == "Checker":
        tile = 4
        for y in range(4, size - 4):
            for x in range(4, size - 4):
                if (x // tile + y // tile) % 2:
                    rgba[y, x] = [240, 240, 240, 255]
                else:
                    rgba[y, x] = [40, 40, 40, 255]

    elif style == "Character":
        cx = size // 2
        # Body
        rgba[size // 4:size - size // 6, cx - size // 6:cx + size // 6] = [80, 120, 180, 255]
        # Head
        head_cy = size // 6
        head_r = size // 8
        for y in range(size):
            for x in range(size):
                if (x - cx) ** 2 + (y - head_cy) ** 2 < head_r ** 2:
                    rgba[y, x] = [220, 180, 150, 255]

    elif style == "Tree":
        cx = size // 2
        # Trunk
        rgba[size // 2:size - 2, cx - size // 10:cx + size // 10] = [101, 67, 33, 255]
        # Foliage
        for y in range(2, size // 2 + size // 8):
            progress = (y - 2) / (size // 2 + size // 8 - 2)
            half_w = int(progress * size // 3) + 2
            rgba[y, max(0, cx - half_w):min(size, cx + half_w)] = [34, 139, 34, 255]

    return rgba


# Build the Gradio interface
with gr.Blocks(title="Voxel Cubes") as app:

    gr.Markdown("""
    # Voxel Cubes
    ### Convert Pixel Art into Cube Meshes

    Upload a PNG image or try a demo, adjust the settings, and download the .obj/.mtl pair!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Image")

            image_input = gr.Image(
                label="Upload Image (PNG recommended)",
                type="numpy",
                image_mode="RGBA"
            )

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=["Heart", "Checker", "Character", "Tree"],
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            gr.Markdown("### Settings")

            material_mode = gr.Radio(
                choices=["Texture", "Color"],
                value="Texture",
                label="Material Mode"
            )

            thickness = gr.Slider(
                minimum=1,
                maximum=16,
                value=1,
                step=1,
                label="Thickness (cube layers)"
            )

            voxel_scale = gr.Slider(
                minimum=0.01,
                maximum=1.0,
                value=0.1,
                step=0.01,
                label="Cube Scale"
            )

            alpha_threshold = gr.Slider(
                minimum=0,
                maximum=254,
                value=0,
                step=1,
                label="Alpha Threshold"
            )

            optimize = gr.Checkbox(value=True, label="Merge cubes")

            generate_btn = gr.Button("Generate Cube Mesh", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### 3D Preview")
            gr.Markdown("*Click and drag to rotate, scroll to zoom*")

            model_preview = gr.Model3D(
                label="3D Model Preview",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Upload an image and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            obj_output = gr.File(label="OBJ (geometry)")
            mtl_output = gr.File(label="MTL (materials)")

            gr.Markdown("""
            ---
            **Tips:**
            - **Texture** = one material, keep the PNG next to the .mtl
            - **Color** = one material per pixel color
            - **Merge cubes** off = one cube per pixel
            """)

    # Wire up events
    demo_btn.click(
        fn=create_demo_image,
        inputs=[demo_dropdown],
        outputs=[image_input]
    )

    generate_btn.click(
        fn=process_image,
        inputs=[
            image_input,
            material_mode,
            thickness,
            voxel_scale,
            alpha_threshold,
            optimize
        ],
        outputs=[model_preview, stats_output, obj_output, mtl_output]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Voxel Cubes Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
