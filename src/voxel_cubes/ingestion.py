"""
Image Ingestion Module

This module handles:
- Loading pixel art images as RGBA arrays
- Loading already-decoded RGBA arrays

Which pixels become cubes is decided later by the cube builder.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageLoader:
    """
    Pixel art image loader.

    Files are decoded to 8-bit RGBA; arrays may also carry float channels
    in [0, 1]. Either way later stages see the same (H, W, 4) layout.
    """

    def __init__(self):
        self._color_image: Optional[np.ndarray] = None

    def load(self, image_path: Union[str, Path]) -> "ImageLoader":
        """
        Load a pixel art image.

        Args:
            image_path: Path to the image (PNG recommended)

        Returns:
            self for method chaining

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file cannot be decoded as an image
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")

        try:
            with Image.open(image_path) as img:
                if img.mode != "RGBA":
                    img = img.convert("RGBA")
                self._color_image = np.array(img, dtype=np.uint8)
        except UnidentifiedImageError as e:
            raise ValueError(f"Cannot decode image: {image_path}") from e

        logger.debug("Loaded %s (%dx%d)", image_path, self.width, self.height)
        return self

    def load_from_array(self, rgba_array: np.ndarray) -> "ImageLoader":
        """
        Load from a numpy array instead of a file.

        Args:
            rgba_array: RGBA image array of shape (H, W, 4), uint8 or
                float channels in [0, 1]

        Returns:
            self for method chaining
        """
        if rgba_array.ndim != 3 or rgba_array.shape[2] != 4:
            raise ValueError("Color array must have shape (H, W, 4)")

        if np.issubdtype(rgba_array.dtype, np.floating):
            self._color_image = rgba_array.astype(np.float64)
        else:
            self._color_image = rgba_array.astype(np.uint8)
        return self

    @property
    def color_image(self) -> np.ndarray:
        """Get the RGBA color image array."""
        if self._color_image is None:
            raise RuntimeError("No image loaded")
        return self._color_image

    @property
    def size(self) -> Tuple[int, int]:
        """Get image size as (width, height)."""
        h, w = self.color_image.shape[:2]
        return (w, h)

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]
