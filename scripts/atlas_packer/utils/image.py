"""
Image decoding, compositing and encoding helpers for the atlas packer.
"""

from pathlib import Path
from typing import Union
from PIL import Image, UnidentifiedImageError
import numpy as np

from ..errors import ImageDecodeError


class ImageUtils:
    """Utility class for the raster operations the packer needs."""

    @staticmethod
    def load_image(path: Union[str, Path]) -> Image.Image:
        """
        Decode an image file into an RGBA image held in memory.

        Args:
            path: Path of the source file

        Returns:
            Fully loaded PIL Image in RGBA mode

        Raises:
            ImageDecodeError: If the file cannot be read or decoded
        """
        try:
            with Image.open(path) as image:
                image.load()
                return image.convert('RGBA')
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageDecodeError(path, str(e))

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def new_canvas(width: int, height: int) -> Image.Image:
        """Create a fully transparent RGBA canvas."""
        return Image.new('RGBA', (width, height), (0, 0, 0, 0))

    @staticmethod
    def composite(canvas: Image.Image, image: Image.Image, x: int, y: int) -> None:
        """Copy image pixels into canvas with the top-left corner at (x, y)."""
        canvas.paste(ImageUtils.ensure_rgba(image), (x, y))

    @staticmethod
    def save_image(image: Image.Image, path: Union[str, Path], compression_level: int = 6) -> None:
        """
        Encode image to a PNG file.

        Args:
            image: Image to save
            path: Output file path
            compression_level: zlib compression level (0-9)
        """
        image.save(path, format='PNG', optimize=False, compress_level=compression_level)

    @staticmethod
    def is_completely_transparent(image: Image.Image) -> bool:
        """Check if every pixel of an image has zero alpha."""
        if image.mode not in ('RGBA', 'LA'):
            return False

        alpha = np.asarray(image.getchannel('A'))
        return not alpha.any()
