"""
Utility modules for file discovery and image processing.
"""

from .image import ImageUtils
from .files import find_image_files, make_identifier

__all__ = [
    "ImageUtils",
    "find_image_files",
    "make_identifier",
]
