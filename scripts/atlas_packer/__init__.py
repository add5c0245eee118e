"""
Texture Atlas Packer

Packs directories of images into as few fixed-size atlas canvases as possible,
writing one image and one coordinate descriptor per atlas.
"""

__version__ = "1.0.0"

from .config import PackerConfig
from .errors import (
    PackerError,
    ConfigError,
    DirectoryNotFoundError,
    ImageTooLargeError,
    ImageDecodeError,
    DuplicateIdentifierError,
    ExportError,
)
from .processing.catalog import ImageEntry, ImageCatalog
from .processing.packing import Rectangle, PackingNode, AtlasBin, AtlasAllocator
from .processing.export import AtlasExporter
from .pipeline import AtlasPipeline, PackResult

__all__ = [
    "PackerConfig",
    "PackerError",
    "ConfigError",
    "DirectoryNotFoundError",
    "ImageTooLargeError",
    "ImageDecodeError",
    "DuplicateIdentifierError",
    "ExportError",
    "ImageEntry",
    "ImageCatalog",
    "Rectangle",
    "PackingNode",
    "AtlasBin",
    "AtlasAllocator",
    "AtlasExporter",
    "AtlasPipeline",
    "PackResult",
]
