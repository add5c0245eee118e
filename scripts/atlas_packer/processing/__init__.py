"""
Packing, catalog, validation and export modules.
"""

from .catalog import ImageEntry, ImageCatalog
from .packing import Rectangle, PackingNode, AtlasBin, AtlasAllocator
from .export import AtlasExporter, DescriptorEntry, ExportResult, format_descriptor_lines
from .validator import LayoutValidator

__all__ = [
    "ImageEntry",
    "ImageCatalog",
    "Rectangle",
    "PackingNode",
    "AtlasBin",
    "AtlasAllocator",
    "AtlasExporter",
    "DescriptorEntry",
    "ExportResult",
    "format_descriptor_lines",
    "LayoutValidator",
]
