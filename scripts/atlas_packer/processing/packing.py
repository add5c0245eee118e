"""
Binary space partitioning packer for fixed-size atlas canvases.

Each AtlasBin owns a tree of PackingNodes covering the padded interior of
its canvas. AtlasAllocator feeds catalog entries to the bins first-fit and
opens a new bin whenever every existing one rejects an image.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from PIL import Image

from ..utils.image import ImageUtils
from .catalog import ImageEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rectangle:
    """Integer rectangle in canvas pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def intersects(self, other: 'Rectangle') -> bool:
        """Check if this rectangle intersects with another."""
        return not (self.right <= other.x or other.right <= self.x or
                    self.bottom <= other.y or other.bottom <= self.y)

    def contains(self, other: 'Rectangle') -> bool:
        """Check if other lies entirely within this rectangle."""
        return (self.x <= other.x and self.y <= other.y and
                other.right <= self.right and other.bottom <= self.bottom)


class PackingNode:
    """Node in the packing tree: either a leaf or the parent of exactly two children."""

    def __init__(self, rect: Rectangle):
        self.rect = rect
        self.children: Optional[Tuple['PackingNode', 'PackingNode']] = None
        self.occupant: Optional[ImageEntry] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    def insert(self, entry: ImageEntry, padding: int = 0) -> Optional['PackingNode']:
        """
        Place an image somewhere in this subtree.

        Leaves larger than the image are split in two along the axis with
        more slack, keeping `padding` pixels between the two halves, and
        the image goes into the first half.

        Args:
            entry: Image to place
            padding: Gap kept between the image and its sibling region

        Returns:
            The occupied leaf, or None if the image fits nowhere in this subtree
        """
        if self.children is not None:
            first, second = self.children
            node = first.insert(entry, padding)
            if node is not None:
                return node
            return second.insert(entry, padding)

        if self.occupant is not None:
            return None

        rect = self.rect
        if entry.width > rect.width or entry.height > rect.height:
            return None

        if entry.width == rect.width and entry.height == rect.height:
            self.occupant = entry
            return self

        dw = rect.width - entry.width
        dh = rect.height - entry.height

        if dw > dh:
            first = Rectangle(rect.x, rect.y, entry.width, rect.height)
            second = Rectangle(rect.x + entry.width + padding, rect.y,
                               rect.width - entry.width - padding, rect.height)
        else:
            first = Rectangle(rect.x, rect.y, rect.width, entry.height)
            second = Rectangle(rect.x, rect.y + entry.height + padding,
                               rect.width, rect.height - entry.height - padding)

        self.children = (PackingNode(first), PackingNode(second))
        return self.children[0].insert(entry, padding)


class AtlasBin:
    """One atlas canvas with its packing tree and placement registry."""

    def __init__(self, width: int, height: int, padding: int = 0, composite: bool = True):
        """
        Initialize an empty bin.

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            padding: Gap kept around the canvas border and between images
            composite: Whether to keep a raster canvas and paste placed images into it
        """
        self.width = width
        self.height = height
        self.padding = padding
        self.root = PackingNode(Rectangle(padding, padding,
                                          width - 2 * padding, height - 2 * padding))
        self.canvas: Optional[Image.Image] = ImageUtils.new_canvas(width, height) if composite else None
        self._registry: Dict[str, Rectangle] = {}
        self._entries: Dict[str, ImageEntry] = {}

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def interior(self) -> Rectangle:
        return self.root.rect

    def add_image(self, entry: ImageEntry, padding: Optional[int] = None) -> bool:
        """
        Try to place an image in this bin.

        Args:
            entry: Image to place
            padding: Gap between images; defaults to the bin padding

        Returns:
            True if the image was placed, False if the bin has no room for it
        """
        node = self.root.insert(entry, self.padding if padding is None else padding)
        if node is None:
            return False

        self._registry[entry.identifier] = node.rect
        self._entries[entry.identifier] = entry
        if self.canvas is not None and entry.image is not None:
            ImageUtils.composite(self.canvas, entry.image, node.rect.x, node.rect.y)
        return True

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    def rect_for(self, identifier: str) -> Rectangle:
        return self._registry[identifier]

    def entry_for(self, identifier: str) -> ImageEntry:
        return self._entries[identifier]

    def placements(self) -> List[Tuple[str, Rectangle]]:
        """Registry entries ordered by identifier."""
        return sorted(self._registry.items())

    @property
    def used_area(self) -> int:
        return sum(rect.area for rect in self._registry.values())

    @property
    def efficiency(self) -> float:
        """Fraction of the canvas covered by placed images."""
        total_area = self.width * self.height
        return self.used_area / total_area if total_area > 0 else 0.0


class AtlasAllocator:
    """Greedy first-fit allocation of images across fixed-size bins."""

    def __init__(self, width: int, height: int, padding: int = 0, composite: bool = True):
        self.width = width
        self.height = height
        self.padding = padding
        self.composite = composite
        self.bins: List[AtlasBin] = [self._new_bin()]
        self._placed = 0

    def _new_bin(self) -> AtlasBin:
        return AtlasBin(self.width, self.height, self.padding, composite=self.composite)

    def place(self, entry: ImageEntry) -> int:
        """
        Place one image in the first bin that accepts it, opening a new bin if none does.

        Returns:
            Zero-based index of the bin that received the image
        """
        self._placed += 1
        logger.info(f"Adding {entry.identifier} to atlas ({self._placed})")

        for index, atlas_bin in enumerate(self.bins):
            if atlas_bin.add_image(entry, self.padding):
                return index

        atlas_bin = self._new_bin()
        if not atlas_bin.add_image(entry, self.padding):
            # Entries from an ImageCatalog are bounds-checked, so this only
            # happens for callers feeding entries directly.
            raise ValueError(
                f"'{entry.identifier}' ({entry.width}x{entry.height}) does not fit "
                f"an empty {self.width}x{self.height} bin with padding {self.padding}"
            )
        self.bins.append(atlas_bin)
        logger.debug(f"Started atlas {len(self.bins)} for {entry.identifier}")
        return len(self.bins) - 1

    def allocate(self, entries: Iterable[ImageEntry]) -> List[AtlasBin]:
        """Place every entry in order and return the bin sequence."""
        for entry in entries:
            self.place(entry)
        return self.bins
