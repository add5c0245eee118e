"""
Image catalog: the validated set of input images and their packing order.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
from PIL import Image

from ..errors import DuplicateIdentifierError, ImageDecodeError, ImageTooLargeError
from ..utils.files import make_identifier
from ..utils.image import ImageUtils

logger = logging.getLogger(__name__)


@dataclass
class ImageEntry:
    """An input image with the identifier it is exported under."""
    identifier: str
    width: int
    height: int
    image: Optional[Image.Image] = field(default=None, repr=False, compare=False)
    source_path: Optional[Path] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image '{self.identifier}' must have positive dimensions")

    @classmethod
    def from_image(cls, identifier: str, image: Image.Image,
                   source_path: Optional[Path] = None) -> "ImageEntry":
        return cls(identifier, image.width, image.height, image, source_path)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def area(self) -> int:
        return self.width * self.height


class ImageCatalog:
    """
    Holds every image of a run, validated against the canvas.

    An image that cannot fit an empty canvas aborts the run, and two images
    sharing an identifier are rejected instead of one silently replacing
    the other.
    """

    def __init__(self, width: int, height: int, padding: int = 0):
        self.width = width
        self.height = height
        self.padding = padding
        self._entries: Dict[str, ImageEntry] = {}
        self.skipped: List[ImageDecodeError] = []

    @property
    def usable_size(self) -> Tuple[int, int]:
        """Largest image size an empty canvas can hold once the border padding is removed."""
        return (self.width - 2 * self.padding, self.height - 2 * self.padding)

    def add(self, entry: ImageEntry) -> None:
        """
        Add an image to the catalog.

        Raises:
            ImageTooLargeError: If the image exceeds the usable canvas area
            DuplicateIdentifierError: If the identifier is already taken
        """
        max_width, max_height = self.usable_size
        if entry.width > max_width or entry.height > max_height:
            raise ImageTooLargeError(entry.identifier, entry.size, (self.width, self.height), self.padding)

        existing = self._entries.get(entry.identifier)
        if existing is not None:
            paths = [e.source_path for e in (existing, entry) if e.source_path is not None]
            raise DuplicateIdentifierError(entry.identifier, paths)

        self._entries[entry.identifier] = entry

    def add_file(self, path: Path) -> Optional[ImageEntry]:
        """
        Decode a file and add it to the catalog.

        Decode failures are recorded in `skipped` and logged; size and
        identifier errors propagate.

        Returns:
            The new entry, or None if the file could not be decoded
        """
        try:
            image = ImageUtils.load_image(path)
        except ImageDecodeError as e:
            logger.warning(str(e))
            self.skipped.append(e)
            return None

        entry = ImageEntry.from_image(make_identifier(path), image, Path(path))
        self.add(entry)
        return entry

    @classmethod
    def from_files(cls, paths: Iterable[Path], width: int, height: int,
                   padding: int = 0) -> "ImageCatalog":
        """Build a catalog by decoding every file in paths."""
        catalog = cls(width, height, padding)
        for path in paths:
            catalog.add_file(path)
        return catalog

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._entries

    def get(self, identifier: str) -> Optional[ImageEntry]:
        return self._entries.get(identifier)

    def ordered(self) -> List[ImageEntry]:
        """Entries sorted by area, largest first, ties broken by identifier."""
        return sorted(self._entries.values(), key=lambda e: (-e.area, e.identifier))
