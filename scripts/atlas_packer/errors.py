"""
Exception hierarchy for the atlas packer.

Capacity rejection while packing is ordinary control flow and never raises;
these exceptions cover configuration, input and export failures.
"""

from pathlib import Path
from typing import Iterable, Optional, Tuple, Union


class PackerError(Exception):
    """Base exception for atlas packer errors."""
    pass


class ConfigError(PackerError):
    """Raised for malformed or insufficient configuration."""
    pass


class DirectoryNotFoundError(PackerError):
    """Raised when an input path does not exist or is not a directory."""

    def __init__(self, path: Union[str, Path]):
        super().__init__(f"Could not find directory '{path}'")
        self.path = Path(path)


class ImageTooLargeError(PackerError):
    """Raised when an image can never fit on a canvas of the configured size."""

    def __init__(self, identifier: str, size: Tuple[int, int], canvas_size: Tuple[int, int],
                 padding: int = 0):
        message = (f"'{identifier}' ({size[0]}x{size[1]}) is larger than the atlas "
                   f"({canvas_size[0]}x{canvas_size[1]})")
        usable_size = (canvas_size[0] - 2 * padding, canvas_size[1] - 2 * padding)
        if padding:
            message += (f" with padding {padding}, which leaves "
                        f"{usable_size[0]}x{usable_size[1]} for images")
        super().__init__(message)
        self.identifier = identifier
        self.size = size
        self.canvas_size = canvas_size
        self.usable_size = usable_size


class ImageDecodeError(PackerError):
    """Raised when a single input file cannot be decoded."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Could not open file '{path}': {reason}")
        self.path = Path(path)
        self.reason = reason


class DuplicateIdentifierError(PackerError):
    """Raised when two input images resolve to the same identifier."""

    def __init__(self, identifier: str, paths: Iterable[Union[str, Path]] = ()):
        self.paths = [Path(p) for p in paths]
        message = f"Duplicate image identifier '{identifier}'"
        if self.paths:
            message += " (" + ", ".join(f"'{p}'" for p in self.paths) + ")"
        super().__init__(message)
        self.identifier = identifier


class ExportError(PackerError):
    """Raised when an atlas image or descriptor cannot be written."""

    def __init__(self, path: Union[str, Path], reason: str, bin_index: Optional[int] = None):
        super().__init__(f"Could not write '{path}': {reason}")
        self.path = Path(path)
        self.reason = reason
        self.bin_index = bin_index
