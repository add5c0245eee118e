"""
Input file discovery for the atlas packer.
"""

import os
import logging
from pathlib import Path
from typing import Iterable, List, Union

from ..errors import DirectoryNotFoundError

logger = logging.getLogger(__name__)


def find_image_files(directories: Iterable[Union[str, Path]], extension: str = ".png") -> List[Path]:
    """
    Recursively collect image files from the given directories.

    Every directory is checked before any of them is walked, so a missing
    directory aborts the run without partial work. Within a directory the
    matching files come first, then each sub-directory, both in name order.

    Args:
        directories: Root directories to scan
        extension: File extension to match, case-insensitive

    Returns:
        List of matching file paths

    Raises:
        DirectoryNotFoundError: If a path does not exist or is not a directory
    """
    roots = [Path(d) for d in directories]
    for root in roots:
        if not root.is_dir():
            raise DirectoryNotFoundError(root)

    suffix = extension.lower()
    found: List[Path] = []
    for root in roots:
        _collect(root, suffix, found)

    logger.info(f"Found {len(found)} images")
    return found


def _collect(directory: Path, suffix: str, found: List[Path]) -> None:
    entries = sorted(directory.iterdir(), key=lambda p: p.name)
    found.extend(p for p in entries if p.is_file() and p.name.lower().endswith(suffix))
    for sub in entries:
        if sub.is_dir():
            _collect(sub, suffix, found)


def make_identifier(path: Union[str, Path]) -> str:
    """Derive an image identifier: the path without its extension, using '/' separators."""
    stem, _ = os.path.splitext(str(path))
    return stem.replace("\\", "/")
