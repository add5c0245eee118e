"""
Export of packed bins: one atlas image and one descriptor file per bin.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..errors import ExportError
from ..utils.image import ImageUtils
from .packing import AtlasBin, Rectangle

logger = logging.getLogger(__name__)


@dataclass
class DescriptorEntry:
    """One line of an atlas descriptor."""
    identifier: str
    x: Union[int, float]
    y: Union[int, float]
    width: Union[int, float]
    height: Union[int, float]

    @classmethod
    def from_rect(cls, identifier: str, rect: Rectangle, canvas_size: tuple[int, int],
                  ignore_paths: bool = False, unit_coordinates: bool = False) -> "DescriptorEntry":
        """
        Build a descriptor entry for a placed rectangle.

        Args:
            identifier: Image identifier as registered in the bin
            rect: Placement in canvas pixels
            canvas_size: (width, height) of the canvas
            ignore_paths: Keep only the final path segment of the identifier
            unit_coordinates: Express the rectangle as fractions of the canvas size
        """
        if ignore_paths:
            identifier = identifier.rsplit('/', 1)[-1]

        if unit_coordinates:
            canvas_width, canvas_height = canvas_size
            return cls(identifier,
                       rect.x / canvas_width, rect.y / canvas_height,
                       rect.width / canvas_width, rect.height / canvas_height)

        return cls(identifier, rect.x, rect.y, rect.width, rect.height)

    def to_line(self) -> str:
        return f"{self.identifier} {self.x} {self.y} {self.width} {self.height}"

    def to_frame(self) -> Dict[str, Union[int, float]]:
        return {"x": self.x, "y": self.y, "w": self.width, "h": self.height}


def descriptor_entries(atlas_bin: AtlasBin, ignore_paths: bool = False,
                       unit_coordinates: bool = False) -> List[DescriptorEntry]:
    """Descriptor entries for a bin, ordered by identifier."""
    return [
        DescriptorEntry.from_rect(identifier, rect, atlas_bin.size, ignore_paths, unit_coordinates)
        for identifier, rect in atlas_bin.placements()
    ]


def format_descriptor_lines(atlas_bin: AtlasBin, ignore_paths: bool = False,
                            unit_coordinates: bool = False) -> List[str]:
    """Text descriptor lines, `identifier x y width height`, one per placed image."""
    return [entry.to_line() for entry in descriptor_entries(atlas_bin, ignore_paths, unit_coordinates)]


@dataclass
class ExportResult:
    """Outcome of exporting a single bin."""
    index: int
    name: str
    image_path: Optional[Path] = None
    descriptor_path: Optional[Path] = None
    image_count: int = 0
    error: Optional[ExportError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class AtlasExporter:
    """Writes bins to `<output_dir>/<name><index>` image and descriptor pairs."""

    def __init__(self, name: str, output_dir: Union[str, Path] = ".",
                 ignore_paths: bool = False, unit_coordinates: bool = False,
                 descriptor_format: str = "txt", compression_level: int = 6):
        self.name = name
        self.output_dir = Path(output_dir)
        self.ignore_paths = ignore_paths
        self.unit_coordinates = unit_coordinates
        self.descriptor_format = descriptor_format
        self.compression_level = compression_level

    def atlas_name(self, index: int) -> str:
        """Name of the bin at 1-based index."""
        return f"{self.name}{index}"

    def export_bin(self, atlas_bin: AtlasBin, index: int) -> ExportResult:
        """
        Write one bin.

        Args:
            atlas_bin: Bin to export
            index: 1-based position of the bin in the run

        Returns:
            ExportResult with the written paths

        Raises:
            ExportError: If the image or descriptor cannot be written
        """
        name = self.atlas_name(index)
        image_path = self.output_dir / f"{name}.png"
        descriptor_path = self.output_dir / f"{name}.{self.descriptor_format}"

        logger.info(f"Writing atlas: {name}")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(self.output_dir, str(e), index)

        canvas = atlas_bin.canvas if atlas_bin.canvas is not None else ImageUtils.new_canvas(*atlas_bin.size)
        try:
            ImageUtils.save_image(canvas, image_path, self.compression_level)
        except (OSError, ValueError) as e:
            raise ExportError(image_path, str(e), index)

        entries = descriptor_entries(atlas_bin, self.ignore_paths, self.unit_coordinates)
        try:
            if self.descriptor_format == "json":
                self._write_json(descriptor_path, entries, atlas_bin, name)
            else:
                self._write_text(descriptor_path, entries)
        except OSError as e:
            raise ExportError(descriptor_path, str(e), index)

        return ExportResult(index, name, image_path, descriptor_path, len(entries))

    def export_all(self, bins: List[AtlasBin]) -> List[ExportResult]:
        """
        Export every bin, continuing past failures.

        Returns:
            One ExportResult per bin; failed bins carry their ExportError
        """
        results = []
        for index, atlas_bin in enumerate(bins, start=1):
            try:
                results.append(self.export_bin(atlas_bin, index))
            except ExportError as e:
                logger.error(str(e))
                results.append(ExportResult(index, self.atlas_name(index), error=e))
        return results

    def _write_text(self, path: Path, entries: List[DescriptorEntry]) -> None:
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            for entry in entries:
                f.write(entry.to_line() + "\n")

    def _write_json(self, path: Path, entries: List[DescriptorEntry],
                    atlas_bin: AtlasBin, name: str) -> None:
        # Frames are keyed by full identifier so stripped names may repeat
        frames = {}
        for (identifier, _), entry in zip(atlas_bin.placements(), entries):
            frames[identifier] = {"name": entry.identifier, **entry.to_frame()}

        data = {
            "frames": frames,
            "meta": {
                "image": f"{name}.png",
                "size": {"w": atlas_bin.width, "h": atlas_bin.height},
                "padding": atlas_bin.padding,
                "unit_coordinates": self.unit_coordinates,
            }
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
