"""
Layout validation for packed atlases.
"""

from collections import Counter
from typing import List

from ..utils.image import ImageUtils
from .packing import AtlasBin


class LayoutValidator:
    """Checks packed bins for overlaps, bounds violations and suspicious content."""

    def validate_bin(self, atlas_bin: AtlasBin) -> List[str]:
        """
        Validate the placements of one bin.

        Returns:
            List of error messages, empty if the layout is sound
        """
        errors = []
        placements = atlas_bin.placements()
        interior = atlas_bin.interior

        for identifier, rect in placements:
            if not interior.contains(rect):
                errors.append(
                    f"'{identifier}' at ({rect.x}, {rect.y}, {rect.width}, {rect.height}) "
                    f"is outside the padded area of the canvas"
                )

        for i, (first_id, first) in enumerate(placements):
            for second_id, second in placements[i + 1:]:
                if first.intersects(second):
                    errors.append(f"'{first_id}' overlaps '{second_id}'")

        return errors

    def validate_bins(self, bins: List[AtlasBin]) -> List[str]:
        """Validate every bin and check that no identifier is placed twice."""
        errors = []
        for index, atlas_bin in enumerate(bins, start=1):
            errors.extend(f"atlas {index}: {error}" for error in self.validate_bin(atlas_bin))

        counts = Counter(identifier for atlas_bin in bins for identifier, _ in atlas_bin.placements())
        for identifier, count in sorted(counts.items()):
            if count > 1:
                errors.append(f"'{identifier}' is placed {count} times")

        return errors

    def find_warnings(self, bins: List[AtlasBin], ignore_paths: bool = False) -> List[str]:
        """
        Collect non-fatal issues: fully transparent images and, when paths are
        dropped from the descriptor, file names that appear more than once.
        """
        warnings = []
        for index, atlas_bin in enumerate(bins, start=1):
            for identifier, _ in atlas_bin.placements():
                entry = atlas_bin.entry_for(identifier)
                if entry.image is not None and ImageUtils.is_completely_transparent(entry.image):
                    warnings.append(f"atlas {index}: '{identifier}' is completely transparent")

            if ignore_paths:
                names = Counter(identifier.rsplit('/', 1)[-1] for identifier, _ in atlas_bin.placements())
                for name, count in sorted(names.items()):
                    if count > 1:
                        warnings.append(f"atlas {index}: file name '{name}' is used by {count} images")

        return warnings
