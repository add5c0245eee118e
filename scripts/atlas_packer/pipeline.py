"""
Atlas packing pipeline: scan, catalog, allocate, validate and export.
"""

import time
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List
from dataclasses import dataclass, field
from contextlib import contextmanager

from .config import PackerConfig
from .errors import ImageDecodeError, PackerError
from .processing.catalog import ImageCatalog
from .processing.packing import AtlasAllocator, AtlasBin
from .processing.export import AtlasExporter, ExportResult
from .processing.validator import LayoutValidator
from .utils.files import find_image_files


class PipelineStep(Enum):
    """Enumeration of pipeline steps."""
    SCAN = "scan"
    CATALOG = "catalog"
    ALLOCATE = "allocate"
    VALIDATE = "validate"
    EXPORT = "export"


@dataclass
class PackResult:
    """Outcome of a complete packing run."""
    bins: List[AtlasBin] = field(default_factory=list)
    files_found: int = 0
    images_packed: int = 0
    skipped: List[ImageDecodeError] = field(default_factory=list)
    exports: List[ExportResult] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    step_durations: Dict[PipelineStep, float] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def failed_exports(self) -> List[ExportResult]:
        return [result for result in self.exports if not result.success]

    @property
    def success(self) -> bool:
        return not self.failed_exports and not self.validation_errors


class AtlasPipeline:
    """
    Runs one packing job described by a PackerConfig.

    Configuration, missing directories, oversized images and duplicate
    identifiers abort the run before any bin is created or any file is
    written. Undecodable files are skipped and reported in the result.
    """

    def __init__(self, config: PackerConfig):
        self.config = config
        self.logger = self._setup_logging()
        self.validator = LayoutValidator()
        self.exporter = AtlasExporter(
            name=config.name,
            output_dir=config.output_dir,
            ignore_paths=config.ignore_paths,
            unit_coordinates=config.unit_coordinates,
            descriptor_format=config.descriptor_format,
            compression_level=config.compression_level,
        )

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("atlas_packer")
        logger.setLevel(getattr(logging, self.config.log_level, logging.INFO))

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def run(self) -> PackResult:
        """
        Execute every step of the run.

        Returns:
            PackResult describing bins, skipped files and exports

        Raises:
            PackerError: On any fatal configuration or input error
        """
        self.config.ensure_valid()
        result = PackResult()
        start = time.time()

        self.logger.info(
            f"Packing into {self.config.width}x{self.config.height} atlases "
            f"with padding {self.config.padding}"
        )

        with self._step(PipelineStep.SCAN, result):
            files = find_image_files(self.config.directories, self.config.extension)
            result.files_found = len(files)

        with self._step(PipelineStep.CATALOG, result):
            catalog = self.build_catalog(files)
            result.skipped = list(catalog.skipped)

        with self._step(PipelineStep.ALLOCATE, result):
            result.bins = self.allocate(catalog)
            result.images_packed = sum(len(atlas_bin) for atlas_bin in result.bins)

        if self.config.validate_output:
            with self._step(PipelineStep.VALIDATE, result):
                result.validation_errors = self.validator.validate_bins(result.bins)
                result.warnings = self.validator.find_warnings(result.bins, self.config.ignore_paths)
                for error in result.validation_errors:
                    self.logger.error(error)
                for warning in result.warnings:
                    self.logger.warning(warning)

        if not result.validation_errors:
            with self._step(PipelineStep.EXPORT, result):
                result.exports = self.exporter.export_all(result.bins)

        result.duration = time.time() - start
        self.logger.info(
            f"Packed {result.images_packed} images into {len(result.bins)} atlases "
            f"in {result.duration:.2f}s"
        )
        return result

    def build_catalog(self, files: List[Path]) -> ImageCatalog:
        """Decode every file into a catalog validated against the canvas."""
        return ImageCatalog.from_files(files, self.config.width, self.config.height, self.config.padding)

    def allocate(self, catalog: ImageCatalog) -> List[AtlasBin]:
        """Pack the catalog, largest images first, into as many bins as needed."""
        allocator = AtlasAllocator(self.config.width, self.config.height, self.config.padding)
        return allocator.allocate(catalog.ordered())

    @contextmanager
    def _step(self, step: PipelineStep, result: PackResult):
        """Time a pipeline step and log its failure."""
        self.logger.debug(f"Starting step: {step.value}")
        start = time.time()
        try:
            yield
        except PackerError as e:
            self.logger.error(f"Step {step.value} failed: {e}")
            raise
        finally:
            result.step_durations[step] = time.time() - start
