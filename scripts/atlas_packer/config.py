"""
Configuration management for the atlas packer.
Supports TOML and JSON configuration files with environment variable overrides.
"""

import os
import json
import tomllib
from dataclasses import dataclass, field
from typing import Dict, List, Any, Union
from pathlib import Path

from .errors import ConfigError


DESCRIPTOR_FORMATS = ("txt", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class PackerConfig:
    """Main configuration class for an atlas packing run."""

    # Atlas settings
    name: str = "atlas"
    width: int = 2048
    height: int = 2048
    padding: int = 0

    # Descriptor settings
    ignore_paths: bool = False
    unit_coordinates: bool = False
    descriptor_format: str = "txt"

    # Input settings
    directories: List[str] = field(default_factory=list)
    extension: str = ".png"

    # Output settings
    output_dir: str = "."
    compression_level: int = 6
    validate_output: bool = False

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "PackerConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()
        try:
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    data = tomllib.load(f)
            elif suffix == '.json':
                with open(config_path, 'r') as f:
                    data = json.load(f)
            else:
                raise ConfigError(f"Unsupported configuration format: {config_path.suffix}")
        except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot parse configuration file {config_path}: {e}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "PackerConfig":
        """Create configuration from dictionary."""
        config_data = {}

        atlas = _section(data, 'atlas')
        for key in ('name', 'width', 'height', 'padding', 'extension'):
            if key in atlas:
                config_data[key] = _typed(f"atlas.{key}", atlas[key], FIELD_TYPES[key])
        if 'directories' in atlas:
            directories = atlas['directories']
            if not isinstance(directories, list) or not all(isinstance(d, str) for d in directories):
                raise ConfigError("atlas.directories must be a list of strings")
            config_data['directories'] = list(directories)

        output = _section(data, 'output')
        for key in ('ignore_paths', 'unit_coordinates', 'output_dir',
                    'compression_level', 'validate_output'):
            if key in output:
                config_data[key] = _typed(f"output.{key}", output[key], FIELD_TYPES[key])
        if 'format' in output:
            config_data['descriptor_format'] = _typed("output.format", output['format'], str).lower()

        logging_section = _section(data, 'logging')
        if 'level' in logging_section:
            config_data['log_level'] = _typed("logging.level", logging_section['level'], str).upper()

        return cls(**config_data)

    @classmethod
    def default(cls) -> "PackerConfig":
        """Create default configuration with environment variable overrides."""
        return cls().apply_env_overrides()

    def apply_env_overrides(self) -> "PackerConfig":
        """Apply ATLAS_PACKER_* environment variable overrides in place."""
        try:
            if os.getenv('ATLAS_PACKER_NAME'):
                self.name = os.getenv('ATLAS_PACKER_NAME', 'atlas')

            if os.getenv('ATLAS_PACKER_WIDTH'):
                self.width = int(os.getenv('ATLAS_PACKER_WIDTH', '2048'))

            if os.getenv('ATLAS_PACKER_HEIGHT'):
                self.height = int(os.getenv('ATLAS_PACKER_HEIGHT', '2048'))

            if os.getenv('ATLAS_PACKER_PADDING'):
                self.padding = int(os.getenv('ATLAS_PACKER_PADDING', '0'))

            if os.getenv('ATLAS_PACKER_COMPRESSION_LEVEL'):
                self.compression_level = int(os.getenv('ATLAS_PACKER_COMPRESSION_LEVEL', '6'))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric environment override: {e}")

        if os.getenv('ATLAS_PACKER_IGNORE_PATHS'):
            self.ignore_paths = _env_flag('ATLAS_PACKER_IGNORE_PATHS')

        if os.getenv('ATLAS_PACKER_UNIT_COORDINATES'):
            self.unit_coordinates = _env_flag('ATLAS_PACKER_UNIT_COORDINATES')

        if os.getenv('ATLAS_PACKER_VALIDATE'):
            self.validate_output = _env_flag('ATLAS_PACKER_VALIDATE')

        if os.getenv('ATLAS_PACKER_EXTENSION'):
            self.extension = os.getenv('ATLAS_PACKER_EXTENSION', '.png')

        if os.getenv('ATLAS_PACKER_FORMAT'):
            self.descriptor_format = os.getenv('ATLAS_PACKER_FORMAT', 'txt').lower()

        if os.getenv('ATLAS_PACKER_OUTPUT_DIR'):
            self.output_dir = os.getenv('ATLAS_PACKER_OUTPUT_DIR', '.')

        if os.getenv('ATLAS_PACKER_LOG_LEVEL'):
            self.log_level = os.getenv('ATLAS_PACKER_LOG_LEVEL', 'INFO').upper()

        return self

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.name:
            errors.append("name must not be empty")

        if self.width <= 0 or self.height <= 0:
            errors.append("width and height must be positive")

        if self.padding < 0:
            errors.append("padding must not be negative")
        elif self.width - 2 * self.padding <= 0 or self.height - 2 * self.padding <= 0:
            errors.append("padding leaves no usable area on the canvas")

        if not self.directories:
            errors.append("at least one input directory is required")

        if not self.extension.startswith('.'):
            errors.append("extension must start with '.'")

        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if self.descriptor_format not in DESCRIPTOR_FORMATS:
            errors.append(f"descriptor format must be one of {', '.join(DESCRIPTOR_FORMATS)}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        return errors

    def ensure_valid(self) -> None:
        """Raise ConfigError if the configuration has any problems."""
        errors = self.validate()
        if errors:
            raise ConfigError("Invalid configuration: " + "; ".join(errors))


ENV_VARS = [
    ("ATLAS_PACKER_NAME", "Base name of the output atlases", "atlas"),
    ("ATLAS_PACKER_WIDTH", "Canvas width in pixels", "2048"),
    ("ATLAS_PACKER_HEIGHT", "Canvas height in pixels", "2048"),
    ("ATLAS_PACKER_PADDING", "Padding between images in pixels", "2"),
    ("ATLAS_PACKER_IGNORE_PATHS", "Write file names only (true/false)", "false"),
    ("ATLAS_PACKER_UNIT_COORDINATES", "Write 0..1 coordinates (true/false)", "false"),
    ("ATLAS_PACKER_EXTENSION", "Input file extension", ".png"),
    ("ATLAS_PACKER_FORMAT", "Descriptor format (txt/json)", "txt"),
    ("ATLAS_PACKER_OUTPUT_DIR", "Output directory path", "build/atlases"),
    ("ATLAS_PACKER_COMPRESSION_LEVEL", "PNG compression level (0-9)", "6"),
    ("ATLAS_PACKER_VALIDATE", "Validate layouts before export (true/false)", "false"),
    ("ATLAS_PACKER_LOG_LEVEL", "Logging level", "INFO"),
]


FIELD_TYPES = {
    'name': str,
    'width': int,
    'height': int,
    'padding': int,
    'extension': str,
    'ignore_paths': bool,
    'unit_coordinates': bool,
    'output_dir': str,
    'compression_level': int,
    'validate_output': bool,
}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table of settings")
    return section


def _typed(key: str, value: Any, expected: type) -> Any:
    """Return value if it has the expected type, else raise ConfigError."""
    # bool is a subclass of int; neither may stand in for the other
    if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
        raise ConfigError(
            f"{key} must be of type {expected.__name__}, got {type(value).__name__} {value!r}"
        )
    return value


def _env_flag(name: str) -> bool:
    return os.getenv(name, '').lower() in ('1', 'true', 'yes', 'on')
