"""Shared configuration, file loading and saving helpers for the pipeline."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence

import imageio.v3 as iio
import numpy as np
import yaml

DEFAULT_BIT_DEPTH = 12
DEFAULT_MEMORY_THRESHOLD = 100.0  # MB

_MEGABYTE = 1024 * 1024
INTERMEDIATE_DIR = Path("out_frames") / "intermediate"

_USAGE = (
    "Usage: {prog} [options]\n"
    "Options:\n"
    "  --config <path>           Path to configuration file\n"
    "  --data <path>             Path to data directory\n"
    "  --file <filename>         Input filename\n"
    "  --save-intermediate       Save intermediate results\n"
    "  --use-mmap               Use memory mapping for large files\n"
    "  --memory-threshold <MB>   Memory threshold in MB\n"
    "  --help                   Show this help message\n"
)


class ISPRuntimeError(RuntimeError):
    """Raised when a pipeline file operation fails."""


def _preferred(path: str) -> str:
    """Use the platform's preferred directory separator."""
    if os.altsep:
        return path.replace(os.altsep, os.sep)
    return path


@dataclass
class PlatformInfo:
    name: str = ""
    version: str = ""
    is_hardware: bool = False


@dataclass
class SensorInfo:
    width: int = 0
    height: int = 0
    bit_depth: int = DEFAULT_BIT_DEPTH
    bayer_pattern: str = ""


@dataclass
class PipelineConfig:
    config_path: str = field(default_factory=lambda: _preferred("./config/svs_cam.yml"))
    data_path: str = field(default_factory=lambda: _preferred("./in_frames/normal"))
    filename: str = "ColorChecker_2592x1536_12bits_RGGB.raw"
    save_intermediate: bool = False
    use_memory_map: bool = False
    memory_threshold: float = DEFAULT_MEMORY_THRESHOLD


def load_raw_image(filename, width: int, height: int, bit_depth: int) -> np.ndarray:
    """Read a headerless raw file into a ``(height, width)`` uint16 array.

    The file must hold exactly ``width * height`` pixels of
    ``ceil(bit_depth / 8)`` bytes each. Its bytes fill the uint16 buffer
    from the start; any remainder of the buffer stays zero.
    """
    bytes_per_pixel = (bit_depth + 7) // 8
    try:
        data = Path(filename).read_bytes()
    except OSError as exc:
        raise ISPRuntimeError(f"Failed to open file: {filename}") from exc

    if len(data) != width * height * bytes_per_pixel:
        raise ISPRuntimeError(f"File size mismatch for: {filename}")

    buffer = bytearray(width * height * 2)
    if len(data) > len(buffer):
        raise ISPRuntimeError(f"Error reading file: {filename}")
    buffer[: len(data)] = data
    return np.frombuffer(buffer, dtype="<u2").reshape(height, width).astype(np.uint16)


def save_image(img, filename) -> None:
    """Write an image, creating its directory first."""
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        iio.imwrite(path, np.asarray(img))
    except Exception as exc:
        raise ISPRuntimeError(f"Failed to save image: {filename}") from exc


def get_output_filename(input_filename: str, suffix: str) -> str:
    """Return ``<stem>_<suffix><extension>`` for an input file name."""
    path = Path(input_filename)
    return f"{path.stem}_{suffix}{path.suffix}"


def parse_arguments(argv: Optional[Sequence[str]] = None) -> PipelineConfig:
    """Build a pipeline configuration from command-line arguments.

    Options missing their value and unknown options are ignored.
    ``--help`` prints the usage text and exits with status 0.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    config = PipelineConfig()
    items = iter(enumerate(args))
    for index, arg in items:
        has_value = index + 1 < len(args)
        if arg == "--config" and has_value:
            config.config_path = _preferred(next(items)[1])
        elif arg == "--data" and has_value:
            config.data_path = _preferred(next(items)[1])
        elif arg == "--file" and has_value:
            config.filename = next(items)[1]
        elif arg == "--save-intermediate":
            config.save_intermediate = True
        elif arg == "--use-mmap":
            config.use_memory_map = True
        elif arg == "--memory-threshold" and has_value:
            config.memory_threshold = float(next(items)[1])
        elif arg == "--help":
            prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "hdrisp"
            print(_USAGE.format(prog=prog), end="")
            raise SystemExit(0)
    return config


def create_output_directories(root, save_intermediate: bool) -> None:
    """Create ``out_frames`` (and its ``intermediate`` folder) under ``root``."""
    out_dir = Path(root) / "out_frames"
    out_dir.mkdir(parents=True, exist_ok=True)
    if save_intermediate:
        (out_dir / "intermediate").mkdir(parents=True, exist_ok=True)


def _read_image(path: Path) -> np.ndarray:
    try:
        return np.asarray(iio.imread(path))
    except Exception as exc:
        raise ISPRuntimeError(f"Failed to read image: {path}") from exc


def load_raw_image_with_mmap(
    filename, width: int, height: int, bit_depth: int, use_mmap: bool
) -> np.ndarray:
    """Load a raw, TIFF or other image file.

    ``.raw`` files larger than the default memory threshold are memory
    mapped when ``use_mmap`` is set and the pixels are two bytes wide.
    Three-channel TIFF files yield their blue plane.
    """
    path = Path(filename)
    try:
        file_size = path.stat().st_size
    except OSError as exc:
        raise ISPRuntimeError(f"Failed to open file: {filename}") from exc
    should_use_mmap = use_mmap and file_size > DEFAULT_MEMORY_THRESHOLD * _MEGABYTE

    if path.suffix == ".raw":
        if should_use_mmap and (bit_depth + 7) // 8 == 2:
            if file_size != width * height * 2:
                raise ISPRuntimeError(f"File size mismatch for: {filename}")
            return np.memmap(path, dtype="<u2", mode="r", shape=(height, width))
        return load_raw_image(filename, width, height, bit_depth)

    img = _read_image(path)
    if path.suffix == ".tiff" and img.ndim == 3 and img.shape[2] == 3:
        # The first plane in blue-green-red order is the last in RGB order.
        return img[:, :, 2].copy()
    return img


def save_intermediate_image(img, module_name: str, save_intermediate: bool) -> None:
    """Save a stage's output under ``out_frames/intermediate`` when asked to."""
    if save_intermediate:
        save_image(img, INTERMEDIATE_DIR / f"{module_name}.png")


def load_yaml_config(config_path) -> Any:
    """Load a YAML configuration file."""
    try:
        with open(config_path, encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        raise ISPRuntimeError(f"Error loading config: {exc}") from exc