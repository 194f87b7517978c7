"""Noise reduction on a Bayer frame by smoothing its interpolated green plane."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.imaging import convert, to_int32

_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.int64)
_KERNEL_SUM = 16
_OUTPUT_TYPES = (np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.int32))


def _trunc_div(num: np.ndarray, den) -> np.ndarray:
    """Integer division truncating toward zero; ``den`` must be positive."""
    quotient = np.abs(num) // den
    return np.where(num < 0, -quotient, quotient)


def _interpolate_green(img: np.ndarray, bayer_pattern: str) -> np.ndarray:
    """Return the green plane of an "rggb" mosaic, filling red and blue sites.

    Red and blue sites take the truncated mean of their in-frame
    four-neighbours. Any other pattern gives an all-zero plane.
    """
    green = np.zeros_like(img)
    if bayer_pattern != "rggb":
        return green

    padded = np.pad(img, 1)
    present = np.pad(np.ones(img.shape, dtype=np.int64), 1)
    sums = padded[:-2, 1:-1] + padded[2:, 1:-1] + padded[1:-1, :-2] + padded[1:-1, 2:]
    counts = (
        present[:-2, 1:-1] + present[2:, 1:-1] + present[1:-1, :-2] + present[1:-1, 2:]
    )
    green = np.where(counts > 0, _trunc_div(sums, np.maximum(counts, 1)), 0)

    green[0::2, 1::2] = img[0::2, 1::2]
    green[1::2, 0::2] = img[1::2, 0::2]
    return green


def _smooth(img: np.ndarray) -> np.ndarray:
    """Apply the 3x3 integer Gaussian to interior pixels; borders become zero."""
    rows, cols = img.shape
    filtered = np.zeros((rows, cols), dtype=np.int64)
    if rows < 3 or cols < 3:
        return filtered
    total = np.zeros((rows - 2, cols - 2), dtype=np.int64)
    for ki in range(3):
        for kj in range(3):
            total += img[ki : ki + rows - 2, kj : kj + cols - 2] * _KERNEL[ki, kj]
    filtered[1:-1, 1:-1] = _trunc_div(total, _KERNEL_SUM)
    return filtered


class BayerNoiseReduction:
    """Smooth a Bayer frame.

    The green plane of an ``"rggb"`` mosaic is interpolated to every pixel
    and filtered with a 3x3 Gaussian; that plane is the output, in the
    input's type (uint8, uint16 or int32), with a zero border. Other
    patterns give an all-zero frame.
    """

    def __init__(
        self,
        img,
        sensor_info: Mapping[str, Any],
        parm_bnr: Mapping[str, Any],
    ):
        self.raw = np.array(img, copy=True)
        self.params = parm_bnr
        self.enable = bool(parm_bnr["is_enable"])
        self.bit_depth = int(sensor_info["bit_depth"])
        self.bayer_pattern = str(sensor_info["bayer_pattern"])
        self.is_save = bool(parm_bnr["is_save"])
        self.height = self.raw.shape[0] if self.raw.ndim else 0
        self.width = self.raw.shape[1] if self.raw.ndim > 1 else 0

    def _filter_settings(self) -> dict[str, tuple[float, float]]:
        """Read the filter window and per-colour deviations from the parameters."""
        window = int(self.params["filter_window"])
        settings = {
            colour: (
                float(self.params[f"{colour}_std_dev_s"]),
                float(self.params[f"{colour}_std_dev_r"]),
            )
            for colour in ("r", "g", "b")
        }
        settings["window"] = (float(window), float(window))
        return settings

    def _apply_bnr(self) -> np.ndarray:
        if self.raw.dtype not in _OUTPUT_TYPES:
            raise ValueError(f"BayerNoiseReduction: unsupported image type {self.raw.dtype}")
        self._filter_settings()
        img = to_int32(self.raw).astype(np.int64)
        green = _interpolate_green(img, self.bayer_pattern)
        return convert(_smooth(green), self.raw.dtype)

    def execute(self) -> np.ndarray:
        """Filter the frame if enabled and return it."""
        if not self.enable:
            return self.raw
        start = time.perf_counter()
        result = self._apply_bnr()
        print(f"  Execution time: {time.perf_counter() - start}s")
        return result