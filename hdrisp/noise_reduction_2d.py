"""Two-dimensional noise reduction by a 3x3 Gaussian smoothing filter."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.imaging import to_float

_KERNEL = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float32) / np.float32(16.0)

# Luma weights applied to planes stored in blue-green-red order.
_GRAY_WEIGHTS = (0.114, 0.587, 0.299)

_OUTPUT_RANGES = {8: 255.0, 16: 65535.0}


def _smooth(img: np.ndarray) -> np.ndarray:
    """Apply the 3x3 kernel to interior pixels; border pixels become zero."""
    rows, cols = img.shape
    filtered = np.zeros((rows, cols), dtype=np.float32)
    if rows < 3 or cols < 3:
        return filtered
    total = np.zeros((rows - 2, cols - 2), dtype=np.float32)
    for ki in range(3):
        for kj in range(3):
            total += img[ki : ki + rows - 2, kj : kj + cols - 2] * _KERNEL[ki, kj]
    filtered[1:-1, 1:-1] = total
    return filtered


def _to_gray(img: np.ndarray) -> np.ndarray:
    weighted = sum(
        weight * img[:, :, index].astype(np.float64)
        for index, weight in enumerate(_GRAY_WEIGHTS)
    )
    if np.issubdtype(img.dtype, np.integer):
        info = np.iinfo(img.dtype)
        return np.clip(np.rint(weighted), info.min, info.max).astype(img.dtype)
    return weighted.astype(np.float32)


class NoiseReduction2D:
    """Smooth a single-channel or three-channel image.

    A three-channel image is first reduced to grey. The result is float32,
    scaled to the output bit depth (8 or 16) and clipped to its range, or
    left unscaled for 32.
    """

    def __init__(
        self,
        img,
        platform: Mapping[str, Any],
        sensor_info: Mapping[str, Any],
        params: Mapping[str, Any],
    ):
        self.img = np.array(img, copy=True)
        self.platform = platform
        self.sensor_info = sensor_info
        self.is_enable = bool(params.get("is_enable", False))
        self.is_save = bool(params.get("is_save", False))
        self.is_debug = bool(params.get("is_debug", False))
        self.sigma_space = float(params.get("sigma_space", 1.0))
        self.sigma_color = float(params.get("sigma_color", 1.0))
        self.window_size = int(params.get("window_size", 3))
        self.output_bit_depth = int(sensor_info.get("output_bit_depth", 16))

    def _single_plane(self) -> np.ndarray:
        img = self.img
        if img.ndim == 2:
            return img
        if img.ndim == 3 and img.shape[2] == 1:
            return img[:, :, 0]
        if img.ndim == 3 and img.shape[2] == 3:
            return _to_gray(img)
        raise ValueError("Unsupported number of channels. Use 1 or 3 channels.")

    def _reduce_noise(self) -> np.ndarray:
        filtered = _smooth(to_float(self._single_plane()))
        if self.output_bit_depth == 32:
            return filtered
        top = _OUTPUT_RANGES.get(self.output_bit_depth)
        if top is None:
            raise ValueError("Unsupported output bit depth. Use 8, 16, or 32.")
        return np.clip(filtered * np.float32(top), 0.0, top).astype(np.float32)

    def execute(self) -> np.ndarray:
        """Filter the image if enabled and return it."""
        if self.is_enable:
            start = time.perf_counter()
            self.img = self._reduce_noise()
            if self.is_debug:
                print(f"  Execution time: {time.perf_counter() - start:.3f}s")
        return self.img