"""Colour correction of an RGB image by a 3x3 matrix."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.common import INTERMEDIATE_DIR, save_image
from hdrisp.imaging import apply_color_matrix

_CLIP_LIMITS = {8: 255.0, 16: 65535.0}
_ROW_KEYS = ("corrected_red", "corrected_green", "corrected_blue")


def _to_uint(values: np.ndarray, dtype) -> np.ndarray:
    """Round to nearest (ties to even) and saturate to an unsigned type."""
    top = float(np.iinfo(dtype).max)
    return np.clip(np.rint(values.astype(np.float64)), 0.0, top).astype(dtype)


class ColorCorrectionMatrix:
    """Multiply every pixel of a three-channel image by a colour matrix.

    The matrix rows come from ``corrected_red``, ``corrected_green`` and
    ``corrected_blue``. For a bit depth of 8 or 16 the result is clipped to
    that range; it is then rounded and saturated to uint16.
    """

    def __init__(
        self,
        img,
        sensor_info: Mapping[str, Any],
        parm_ccm: Mapping[str, Any],
    ):
        self.raw = np.asarray(img)
        self.params = parm_ccm
        self.enable = bool(parm_ccm["is_enable"])
        self.output_bit_depth = int(sensor_info["bit_depth"])
        self.is_save = bool(parm_ccm["is_save"])

    @property
    def matrix(self) -> np.ndarray:
        """The 3x3 correction matrix built from the parameters."""
        rows = [np.asarray(self.params[key], dtype=np.float32) for key in _ROW_KEYS]
        if any(row.shape != (3,) for row in rows):
            raise ValueError("ColorCorrectionMatrix: each matrix row needs three values")
        return np.stack(rows)

    def _apply_ccm(self) -> np.ndarray:
        corrected = apply_color_matrix(self.raw, self.matrix)
        limit = _CLIP_LIMITS.get(self.output_bit_depth)
        if limit is not None:
            corrected = np.clip(corrected, 0.0, limit).astype(np.float32)
        return _to_uint(corrected, np.uint16)

    def _save(self, result: np.ndarray) -> None:
        rows, cols = result.shape[:2]
        path = INTERMEDIATE_DIR / f"Out_color_correction_matrix_{cols}x{rows}.png"
        scale = 255.0 / ((1 << self.output_bit_depth) - 1)
        preview = _to_uint(result.astype(np.float64) * scale, np.uint8)
        print("CCM Save image statistics:")
        print(f"  Mean: {float(preview.mean())}")
        print(f"  Min: {int(preview.min())}")
        print(f"  Max: {int(preview.max())}")
        try:
            save_image(preview, path)
        except Exception as exc:
            print(f"Error saving image: {exc}")
        else:
            print(f"Successfully wrote image to: {path}")

    def execute(self) -> np.ndarray:
        """Correct the image if enabled and return it."""
        if not self.enable:
            return self.raw
        start = time.perf_counter()
        result = self._apply_ccm()
        elapsed = time.perf_counter() - start
        print(f"Color Correction Matrix execution time: {elapsed} seconds")
        if self.is_save:
            self._save(result)
        return result