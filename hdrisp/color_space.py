"""RGB to YUV conversion reduced to an 8-bit luminance-weighted plane."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.imaging import apply_color_matrix

# Integer matrices scaled by 256.
_BT709 = np.array(
    [[47, 157, 16], [-26, -86, 112], [112, -102, -10]], dtype=np.float32
)
_BT601 = np.array(
    [[77, 150, 29], [131, -110, -21], [-44, -87, 138]], dtype=np.float32
)

# Fixed-point grey weights (scaled by 2**14) for planes in blue-green-red order.
_GRAY_WEIGHTS = (1868, 9617, 4899)
_GRAY_SHIFT = 14


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return (np.sign(values) * np.floor(np.abs(values) + np.float32(0.5))).astype(
        np.float32
    )


def _to_gray(yuv: np.ndarray) -> np.ndarray:
    planes = yuv.astype(np.int64)
    total = sum(w * planes[:, :, i] for i, w in enumerate(_GRAY_WEIGHTS))
    return (total + (1 << (_GRAY_SHIFT - 1))) >> _GRAY_SHIFT


class ColorSpaceConversion:
    """Convert an RGB image to 8-bit YUV and collapse it to one plane.

    ``conv_standard`` 1 selects BT.709, anything else BT.601. The chroma
    planes are scaled by ``saturation_gain`` when colour saturation
    enhancement is enabled. The 8-bit YUV planes are then combined as if
    they were blue, green and red into a grey image, returned as float32.
    """

    def __init__(
        self,
        img,
        sensor_info: Mapping[str, Any],
        parm_csc: Mapping[str, Any],
        parm_cse: Mapping[str, Any],
    ):
        self.raw = np.array(img, copy=True)
        self.parm_cse = parm_cse
        self.bit_depth = int(sensor_info["output_bit_depth"])
        self.conv_std = int(parm_csc["conv_standard"])
        self.is_save = bool(parm_csc["is_save"])
        if self.raw.size:
            print(
                f"Input raw image - Mean: {float(self.raw.mean())}, "
                f"Min: {self.raw.min()}, Max: {self.raw.max()}"
            )

    @property
    def matrix(self) -> np.ndarray:
        """The RGB to YUV matrix of the selected standard."""
        return _BT709 if self.conv_std == 1 else _BT601

    def _rgb_to_yuv_8bit(self) -> np.ndarray:
        if self.bit_depth < 8:
            raise ValueError("ColorSpaceConversion: output bit depth must be at least 8")
        yuv = apply_color_matrix(self.raw, self.matrix)
        yuv = _round_half_away(yuv * np.float32(1.0 / 256))

        if bool(self.parm_cse["is_enable"]):
            gain = np.float32(float(self.parm_cse["saturation_gain"]))
            yuv[:, :, 1:] *= gain

        yuv[:, :, 0] += np.float32(1 << (self.bit_depth // 2))
        yuv[:, :, 1:] += np.float32(1 << (self.bit_depth - 1))
        yuv = np.clip(yuv, 0.0, float((1 << self.bit_depth) - 1)).astype(np.float32)

        yuv = _round_half_away(yuv * np.float32(1.0 / (1 << (self.bit_depth - 8))))
        yuv = np.clip(yuv, 0.0, 255.0)
        yuv8 = np.clip(np.rint(yuv), 0, 255).astype(np.uint8)
        return _to_gray(yuv8).astype(np.float32)

    def execute(self) -> np.ndarray:
        """Return the converted single-plane image."""
        start = time.perf_counter()
        result = self._rgb_to_yuv_8bit()
        elapsed = time.perf_counter() - start
        print(f"Color Space Conversion execution time: {elapsed} seconds")
        return result