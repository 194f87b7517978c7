"""Automatic white balance gain estimation on a Bayer frame."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.illuminant import GrayWorld, NormGrayWorld, PCAIlluminEstimation
from hdrisp.imaging import to_float

# Positions of each colour inside the 2x2 Bayer cell, as (row, column)
# offsets. Green sites are listed in the order they are sampled.
_SITES = {
    "rggb": {"r": ((0, 0),), "g": ((0, 1), (1, 0)), "b": ((1, 1),)},
    "bggr": {"b": ((0, 0),), "g": ((0, 1), (1, 0)), "r": ((1, 1),)},
    "grbg": {"g": ((0, 0), (1, 1)), "r": ((0, 1),), "b": ((1, 0),)},
    "gbrg": {"g": ((0, 0), (1, 1)), "b": ((0, 1),), "r": ((1, 0),)},
}


def _at_least_one(gain: float) -> float:
    """Raise a gain to 1.0; an undefined gain also becomes 1.0."""
    return gain if gain > 1.0 else 1.0


class AutoWhiteBalance:
    """Estimate red and blue gains for a Bayer frame.

    The estimator is chosen by the ``algorithm`` parameter: ``"norm_2"``,
    ``"pca"`` (which also reads ``percentage``) or gray world for anything
    else. Gains below 1.0 are raised to 1.0. After :meth:`execute`,
    :attr:`raw` holds the frame with the gains applied, as float32 clipped
    to the sensor's bit depth.
    """

    def __init__(
        self,
        raw,
        sensor_info: Mapping[str, Any],
        parm_awb: Mapping[str, Any],
    ):
        self.raw = np.asarray(raw)
        self.params = parm_awb
        self.enable = bool(parm_awb["is_enable"])
        self.bit_depth = int(sensor_info["bit_depth"])
        self.is_debug = bool(parm_awb["is_debug"])
        self.underexposed_percentage = float(parm_awb["underexposed_percentage"])
        self.overexposed_percentage = float(parm_awb["overexposed_percentage"])
        self.bayer = str(sensor_info["bayer_pattern"])
        self.algorithm = str(parm_awb["algorithm"])
        self.flatten_img = np.zeros((3, 0), dtype=np.float32)

    def _flatten(self, img: np.ndarray) -> np.ndarray:
        sites = _SITES.get(self.bayer)
        if sites is None:
            return np.zeros((3, 0), dtype=np.float32)
        rows, cols = img.shape
        even = img[: rows - rows % 2, : cols - cols % 2]

        def samples(colour: str) -> np.ndarray:
            planes = [even[dr::2, dc::2].ravel() for dr, dc in sites[colour]]
            return np.stack(planes, axis=1).ravel()

        red = samples("r")
        green = samples("g")[: red.size]
        blue = samples("b")
        return np.stack([red, green, blue]).astype(np.float32)

    def _estimate(self) -> tuple[float, float]:
        if self.algorithm == "norm_2":
            return NormGrayWorld(self.flatten_img).calculate_gains()
        if self.algorithm == "pca":
            percentage = float(self.params["percentage"])
            return PCAIlluminEstimation(self.flatten_img, percentage).calculate_gains()
        return GrayWorld(self.flatten_img).calculate_gains()

    def _apply_gains(self, img: np.ndarray, r_gain: float, b_gain: float) -> np.ndarray:
        result = img.copy()
        sites = _SITES.get(self.bayer)
        if sites is not None:
            rows, cols = result.shape
            even = result[: rows - rows % 2, : cols - cols % 2]
            for colour, gain in (("r", r_gain), ("b", b_gain)):
                for dr, dc in sites[colour]:
                    even[dr::2, dc::2] *= np.float32(gain)
        max_val = float((1 << self.bit_depth) - 1)
        return np.clip(result, 0.0, max_val).astype(np.float32)

    def _determine_white_balance_gain(self) -> tuple[float, float]:
        if self.raw.ndim != 2:
            raise ValueError("AutoWhiteBalance: input must be a single-channel Bayer frame")
        img = to_float(self.raw)
        self.flatten_img = self._flatten(img)

        estimated_r, estimated_b = self._estimate()
        r_gain = _at_least_one(estimated_r)
        b_gain = _at_least_one(estimated_b)

        if self.is_debug:
            print("   - AWB Actual Gains: ")
            print(f"   - AWB - RGain = {r_gain}")
            print(f"   - AWB - Bgain = {b_gain}")

        self.raw = self._apply_gains(img, r_gain, b_gain)
        return r_gain, b_gain

    def execute(self) -> tuple[float, float]:
        """Return ``(r_gain, b_gain)``; neutral gains when disabled."""
        if not self.enable:
            return 1.0, 1.0
        start = time.perf_counter()
        gains = self._determine_white_balance_gain()
        print(f"  Execution time: {time.perf_counter() - start}s")
        return gains