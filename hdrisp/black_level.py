"""Black level correction of a Bayer frame."""

from __future__ import annotations

import time
from typing import Any, Mapping

import numpy as np

from hdrisp.imaging import convert, to_int32

_CHANNELS = ("r", "gr", "gb", "b")

# Colour site at each (row offset, column offset) of the 2x2 Bayer cell.
_SITES = {
    "rggb": {(0, 0): "r", (0, 1): "gr", (1, 0): "gb", (1, 1): "b"},
    "bggr": {(0, 0): "b", (0, 1): "gb", (1, 0): "gr", (1, 1): "r"},
    "grbg": {(0, 0): "gr", (0, 1): "r", (1, 0): "b", (1, 1): "gb"},
    "gbrg": {(0, 0): "gb", (0, 1): "b", (1, 0): "r", (1, 1): "gr"},
}

_INTEGER_TYPES = (np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.int32))
_OFFSET_LIMIT = 32767


def _trunc_div(num: np.ndarray, den: int) -> np.ndarray:
    """Integer division that truncates toward zero."""
    if den == 0:
        raise ZeroDivisionError("black level: saturation equals offset")
    quotient = np.abs(num) // abs(den)
    return np.where((num < 0) != (den < 0), -quotient, quotient)


class BlackLevelCorrection:
    """Subtract per-site black levels from a Bayer frame.

    The default integer path handles the ``"rggb"`` layout: it subtracts the
    offsets, optionally linearises each site to the full bit-depth range with
    truncating integer arithmetic, clips to ``[0, 2**bit_depth - 1]`` and
    returns the input's type (uint8, uint16 or int32).

    With ``integer_path=False`` the frame goes through the alternative path:
    plain offset subtraction on the input type when every parameter is a
    whole number and no linearisation is asked for, or else a float
    computation over all four layouts that returns uint16.
    """

    def __init__(
        self,
        img,
        sensor_info: Mapping[str, Any],
        parm_blc: Mapping[str, Any],
        *,
        integer_path: bool = True,
    ):
        self.raw = np.asarray(img)
        self.params = parm_blc
        self.enable = bool(parm_blc["is_enable"])
        self.is_linearize = bool(parm_blc["is_linear"])
        self.bit_depth = int(sensor_info["bit_depth"])
        self.bayer_pattern = str(sensor_info["bayer_pattern"])
        self.is_save = bool(parm_blc["is_save"])
        self.integer_path = integer_path

    @property
    def _max_value(self) -> int:
        return (1 << self.bit_depth) - 1

    def _levels(self, kind: str) -> dict[str, float]:
        return {ch: float(self.params[f"{ch}_{kind}"]) for ch in _CHANNELS}

    def _integer_correction(self) -> np.ndarray:
        if self.raw.dtype not in _INTEGER_TYPES:
            raise ValueError(f"Unsupported image type {self.raw.dtype}")
        offsets = {ch: int(v) for ch, v in self._levels("offset").items()}
        sats = {ch: int(v) for ch, v in self._levels("sat").items()}
        max_val = self._max_value

        img = to_int32(self.raw).astype(np.int64)
        if self.bayer_pattern == "rggb":
            for (dr, dc), ch in _SITES["rggb"].items():
                site = img[dr::2, dc::2] - offsets[ch]
                if self.is_linearize:
                    site = _trunc_div(site, sats[ch] - offsets[ch]) * max_val
                img[dr::2, dc::2] = site
        img = np.clip(img, 0, max_val)
        return convert(img, self.raw.dtype)

    def _alternative_correction(self) -> np.ndarray:
        offsets = self._levels("offset")
        sats = self._levels("sat")
        print("Black Level Correction Parameters:")
        for ch in _CHANNELS:
            print(f"  {ch.upper()} offset: {offsets[ch]}, saturation: {sats[ch]}")
        print(f"  Bit depth: {self.bit_depth}")
        print(f"  Bayer pattern: {self.bayer_pattern}")
        print(f"  Linearize: {'true' if self.is_linearize else 'false'}")

        whole = all(v == int(v) for v in (*offsets.values(), *sats.values()))
        small = all(v <= _OFFSET_LIMIT for v in offsets.values())
        if whole and small and not self.is_linearize:
            return self._offset_only(offsets)
        return self._float_correction(offsets, sats)

    def _offset_only(self, offsets: Mapping[str, float]) -> np.ndarray:
        dtype = self.raw.dtype
        if dtype not in _INTEGER_TYPES:
            print("Unsupported input type, falling back to float implementation")
            return self._float_correction(offsets, self._levels("sat"))
        print("Using optimized integer implementation")

        result = self.raw.copy()
        if self.bayer_pattern != "rggb":
            return result
        # 8-bit frames only have their red sites corrected.
        sites = (
            {(0, 0): "r"} if dtype == np.dtype(np.uint8) else _SITES["rggb"]
        )
        for (dr, dc), ch in sites.items():
            site = result[dr::2, dc::2].astype(np.int64) - int(offsets[ch])
            result[dr::2, dc::2] = np.maximum(site, 0).astype(dtype)
        return result

    def _float_correction(
        self, offsets: Mapping[str, float], sats: Mapping[str, float]
    ) -> np.ndarray:
        print("Using float implementation")
        raw = self.raw.astype(np.float32)
        max_val = float(self._max_value)
        for (dr, dc), ch in _SITES.get(self.bayer_pattern, {}).items():
            site = (raw[dr::2, dc::2] - np.float32(offsets[ch])).astype(np.float32)
            if self.is_linearize:
                scaled = site.astype(np.float64) / (sats[ch] - offsets[ch]) * max_val
                site = scaled.astype(np.float32)
            raw[dr::2, dc::2] = site
        return np.clip(np.rint(raw), 0, 65535).astype(np.uint16)

    def execute(self) -> np.ndarray:
        """Correct the frame if enabled and return it."""
        if not self.enable:
            return self.raw
        start = time.perf_counter()
        if self.integer_path:
            result = self._integer_correction()
        else:
            result = self._alternative_correction()
        elapsed = time.perf_counter() - start
        print(f"Black Level Correction execution time: {elapsed} seconds")
        return result