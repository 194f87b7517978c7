"""Centre cropping of a Bayer frame that keeps the mosaic intact."""

from __future__ import annotations

import re
import time
from typing import Any, MutableMapping

import numpy as np

from hdrisp.common import INTERMEDIATE_DIR, save_image
from hdrisp.imaging import convert, to_int32

_SIZE_PATTERN = re.compile(r"[0-9]+x[0-9]+")
_RESTORABLE = (np.dtype(np.uint8), np.dtype(np.uint16), np.dtype(np.int32))


def _crop(img: np.ndarray, rows_to_crop: int, cols_to_crop: int) -> np.ndarray:
    if rows_to_crop or cols_to_crop:
        if rows_to_crop % 4 == 0 and cols_to_crop % 4 == 0:
            top = rows_to_crop // 2
            left = cols_to_crop // 2
            return img[top : img.shape[0] - top, left : img.shape[1] - left].copy()
        print(
            "   - Input/Output heights are not compatible."
            " Bayer pattern will be disturbed if cropped!"
        )
    return img


class Crop:
    """Crop a raw frame to the size given in the crop parameters.

    ``platform`` and ``sensor_info`` are updated in place: the sensor size
    becomes the new size and the size inside ``platform["in_file"]`` follows
    the frame.
    """

    def __init__(
        self,
        img,
        platform: MutableMapping[str, Any],
        sensor_info: MutableMapping[str, Any],
        parm_cro: MutableMapping[str, Any],
    ):
        self.img = np.array(img, copy=True)
        self.platform = platform
        self.sensor_info = sensor_info
        self.old_size = (int(sensor_info["height"]), int(sensor_info["width"]))
        self.new_size = (int(parm_cro["new_height"]), int(parm_cro["new_width"]))
        self.enable = bool(parm_cro["is_enable"])
        self.is_debug = bool(parm_cro["is_debug"])
        self.is_save = bool(parm_cro["is_save"])
        self._update_sensor_info()

    def _update_sensor_info(self) -> None:
        if not self.enable:
            return
        current = (int(self.sensor_info["height"]), int(self.sensor_info["width"]))
        if current != self.new_size:
            self.sensor_info["height"], self.sensor_info["width"] = self.new_size
            self.sensor_info["orig_size"] = f"{self.img.shape[1]}x{self.img.shape[0]}"

    def _apply_cropping(self) -> np.ndarray:
        if self.old_size == self.new_size:
            return self.img

        if self.old_size[0] < self.new_size[0] or self.old_size[1] < self.new_size[1]:
            print(f"   - Invalid output size {self.new_size[0]}x{self.new_size[1]}")
            print("   - Make sure output size is smaller than input size!")
            return self.img

        crop_rows = self.old_size[0] - self.new_size[0]
        crop_cols = self.old_size[1] - self.new_size[1]

        cropped = _crop(to_int32(self.img), crop_rows, crop_cols)
        if self.img.dtype not in _RESTORABLE:
            raise ValueError(f"Crop: unsupported image type {self.img.dtype}")
        cropped = convert(cropped, self.img.dtype)

        if self.is_debug:
            print(f"   - Number of rows cropped = {crop_rows}")
            print(f"   - Number of columns cropped = {crop_cols}")
            print(f"   - Shape of cropped image = {cropped.shape}")
        return cropped

    def _save(self, filename_tag: str) -> None:
        size = f"{self.img.shape[1]}x{self.img.shape[0]}"
        self.platform["in_file"] = _SIZE_PATTERN.sub(size, str(self.platform["in_file"]))
        if self.is_save:
            save_image(self.img, INTERMEDIATE_DIR / f"{filename_tag}{size}.png")

    def execute(self) -> np.ndarray:
        """Crop the frame if enabled and return it."""
        self._save("Inpipeline_crop_")
        if self.enable:
            start = time.perf_counter()
            self.img = self._apply_cropping()
            if self.is_debug:
                print(f"  Execution time: {time.perf_counter() - start:.3f}s")
        self._save("Out_crop_")
        return self.img