"""Array helpers shared by the pipeline stages.

Images are numpy arrays: single-channel images are 2-D ``(rows, cols)``
arrays and three-channel images are ``(rows, cols, 3)`` arrays.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

_INT32_MIN = np.iinfo(np.int32).min
_INT32_MAX = np.iinfo(np.int32).max

# Channel index (0=R, 1=Gr, 2=Gb, 3=B style slot) at each 2x2 position,
# keyed by (row parity, column parity).
_BAYER_LAYOUTS = {
    "RGGB": {(0, 0): 0, (0, 1): 1, (1, 0): 2, (1, 1): 3},
    "GRBG": {(0, 0): 1, (0, 1): 0, (1, 0): 3, (1, 1): 2},
    "GBRG": {(0, 0): 2, (0, 1): 3, (1, 0): 0, (1, 1): 1},
    "BGGR": {(0, 0): 3, (0, 1): 2, (1, 0): 1, (1, 1): 0},
}

# Sites of each colour in an "rggb" mosaic, as (row offset, column offset).
_RGGB_SITES = {
    "r": ((0, 0),),
    "g": ((0, 1), (1, 0)),
    "b": ((1, 1),),
}


def _single_channel(img: np.ndarray, who: str) -> np.ndarray:
    arr = np.asarray(img)
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim != 2:
        raise ValueError(f"{who}: input must be single-channel")
    return arr


def _three_channel(img: np.ndarray, who: str) -> np.ndarray:
    arr = np.asarray(img)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"{who}: input must be three-channel")
    return arr


def to_float(img: np.ndarray) -> np.ndarray:
    """Return a float32 copy of a single- or three-channel image."""
    arr = np.asarray(img)
    if arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] in (1, 3)):
        return arr.astype(np.float32, copy=True)
    raise ValueError("to_float: input must be single- or three-channel")


def to_int32(img: np.ndarray) -> np.ndarray:
    """Return an int32 copy of a single-channel image, rounding and saturating."""
    arr = _single_channel(img, "to_int32")
    if np.issubdtype(arr.dtype, np.floating):
        arr = np.rint(arr)
    return np.clip(arr, _INT32_MIN, _INT32_MAX).astype(np.int32)


def convert(img: np.ndarray, dtype) -> np.ndarray:
    """Convert an image to float32, uint8, uint16 or int32.

    Conversion to the unsigned types clamps to the type's range and then
    truncates; conversion to int32 rounds to nearest and saturates.
    """
    arr = np.asarray(img)
    target = np.dtype(dtype)
    if target == np.float32:
        return arr.astype(np.float32, copy=True)
    if target in (np.dtype(np.uint8), np.dtype(np.uint16)):
        top = np.iinfo(target).max
        clipped = np.clip(arr.astype(np.float64), 0.0, float(top))
        return np.trunc(clipped).astype(target)
    if target == np.int32:
        values = arr.astype(np.float64)
        if np.issubdtype(arr.dtype, np.floating):
            values = np.rint(values)
        return np.clip(values, _INT32_MIN, _INT32_MAX).astype(np.int32)
    raise ValueError(f"convert: unsupported type {target}")


def mat3x3(matrix) -> np.ndarray:
    """Return a 3x3 float32 matrix, raising if the shape is not 3x3."""
    arr = np.asarray(matrix)
    if arr.shape != (3, 3):
        raise ValueError("mat3x3: input must be 3x3 matrix")
    return arr.astype(np.float32)


def reshape(img: np.ndarray, rows: int, cols: int) -> np.ndarray:
    """Reshape a matrix in column-major order, raising on a size mismatch."""
    arr = np.asarray(img)
    if arr.size != rows * cols:
        raise ValueError("reshape: size mismatch")
    return np.reshape(arr, (rows, cols), order="F").copy()


def apply_bayer_mask(img: np.ndarray, bayer_pattern: str, channel: int) -> np.ndarray:
    """Return the float32 mask of one colour (0=R, 1=G, 2=B) for an image's shape.

    Only the lower-case ``"rggb"`` layout is recognised; any other pattern
    gives an all-zero mask.
    """
    arr = _single_channel(img, "apply_bayer_mask")
    mask = np.zeros(arr.shape, dtype=np.float32)
    if bayer_pattern == "rggb":
        name = {0: "r", 1: "g", 2: "b"}.get(channel)
        for dr, dc in _RGGB_SITES.get(name, ()):
            mask[dr::2, dc::2] = 1.0
    return mask


def create_bayer_masks(rows: int, cols: int, bayer_pattern: str) -> list[np.ndarray]:
    """Return four float32 masks, one per 2x2 Bayer site, for an upper-case pattern.

    An unknown pattern puts every pixel in the first mask.
    """
    masks = [np.zeros((rows, cols), dtype=np.float32) for _ in range(4)]
    layout = _BAYER_LAYOUTS.get(bayer_pattern)
    if layout is None:
        masks[0][:, :] = 1.0
        return masks
    for (dr, dc), index in layout.items():
        masks[index][dr::2, dc::2] = 1.0
    return masks


def extract_bayer_channel(img: np.ndarray, bayer_pattern: str, channel: str) -> np.ndarray:
    """Keep the pixels of one colour ('r', 'g' or 'b') of an "rggb" mosaic.

    The result is int32 with every other pixel set to zero; other patterns
    and channels give an all-zero image.
    """
    arr = to_int32(img)
    result = np.zeros_like(arr)
    if bayer_pattern == "rggb":
        for dr, dc in _RGGB_SITES.get(channel, ()):
            result[dr::2, dc::2] = arr[dr::2, dc::2]
    return result


def apply_color_matrix(img: np.ndarray, matrix) -> np.ndarray:
    """Apply a 3x3 matrix to each pixel of a three-channel image (float32 result)."""
    arr = _three_channel(img, "apply_color_matrix").astype(np.float32)
    m = mat3x3(matrix)
    return np.einsum("hwk,ck->hwc", arr, m).astype(np.float32)


def scale_channels(
    img: np.ndarray, gains: Union[float, Sequence[float]]
) -> np.ndarray:
    """Multiply a three-channel image by a scalar or by one gain per channel."""
    arr = _three_channel(img, "scale_channels").astype(np.float32)
    g = np.asarray(gains, dtype=np.float32)
    if g.ndim == 0:
        return arr * g
    if g.shape != (3,):
        raise ValueError("scale_channels: gains must be a scalar or three values")
    return arr * g.reshape(1, 1, 3)