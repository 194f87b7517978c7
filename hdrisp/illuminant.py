"""Illuminant estimators that turn sampled Bayer colours into white balance gains.

Every estimator takes a ``(3, N)`` array whose rows hold the red, green and
blue samples of ``N`` Bayer cells, and returns the ``(r_gain, b_gain)`` pair
that would bring red and blue level with green.
"""

from __future__ import annotations

import math

import numpy as np

_MIN_GRAY_WORLD_GAIN = 0.5
_MAX_GRAY_WORLD_GAIN = 2.0


def _channel_rows(flatten_img, who: str) -> np.ndarray:
    arr = np.asarray(flatten_img, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] != 3:
        raise ValueError(f"{who}: input must be a (3, N) array of channel rows")
    return arr


def _ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` with NaN mapped to zero."""
    with np.errstate(divide="ignore", invalid="ignore"):
        value = float(np.float64(numerator) / np.float64(denominator))
    return 0.0 if math.isnan(value) else value


class GrayWorld:
    """Gray-world estimate: the average colour of the scene is grey."""

    def __init__(self, flatten_img):
        self.flatten_img = _channel_rows(flatten_img, "GrayWorld")

    def calculate_gains(self) -> tuple[float, float]:
        """Return G/R and G/B mean ratios, each limited to [0.5, 2.0].

        Neutral gains are returned when there are no samples or when any
        channel averages to zero.
        """
        if self.flatten_img.shape[1] == 0:
            return 1.0, 1.0
        red, green, blue = (float(v) for v in self.flatten_img.mean(axis=1))
        if red == 0 or green == 0 or blue == 0:
            return 1.0, 1.0
        r_gain = min(max(green / red, _MIN_GRAY_WORLD_GAIN), _MAX_GRAY_WORLD_GAIN)
        b_gain = min(max(green / blue, _MIN_GRAY_WORLD_GAIN), _MAX_GRAY_WORLD_GAIN)
        return r_gain, b_gain


class NormGrayWorld:
    """Gray-world estimate using the Euclidean norm of each channel."""

    def __init__(self, flatten_img):
        self.flatten_img = _channel_rows(flatten_img, "NormGrayWorld")

    def calculate_gains(self) -> tuple[float, float]:
        """Return the G/R and G/B norm ratios; an undefined ratio becomes 0."""
        red, green, blue = np.sqrt(np.sum(self.flatten_img**2, axis=1))
        return _ratio(green, red), _ratio(green, blue)


class PCAIlluminEstimation:
    """Principal-component illuminant estimate over the darkest and brightest pixels.

    Pixels are ranked by their projection on the mean colour direction; the
    given percentage from each end of the ranking is kept and the dominant
    principal direction of those pixels is taken as the illuminant colour.
    """

    def __init__(self, flatten_img, pixel_percentage: float):
        self.flatten_img = _channel_rows(flatten_img, "PCAIlluminEstimation")
        self.pixel_percentage = float(pixel_percentage)

    def calculate_gains(self) -> tuple[float, float]:
        """Return G/R and G/B ratios of the illuminant; an undefined ratio becomes 0."""
        pixels = self.flatten_img.T
        count = pixels.shape[0]

        with np.errstate(divide="ignore", invalid="ignore"):
            mean_rgb = pixels.mean(axis=0) if count else np.zeros(3)
            direction = mean_rgb / np.linalg.norm(mean_rgb)
            projected = pixels @ direction

        order = np.argsort(projected, kind="stable")
        index = math.ceil(count * (self.pixel_percentage / 100.0))
        index = max(0, min(index, count))
        chosen = np.concatenate([order[:index], order[count - index :]])
        selected = pixels[chosen]

        sigma = selected.T @ selected
        eigenvalues, eigenvectors = np.linalg.eigh(sigma)
        avg_rgb = np.abs(eigenvectors[:, int(np.argmax(eigenvalues))])

        red, green, blue = avg_rgb
        return _ratio(green, red), _ratio(green, blue)