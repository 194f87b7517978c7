"""Stages and helpers for processing raw Bayer camera frames as NumPy arrays."""

__version__ = "0.1.0"

__all__ = [
    "auto_white_balance",
    "bayer_noise_reduction",
    "black_level",
    "color_correction",
    "color_space",
    "common",
    "crop",
    "illuminant",
    "imaging",
    "noise_reduction_2d",
]