# hdrisp

`hdrisp` is a set of stages for processing a raw Bayer sensor frame.
Images are NumPy arrays: single-channel frames are `(rows, cols)` arrays
and colour images are `(rows, cols, 3)` arrays. A stage is built from an
array and the relevant sections of a configuration (plain mappings, such
as those read from YAML) and is run by calling its `execute()` method.

## Stages

| Module | Class | What `execute()` does |
| --- | --- | --- |
| `hdrisp.crop` | `Crop` | Crops the frame about its centre to `new_height` x `new_width` when the rows and columns to remove are both multiples of 4; otherwise prints a warning and leaves the frame as it is. Updates `sensor_info` and the size in `platform["in_file"]` in place. |
| `hdrisp.black_level` | `BlackLevelCorrection` | Subtracts the `r`, `gr`, `gb`, `b` offsets, optionally linearises against the saturation levels, and clips to the bit depth. The default integer path handles `"rggb"` and keeps the input type; `integer_path=False` selects an offset-only path or a float path over `rggb`, `bggr`, `grbg` and `gbrg` that returns uint16. |
| `hdrisp.bayer_noise_reduction` | `BayerNoiseReduction` | For an `"rggb"` mosaic, interpolates the green plane to every pixel and smooths it with a 3x3 Gaussian; that plane, with a zero border and in the input type, is the result. Other patterns give an all-zero frame. |
| `hdrisp.auto_white_balance` | `AutoWhiteBalance` | Returns `(r_gain, b_gain)`, each at least 1.0, from gray world, `"norm_2"` or `"pca"` estimation; afterwards its `raw` attribute holds the frame with the gains applied (float32, clipped to the bit depth). Returns `(1.0, 1.0)` when disabled. |
| `hdrisp.color_correction` | `ColorCorrectionMatrix` | Multiplies each pixel of an RGB image by the matrix whose rows are `corrected_red`, `corrected_green` and `corrected_blue`, clips for bit depth 8 or 16, and returns uint16. |
| `hdrisp.color_space` | `ColorSpaceConversion` | Converts RGB to 8-bit YUV (`conv_standard` 1 for BT.709, otherwise BT.601, with an optional chroma `saturation_gain`), then combines the three planes into one grey plane returned as float32. |
| `hdrisp.noise_reduction_2d` | `NoiseReduction2D` | Smooths a single-channel image (a three-channel one is first reduced to grey) with a 3x3 Gaussian, then scales to `output_bit_depth` 8 or 16 and clips, or leaves it unscaled for 32. Returns float32. |

The illuminant estimators used by auto white balance are available on
their own in `hdrisp.illuminant`: `GrayWorld`, `NormGrayWorld` and
`PCAIlluminEstimation`. Each takes a `(3, N)` array of red, green and
blue samples, and `calculate_gains()` returns the `(r_gain, b_gain)` pair.

```python
import numpy as np
from hdrisp.illuminant import GrayWorld

samples = np.array([[100.0, 110.0], [200.0, 220.0], [150.0, 160.0]])
r_gain, b_gain = GrayWorld(samples).calculate_gains()
```

## Helpers

`hdrisp.imaging` holds array utilities shared by the stages:
`to_float`, `to_int32`, `convert`, `mat3x3`, `reshape`,
`apply_bayer_mask`, `create_bayer_masks`, `extract_bayer_channel`,
`apply_color_matrix` and `scale_channels`.

```python
from hdrisp.imaging import create_bayer_masks

masks = create_bayer_masks(4, 4, "RGGB")   # four 0/1 masks, one per Bayer site
```

`hdrisp.common` reads and writes frames and configuration:
`load_raw_image`, `load_raw_image_with_mmap`, `save_image`,
`save_intermediate_image`, `get_output_filename`, `load_yaml_config`,
`create_output_directories` and `parse_arguments`, which turns a list of
`--config`, `--data`, `--file`, `--save-intermediate`, `--use-mmap` and
`--memory-threshold` arguments into a `PipelineConfig`.

```python
from hdrisp.common import load_raw_image, load_yaml_config

config = load_yaml_config("config/svs_cam.yml")
sensor = config["sensor_info"]
raw = load_raw_image(
    "in_frames/normal/frame.raw",
    sensor["width"],
    sensor["height"],
    sensor["bit_depth"],
)
```

Failures to open, read or save files and to load the configuration are
raised as `hdrisp.common.ISPRuntimeError`.

## What the package does not do

There is no command to run and nothing that runs the stages in order:
you call each stage yourself and pass its output to the next.
`parse_arguments` only builds a `PipelineConfig`. The package has no
auto-exposure stage and no exposure feedback loop, and no demosaicing,
gamma, tone mapping, sharpening or scaling stages.