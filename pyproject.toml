[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hdrisp"
version = "0.1.0"
description = "Stages of a raw Bayer image processing pipeline: cropping, black level, white balance, noise reduction and colour conversion, on NumPy arrays."
requires-python = ">=3.10"
keywords = ["isp", "raw", "bayer", "image-processing", "white-balance", "color-correction", "yuv"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pyyaml",
    "imageio",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hdrisp"]

[tool.hatch.build.targets.sdist]
include = ["hdrisp", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
