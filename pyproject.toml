[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "qrpose"
version = "0.1.0"
description = "QR-code corner pose estimation, reader-to-reader correction matrices and tool-point calibration"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "qr code",
    "pose estimation",
    "homogeneous matrix",
    "camera calibration",
    "reprojection",
    "machine vision",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Manufacturing",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
qrpose = "qrpose.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["qrpose"]

[tool.pytest.ini_options]
addopts = "-ra"
