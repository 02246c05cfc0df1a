"""QR-code corner parsing, pose estimation, reader-to-reader correction and tool-point calibration."""

__version__ = "0.1.0"