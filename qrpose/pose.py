"""Camera model, QR pose estimation and transform persistence."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from qrpose.qrdata import QRCorners
from qrpose.transforms import (
    homogeneous,
    homogeneous_from_pose,
    invert,
    rotation_from_theta_u,
)

_MAX_ITERATIONS = 200
_STEP_EPSILON = 1e-12
_SMALL_ANGLE = 1e-8

TP_QR_SIZE = 30.0


@dataclass(frozen=True)
class CameraParameters:
    """Pinhole camera intrinsics without distortion, in pixels."""

    px: float
    py: float
    u0: float
    v0: float

    def pixel_to_meter(self, u: float, v: float) -> tuple[float, float]:
        """Normalized image coordinates of pixel (u, v)."""
        return (u - self.u0) / self.px, (v - self.v0) / self.py

    def camera_matrix(self) -> np.ndarray:
        """The 3x3 intrinsic matrix K."""
        return np.array(
            [[self.px, 0.0, self.u0], [0.0, self.py, self.v0], [0.0, 0.0, 1.0]]
        )


QRR1_CAMERA = CameraParameters(6187.0, 6187.0, 1024.0, 768.0)
QRR2_CAMERA = CameraParameters(6670.0, 6670.0, 1024.0, 768.0)


def _object_corners(size: float) -> np.ndarray:
    return np.array(
        [[0.0, 0.0, 0.0], [size, 0.0, 0.0], [size, size, 0.0], [0.0, size, 0.0]]
    )


def _initial_pose(observed: np.ndarray, size: float) -> np.ndarray:
    """Planar pose from the homography between the QR square and the image."""
    unit = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    rows = []
    for (ox, oy), (x, y) in zip(unit, observed):
        rows.append([ox, oy, 1.0, 0.0, 0.0, 0.0, -x * ox, -x * oy, -x])
        rows.append([0.0, 0.0, 0.0, ox, oy, 1.0, -y * ox, -y * oy, -y])
    _, _, vt = np.linalg.svd(np.array(rows))
    h = vt[-1].reshape(3, 3)
    scale = (np.linalg.norm(h[:, 0]) + np.linalg.norm(h[:, 1])) / 2.0
    if scale == 0.0:
        raise ValueError("degenerate QR corners: cannot estimate a pose")
    h = h / scale
    if h[2, 2] < 0.0:
        h = -h
    r1, r2 = h[:, 0], h[:, 1]
    rotation = np.column_stack((r1, r2, np.cross(r1, r2)))
    u, _, vt = np.linalg.svd(rotation)
    if np.linalg.det(u @ vt) < 0.0:
        u[:, -1] = -u[:, -1]
    return homogeneous(u @ vt, h[:, 2] * size)


def _exponential_map(velocity: np.ndarray) -> np.ndarray:
    """Displacement produced by a constant twist applied for unit time."""
    u = velocity[3:]
    theta = float(np.linalg.norm(u))
    if theta < _SMALL_ANGLE:
        sinc, mcosc, msinc = 1.0, 0.5, 1.0 / 6.0
    else:
        sinc = math.sin(theta) / theta
        mcosc = (1.0 - math.cos(theta)) / (theta * theta)
        msinc = (1.0 - sinc) / (theta * theta)
    skew = np.array([[0.0, -u[2], u[1]], [u[2], 0.0, -u[0]], [-u[1], u[0], 0.0]])
    v_mat = sinc * np.eye(3) + mcosc * skew + msinc * np.outer(u, u)
    return homogeneous(rotation_from_theta_u(u), v_mat @ velocity[:3])


def _refine_pose(pose: np.ndarray, observed: np.ndarray, size: float) -> np.ndarray:
    """Gauss-Newton (virtual visual servoing) on the normalized image error."""
    points = _object_corners(size)
    for _ in range(_MAX_ITERATIONS):
        cam = points @ pose[:3, :3].T + pose[:3, 3]
        z = cam[:, 2]
        if np.any(z <= 0.0):
            raise ValueError("pose estimation failed: point behind the camera")
        x = cam[:, 0] / z
        y = cam[:, 1] / z
        error = np.column_stack((x - observed[:, 0], y - observed[:, 1])).reshape(-1)
        interaction = np.empty((2 * len(points), 6))
        interaction[0::2] = np.column_stack(
            (-1.0 / z, np.zeros_like(z), x / z, x * y, -(1.0 + x * x), y)
        )
        interaction[1::2] = np.column_stack(
            (np.zeros_like(z), -1.0 / z, y / z, 1.0 + y * y, -x * y, -x)
        )
        velocity = -np.linalg.pinv(interaction) @ error
        pose = invert(_exponential_map(velocity)) @ pose
        if float(np.linalg.norm(velocity)) < _STEP_EPSILON:
            break
    return pose


def compute_qr_pose(
    corners: QRCorners, camera: CameraParameters, qr_size: float
) -> np.ndarray:
    """Camera-from-QR transform for a square QR code of side qr_size."""
    observed = np.array(
        [camera.pixel_to_meter(u, v) for u, v in zip(corners.x, corners.y)]
    )
    return _refine_pose(_initial_pose(observed, qr_size), observed, qr_size)


def compute_correction_matrix(t_qrr1, t_qrr2) -> np.ndarray:
    """Transform mapping poses seen by the first reader to the second."""
    return np.asarray(t_qrr2, dtype=float) @ invert(t_qrr1)


def compute_6dtp(
    corners: QRCorners,
    translation_mm: Sequence[float],
    rotation_deg: Sequence[float],
) -> np.ndarray:
    """Reader-from-base transform given the base-from-QR pose of a taught point."""
    t_qrr_qr = compute_qr_pose(corners, QRR1_CAMERA, TP_QR_SIZE)
    tx, ty, tz = translation_mm
    rx, ry, rz = (math.radians(a) for a in rotation_deg)
    t_base_qr = homogeneous_from_pose(tx, ty, tz, rx, ry, rz)
    return t_qrr_qr @ invert(t_base_qr)


def apply_6dtp(corners: QRCorners, t_qrr_base) -> np.ndarray:
    """Base-from-QR pose of a newly observed QR code."""
    t_qrr_qr2 = compute_qr_pose(corners, QRR1_CAMERA, TP_QR_SIZE)
    return invert(t_qrr_base) @ t_qrr_qr2


def save_matrix(matrix, path: str | Path) -> None:
    """Write a 4x4 matrix as four lines of space-separated values."""
    m = np.asarray(matrix, dtype=float)
    if m.shape != (4, 4):
        raise ValueError(f"matrix must be 4x4, got shape {m.shape}")
    lines = (" ".join(f"{value:g}" for value in row) for row in m)
    Path(path).write_text("".join(line + "\n" for line in lines), encoding="utf-8")


def load_matrix(path: str | Path) -> np.ndarray:
    """Read a 4x4 matrix written by save_matrix."""
    tokens = Path(path).read_text(encoding="utf-8").split()
    if len(tokens) < 16:
        raise ValueError(f"expected 16 values in {path}, found {len(tokens)}")
    return np.array([float(token) for token in tokens[:16]]).reshape(4, 4)