"""Rigid-body transform helpers built on 4x4 homogeneous matrices."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

_NEAR_PI = 1e-4
_TINY_ANGLE = 1e-8


def _as_rotation(rotation) -> np.ndarray:
    r = np.asarray(rotation, dtype=float)
    if r.shape != (3, 3):
        raise ValueError(f"rotation must be 3x3, got shape {r.shape}")
    return r


def _as_vector3(vector) -> np.ndarray:
    v = np.asarray(vector, dtype=float).reshape(-1)
    if v.shape != (3,):
        raise ValueError(f"expected 3 components, got {v.size}")
    return v


def _as_homogeneous(matrix) -> np.ndarray:
    m = np.asarray(matrix, dtype=float)
    if m.shape != (4, 4):
        raise ValueError(f"homogeneous matrix must be 4x4, got shape {m.shape}")
    return m


def homogeneous(rotation, translation) -> np.ndarray:
    """Build a 4x4 transform from a 3x3 rotation and a 3-vector translation."""
    m = np.eye(4)
    m[:3, :3] = _as_rotation(rotation)
    m[:3, 3] = _as_vector3(translation)
    return m


def _rot_x(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot_y(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def _rot_z(a: float) -> np.ndarray:
    c, s = math.cos(a), math.sin(a)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rotation_from_rxyz(rx: float, ry: float, rz: float) -> np.ndarray:
    """Rotation R = Rx(rx) Ry(ry) Rz(rz), angles in radians."""
    return _rot_x(rx) @ _rot_y(ry) @ _rot_z(rz)


def _skew(v: np.ndarray) -> np.ndarray:
    return np.array(
        [[0.0, -v[2], v[1]], [v[2], 0.0, -v[0]], [-v[1], v[0], 0.0]]
    )


def rotation_from_theta_u(vector) -> np.ndarray:
    """Rotation matrix from an axis-angle (theta-u / Rodrigues) vector."""
    v = _as_vector3(vector)
    theta = float(np.linalg.norm(v))
    if theta < _TINY_ANGLE:
        sinc = 1.0 - theta * theta / 6.0
        mcosc = 0.5 - theta * theta / 24.0
    else:
        sinc = math.sin(theta) / theta
        mcosc = (1.0 - math.cos(theta)) / (theta * theta)
    k = _skew(v)
    return np.eye(3) + sinc * k + mcosc * (k @ k)


def theta_u_from_rotation(rotation) -> np.ndarray:
    """Axis-angle (theta-u) vector of a rotation matrix, angle in radians."""
    r = _as_rotation(rotation)
    skew = np.array([r[2, 1] - r[1, 2], r[0, 2] - r[2, 0], r[1, 0] - r[0, 1]])
    s = float(np.linalg.norm(skew)) / 2.0
    diagonal_sum = float(r[0, 0] + r[1, 1] + r[2, 2])
    c = (diagonal_sum - 1.0) / 2.0
    theta = math.atan2(s, c)
    if 1.0 + c > _NEAR_PI:
        factor = 0.5 if theta < _TINY_ANGLE else theta / (2.0 * math.sin(theta))
        return skew * factor
    # Close to a half turn: recover the axis from the symmetric part.
    outer = ((r + r.T) / 2.0 - c * np.eye(3)) / (1.0 - c)
    k = int(np.argmax(np.diag(outer)))
    axis = outer[:, k] / math.sqrt(max(outer[k, k], 0.0))
    axis /= np.linalg.norm(axis)
    if float(np.dot(axis, skew)) < 0.0:
        axis = -axis
    return theta * axis


def homogeneous_from_pose(
    tx: float, ty: float, tz: float, rx: float, ry: float, rz: float
) -> np.ndarray:
    """Transform from a translation and a theta-u rotation vector in radians."""
    return homogeneous(rotation_from_theta_u((rx, ry, rz)), (tx, ty, tz))


def invert(matrix) -> np.ndarray:
    """Inverse of a rigid 4x4 transform."""
    m = _as_homogeneous(matrix)
    r_t = m[:3, :3].T
    return homogeneous(r_t, -r_t @ m[:3, 3])


def project_points(
    points: Sequence[Sequence[float]], rvec, tvec, camera_matrix
) -> np.ndarray:
    """Project 3-D points to pixels with a pinhole camera and no distortion."""
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"points must have shape (N, 3), got {pts.shape}")
    k = _as_rotation(camera_matrix)
    rotation = rotation_from_theta_u(rvec)
    translation = _as_vector3(tvec)
    cam = pts @ rotation.T + translation
    normalized = np.column_stack(
        (cam[:, 0] / cam[:, 2], cam[:, 1] / cam[:, 2], np.ones(len(cam)))
    )
    pixels = normalized @ k.T
    return pixels[:, :2] / pixels[:, 2:3]