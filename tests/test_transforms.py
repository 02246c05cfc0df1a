import math

import numpy as np
import pytest

from qrpose.transforms import (
    homogeneous,
    homogeneous_from_pose,
    invert,
    project_points,
    rotation_from_rxyz,
    rotation_from_theta_u,
    theta_u_from_rotation,
)

K = np.array([[6670.0, 0.0, 1024.0], [0.0, 6670.0, 768.0], [0.0, 0.0, 1.0]])


def test_homogeneous_layout():
    m = homogeneous(np.eye(3), (1.0, 2.0, 3.0))
    assert m.shape == (4, 4)
    np.testing.assert_allclose(m[:3, 3], [1.0, 2.0, 3.0])
    np.testing.assert_allclose(m[3], [0.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(m[:3, :3], np.eye(3))


def test_homogeneous_rejects_bad_shapes():
    with pytest.raises(ValueError):
        homogeneous(np.eye(2), (1.0, 2.0, 3.0))
    with pytest.raises(ValueError):
        homogeneous(np.eye(3), (1.0, 2.0))


def test_rxyz_zero_is_identity():
    np.testing.assert_allclose(rotation_from_rxyz(0.0, 0.0, 0.0), np.eye(3))


def test_rxyz_quarter_turn_about_z():
    expected = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    np.testing.assert_allclose(
        rotation_from_rxyz(0.0, 0.0, math.pi / 2), expected, atol=1e-12
    )


def test_rxyz_composes_in_x_y_z_order():
    a, b, c = 0.3, -0.7, 1.2
    combined = rotation_from_rxyz(a, b, c)
    product = (
        rotation_from_rxyz(a, 0.0, 0.0)
        @ rotation_from_rxyz(0.0, b, 0.0)
        @ rotation_from_rxyz(0.0, 0.0, c)
    )
    np.testing.assert_allclose(combined, product, atol=1e-12)
    np.testing.assert_allclose(combined @ combined.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(combined) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "vector",
    [(0.1, -0.2, 0.3), (0.0, 0.0, math.pi / 2), (1.0, 1.0, -1.0), (0.0, 0.0, 0.0)],
)
def test_theta_u_round_trip(vector):
    r = rotation_from_theta_u(vector)
    np.testing.assert_allclose(theta_u_from_rotation(r), vector, atol=1e-9)


def test_theta_u_near_half_turn():
    axis = np.array([1.0, 2.0, 2.0]) / 3.0
    vector = axis * (math.pi - 1e-6)
    r = rotation_from_theta_u(vector)
    recovered = theta_u_from_rotation(r)
    np.testing.assert_allclose(rotation_from_theta_u(recovered), r, atol=1e-6)
    assert np.linalg.norm(recovered) == pytest.approx(math.pi, abs=1e-5)


def test_theta_u_from_rxyz_rotation_recovers_matrix():
    r = rotation_from_rxyz(0.4, 0.5, -1.1)
    np.testing.assert_allclose(
        rotation_from_theta_u(theta_u_from_rotation(r)), r, atol=1e-12
    )


def test_homogeneous_from_pose_uses_theta_u():
    m = homogeneous_from_pose(243.36, 205.23, 220.0, 0.0, 0.0, 0.5)
    np.testing.assert_allclose(m[:3, 3], [243.36, 205.23, 220.0])
    np.testing.assert_allclose(m[:3, :3], rotation_from_theta_u((0.0, 0.0, 0.5)))


def test_invert_is_inverse():
    m = homogeneous(rotation_from_rxyz(0.2, -0.4, 0.9), (10.0, -5.0, 300.0))
    np.testing.assert_allclose(m @ invert(m), np.eye(4), atol=1e-10)
    np.testing.assert_allclose(invert(invert(m)), m, atol=1e-10)


def test_invert_rejects_bad_shape():
    with pytest.raises(ValueError):
        invert(np.eye(3))


def test_projection_of_optical_axis_hits_principal_point():
    pixels = project_points([(0.0, 0.0, 0.0)], (0.0, 0.0, 0.0), (0.0, 0.0, 500.0), K)
    np.testing.assert_allclose(pixels, [[1024.0, 768.0]])


def test_projection_scales_inversely_with_depth():
    near = project_points([(28.0, 28.0, 0.0)], (0.0, 0.0, 0.0), (0.0, 0.0, 500.0), K)
    far = project_points([(28.0, 28.0, 0.0)], (0.0, 0.0, 0.0), (0.0, 0.0, 1000.0), K)
    centre = np.array([1024.0, 768.0])
    np.testing.assert_allclose(near - centre, 2.0 * (far - centre))


def test_projection_matches_transform():
    rvec = (0.1, 0.2, -0.3)
    tvec = (5.0, -3.0, 400.0)
    points = np.array([(0.0, 0.0, 0.0), (28.0, 0.0, 0.0), (28.0, 28.0, 0.0)])
    pixels = project_points(points, rvec, tvec, K)
    cam = (homogeneous(rotation_from_theta_u(rvec), tvec) @ np.c_[points, np.ones(3)].T).T
    back = (pixels - K[:2, 2]) / K[0, 0]
    np.testing.assert_allclose(back, cam[:, :2] / cam[:, 2:3], atol=1e-12)


def test_projection_rejects_bad_points():
    with pytest.raises(ValueError):
        project_points([(1.0, 2.0)], (0.0, 0.0, 0.0), (0.0, 0.0, 1.0), K)