"""
Unit tests for Jacobian correctness.

Analytical Jacobians of the twist motion model and the range-bearing
landmark model are checked against central differences. Wrong Jacobians
make the EKF inconsistent long before they make it diverge.

Run with: python -m pytest tests/models/test_slam_jacobians.py -v
"""

from typing import Callable

import numpy as np
import pytest

from ekfslam.models import RangeBearingLandmarkModel, TwistMotionModel
from ekfslam.types import Twist2


def numerical_jacobian(
    f: Callable,
    x: np.ndarray,
    epsilon: float = 1e-7
) -> np.ndarray:
    """
    Compute Jacobian numerically using central differences.

    Args:
        f: Function that takes x and returns y
        x: Point at which to compute Jacobian
        epsilon: Step size for finite differences

    Returns:
        Numerical Jacobian, shape (len(y), len(x))
    """
    x = np.asarray(x, dtype=float)
    y0 = f(x)
    J = np.zeros((len(y0), len(x)))

    for i in range(len(x)):
        x_plus = x.copy()
        x_minus = x.copy()
        x_plus[i] += epsilon
        x_minus[i] -= epsilon
        J[:, i] = (f(x_plus) - f(x_minus)) / (2 * epsilon)

    return J


class TestMotionModelJacobian:
    """Twist motion model F = ∂f/∂pose."""

    @pytest.mark.parametrize("twist", [
        Twist2(v_x=0.3, omega=0.2),
        Twist2(v_x=0.3, omega=-0.7),
        Twist2(v_x=-0.1, omega=0.05),
    ])
    def test_arc_jacobian(self, twist):
        pose = np.array([1.0, -2.0, 0.6])
        F_analytical = TwistMotionModel.F(pose, twist, dt=0.5)
        F_numerical = numerical_jacobian(lambda p: TwistMotionModel.f(p, twist, dt=0.5), pose)
        np.testing.assert_allclose(F_analytical, F_numerical, rtol=1e-5, atol=1e-7)

    def test_straight_line_jacobian(self):
        """ω = 0 uses the straight-line branch."""
        twist = Twist2(v_x=0.5, omega=0.0)
        pose = np.array([0.0, 0.0, -1.1])
        F_analytical = TwistMotionModel.F(pose, twist)
        F_numerical = numerical_jacobian(lambda p: TwistMotionModel.f(p, twist), pose)
        np.testing.assert_allclose(F_analytical, F_numerical, rtol=1e-5, atol=1e-7)

    def test_full_jacobian_is_identity_on_landmarks(self):
        state = np.array([0.5, 0.5, 0.3, 2.0, 1.0, -1.0, 4.0])
        A = TwistMotionModel.full_jacobian(state, Twist2(v_x=0.2, omega=0.1))
        assert A.shape == (7, 7)
        np.testing.assert_array_equal(A[3:, 3:], np.eye(4))
        np.testing.assert_array_equal(A[:3, 3:], 0.0)
        np.testing.assert_array_equal(A[3:, :3], 0.0)


class TestLandmarkModelJacobian:
    """Range-bearing H = ∂h_j/∂state."""

    @pytest.mark.parametrize("j", [0, 1, 2])
    def test_landmark_jacobian(self, j):
        state = np.array([0.4, -0.3, 0.25, 2.0, 1.0, -1.5, 2.5, 0.5, -3.0])
        H_analytical = RangeBearingLandmarkModel.H(state, j)
        H_numerical = numerical_jacobian(lambda s: RangeBearingLandmarkModel.h(s, j), state)
        np.testing.assert_allclose(H_analytical, H_numerical, rtol=1e-5, atol=1e-7)

    def test_jacobian_only_touches_robot_and_own_landmark(self):
        state = np.array([0.0, 0.0, 0.0, 2.0, 1.0, -1.5, 2.5])
        H = RangeBearingLandmarkModel.H(state, 0)
        np.testing.assert_array_equal(H[:, 5:], 0.0)
        assert np.all(np.abs(H[:, 3:5]) > 0)
