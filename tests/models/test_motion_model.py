"""
Unit tests for the twist motion model.

Tests cover:
    - Zero twist leaves the pose unchanged
    - Straight-line and circular-arc integration
    - Continuity between the two branches as ω → 0
    - Heading wrapping and dt scaling
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from ekfslam.models import TwistMotionModel, as_twist, integrate_twist
from ekfslam.types import Pose2, Twist2


class TestTwistMotionModel:

    def test_zero_twist(self):
        pose = np.array([1.0, -2.0, 0.4])
        assert_allclose(TwistMotionModel.f(pose, Twist2()), pose, atol=0)
        assert_allclose(TwistMotionModel.F(pose, Twist2()), np.eye(3), atol=0)

    def test_straight_line(self):
        pose = np.array([0.0, 0.0, np.pi / 2])
        next_pose = TwistMotionModel.f(pose, Twist2(v_x=2.0))
        assert_allclose(next_pose, [0.0, 2.0, np.pi / 2], atol=1e-12)

    def test_quarter_circle(self):
        """v = 1, ω = π/2 over one interval: radius 2/π, ends facing +y."""
        next_pose = TwistMotionModel.f(np.zeros(3), Twist2(v_x=1.0, omega=np.pi / 2))
        r = 2.0 / np.pi
        assert_allclose(next_pose, [r, r, np.pi / 2], atol=1e-12)

    def test_pure_rotation(self):
        next_pose = TwistMotionModel.f(np.array([3.0, 4.0, 0.0]), Twist2(omega=0.5))
        assert_allclose(next_pose, [3.0, 4.0, 0.5], atol=1e-12)

    def test_small_omega_matches_straight_line(self):
        pose = np.array([0.5, 0.5, 0.3])
        arc = TwistMotionModel.f(pose, Twist2(v_x=1.0, omega=1e-6))
        line = TwistMotionModel.f(pose, Twist2(v_x=1.0, omega=0.0))
        assert_allclose(arc, line, atol=1e-5)

    def test_heading_is_wrapped(self):
        next_pose = TwistMotionModel.f(np.array([0.0, 0.0, 3.0]), Twist2(omega=1.0))
        assert -np.pi <= next_pose[2] <= np.pi
        assert next_pose[2] == pytest.approx(4.0 - 2 * np.pi)

    def test_dt_scales_twist(self):
        pose = np.array([0.0, 1.0, -0.2])
        scaled = TwistMotionModel.f(pose, Twist2(v_x=0.4, omega=0.6), dt=0.5)
        unit = TwistMotionModel.f(pose, Twist2(v_x=0.2, omega=0.3), dt=1.0)
        assert_allclose(scaled, unit, atol=1e-12)

    def test_lateral_velocity_is_ignored(self):
        pose = np.array([0.0, 0.0, 0.0])
        with_vy = TwistMotionModel.f(pose, Twist2(v_x=1.0, v_y=0.5, omega=0.2))
        without = TwistMotionModel.f(pose, Twist2(v_x=1.0, omega=0.2))
        assert_allclose(with_vy, without, atol=0)

    def test_rejects_bad_pose(self):
        with pytest.raises(ValueError):
            TwistMotionModel.f(np.zeros(4), Twist2())


class TestTwistHelpers:

    def test_as_twist_from_array(self):
        assert as_twist([0.1, 0.0, 0.2]) == Twist2(v_x=0.1, v_y=0.0, omega=0.2)

    def test_as_twist_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            as_twist([0.1, 0.2])

    def test_integrate_twist(self):
        pose = integrate_twist(Pose2(1.0, 0.0, 0.0), Twist2(v_x=1.0))
        assert pose == Pose2(2.0, 0.0, 0.0)
