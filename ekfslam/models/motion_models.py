"""
Twist motion model for the EKF-SLAM prediction step.

The robot follows a constant body twist (v, ω) for one control interval of
length dt. Integrating exactly gives a circular arc:

    x' = x - (v/ω) sin θ + (v/ω) sin(θ + ωΔ)
    y' = y + (v/ω) cos θ - (v/ω) cos(θ + ωΔ)
    θ' = θ + ωΔ

and, when ω → 0, the straight line

    x' = x + v cos θ Δ,   y' = y + v sin θ Δ,   θ' = θ

Landmarks are static, so the full-state Jacobian is the identity except
for the robot's 3×3 block.
"""

from typing import Union

import numpy as np

from ekfslam.types import Pose2, Twist2
from ekfslam.utils.angles import wrap_angle

# Below this |ω Δ| the straight-line model is used (avoids v/ω blow-up)
OMEGA_EPSILON = 1e-9

TwistLike = Union[Twist2, np.ndarray, list, tuple]


def as_twist(twist: TwistLike) -> Twist2:
    """Accept a Twist2 or an array [v_x, v_y, omega]."""
    if isinstance(twist, Twist2):
        return twist
    return Twist2.from_array(twist)


class TwistMotionModel:
    """
    Constant-twist (velocity) motion model.

    Example:
        >>> pose = np.array([0.0, 0.0, 0.0])
        >>> TwistMotionModel.f(pose, Twist2(v_x=1.0), dt=0.5)
        array([0.5, 0. , 0. ])
    """

    @staticmethod
    def _displacement(twist: TwistLike, dt: float):
        tw = as_twist(twist)
        return tw.v_x * dt, tw.omega * dt

    @staticmethod
    def f(pose: np.ndarray, twist: TwistLike, dt: float = 1.0) -> np.ndarray:
        """
        Propagate pose [x, y, theta] through one control interval.

        Args:
            pose: Pose vector (3,).
            twist: Body twist, Twist2 or [v_x, v_y, omega].
            dt: Interval length; velocities are multiplied by dt.

        Returns:
            Next pose (3,) with theta wrapped to [-π, π].
        """
        pose = np.asarray(pose, dtype=float)
        if pose.shape != (3,):
            raise ValueError(f"Pose must be [x, y, theta], got shape {pose.shape}")

        x, y, theta = pose
        v, w = TwistMotionModel._displacement(twist, dt)

        if abs(w) < OMEGA_EPSILON:
            return np.array([
                x + v * np.cos(theta),
                y + v * np.sin(theta),
                wrap_angle(theta),
            ])

        r = v / w
        return np.array([
            x - r * np.sin(theta) + r * np.sin(theta + w),
            y + r * np.cos(theta) - r * np.cos(theta + w),
            wrap_angle(theta + w),
        ])

    @staticmethod
    def F(pose: np.ndarray, twist: TwistLike, dt: float = 1.0) -> np.ndarray:
        """
        Jacobian ∂f/∂pose (3×3), evaluated at the pre-prediction pose.

        Only the heading column is non-trivial: position change depends on
        theta, nothing depends on x or y.
        """
        theta = float(np.asarray(pose, dtype=float)[2])
        v, w = TwistMotionModel._displacement(twist, dt)

        F = np.eye(3)
        if abs(w) < OMEGA_EPSILON:
            F[0, 2] = -v * np.sin(theta)
            F[1, 2] = v * np.cos(theta)
        else:
            r = v / w
            F[0, 2] = -r * np.cos(theta) + r * np.cos(theta + w)
            F[1, 2] = -r * np.sin(theta) + r * np.sin(theta + w)
        return F

    @staticmethod
    def full_jacobian(state: np.ndarray, twist: TwistLike, dt: float = 1.0) -> np.ndarray:
        """
        Jacobian of the full SLAM state transition, shape (3+2N)×(3+2N).

        Args:
            state: SLAM state [x, y, theta, m1x, m1y, ...].
            twist: Body twist.
            dt: Interval length.
        """
        state = np.asarray(state, dtype=float)
        A = np.eye(len(state))
        A[:3, :3] = TwistMotionModel.F(state[:3], twist, dt)
        return A


def integrate_twist(pose: Pose2, twist: TwistLike, dt: float = 1.0) -> Pose2:
    """Convenience wrapper: propagate a Pose2 without any covariance."""
    return Pose2.from_array(TwistMotionModel.f(pose.to_array(), twist, dt))
