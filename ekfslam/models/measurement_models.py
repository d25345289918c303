"""
Range-bearing landmark observation model for EKF-SLAM.

For landmark j at (m_x, m_y) and robot pose (x, y, θ):

    δ = [m_x - x, m_y - y],  q = δᵀδ
    range   = √q
    bearing = atan2(δ_y, δ_x) - θ

The Jacobian with respect to the full state [x, y, θ, ..., m_jx, m_jy, ...]
is non-zero only in the robot columns and landmark j's two columns:

    H_robot    = [[-δ_x/√q, -δ_y/√q,  0],
                  [ δ_y/q,  -δ_x/q,  -1]]
    H_landmark = [[ δ_x/√q,  δ_y/√q],
                  [-δ_y/q,   δ_x/q ]]

The inverse model places a new landmark from one observation:

    m = [x + range cos(bearing + θ), y + range sin(bearing + θ)]
"""

from typing import Sequence, Tuple, Union

import numpy as np

from ekfslam.types import Point2, RangeBearing
from ekfslam.utils.angles import angle_diff, wrap_angle

# Squared range floor used when a landmark sits on top of the robot
MIN_SQUARED_RANGE = 1e-12

ROBOT_DIM = 3
LANDMARK_DIM = 2

MeasurementLike = Union[RangeBearing, Point2, np.ndarray, Sequence[float]]


def landmark_index(j: int) -> int:
    """Index of landmark j's x coordinate in the state vector."""
    return ROBOT_DIM + LANDMARK_DIM * j


def n_landmarks_in(state: np.ndarray) -> int:
    """Number of landmarks stored in a state vector of length 3 + 2N."""
    n = len(state)
    if n < ROBOT_DIM or (n - ROBOT_DIM) % LANDMARK_DIM != 0:
        raise ValueError(f"State length must be 3 + 2N, got {n}")
    return (n - ROBOT_DIM) // LANDMARK_DIM


def to_range_bearing(measurement: MeasurementLike) -> np.ndarray:
    """
    Normalize a measurement to an array [range, bearing].

    RangeBearing values pass through; Point2 values and bare length-2
    sequences are treated as robot-relative (x, y) detections, which is
    what the landmark detection front end produces.

    Raises:
        ValueError: If the measurement is malformed or non-finite.
    """
    if isinstance(measurement, RangeBearing):
        return measurement.to_array()
    if isinstance(measurement, Point2):
        return RangeBearing.from_point(measurement).to_array()
    return RangeBearing.from_point(Point2.from_array(measurement)).to_array()


class RangeBearingLandmarkModel:
    """
    Range-bearing observation of one landmark held in the SLAM state.

    Example:
        >>> state = np.array([0.0, 0.0, 0.0, 2.0, 0.0])
        >>> RangeBearingLandmarkModel.h(state, 0)
        array([2., 0.])
    """

    @staticmethod
    def _check_index(state: np.ndarray, j: int) -> None:
        n = n_landmarks_in(state)
        if not 0 <= j < n:
            raise IndexError(f"Landmark index {j} out of range for {n} landmark(s)")

    @staticmethod
    def _delta(state: np.ndarray, j: int) -> Tuple[float, float, float]:
        k = landmark_index(j)
        dx = state[k] - state[0]
        dy = state[k + 1] - state[1]
        q = max(dx**2 + dy**2, MIN_SQUARED_RANGE)
        return dx, dy, q

    @staticmethod
    def h(state: np.ndarray, j: int) -> np.ndarray:
        """
        Expected observation [range, bearing] of landmark j.

        Raises:
            IndexError: If j is not a tracked landmark.
        """
        state = np.asarray(state, dtype=float)
        RangeBearingLandmarkModel._check_index(state, j)

        dx, dy, _ = RangeBearingLandmarkModel._delta(state, j)
        return np.array([
            np.hypot(dx, dy),
            wrap_angle(np.arctan2(dy, dx) - state[2]),
        ])

    @staticmethod
    def H(state: np.ndarray, j: int) -> np.ndarray:
        """
        Observation Jacobian of landmark j w.r.t. the full state, shape 2×(3+2N).

        Raises:
            IndexError: If j is not a tracked landmark.
        """
        state = np.asarray(state, dtype=float)
        RangeBearingLandmarkModel._check_index(state, j)

        dx, dy, q = RangeBearingLandmarkModel._delta(state, j)
        sq = np.sqrt(q)
        k = landmark_index(j)

        H = np.zeros((2, len(state)))
        H[0, 0:3] = [-dx / sq, -dy / sq, 0.0]
        H[1, 0:3] = [dy / q, -dx / q, -1.0]
        H[0, k:k + 2] = [dx / sq, dy / sq]
        H[1, k:k + 2] = [-dy / q, dx / q]
        return H

    @staticmethod
    def inverse(pose: np.ndarray, z: np.ndarray) -> np.ndarray:
        """
        Landmark position [m_x, m_y] implied by observation z at pose.

        Args:
            pose: Robot pose [x, y, theta].
            z: Observation [range, bearing].
        """
        x, y, theta = np.asarray(pose, dtype=float)[:3]
        r, b = np.asarray(z, dtype=float)
        return np.array([
            x + r * np.cos(b + theta),
            y + r * np.sin(b + theta),
        ])

    @staticmethod
    def innovation(z: np.ndarray, z_hat: np.ndarray) -> np.ndarray:
        """Observed minus predicted, with the bearing difference wrapped."""
        z = np.asarray(z, dtype=float)
        z_hat = np.asarray(z_hat, dtype=float)
        return np.array([z[0] - z_hat[0], angle_diff(float(z[1]), float(z_hat[1]))])
