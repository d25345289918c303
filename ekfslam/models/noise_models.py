"""
Covariance and noise matrix builders for EKF-SLAM.

The SLAM covariance has the block structure

    Σ = [ Σ_rr  Σ_rm ]
        [ Σ_mr  Σ_mm ]

with a 3×3 robot block and a 2N×2N landmark block. Initially the robot
block holds the robot variances (zero = pose known exactly) and every
landmark gets a large finite "infinite" variance, meaning nothing is known
about it yet. All cross terms start at zero.

Process noise only perturbs the robot (landmarks are static), so its
landmark blocks stay zero whatever the map size.
"""

from typing import Optional, Sequence

import numpy as np

from ekfslam.models.measurement_models import LANDMARK_DIM, ROBOT_DIM

# Finite stand-in for unbounded landmark variance; many orders above any
# measurement variance while staying safe for factorizations.
INFINITE_VARIANCE = 1e6


def _variances(values: Sequence[float], name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} must be finite, got {arr}")
    if np.any(arr < 0):
        raise ValueError(f"{name} must be non-negative, got {arr}")
    return arr


def build_covariance(
    n_landmarks: int = 0,
    robot_variances: Optional[Sequence[float]] = None,
    landmark_variances: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """
    Build the initial (3+2N)×(3+2N) SLAM covariance.

    Args:
        n_landmarks: Number of landmarks N already in the state.
        robot_variances: Variances of (x, y, theta). Defaults to zeros.
        landmark_variances: Either 2 values (x, y) applied to every
            landmark or 2N values, one per landmark coordinate. Defaults to
            INFINITE_VARIANCE.

    Returns:
        Diagonal covariance matrix.

    Raises:
        ValueError: On wrong lengths, negative or non-finite variances.

    Example:
        >>> P = build_covariance(1)
        >>> np.diag(P)
        array([0.e+00, 0.e+00, 0.e+00, 1.e+06, 1.e+06])
    """
    if n_landmarks < 0:
        raise ValueError(f"n_landmarks must be non-negative, got {n_landmarks}")

    if robot_variances is None:
        robot = np.zeros(ROBOT_DIM)
    else:
        robot = _variances(robot_variances, "robot_variances")
        if robot.shape != (ROBOT_DIM,):
            raise ValueError(f"robot_variances must have 3 elements, got {len(robot)}")

    n_map = LANDMARK_DIM * n_landmarks
    if landmark_variances is None:
        landmarks = np.full(n_map, INFINITE_VARIANCE)
    else:
        landmarks = _variances(landmark_variances, "landmark_variances")
        if landmarks.shape == (LANDMARK_DIM,):
            landmarks = np.tile(landmarks, n_landmarks)
        elif landmarks.shape != (n_map,):
            raise ValueError(
                f"landmark_variances must have 2 or {n_map} elements, got {len(landmarks)}"
            )

    return np.diag(np.concatenate([robot, landmarks]))


def grow_covariance(
    P: np.ndarray,
    n_new: int = 1,
    variance: float = INFINITE_VARIANCE,
) -> np.ndarray:
    """
    Append n_new landmark slots to a covariance matrix.

    The existing block is copied unchanged, the new cross terms are zero
    and the new diagonal is set to variance.

    Args:
        P: Current covariance (n×n).
        n_new: Number of landmarks to append.
        variance: Initial variance of each new coordinate.

    Returns:
        Covariance of shape (n + 2 n_new)×(n + 2 n_new).
    """
    P = np.asarray(P, dtype=float)
    if P.ndim != 2 or P.shape[0] != P.shape[1]:
        raise ValueError(f"Covariance must be square, got shape {P.shape}")
    if n_new < 0:
        raise ValueError(f"n_new must be non-negative, got {n_new}")
    if not variance >= 0:
        raise ValueError(f"variance must be non-negative, got {variance}")

    n = P.shape[0]
    m = n + LANDMARK_DIM * n_new
    grown = np.zeros((m, m))
    grown[:n, :n] = P
    grown[np.arange(n, m), np.arange(n, m)] = variance
    return grown


def process_noise(xyt_variances: Sequence[float], n_landmarks: int = 0) -> np.ndarray:
    """
    Full-state process noise Q for a map of n_landmarks.

    Args:
        xyt_variances: Variances of (x, y, theta) per control interval.
        n_landmarks: Number of landmarks N.

    Returns:
        (3+2N)×(3+2N) matrix, diag(q) in the robot block, zero elsewhere.
    """
    q = _variances(xyt_variances, "process noise variances")
    if q.shape != (ROBOT_DIM,):
        raise ValueError(f"Process noise needs 3 variances (x, y, theta), got {len(q)}")
    if n_landmarks < 0:
        raise ValueError(f"n_landmarks must be non-negative, got {n_landmarks}")

    n = ROBOT_DIM + LANDMARK_DIM * n_landmarks
    Q = np.zeros((n, n))
    Q[:ROBOT_DIM, :ROBOT_DIM] = np.diag(q)
    return Q


def measurement_noise(rb_variances: Sequence[float]) -> np.ndarray:
    """
    2×2 measurement noise R from (range, bearing) variances.

    The same R applies to every observation of a batch.
    """
    r = _variances(rb_variances, "measurement noise variances")
    if r.shape != (LANDMARK_DIM,):
        raise ValueError(f"Measurement noise needs 2 variances (range, bearing), got {len(r)}")
    return np.diag(r)
