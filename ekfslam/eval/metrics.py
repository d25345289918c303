"""
Evaluation metrics for EKF-SLAM runs.

Pose errors against ground truth, landmark map errors after nearest-
neighbour matching, and the NEES consistency statistic.
"""

from typing import Dict, Optional, Sequence, Union

import numpy as np
from scipy.spatial import KDTree

from ekfslam.types import Point2, Pose2
from ekfslam.utils.angles import angle_diff


def compute_pose_error(truth: Pose2, estimate: Pose2) -> np.ndarray:
    """
    Absolute per-axis pose error [|dx|, |dy|, |dtheta|].

    The heading error is wrapped, so 179° vs -179° counts as 2°.
    """
    return np.array([
        abs(estimate.x - truth.x),
        abs(estimate.y - truth.y),
        abs(angle_diff(estimate.theta, truth.theta)),
    ])


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 per dimension,
              1 per sample.
    """
    errors = np.asarray(errors, dtype=float)
    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def _as_points(points: Sequence[Union[Point2, Sequence[float]]]) -> np.ndarray:
    rows = [p.to_array() if isinstance(p, Point2) else np.asarray(p, dtype=float)
            for p in points]
    if not rows:
        return np.zeros((0, 2))
    return np.vstack(rows)


def match_landmarks(
    truth: Sequence[Union[Point2, Sequence[float]]],
    estimated: Sequence[Union[Point2, Sequence[float]]],
) -> Dict[str, np.ndarray]:
    """
    Match each estimated landmark to its nearest true landmark.

    Args:
        truth: True landmark positions.
        estimated: Estimated landmark positions.

    Returns:
        Dictionary with keys:
            - 'indices': index of the nearest true landmark per estimate (M,)
            - 'errors': Euclidean distance to that landmark (M,)
            - 'duplicates': number of estimates sharing a true landmark
              with an earlier one (double registrations)

    Raises:
        ValueError: If estimated is non-empty and truth is empty.
    """
    truth_arr = _as_points(truth)
    est_arr = _as_points(estimated)

    if len(est_arr) == 0:
        return {"indices": np.zeros(0, dtype=int), "errors": np.zeros(0), "duplicates": 0}
    if len(truth_arr) == 0:
        raise ValueError("Cannot match estimated landmarks against an empty ground truth")

    errors, indices = KDTree(truth_arr).query(est_arr)
    indices = np.asarray(indices, dtype=int)
    duplicates = int(len(indices) - len(np.unique(indices)))
    return {"indices": indices, "errors": np.asarray(errors, dtype=float), "duplicates": duplicates}


def compute_nees(error: np.ndarray, covariance: np.ndarray) -> float:
    """
    Normalized Estimation Error Squared, eᵀ P⁻¹ e.

    For a consistent filter NEES follows a chi-square distribution with
    len(error) degrees of freedom. Returns nan for a singular P.
    """
    error = np.asarray(error, dtype=float)
    covariance = np.asarray(covariance, dtype=float)
    if covariance.shape != (len(error), len(error)):
        raise ValueError(
            f"covariance must have shape ({len(error)}, {len(error)}), got {covariance.shape}"
        )
    try:
        return float(error @ np.linalg.solve(covariance, error))
    except np.linalg.LinAlgError:
        return float("nan")
