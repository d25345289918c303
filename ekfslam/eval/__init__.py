"""Evaluation metrics for SLAM runs."""

from ekfslam.eval.metrics import (
    compute_nees,
    compute_pose_error,
    compute_rmse,
    match_landmarks,
)

__all__ = [
    "compute_nees",
    "compute_pose_error",
    "compute_rmse",
    "match_landmarks",
]
