"""
State estimators for landmark SLAM.

Available estimators:
    - EKFSlam: Extended Kalman Filter SLAM with Mahalanobis data association
"""

from ekfslam.estimators.base import StateEstimator
from ekfslam.estimators.ekf_slam import EKFSlam, UpdateReport

__all__ = [
    "StateEstimator",
    "EKFSlam",
    "UpdateReport",
]
