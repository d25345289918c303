"""Data association for EKF-SLAM.

Mahalanobis scoring of observations against tracked landmarks and the
threshold rule that decides between re-observation, new landmark and
rejection.
"""

from ekfslam.association.gating import (
    AssociationDecision,
    chi_square_threshold,
    classify,
    default_association_thresholds,
    mahalanobis_distance_squared,
)

__all__ = [
    "AssociationDecision",
    "chi_square_threshold",
    "classify",
    "default_association_thresholds",
    "mahalanobis_distance_squared",
]
