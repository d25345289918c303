"""
Motion, measurement and noise models for EKF-SLAM.

This module provides the twist motion model used by the prediction step,
the range-bearing landmark model used by the update step, and the builders
for the initial covariance and the process/measurement noise matrices.
"""

from .motion_models import (
    OMEGA_EPSILON,
    TwistMotionModel,
    as_twist,
    integrate_twist,
)

from .measurement_models import (
    LANDMARK_DIM,
    ROBOT_DIM,
    RangeBearingLandmarkModel,
    landmark_index,
    n_landmarks_in,
    to_range_bearing,
)

from .noise_models import (
    INFINITE_VARIANCE,
    build_covariance,
    grow_covariance,
    measurement_noise,
    process_noise,
)

__all__ = [
    # Motion model
    'OMEGA_EPSILON',
    'TwistMotionModel',
    'as_twist',
    'integrate_twist',

    # Measurement model
    'LANDMARK_DIM',
    'ROBOT_DIM',
    'RangeBearingLandmarkModel',
    'landmark_index',
    'n_landmarks_in',
    'to_range_bearing',

    # Noise and covariance builders
    'INFINITE_VARIANCE',
    'build_covariance',
    'grow_covariance',
    'measurement_noise',
    'process_noise',
]
