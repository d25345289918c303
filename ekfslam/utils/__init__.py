"""
Utility functions shared by the SLAM estimator.

Angle wrapping for headings and bearing innovations, and the covariance
repair routines that keep the filter numerically valid.
"""

from .angles import wrap_angle, wrap_angle_array, angle_diff
from .linalg import (
    PSD_TOLERANCE,
    is_symmetric_psd,
    nearest_psd,
    nearest_spd,
    regularized_inverse,
    repair_covariance,
    symmetrize,
)

__all__ = [
    'wrap_angle',
    'wrap_angle_array',
    'angle_diff',
    'PSD_TOLERANCE',
    'is_symmetric_psd',
    'nearest_psd',
    'nearest_spd',
    'regularized_inverse',
    'repair_covariance',
    'symmetrize',
]
