"""
Angle wrapping utilities.

Headings in the SLAM state and bearing innovations must stay within
[-π, π]; otherwise a bearing of +179° compared against -179° produces a
358° innovation instead of 2°.
"""

from typing import Union

import numpy as np


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to [-π, π] range.

    Args:
        angle: Angle in radians (can be any value)

    Returns:
        Wrapped angle in range [-π, π]

    Example:
        >>> wrap_angle(3.5 * np.pi)  # 630° -> -90°
        -1.5707963267948966
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """Vectorized wrap_angle()."""
    return np.arctan2(np.sin(angles), np.cos(angles))


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Shortest signed difference angle1 - angle2, wrapped to [-π, π].

    This is the bearing innovation used by the measurement update:
    innovation = angle_diff(measured_bearing, predicted_bearing)

    Example:
        >>> angle_diff(np.pi - 0.1, -np.pi + 0.1)
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    return wrap_angle(angle1 - angle2)
