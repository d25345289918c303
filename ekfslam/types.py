"""Value types exchanged with the EKF-SLAM estimator.

The estimator talks to its collaborators (kinematics, landmark detection,
drivers) only through these plain values.

Key types:
    - Pose2: planar robot pose [x, y, theta]
    - Twist2: body velocity over one control interval [v_x, v_y, omega]
    - Point2: landmark position, absolute or robot-relative [x, y]
    - RangeBearing: relative landmark observation [range, bearing]

Author: Navigation Engineer
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from ekfslam.utils.angles import wrap_angle


ArrayLike = Union[np.ndarray, list, tuple]


def _as_vector(arr: ArrayLike, length: int, name: str) -> np.ndarray:
    vec = np.asarray(arr, dtype=np.float64).reshape(-1)
    if vec.shape != (length,):
        raise ValueError(f"{name} must have {length} elements, got shape {np.shape(arr)}")
    return vec


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if not np.isfinite(value):
            raise ValueError(f"{name} must be finite, got {value}")


@dataclass
class Pose2:
    """
    Planar robot pose.

    Attributes:
        x: Position along the map x-axis (meters).
        y: Position along the map y-axis (meters).
        theta: Heading (radians), counter-clockwise from the x-axis.

    Examples:
        >>> p = Pose2(x=1.0, y=2.0, theta=np.pi / 4)
        >>> p.to_array()
        array([1.        , 2.        , 0.78539816])
    """

    x: float
    y: float
    theta: float

    def __post_init__(self) -> None:
        """Validate pose values after initialization."""
        _require_finite(x=self.x, y=self.y, theta=self.theta)

    def to_array(self) -> np.ndarray:
        """Convert pose to NumPy array [x, y, theta]."""
        return np.array([self.x, self.y, self.theta], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: ArrayLike) -> "Pose2":
        """
        Create Pose2 from an array [x, y, theta].

        Raises:
            ValueError: If the array does not have exactly 3 elements.
        """
        vec = _as_vector(arr, 3, "Pose array")
        return cls(x=float(vec[0]), y=float(vec[1]), theta=float(vec[2]))

    @classmethod
    def identity(cls) -> "Pose2":
        """Pose at the origin with zero heading."""
        return cls(x=0.0, y=0.0, theta=0.0)

    def normalized(self) -> "Pose2":
        """Copy of this pose with theta wrapped to [-π, π]."""
        return Pose2(self.x, self.y, wrap_angle(self.theta))

    def __repr__(self) -> str:
        return f"Pose2(x={self.x:.4f}, y={self.y:.4f}, theta={self.theta:.4f})"


@dataclass
class Twist2:
    """
    Body-frame velocity held constant over one control interval.

    Attributes:
        v_x: Forward velocity (m per unit time).
        v_y: Lateral velocity (m per unit time). Always zero for a
            differential-drive robot; the motion model ignores it.
        omega: Angular velocity (rad per unit time).
    """

    v_x: float = 0.0
    v_y: float = 0.0
    omega: float = 0.0

    def __post_init__(self) -> None:
        _require_finite(v_x=self.v_x, v_y=self.v_y, omega=self.omega)

    def to_array(self) -> np.ndarray:
        return np.array([self.v_x, self.v_y, self.omega], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: ArrayLike) -> "Twist2":
        """Create Twist2 from an array [v_x, v_y, omega]."""
        vec = _as_vector(arr, 3, "Twist array")
        return cls(v_x=float(vec[0]), v_y=float(vec[1]), omega=float(vec[2]))


@dataclass
class Point2:
    """2D point: an absolute landmark position or a robot-relative detection."""

    x: float
    y: float

    def __post_init__(self) -> None:
        _require_finite(x=self.x, y=self.y)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: ArrayLike) -> "Point2":
        vec = _as_vector(arr, 2, "Point array")
        return cls(x=float(vec[0]), y=float(vec[1]))


@dataclass
class RangeBearing:
    """
    Relative landmark observation in polar form.

    Attributes:
        range: Distance from the robot to the landmark (meters, >= 0).
        bearing: Angle of the landmark in the robot frame (radians).

    Examples:
        >>> z = RangeBearing.from_point(Point2(0.0, 2.0))
        >>> round(z.range, 3), round(z.bearing, 3)
        (2.0, 1.571)
    """

    range: float
    bearing: float

    def __post_init__(self) -> None:
        _require_finite(range=self.range, bearing=self.bearing)
        if self.range < 0:
            raise ValueError(f"range must be non-negative, got {self.range}")

    def to_array(self) -> np.ndarray:
        return np.array([self.range, self.bearing], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: ArrayLike) -> "RangeBearing":
        vec = _as_vector(arr, 2, "Range-bearing array")
        return cls(range=float(vec[0]), bearing=float(vec[1]))

    @classmethod
    def from_point(cls, point: Point2) -> "RangeBearing":
        """Convert a robot-relative (x, y) detection to range and bearing."""
        return cls(
            range=float(np.hypot(point.x, point.y)),
            bearing=float(np.arctan2(point.y, point.x)),
        )

    def to_point(self) -> Point2:
        """Convert back to a robot-relative (x, y) point."""
        return Point2(
            x=float(self.range * np.cos(self.bearing)),
            y=float(self.range * np.sin(self.bearing)),
        )
