"""Configuration for the EKF-SLAM estimator.

One EKFSlamConfig describes a robot session: the starting pose, any
landmarks known in advance, the noise model and the association
thresholds. It is validated on construction and can be round-tripped
through a plain dict or a JSON file:

    {
        "initial_pose": [0.0, 0.0, 0.0],
        "initial_landmarks": [[2.0, 1.0]],
        "process_noise_variances": [1e-4, 1e-4, 1e-5],
        "measurement_noise_variances": [1e-3, 1e-4],
        "max_range": 5.0,
        "mahalanobis_lower": 5.99,
        "mahalanobis_upper": 18.42
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from ekfslam.association.gating import default_association_thresholds
from ekfslam.types import Point2, Pose2


def _as_pose(value: Union[Pose2, Sequence[float]]) -> Pose2:
    if isinstance(value, Pose2):
        return value
    if isinstance(value, dict):
        return Pose2(**value)
    return Pose2.from_array(value)


def _as_point(value: Union[Point2, Sequence[float]]) -> Point2:
    if isinstance(value, Point2):
        return value
    if isinstance(value, dict):
        return Point2(**value)
    return Point2.from_array(value)


def _as_variances(values: Sequence[float], length: int, name: str) -> tuple:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape != (length,):
        raise ValueError(f"{name} must have {length} elements, got {len(arr)}")
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        raise ValueError(f"{name} must be finite and non-negative, got {arr.tolist()}")
    return tuple(float(v) for v in arr)


@dataclass
class EKFSlamConfig:
    """Construction-time configuration of an EKFSlam estimator.

    Attributes:
        initial_pose: Starting robot pose.
        initial_landmarks: Landmarks already in the map (may be empty).
        process_noise_variances: Variances of (x, y, theta) added per
            control interval.
        measurement_noise_variances: Variances of (range, bearing).
        max_range: Observations farther than this are discarded (meters).
        mahalanobis_lower: Squared Mahalanobis distance below which an
            observation re-observes the closest landmark. Defaults to the
            95% chi-square quantile with 2 DOF.
        mahalanobis_upper: Squared Mahalanobis distance above which an
            observation registers a new landmark. Defaults to the 99.99%
            quantile.
        initial_robot_variances: Initial (x, y, theta) variances. Zero means
            the starting pose is known exactly.
        initial_landmark_variances: Initial (x, y) variances of the known
            landmarks, 2 values or 2 per landmark. None uses the "infinite"
            sentinel.
        max_landmarks: Map capacity. Once reached, new registrations are
            rejected. None means unbounded.
        inject_process_noise: Add sampled process noise to the predicted
            pose (simulation only).
        seed: Seed of the estimator's noise sampler.

    Raises:
        ValueError: If any value is out of range.
    """

    initial_pose: Pose2 = field(default_factory=Pose2.identity)
    initial_landmarks: List[Point2] = field(default_factory=list)
    process_noise_variances: tuple = (1e-4, 1e-4, 1e-5)
    measurement_noise_variances: tuple = (1e-3, 1e-4)
    max_range: float = 10.0
    mahalanobis_lower: Optional[float] = None
    mahalanobis_upper: Optional[float] = None
    initial_robot_variances: tuple = (0.0, 0.0, 0.0)
    initial_landmark_variances: Optional[tuple] = None
    max_landmarks: Optional[int] = None
    inject_process_noise: bool = False
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Normalize types and validate values."""
        self.initial_pose = _as_pose(self.initial_pose)
        self.initial_landmarks = [_as_point(lm) for lm in self.initial_landmarks]

        self.process_noise_variances = _as_variances(
            self.process_noise_variances, 3, "process_noise_variances"
        )
        self.measurement_noise_variances = _as_variances(
            self.measurement_noise_variances, 2, "measurement_noise_variances"
        )
        self.initial_robot_variances = _as_variances(
            self.initial_robot_variances, 3, "initial_robot_variances"
        )
        if self.initial_landmark_variances is not None:
            n = len(np.asarray(self.initial_landmark_variances).reshape(-1))
            expected = 2 if n == 2 else 2 * len(self.initial_landmarks)
            self.initial_landmark_variances = _as_variances(
                self.initial_landmark_variances, expected, "initial_landmark_variances"
            )

        if not (self.max_range > 0):
            raise ValueError(f"max_range must be positive, got {self.max_range}")
        self.max_range = float(self.max_range)

        lower, upper = default_association_thresholds()
        if self.mahalanobis_lower is None:
            self.mahalanobis_lower = lower
        if self.mahalanobis_upper is None:
            self.mahalanobis_upper = max(upper, self.mahalanobis_lower)
        self.mahalanobis_lower = float(self.mahalanobis_lower)
        self.mahalanobis_upper = float(self.mahalanobis_upper)
        if self.mahalanobis_lower < 0:
            raise ValueError(f"mahalanobis_lower must be non-negative, got {self.mahalanobis_lower}")
        if self.mahalanobis_lower > self.mahalanobis_upper:
            raise ValueError(
                f"mahalanobis_lower ({self.mahalanobis_lower}) must not exceed "
                f"mahalanobis_upper ({self.mahalanobis_upper})"
            )

        if self.max_landmarks is not None:
            if self.max_landmarks < len(self.initial_landmarks):
                raise ValueError(
                    f"max_landmarks ({self.max_landmarks}) is smaller than the "
                    f"number of initial landmarks ({len(self.initial_landmarks)})"
                )
            self.max_landmarks = int(self.max_landmarks)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EKFSlamConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable representation."""
        return {
            "initial_pose": self.initial_pose.to_array().tolist(),
            "initial_landmarks": [lm.to_array().tolist() for lm in self.initial_landmarks],
            "process_noise_variances": list(self.process_noise_variances),
            "measurement_noise_variances": list(self.measurement_noise_variances),
            "max_range": self.max_range,
            "mahalanobis_lower": self.mahalanobis_lower,
            "mahalanobis_upper": self.mahalanobis_upper,
            "initial_robot_variances": list(self.initial_robot_variances),
            "initial_landmark_variances": (
                None if self.initial_landmark_variances is None
                else list(self.initial_landmark_variances)
            ),
            "max_landmarks": self.max_landmarks,
            "inject_process_noise": self.inject_process_noise,
            "seed": self.seed,
        }


def load_config(path: Union[str, Path]) -> EKFSlamConfig:
    """Load an EKFSlamConfig from a JSON file."""
    with open(path, "r") as f:
        data = json.load(f)
    return EKFSlamConfig.from_dict(data)


def save_config(config: EKFSlamConfig, path: Union[str, Path]) -> None:
    """Write an EKFSlamConfig to a JSON file."""
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
