"""
Synthetic landmark observations for tests and demos.

Stands in for the landmark detection front end: given a true robot pose and
true landmark positions, produce the range-bearing observations a perfect
(or Gaussian-noisy) detector would report.
"""

from typing import List, Optional, Sequence, Union

import numpy as np

from ekfslam.sim.noise import NoiseSampler
from ekfslam.types import Point2, Pose2, RangeBearing
from ekfslam.utils.angles import wrap_angle

LandmarkLike = Union[Point2, Sequence[float], np.ndarray]


def observe_landmarks(
    pose: Pose2,
    landmarks: Sequence[LandmarkLike],
    max_range: float = np.inf,
    rb_std: Optional[Sequence[float]] = None,
    sampler: Optional[NoiseSampler] = None,
) -> List[RangeBearing]:
    """
    Range-bearing observations of all landmarks within max_range.

    Args:
        pose: True robot pose.
        landmarks: True landmark positions, Point2 or [x, y].
        max_range: Sensor range; farther landmarks are not reported.
        rb_std: Standard deviations (range, bearing). None gives
            noiseless observations.
        sampler: Noise source, required when rb_std is given.

    Returns:
        Observations in landmark order. Noisy ranges are clipped at zero.

    Raises:
        ValueError: If rb_std is given without a sampler.

    Example:
        >>> obs = observe_landmarks(Pose2(0.0, 0.0, 0.0), [[2.0, 0.0]])
        >>> obs[0].range, obs[0].bearing
        (2.0, 0.0)
    """
    if rb_std is not None and sampler is None:
        raise ValueError("A NoiseSampler is required for noisy observations")

    observations = []
    for landmark in landmarks:
        point = landmark if isinstance(landmark, Point2) else Point2.from_array(landmark)
        dx = point.x - pose.x
        dy = point.y - pose.y
        r = float(np.hypot(dx, dy))
        if r > max_range:
            continue
        b = wrap_angle(np.arctan2(dy, dx) - pose.theta)

        if rb_std is not None:
            noise = sampler.standard_normal(2) * np.asarray(rb_std, dtype=float)
            r = max(r + float(noise[0]), 0.0)
            b = wrap_angle(b + float(noise[1]))

        observations.append(RangeBearing(range=r, bearing=b))
    return observations
