"""
Simulation utilities for exercising the SLAM estimator.

Modules:
    noise: seedable Gaussian noise sampler (standard and correlated)
    landmark_world: synthetic range-bearing observations from ground truth
"""

from ekfslam.sim.noise import NoiseSampler, cholesky_factor
from ekfslam.sim.landmark_world import observe_landmarks

__all__ = [
    "NoiseSampler",
    "cholesky_factor",
    "observe_landmarks",
]
