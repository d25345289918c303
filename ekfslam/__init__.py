"""EKF-SLAM with unknown data association.

This package jointly estimates a planar robot pose and the positions of
landmarks discovered along the way:
- estimators: EKF-SLAM engine (predict / sequential measurement update)
- models: twist motion model, range-bearing landmark model, noise builders
- association: Mahalanobis gating and association decisions
- sim: seedable noise sampler and synthetic landmark observations
- utils: angle wrapping and covariance repair
- eval: pose and map error metrics
"""

__version__ = "0.1.0"
