"""Mahalanobis gating for landmark data association.

Each observation is scored against every tracked landmark with the squared
Mahalanobis distance of its innovation,

    d² = νᵀ S⁻¹ ν,   S = H Σ Hᵀ + R,

and two thresholds split the score axis into three zones:

    d²_min <  lower           -> re-observation of the closest landmark
    d²_min >  upper           -> a landmark never seen before
    lower <= d²_min <= upper  -> ambiguous, the observation is rejected

Under a correct association d² follows a chi-square distribution with 2
degrees of freedom, so the default thresholds are chi-square quantiles.

References: Bar-Shalom, Li & Kirubarajan, "Estimation with Applications to
Tracking and Navigation", Section 5.4 (validation gates).
"""

from enum import Enum
from typing import Tuple

import numpy as np
from scipy import stats

from ekfslam.utils.linalg import regularized_inverse

# Quantiles used for the default association thresholds
DEFAULT_MATCH_CONFIDENCE = 0.95
DEFAULT_NEW_CONFIDENCE = 0.9999


class AssociationDecision(Enum):
    """Outcome of gating one observation against the tracked map."""

    MATCH = "match"
    NEW = "new"
    AMBIGUOUS = "ambiguous"


def mahalanobis_distance_squared(y: np.ndarray, S: np.ndarray) -> float:
    """Compute squared Mahalanobis distance of innovation.

    Args:
        y: Innovation vector (m,).
        S: Innovation covariance matrix (m × m). A singular S is inverted
           after a small diagonal inflation.

    Returns:
        Squared Mahalanobis distance d² (scalar).

    Raises:
        ValueError: If dimensions are incompatible.

    Example:
        >>> y = np.array([3.0, 4.0])
        >>> mahalanobis_distance_squared(y, np.eye(2))
        25.0
    """
    y = np.asarray(y, dtype=float)
    S = np.asarray(S, dtype=float)

    if y.ndim != 1:
        raise ValueError(f"Innovation y must be 1D, got shape {y.shape}")
    if S.ndim != 2:
        raise ValueError(f"Covariance S must be 2D, got shape {S.shape}")

    m = len(y)
    if S.shape != (m, m):
        raise ValueError(
            f"Innovation dimension {m} incompatible with S shape {S.shape}"
        )

    return float(y @ regularized_inverse(S) @ y)


def chi_square_threshold(dof: int, confidence: float = 0.95) -> float:
    """Chi-square critical value χ²(dof, confidence).

    Example:
        >>> round(chi_square_threshold(dof=2, confidence=0.95), 3)
        5.991

    Raises:
        ValueError: If dof < 1 or confidence is not in (0, 1).
    """
    if dof < 1:
        raise ValueError(f"Degrees of freedom must be positive, got {dof}")
    if not (0 < confidence < 1):
        raise ValueError(
            f"Confidence level must be in (0, 1), got {confidence}"
        )

    return float(stats.chi2.ppf(confidence, dof))


def default_association_thresholds(dof: int = 2) -> Tuple[float, float]:
    """(lower, upper) gating thresholds for a range-bearing observation.

    lower is the 95% chi-square quantile: inside it an observation is
    statistically consistent with a landmark. upper is the 99.99% quantile:
    beyond it the observation is practically impossible under any tracked
    landmark and starts a new one.
    """
    return (
        chi_square_threshold(dof, DEFAULT_MATCH_CONFIDENCE),
        chi_square_threshold(dof, DEFAULT_NEW_CONFIDENCE),
    )


def classify(
    scores: np.ndarray,
    lower: float,
    upper: float,
) -> Tuple[AssociationDecision, int]:
    """Turn Mahalanobis scores into an association decision.

    Args:
        scores: Squared Mahalanobis distance to each tracked landmark (N,).
            May be empty when no landmark is tracked yet.
        lower: Match threshold.
        upper: New-landmark threshold, upper >= lower.

    Returns:
        Tuple (decision, index). index is the matched landmark for MATCH,
        the closest candidate for AMBIGUOUS, and -1 for NEW. Ties are
        resolved toward the lowest index.

    Raises:
        ValueError: If lower > upper.
    """
    if lower > upper:
        raise ValueError(f"lower threshold {lower} exceeds upper threshold {upper}")

    scores = np.asarray(scores, dtype=float).reshape(-1)
    if scores.size == 0:
        return AssociationDecision.NEW, -1

    best = int(np.argmin(scores))
    d_min = scores[best]

    if d_min < lower:
        return AssociationDecision.MATCH, best
    if d_min > upper:
        return AssociationDecision.NEW, -1
    return AssociationDecision.AMBIGUOUS, best
