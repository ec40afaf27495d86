"""
Statistical Helpers

Small, dependency-free statistics shared by the ensemble voter and the
calibration engine. Sums use math.fsum so results do not depend on the
order values arrive in.
"""

import math
from typing import Sequence


def compute_mean(values: Sequence[float]) -> float:
    """Compute arithmetic mean."""
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def compute_median(values: Sequence[float]) -> float:
    """Compute median (mean of the two middle values for even counts)."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def compute_std(values: Sequence[float]) -> float:
    """Compute population standard deviation."""
    if len(values) < 2:
        return 0.0
    mean = compute_mean(values)
    variance = math.fsum((x - mean) ** 2 for x in values) / len(values)
    return math.sqrt(variance)


def compute_rmse(errors: Sequence[float]) -> float:
    """Root mean squared error of signed errors."""
    if not errors:
        return 0.0
    return math.sqrt(math.fsum(e * e for e in errors) / len(errors))


__all__ = [
    "compute_mean",
    "compute_median",
    "compute_std",
    "compute_rmse",
]
