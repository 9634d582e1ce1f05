"""Robust location and spread estimators shared by the spike detectors."""

import numpy as np

__all__ = ["median", "mad", "quantile_floor"]


def median(values) -> float:
    """Median of the finite samples (NaN if there are none)."""
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if v.size == 0:
        return float("nan")
    return float(np.median(v))


def mad(values, center=None) -> float:
    """Median absolute deviation around ``center`` (default: the median)."""
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    if v.size == 0:
        return float("nan")
    if center is None:
        center = float(np.median(v))
    return float(np.median(np.abs(v - center)))


def quantile_floor(sorted_values, q) -> float:
    """Quantile picked as ``sorted[floor(n * q)]`` without interpolation."""
    n = len(sorted_values)
    idx = min(int(np.floor(n * q)), n - 1)
    return float(sorted_values[idx])
