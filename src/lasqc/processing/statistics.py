"""Per-curve summary statistics."""

import logging

import numpy as np

from lasqc.core.dataset import CurveStatistics

__all__ = ["compute_curve_statistics", "refresh_statistics"]

logger = logging.getLogger(__name__)


def compute_curve_statistics(values, outlier_sigma=3.0) -> CurveStatistics:
    """Summarize one curve.

    Parameters
    ----------
    values : array-like
        Curve samples, NaN for null.
    outlier_sigma : float
        Samples further than ``outlier_sigma`` population standard
        deviations from the mean count as outliers.

    Returns
    -------
    CurveStatistics
        ``quality_score = clamp(completeness - noise, 0, 100)`` where
        ``noise = min(100, std / |mean| * 100)`` (0 for a flat curve,
        100 for a zero-mean curve with spread).
    """
    v = np.asarray(values, dtype=float)
    finite = v[np.isfinite(v)]
    null_count = int(v.size - finite.size)
    if finite.size == 0:
        return CurveStatistics(null_count=null_count)

    mean = float(finite.mean())
    std = float(finite.std())
    outliers = int(np.sum(np.abs(finite - mean) > outlier_sigma * std)) if std > 0 else 0

    completeness = finite.size / v.size * 100.0
    if std == 0:
        noise = 0.0
    elif mean == 0:
        noise = 100.0
    else:
        noise = min(100.0, std / abs(mean) * 100.0)
    score = min(100.0, max(0.0, completeness - noise))

    return CurveStatistics(
        min=float(finite.min()),
        max=float(finite.max()),
        mean=mean,
        std=std,
        null_count=null_count,
        outlier_count=outliers,
        quality_score=score,
    )


def refresh_statistics(dataset, outlier_sigma=3.0):
    """Return ``dataset`` with every curve's statistics recomputed."""
    curves = [
        curve.model_copy(update={
            "statistics": compute_curve_statistics(dataset.values(curve.mnemonic), outlier_sigma)
        })
        for curve in dataset.curves
    ]
    return dataset.with_curves(curves)
