"""Polynomial trend estimation for baseline correction."""

import numpy as np

from lasqc.contracts.failure import PreconditionError
from lasqc.signal.matrix import polynomial_eval, polynomial_fit

__all__ = ["polynomial_trend", "detrend"]


def polynomial_trend(values, order):
    """Fit a polynomial trend over the finite samples of ``values``.

    The fit runs on ``(row index, value)`` pairs with the index rescaled
    to ``[-1, 1]``; the trend is evaluated at every row.

    Parameters
    ----------
    values : array-like
        Curve samples, NaN for null.
    order : int
        Polynomial degree.

    Returns
    -------
    trend : np.ndarray
        Fitted trend for every row (NaN where ``values`` is NaN).
    coeffs : np.ndarray
        Coefficients in the scaled index coordinate, constant first.

    Raises
    ------
    PreconditionError
        If fewer than ``order + 1`` finite samples exist.
    SingularMatrixError
        If the normal equations are singular.
    """
    v = np.asarray(values, dtype=float)
    rows = np.flatnonzero(np.isfinite(v))
    if rows.size < order + 1:
        raise PreconditionError(
            f"need at least {order + 1} valid points for order {order}, got {rows.size}"
        )
    span = max(v.size - 1, 1)
    scaled = 2.0 * np.arange(v.size, dtype=float) / span - 1.0
    coeffs = polynomial_fit(scaled[rows], v[rows], order)
    trend = np.where(np.isfinite(v), polynomial_eval(coeffs, scaled), np.nan)
    return trend, coeffs


def detrend(values, order):
    """Subtract the fitted polynomial trend; returns ``(corrected, trend)``."""
    v = np.asarray(values, dtype=float)
    trend, _ = polynomial_trend(v, order)
    return v - trend, trend
