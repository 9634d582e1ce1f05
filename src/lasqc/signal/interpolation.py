"""Shape-preserving PCHIP interpolation."""

import numpy as np

__all__ = ["pchip_slopes", "pchip", "linear"]


def pchip_slopes(x, y) -> np.ndarray:
    """Fritsch-Carlson knot derivatives.

    Interior knots get zero slope at local extrema and a weighted harmonic
    mean of the adjacent secants otherwise. End knots take the adjacent
    secant.
    """
    h = np.diff(x)
    delta = np.diff(y) / h
    n = len(x)
    d = np.empty(n)
    d[0] = delta[0]
    d[-1] = delta[-1]
    if n > 2:
        h_prev, h_next = h[:-1], h[1:]
        d_prev, d_next = delta[:-1], delta[1:]
        w1 = 2.0 * h_next + h_prev
        w2 = h_next + 2.0 * h_prev
        same_sign = d_prev * d_next > 0
        with np.errstate(divide="ignore", invalid="ignore"):
            harmonic = (w1 + w2) / (w1 / d_prev + w2 / d_next)
        d[1:-1] = np.where(same_sign, harmonic, 0.0)
    return d


def pchip(x, y, xi) -> np.ndarray:
    """Evaluate the PCHIP interpolant of ``(x, y)`` at ``xi``.

    Parameters
    ----------
    x : array-like
        Strictly increasing knot positions.
    y : array-like
        Knot values.
    xi : array-like
        Query positions.

    Returns
    -------
    np.ndarray
        Interpolated values. Queries past the last knot return the last
        ``y``; queries before the first knot extend the first segment's
        Hermite cubic.

    Raises
    ------
    ValueError
        If there are no knots, lengths differ, or ``x`` is not strictly
        increasing.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    xi = np.atleast_1d(np.asarray(xi, dtype=float))
    if x.size == 0 or x.shape != y.shape:
        raise ValueError("pchip needs matching, non-empty x and y")
    if x.size == 1:
        return np.full(xi.shape, y[0])
    if np.any(np.diff(x) <= 0):
        raise ValueError("pchip knots must be strictly increasing")

    d = pchip_slopes(x, y)
    n = x.size
    seg = np.clip(np.searchsorted(x, xi, side="left") - 1, 0, n - 1)
    beyond = seg == n - 1
    seg = np.minimum(seg, n - 2)

    h = x[seg + 1] - x[seg]
    t = (xi - x[seg]) / h
    t2 = t * t
    t3 = t2 * t
    h00 = 2 * t3 - 3 * t2 + 1
    h10 = t3 - 2 * t2 + t
    h01 = -2 * t3 + 3 * t2
    h11 = t3 - t2
    result = h00 * y[seg] + h10 * h * d[seg] + h01 * y[seg + 1] + h11 * h * d[seg + 1]
    return np.where(beyond, y[-1], result)


def linear(x, y, xi) -> np.ndarray:
    """Piecewise-linear interpolation, constant beyond both ends."""
    return np.interp(np.asarray(xi, dtype=float), np.asarray(x, dtype=float),
                     np.asarray(y, dtype=float))
