"""Local smoothing filters: Savitzky-Golay, moving average, Gaussian.

All three are NaN-aware normalized convolutions. At each sample, only
in-bounds finite taps contribute and the sum is divided by the sum of
the contributing weights, so edges and gaps are renormalized instead of
zero-padded. Null samples stay null.
"""

import logging
from functools import lru_cache

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from lasqc.contracts.failure import PreconditionError
from lasqc.signal.matrix import inverse, multiply, transpose, vandermonde

__all__ = [
    "validate_window",
    "savitzky_golay_coefficients",
    "savitzky_golay",
    "moving_average",
    "gaussian_kernel",
    "gaussian_filter",
]

logger = logging.getLogger(__name__)

_NORM_TOLERANCE = 1e-12


def validate_window(window_size, polynomial_order=None):
    """Raise PreconditionError for an unusable window/order pair."""
    if window_size < 1 or window_size % 2 == 0:
        raise PreconditionError(f"window size must be odd, got {window_size}")
    if polynomial_order is not None:
        if polynomial_order < 0:
            raise PreconditionError(f"polynomial order must be >= 0, got {polynomial_order}")
        if polynomial_order >= window_size:
            raise PreconditionError(
                f"polynomial order must be less than window size "
                f"({polynomial_order} >= {window_size})"
            )


@lru_cache(maxsize=64)
def _sg_coefficients(window_size, polynomial_order):
    half = window_size // 2
    # Offsets are scaled to [-1, 1]; the fitted value at 0 is unchanged
    # and the normal matrix stays well conditioned for high orders.
    offsets = np.arange(-half, half + 1, dtype=float) / max(half, 1)
    a = vandermonde(offsets, polynomial_order)
    at = transpose(a)
    pseudo_inverse = multiply(inverse(multiply(at, a)), at)
    return tuple(pseudo_inverse[0])


def savitzky_golay_coefficients(window_size, polynomial_order) -> np.ndarray:
    """Convolution weights that evaluate the local polynomial fit at the center.

    Computed once per ``(window_size, polynomial_order)`` pair as the first
    row of ``(AᵗA)⁻¹Aᵗ`` where ``A`` is the Vandermonde matrix over the
    window offsets.
    """
    validate_window(window_size, polynomial_order)
    return np.array(_sg_coefficients(int(window_size), int(polynomial_order)))


def _normalized_convolution(values, weights):
    v = np.asarray(values, dtype=float)
    if v.size == 0:
        return v.copy()
    half = len(weights) // 2
    padded = np.pad(v, half, constant_values=np.nan)
    windows = sliding_window_view(padded, len(weights))
    valid = np.isfinite(windows)
    numerator = np.where(valid, windows, 0.0) @ weights
    norm = valid.astype(float) @ weights
    with np.errstate(divide="ignore", invalid="ignore"):
        smoothed = np.where(np.abs(norm) > _NORM_TOLERANCE, numerator / norm, v)
    return np.where(np.isfinite(v), smoothed, v)


def savitzky_golay(values, window_size, polynomial_order) -> np.ndarray:
    """Savitzky-Golay smoothing.

    Parameters
    ----------
    values : array-like
        Curve samples; NaN marks a gap.
    window_size : int
        Odd window length.
    polynomial_order : int
        Local polynomial degree, below ``window_size``.

    Returns
    -------
    np.ndarray
        Smoothed samples. Where the contributing coefficients sum to zero
        the original sample passes through.

    Raises
    ------
    PreconditionError
        For an even window or an order >= window size.
    """
    coeffs = savitzky_golay_coefficients(window_size, polynomial_order)
    return _normalized_convolution(values, coeffs)


def moving_average(values, window_size) -> np.ndarray:
    """Centered mean over the finite samples of each window."""
    validate_window(window_size)
    return _normalized_convolution(values, np.ones(window_size))


def gaussian_kernel(window_size) -> np.ndarray:
    """Normalized Gaussian weights with ``sigma = window_size / 6``."""
    validate_window(window_size)
    half = window_size // 2
    sigma = window_size / 6.0
    x = np.arange(-half, half + 1, dtype=float)
    kernel = np.exp(-(x ** 2) / (2.0 * sigma ** 2))
    return kernel / kernel.sum()


def gaussian_filter(values, window_size) -> np.ndarray:
    return _normalized_convolution(values, gaussian_kernel(window_size))
