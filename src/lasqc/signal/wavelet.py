"""Haar wavelet transform and VisuShrink denoising.

Coefficient layout after ``haar_forward`` on a length-``N`` signal
(``N`` a power of two)::

    [approximation, detail(level L), detail(level L-1) x2, ..., detail(level 1) x N/2]

i.e. the overall average first, followed by detail coefficients from
coarsest to finest. Averaging uses ``(a + b) / 2`` and differencing
``(a - b) / 2`` so the inverse is ``a + d`` / ``a - d``.
"""

import logging
import math

import numpy as np

__all__ = [
    "next_power_of_two",
    "pad_to_power_of_two",
    "haar_forward",
    "haar_inverse",
    "soft_threshold",
    "universal_threshold",
    "wavelet_denoise",
]

logger = logging.getLogger(__name__)


def next_power_of_two(n: int) -> int:
    return 1 if n <= 1 else 1 << (int(n) - 1).bit_length()


def pad_to_power_of_two(values) -> np.ndarray:
    """Zero-pad to the next power-of-two length."""
    v = np.asarray(values, dtype=float)
    target = next_power_of_two(v.size)
    return np.concatenate([v, np.zeros(target - v.size)])


def _check_length(n):
    if n == 0 or n & (n - 1):
        raise ValueError(f"Haar transform needs a power-of-two length, got {n}")


def haar_forward(values) -> np.ndarray:
    """Full multi-level Haar decomposition."""
    out = np.array(values, dtype=float)
    _check_length(out.size)
    length = out.size
    while length > 1:
        half = length // 2
        even, odd = out[0:length:2].copy(), out[1:length:2].copy()
        out[:half] = (even + odd) / 2.0
        out[half:length] = (even - odd) / 2.0
        length = half
    return out


def haar_inverse(coeffs) -> np.ndarray:
    """Inverse of ``haar_forward``."""
    out = np.array(coeffs, dtype=float)
    _check_length(out.size)
    length = 1
    while length < out.size:
        approx = out[:length].copy()
        detail = out[length:2 * length].copy()
        out[0:2 * length:2] = approx + detail
        out[1:2 * length:2] = approx - detail
        length *= 2
    return out


def soft_threshold(coeffs, threshold) -> np.ndarray:
    """Shrink toward zero by ``threshold``; magnitudes below it become 0."""
    c = np.asarray(coeffs, dtype=float)
    return np.sign(c) * np.maximum(np.abs(c) - threshold, 0.0)


def universal_threshold(detail, n) -> float:
    """VisuShrink threshold ``sigma * sqrt(2 ln n)``.

    ``sigma`` is the population standard deviation of the detail
    coefficients.
    """
    if n < 2 or len(detail) == 0:
        return 0.0
    sigma = float(np.std(detail))
    return sigma * math.sqrt(2.0 * math.log(n))


def wavelet_denoise(values) -> np.ndarray:
    """Global Haar/VisuShrink denoiser.

    Finite samples are compressed into a contiguous series, zero-padded
    to a power of two, decomposed, soft-thresholded on every detail
    coefficient, reconstructed, truncated, and written back. Null
    samples stay null.
    """
    v = np.asarray(values, dtype=float)
    result = v.copy()
    valid = np.isfinite(v)
    series = v[valid]
    if series.size < 2:
        return result

    padded = pad_to_power_of_two(series)
    coeffs = haar_forward(padded)
    threshold = universal_threshold(coeffs[1:], padded.size)
    coeffs[1:] = soft_threshold(coeffs[1:], threshold)
    logger.debug("Wavelet threshold %.6g over %d coefficients", threshold, padded.size)

    result[valid] = haar_inverse(coeffs)[:series.size]
    return result
