"""Spike detectors and replacement policies.

Detectors share one contract: given a series and a threshold they return
a ``SpikeResult`` holding the median-substituted series and the sorted
indices they flagged. Samples that are NaN are never flagged and never
used as evidence.
"""

import logging
from typing import NamedTuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from lasqc.contracts.failure import PreconditionError
from lasqc.signal import interpolation
from lasqc.signal.robust import mad, median, quantile_floor

__all__ = [
    "MODIFIED_Z_SCALE",
    "SpikeResult",
    "hampel",
    "modified_zscore",
    "iqr_filter",
    "replace_spikes",
]

logger = logging.getLogger(__name__)

MODIFIED_Z_SCALE = 0.6745


class SpikeResult(NamedTuple):
    cleaned: np.ndarray
    spike_indices: list


def _check_threshold(threshold):
    if not threshold > 0:
        raise PreconditionError(f"threshold must be positive, got {threshold}")


def hampel(values, window_size, threshold) -> SpikeResult:
    """Sliding-window Hampel filter.

    A sample is flagged when ``|x - window median| > threshold * window MAD``
    and replaced by the window median. Samples within ``window_size // 2``
    of either end are not evaluated (there is no full window around them).

    Raises
    ------
    PreconditionError
        For an even or non-positive window, or a non-positive threshold.
    """
    if window_size < 3 or window_size % 2 == 0:
        raise PreconditionError(f"window size must be odd and >= 3, got {window_size}")
    _check_threshold(threshold)

    v = np.asarray(values, dtype=float)
    cleaned = v.copy()
    half = window_size // 2
    if v.size < window_size:
        return SpikeResult(cleaned, [])

    windows = sliding_window_view(v, window_size)
    # windows[k] is centered on sample k + half
    medians = np.nanmedian(np.where(np.isfinite(windows), windows, np.nan), axis=1)
    deviations = np.abs(windows - medians[:, None])
    mads = np.nanmedian(np.where(np.isfinite(windows), deviations, np.nan), axis=1)

    centers = v[half:v.size - half]
    with np.errstate(invalid="ignore"):
        flagged = np.isfinite(centers) & (np.abs(centers - medians) > threshold * mads)
    spike_indices = (np.flatnonzero(flagged) + half).tolist()
    cleaned[spike_indices] = medians[np.flatnonzero(flagged)]
    return SpikeResult(cleaned, spike_indices)


def modified_zscore(values, threshold) -> SpikeResult:
    """Global modified z-score detector.

    Flags ``|0.6745 * (x - median) / MAD| > threshold`` and substitutes the
    global median. With ``MAD == 0`` every sample different from the median
    has an infinite score and is flagged.
    """
    _check_threshold(threshold)
    v = np.asarray(values, dtype=float)
    cleaned = v.copy()
    finite = np.isfinite(v)
    if not finite.any():
        return SpikeResult(cleaned, [])

    center = median(v)
    spread = mad(v, center)
    deviation = np.abs(v - center)
    if spread > 0:
        score = MODIFIED_Z_SCALE * deviation / spread
    else:
        score = np.where(deviation > 0, np.inf, 0.0)
    flagged = finite & (score > threshold)
    cleaned[flagged] = center
    return SpikeResult(cleaned, np.flatnonzero(flagged).tolist())


def iqr_filter(values, threshold) -> SpikeResult:
    """Interquartile-range fence detector.

    Quartiles are taken as ``sorted[floor(n * 0.25)]`` and
    ``sorted[floor(n * 0.75)]``; samples outside
    ``[Q1 - k*IQR, Q3 + k*IQR]`` are replaced by the global median.
    """
    _check_threshold(threshold)
    v = np.asarray(values, dtype=float)
    cleaned = v.copy()
    finite = np.isfinite(v)
    if not finite.any():
        return SpikeResult(cleaned, [])

    ordered = np.sort(v[finite])
    q1 = quantile_floor(ordered, 0.25)
    q3 = quantile_floor(ordered, 0.75)
    spread = q3 - q1
    lower, upper = q1 - threshold * spread, q3 + threshold * spread
    flagged = finite & ((v < lower) | (v > upper))
    cleaned[flagged] = median(v)
    return SpikeResult(cleaned, np.flatnonzero(flagged).tolist())


def replace_spikes(values, spike_indices, method, cleaned, positions=None) -> np.ndarray:
    """Apply a replacement policy to flagged samples.

    Parameters
    ----------
    values : array-like
        Series before despiking.
    spike_indices : list of int
        Flagged positions.
    method : {'median', 'pchip', 'linear', 'null'}
        ``median`` keeps the detector's substitution, ``null`` blanks the
        samples, ``pchip``/``linear`` interpolate from the unflagged samples.
    cleaned : array-like
        Detector output (median-substituted).
    positions : array-like, optional
        Strictly increasing sample coordinates (e.g. depth). Defaults to
        the sample index.
    """
    v = np.asarray(values, dtype=float)
    if not spike_indices:
        return v.copy()
    if method == "median":
        return np.asarray(cleaned, dtype=float).copy()

    out = v.copy()
    idx = np.asarray(spike_indices, dtype=int)
    if method == "null":
        out[idx] = np.nan
        return out
    if method not in ("pchip", "linear"):
        raise PreconditionError(f"unknown replacement method '{method}'")

    x = np.arange(v.size, dtype=float) if positions is None else np.asarray(positions, dtype=float)
    knots = np.isfinite(v)
    knots[idx] = False
    if knots.sum() < 2:
        logger.debug("Fewer than 2 unflagged samples, keeping median substitution")
        return np.asarray(cleaned, dtype=float).copy()

    interpolate = interpolation.pchip if method == "pchip" else interpolation.linear
    out[idx] = interpolate(x[knots], v[knots], x[idx])
    return out
