"""Per-curve numeric filters.

Every function here is pure: it takes a 1-D series (NaN = null) plus
parameters and returns new arrays, leaving its input untouched.
"""

from lasqc.signal.smoothing import (
    gaussian_filter,
    moving_average,
    savitzky_golay,
    savitzky_golay_coefficients,
)
from lasqc.signal.wavelet import haar_forward, haar_inverse, wavelet_denoise
from lasqc.signal.despiking import (
    SpikeResult,
    hampel,
    iqr_filter,
    modified_zscore,
    replace_spikes,
)
from lasqc.signal.interpolation import pchip
from lasqc.signal.baseline import detrend, polynomial_trend

__all__ = [
    "gaussian_filter",
    "moving_average",
    "savitzky_golay",
    "savitzky_golay_coefficients",
    "haar_forward",
    "haar_inverse",
    "wavelet_denoise",
    "SpikeResult",
    "hampel",
    "iqr_filter",
    "modified_zscore",
    "replace_spikes",
    "pchip",
    "detrend",
    "polynomial_trend",
]
