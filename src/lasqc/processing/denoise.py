"""Denoising stage.

Each log curve is compressed to its valid samples, passed through the
configured smoother, blended with the original by ``strength`` and
written back into the valid positions.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from lasqc.contracts.failure import ProcessingError
from lasqc.processing.common import coerce_options, record_curve_error, valid_series
from lasqc.schemas.param import DenoiseConfig
from lasqc.signal.despiking import hampel
from lasqc.signal.smoothing import gaussian_filter, moving_average, savitzky_golay
from lasqc.signal.wavelet import wavelet_denoise

__all__ = ["DENOISE_STRATEGIES", "DenoiseResult", "denoise"]

logger = logging.getLogger(__name__)

# Hampel threshold used to find samples that preserve_spikes protects
SPIKE_GUARD_THRESHOLD = 3.0


DENOISE_STRATEGIES = {
    "savitzky_golay": lambda series, o: savitzky_golay(series, o.window_size, o.polynomial_order),
    "wavelet": lambda series, o: wavelet_denoise(series),
    "moving_average": lambda series, o: moving_average(series, o.window_size),
    "gaussian": lambda series, o: gaussian_filter(series, o.window_size),
}


@dataclass
class DenoiseResult:
    success: bool
    data: object
    metrics: dict = field(default_factory=dict)
    errors: list = field(default_factory=list)


def _variance_reduction(before, after):
    var_before = float(np.var(before))
    if var_before == 0:
        return 0.0
    return (var_before - float(np.var(after))) / var_before * 100.0


def _denoise_curve(series, options):
    filtered = DENOISE_STRATEGIES[options.method](series, options)
    blended = series * (1.0 - options.strength) + filtered * options.strength
    if options.preserve_spikes and series.size >= options.window_size:
        protected = hampel(series, options.window_size, SPIKE_GUARD_THRESHOLD).spike_indices
        blended[protected] = series[protected]
    return blended


def denoise(dataset, options=None) -> DenoiseResult:
    """Smooth every log curve of ``dataset``.

    Parameters
    ----------
    dataset : WellDataset
    options : DenoiseConfig or dict, optional
        ``method``, ``window_size``, ``polynomial_order``, ``strength``,
        ``preserve_spikes``.

    Returns
    -------
    DenoiseResult
        ``data`` is a new dataset; ``metrics`` maps each processed curve
        to ``{"method", "noise_reduction", "points_processed"}``. Curves
        that fail keep their values and add a message to ``errors``.

    Raises
    ------
    PreconditionError
        If the options themselves are invalid.
    """
    options = coerce_options(options, DenoiseConfig)
    updates, metrics, errors = {}, {}, []

    for curve in dataset.curves:
        mnemonic = curve.mnemonic
        values = dataset.values(mnemonic)
        try:
            mask, series = valid_series(values, mnemonic)
            blended = _denoise_curve(series, options)
        except ProcessingError as e:
            record_curve_error(options.failure_policy, "denoising", mnemonic, e, errors)
            continue

        values[mask] = blended
        updates[mnemonic] = values
        metrics[mnemonic] = {
            "method": options.method,
            "noise_reduction": _variance_reduction(series, blended),
            "points_processed": int(series.size),
        }

    logger.info("Denoised %d/%d curves with %s", len(updates), len(dataset.curves), options.method)
    return DenoiseResult(
        success=not errors,
        data=dataset.with_values(updates),
        metrics=metrics,
        errors=errors,
    )
