"""Despiking stage."""

import logging
from dataclasses import dataclass, field

import numpy as np

from lasqc.contracts.failure import ProcessingError
from lasqc.processing.common import (
    coerce_options,
    is_strictly_increasing,
    record_curve_error,
    valid_series,
)
from lasqc.schemas.param import DespikeConfig
from lasqc.signal.despiking import (
    SpikeResult,
    hampel,
    iqr_filter,
    modified_zscore,
    replace_spikes,
)

__all__ = ["DESPIKE_STRATEGIES", "DespikeResult", "despike"]

logger = logging.getLogger(__name__)


def _manual(series, options):
    # Manual review: nothing is flagged automatically
    return SpikeResult(series.copy(), [])


DESPIKE_STRATEGIES = {
    "hampel": lambda series, o: hampel(series, o.window_size, o.threshold),
    "modified_zscore": lambda series, o: modified_zscore(series, o.threshold),
    "iqr": lambda series, o: iqr_filter(series, o.threshold),
    "manual": _manual,
}


@dataclass
class DespikeResult:
    success: bool
    data: object
    spikes_detected: int = 0
    spikes_removed: int = 0
    per_curve: dict = field(default_factory=dict)
    errors: list = field(default_factory=list)


def despike(dataset, options=None) -> DespikeResult:
    """Detect and replace spikes on every log curve.

    Parameters
    ----------
    dataset : WellDataset
    options : DespikeConfig or dict, optional
        ``method``, ``threshold``, ``window_size``, ``replacement_method``.

    Returns
    -------
    DespikeResult
        ``per_curve`` maps mnemonics to the detected count and the row
        indices that were flagged.
    """
    options = coerce_options(options, DespikeConfig)
    depth = dataset.depth
    updates, per_curve, errors = {}, {}, []
    detected = removed = 0

    for curve in dataset.curves:
        mnemonic = curve.mnemonic
        values = dataset.values(mnemonic)
        try:
            mask, series = valid_series(values, mnemonic)
            result = DESPIKE_STRATEGIES[options.method](series, options)
            positions = depth[mask] if is_strictly_increasing(depth[mask]) else None
            replaced = replace_spikes(
                series, result.spike_indices, options.replacement_method,
                result.cleaned, positions=positions,
            )
        except ProcessingError as e:
            record_curve_error(options.failure_policy, "despiking", mnemonic, e, errors)
            continue

        rows = np.flatnonzero(mask)[result.spike_indices].tolist()
        values[mask] = replaced
        updates[mnemonic] = values
        per_curve[mnemonic] = {"detected": len(rows), "rows": rows}
        detected += len(rows)
        removed += len(rows)

    logger.info("Despiking (%s) flagged %d samples", options.method, detected)
    return DespikeResult(
        success=not errors,
        data=dataset.with_values(updates),
        spikes_detected=detected,
        spikes_removed=removed,
        per_curve=per_curve,
        errors=errors,
    )
