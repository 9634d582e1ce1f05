"""Physical plausibility checks against per-mnemonic ranges."""

import logging

import numpy as np

__all__ = ["range_for", "validate_physical_ranges"]

logger = logging.getLogger(__name__)


def range_for(curve, physical_ranges):
    """Range for a curve, looked up by mnemonic then standard mnemonic."""
    for name in (curve.mnemonic, curve.standard_mnemonic):
        if name and name.upper() in physical_ranges:
            return physical_ranges[name.upper()]
    return None


def validate_physical_ranges(dataset, physical_ranges) -> dict:
    """Count samples outside their curve's physical range.

    Parameters
    ----------
    dataset : WellDataset
    physical_ranges : dict
        Mnemonic -> object with ``min`` and ``max`` attributes.

    Returns
    -------
    dict
        ``{"passed": [...], "failed": [...], "out_of_range": {mnemonic: count},
        "unchecked": [...], "warnings": [...]}``
    """
    report = {"passed": [], "failed": [], "out_of_range": {}, "unchecked": [], "warnings": []}
    for curve in dataset.curves:
        limits = range_for(curve, physical_ranges)
        if limits is None:
            report["unchecked"].append(curve.mnemonic)
            continue
        values = dataset.values(curve.mnemonic)
        values = values[np.isfinite(values)]
        bad = int(np.sum((values < limits.min) | (values > limits.max)))
        report["out_of_range"][curve.mnemonic] = bad
        if bad:
            report["failed"].append(curve.mnemonic)
            report["warnings"].append(
                f"{curve.mnemonic}: {bad} samples outside [{limits.min}, {limits.max}]"
            )
        else:
            report["passed"].append(curve.mnemonic)
    return report
