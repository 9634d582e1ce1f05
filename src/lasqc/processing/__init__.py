"""Dataset-level processing stages."""

from lasqc.processing.baseline import BaselineResult, baseline_correction
from lasqc.processing.denoise import DenoiseResult, denoise
from lasqc.processing.despike import DespikeResult, despike
from lasqc.processing.mnemonics import MnemonicStandardizer, StandardizationResult
from lasqc.processing.statistics import compute_curve_statistics, refresh_statistics
from lasqc.processing.validation import validate_physical_ranges

__all__ = [
    "BaselineResult",
    "baseline_correction",
    "DenoiseResult",
    "denoise",
    "DespikeResult",
    "despike",
    "MnemonicStandardizer",
    "StandardizationResult",
    "compute_curve_statistics",
    "refresh_statistics",
    "validate_physical_ranges",
]
