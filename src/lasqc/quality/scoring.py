"""Composite quality indices, letter grade, and confidence.

Five component scores are computed independently from the current
snapshot of a dataset:

- completeness index (% valid samples)
- noise level assessment (mean per-curve SNR in dB)
- physical consistency score (% samples inside their physical range)
- depth integrity index (% depth steps matching the initial step)
- cross-curve correlation factor (mean |observed - expected| Pearson r)

The letter grade is conjunctive: a grade is awarded only when every one
of its four thresholds (completeness, noise, physical, depth) holds.
Failing any single threshold drops the dataset to the next grade down,
no matter how well it scores on the other three.
"""

import logging
import math
from itertools import combinations

import numpy as np
from pydantic import BaseModel, ConfigDict

from lasqc.processing.validation import range_for

__all__ = [
    "QualityMetrics",
    "completeness_index",
    "noise_level_assessment",
    "physical_consistency_score",
    "depth_step_violations",
    "depth_integrity_index",
    "pearson_correlation",
    "cross_curve_correlation_factor",
    "determine_grade",
    "determine_confidence",
    "step_uncertainty",
    "uncertainty_bounds",
    "compute_quality_metrics",
]

logger = logging.getLogger(__name__)

GRADE_ORDER = ("A", "B", "C", "D")


class QualityMetrics(BaseModel):
    """Scored quality of one dataset snapshot."""
    model_config = ConfigDict(frozen=True)

    completeness_index: float
    noise_level_assessment: float
    physical_consistency_score: float
    depth_integrity_index: float
    cross_curve_correlation_factor: float
    overall_grade: str
    confidence_level: str
    uncertainty_bounds: float


def _finite(values):
    v = np.asarray(values, dtype=float)
    return v[np.isfinite(v)]


def completeness_index(dataset) -> float:
    """Valid samples / (rows x curves) x 100."""
    total = dataset.n_rows * len(dataset.mnemonics)
    if total == 0:
        return 0.0
    valid = sum(int(dataset.valid_mask(m).sum()) for m in dataset.mnemonics)
    return valid / total * 100.0


def noise_level_assessment(dataset, min_points=10) -> float:
    """Mean over curves of ``20 log10(signal RMS / noise RMS)``.

    Signal RMS is the population standard deviation of the valid samples;
    noise RMS is the RMS of their first differences. Curves with
    ``min_points`` or fewer valid samples, flat curves, and curves with no
    sample-to-sample variation are left out.
    """
    levels = []
    for mnemonic in dataset.mnemonics:
        values = _finite(dataset.values(mnemonic))
        if values.size <= min_points:
            continue
        signal_rms = float(np.std(values))
        noise_rms = float(np.sqrt(np.mean(np.diff(values) ** 2)))
        if noise_rms > 0 and signal_rms > 0:
            levels.append(20.0 * math.log10(signal_rms / noise_rms))
    return float(np.mean(levels)) if levels else 0.0


def physical_consistency_score(dataset, physical_ranges) -> float:
    """Percentage of range-checked samples inside their physical range.

    Returns 0 when no curve has a known range.
    """
    checked = inside = 0
    for curve in dataset.curves:
        limits = range_for(curve, physical_ranges)
        if limits is None:
            continue
        values = _finite(dataset.values(curve.mnemonic))
        checked += values.size
        inside += int(np.sum((values >= limits.min) & (values <= limits.max)))
    return inside / checked * 100.0 if checked else 0.0


def depth_step_violations(depths, tolerance=0.1) -> list:
    """Row indices whose step from the previous row is a reversal or
    deviates from the first step by more than ``tolerance`` (relative)."""
    d = np.asarray(depths, dtype=float)
    rows = np.flatnonzero(np.isfinite(d))
    d = d[rows]
    if d.size < 2:
        return []
    steps = np.diff(d)
    expected = steps[0]
    bad = (steps <= 0) | (np.abs(steps - expected) > expected * tolerance)
    return rows[1:][bad].tolist()


def depth_integrity_index(depths, tolerance=0.1) -> float:
    """``(1 - violations / (n - 1)) x 100`` over the finite depths."""
    d = _finite(depths)
    if d.size < 2:
        return 0.0
    errors = len(depth_step_violations(d, tolerance))
    return (1.0 - errors / (d.size - 1)) * 100.0


def pearson_correlation(x, y) -> float:
    """Pearson r over rows where both series are finite (0 if undefined)."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    both = np.isfinite(x) & np.isfinite(y)
    x, y = x[both], y[both]
    if x.size < 2:
        return 0.0
    dx, dy = x - x.mean(), y - y.mean()
    denom = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
    return float(np.sum(dx * dy)) / denom if denom else 0.0


def _expected_correlation(a, b, expected):
    return expected.get(f"{a}-{b}", expected.get(f"{b}-{a}", 0.0))


def cross_curve_correlation_factor(dataset, expected_correlations, min_points=10) -> float:
    """Mean absolute gap between observed and expected pairwise correlation.

    Curves are matched by standard mnemonic when one is known. Pairs
    without a tabulated expectation are compared against 0. Pairs need
    more than ``min_points`` jointly valid rows.
    """
    gaps = []
    for a, b in combinations(dataset.curves, 2):
        x, y = dataset.values(a.mnemonic), dataset.values(b.mnemonic)
        if int(np.sum(np.isfinite(x) & np.isfinite(y))) <= min_points:
            continue
        expected = _expected_correlation(
            (a.standard_mnemonic or a.mnemonic).upper(),
            (b.standard_mnemonic or b.mnemonic).upper(),
            expected_correlations,
        )
        gaps.append(abs(pearson_correlation(x, y) - expected))
    return float(np.mean(gaps)) if gaps else 0.0


def determine_grade(completeness, noise, physical, depth, thresholds) -> str:
    """Highest grade whose thresholds are ALL met, else ``F``.

    Noise must strictly exceed its threshold; the other three use ``>=``.
    """
    for grade in GRADE_ORDER:
        t = thresholds.get(grade)
        if t is None:
            continue
        if (completeness >= t.completeness and noise > t.noise
                and physical >= t.physical and depth >= t.depth):
            return grade
    return "F"


def determine_confidence(uncertainty, high_max=5.0, medium_max=10.0) -> str:
    if uncertainty <= high_max:
        return "High"
    if uncertainty <= medium_max:
        return "Medium"
    return "Low"


def step_uncertainty(step, table) -> float:
    """Uncertainty (%) contributed by one processing step.

    ``table`` maps operation -> method -> uncertainty. The method row's
    ``"default"`` covers unlisted methods; the table's top-level
    ``"default"`` row covers unlisted operations (parsing, QC,
    standardization). Without either, the step contributes nothing.
    """
    per_method = table.get(step.operation, table.get("default", {}))
    method = step.parameters.get("method")
    return float(per_method.get(method, per_method.get("default", 0.0)))


def uncertainty_bounds(steps, table) -> float:
    """Per-step uncertainties combined in quadrature."""
    return math.sqrt(sum(step_uncertainty(s, table) ** 2 for s in steps))


def compute_quality_metrics(dataset, steps, quality, validation) -> QualityMetrics:
    """Score ``dataset`` and grade it.

    Parameters
    ----------
    dataset : WellDataset
    steps : list of ProcessingStep
        History used for the uncertainty budget.
    quality : QualityConfig
    validation : ValidationConfig
    """
    completeness = completeness_index(dataset)
    noise = noise_level_assessment(dataset, quality.min_curve_points)
    physical = physical_consistency_score(dataset, validation.physical_ranges)
    depth = depth_integrity_index(dataset.depth, validation.depth_step_tolerance)
    cccf = cross_curve_correlation_factor(
        dataset, quality.expected_correlations, quality.min_curve_points
    )
    uncertainty = uncertainty_bounds(steps, quality.stage_uncertainty)

    grade = determine_grade(completeness, noise, physical, depth, quality.grade_thresholds)
    logger.debug(
        "Quality %s: C=%.1f N=%.1f P=%.1f D=%.1f -> %s",
        dataset.name, completeness, noise, physical, depth, grade,
    )
    return QualityMetrics(
        completeness_index=completeness,
        noise_level_assessment=noise,
        physical_consistency_score=physical,
        depth_integrity_index=depth,
        cross_curve_correlation_factor=cccf,
        overall_grade=grade,
        confidence_level=determine_confidence(
            uncertainty, quality.high_confidence_max, quality.medium_confidence_max
        ),
        uncertainty_bounds=uncertainty,
    )
