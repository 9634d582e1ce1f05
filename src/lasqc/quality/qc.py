"""Quality-control summary of a dataset snapshot.

``compute_quality`` always recomputes from scratch; a previous QC result
is superseded, never merged.
"""

import logging
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from lasqc.processing.statistics import compute_curve_statistics
from lasqc.processing.validation import range_for
from lasqc.quality.geology import GeologicalContext, analyze_geology, geological_quality_score
from lasqc.quality.scoring import depth_step_violations

__all__ = ["CurveQuality", "QCResults", "curve_grade", "compute_quality"]

logger = logging.getLogger(__name__)

CURVE_GRADE_LADDER = ((90.0, "A"), (75.0, "B"), (60.0, "C"), (50.0, "D"))


class CurveQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    completeness: float
    noise_level: float
    spikes: int
    physically_valid: Optional[bool]
    quality_grade: str
    issues: list[str] = Field(default_factory=list)


class QCResults(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_points: int
    null_points: int
    spikes_detected: int
    noise_level: float
    depth_consistency: bool
    overall_quality_score: float
    curve_quality: dict[str, CurveQuality]
    mnemonic_standardization: dict
    physical_validation: dict
    recommendations: list[dict]
    warnings: list[str] = Field(default_factory=list)
    geology: Optional[GeologicalContext] = None
    geological_quality_score: Optional[float] = None


def curve_grade(score) -> str:
    for floor, grade in CURVE_GRADE_LADDER:
        if score >= floor:
            return grade
    return "F"


def _relative_noise(values) -> float:
    """RMS of first differences as a percentage of the curve's range."""
    if values.size < 2:
        return 0.0
    span = float(values.max() - values.min())
    if span == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(np.diff(values) ** 2)))
    return min(100.0, rms / span * 100.0)


def _structural_warnings(dataset, violations):
    warnings = []
    depth = dataset.depth
    finite = depth[np.isfinite(depth)]
    if finite.size != depth.size:
        warnings.append(f"{depth.size - finite.size} rows have no depth value")
    if finite.size > 1 and np.any(np.diff(finite) <= 0):
        warnings.append("depth is not strictly increasing")
    if violations:
        warnings.append(f"irregular depth step at {len(violations)} rows")
    header = dataset.header
    for name in ("start_depth", "stop_depth", "step"):
        if getattr(header, name) is None:
            warnings.append(f"header field '{name}' is missing")
    if not header.well:
        warnings.append("header field 'well' is empty")
    return warnings


def _recommendations(score, n_rows, quality):
    recs = []
    if score < quality.low_score_warning:
        recs.append({
            "type": "warning",
            "message": "Low overall quality score - consider data review",
            "action": "Review data source and acquisition parameters",
        })
    if n_rows < quality.min_rows_warning:
        recs.append({
            "type": "info",
            "message": "Limited data points - may affect processing accuracy",
            "action": "Consider acquiring more data points if possible",
        })
    return recs


def _geological_recommendations(context):
    recs = [
        {"type": "warning", "message": flag.message, "action": "Check the curve against offset wells"}
        for flag in context.validation.flags if flag.type == "warning"
    ]
    recs.extend(
        {"type": "info", "message": message, "action": f"Formation: {context.lithology.type}"}
        for message in context.recommendations
    )
    return recs


def compute_quality(dataset, quality, validation, geology=None) -> QCResults:
    """Build the QC summary of the current snapshot.

    Parameters
    ----------
    dataset : WellDataset
    quality : QualityConfig
    validation : ValidationConfig
    geology : GeologyConfig, optional
        When given and enabled, the dominant lithology is inferred and
        ``geological_quality_score`` adjusts the score for geological
        consistency. ``overall_quality_score`` itself is not changed.

    Returns
    -------
    QCResults
        ``total_points`` counts samples (rows x curves);
        ``overall_quality_score = clamp(completeness - noise_level, 0, 100)``.
        Structural problems (depth reversals, irregular steps, missing
        header fields) appear in ``warnings`` and clear
        ``depth_consistency`` but never raise.
    """
    n_rows = dataset.n_rows
    total = n_rows * len(dataset.mnemonics)
    nulls = spikes = 0
    noise_levels, curve_quality = [], {}
    passed = failed = 0

    for curve in dataset.curves:
        raw = dataset.values(curve.mnemonic)
        values = raw[np.isfinite(raw)]
        stats = compute_curve_statistics(raw, validation.outlier_sigma)
        nulls += stats.null_count
        spikes += stats.outlier_count
        noise = _relative_noise(values)
        noise_levels.append(noise)

        issues = []
        limits = range_for(curve, validation.physical_ranges) if validation.enabled else None
        physically_valid = None
        if limits is not None:
            out = int(np.sum((values < limits.min) | (values > limits.max)))
            physically_valid = out == 0
            if out:
                failed += 1
                issues.append(f"{out} samples outside [{limits.min}, {limits.max}]")
            else:
                passed += 1
        if stats.null_count:
            issues.append(f"{stats.null_count} null samples")

        completeness = values.size / n_rows * 100.0 if n_rows else 0.0
        curve_quality[curve.mnemonic] = CurveQuality(
            completeness=completeness,
            noise_level=noise,
            spikes=stats.outlier_count,
            physically_valid=physically_valid,
            quality_grade=curve_grade(stats.quality_score),
            issues=issues,
        )

    completeness = (total - nulls) / total * 100.0 if total else 0.0
    noise_level = float(np.mean(noise_levels)) if noise_levels else 0.0
    score = min(100.0, max(0.0, completeness - noise_level))

    violations = depth_step_violations(dataset.depth, validation.depth_step_tolerance)
    warnings = _structural_warnings(dataset, violations)
    depth = dataset.depth
    depth_ok = not violations and bool(np.all(np.isfinite(depth)))

    recommendations = _recommendations(score, n_rows, quality)
    context = geo_score = None
    if geology is not None and geology.enabled:
        context = analyze_geology(dataset, geology)
        geo_score = geological_quality_score(score, context)
        recommendations.extend(_geological_recommendations(context))

    standardized = [c.mnemonic for c in dataset.curves if c.standard_mnemonic]
    return QCResults(
        total_points=total,
        null_points=nulls,
        spikes_detected=spikes,
        noise_level=noise_level,
        depth_consistency=depth_ok,
        overall_quality_score=score,
        curve_quality=curve_quality,
        mnemonic_standardization={
            "standardized": len(standardized),
            "non_standard": [c.mnemonic for c in dataset.curves if not c.standard_mnemonic],
            "mappings": {c.mnemonic: c.standard_mnemonic for c in dataset.curves
                         if c.standard_mnemonic},
        },
        physical_validation={"passed": passed, "failed": failed},
        recommendations=recommendations,
        warnings=warnings,
        geology=context,
        geological_quality_score=geo_score,
    )
