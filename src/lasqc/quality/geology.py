"""Lithology inference and formation-aware quality adjustment.

The dominant lithology is scored from the mean response of the
lithology-sensitive logs:

- GR (clay content)
- PEF (matrix mineralogy)
- neutron-density separation and RHOB (clay versus clean carbonate)
- RT (conductive clay versus tight formation)

Each indicator adds points to the lithologies it favours. The best score,
plus its lead over the runner-up, is the confidence. Cross-curve checks
then compare the observed responses with what the inferred formation
should look like, and the result nudges the QC score up or down.

Curves are matched by standard mnemonic when one is known, otherwise by
their own mnemonic.
"""

import logging
from typing import Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from lasqc.quality.scoring import pearson_correlation

__all__ = [
    "LITHOLOGIES",
    "LithologyResult",
    "ValidationFlag",
    "CrossCurveValidation",
    "GeologicalContext",
    "neutron_density_separation",
    "infer_lithology",
    "formation_parameters",
    "cross_curve_validation",
    "formation_quality",
    "analyze_geology",
    "geological_quality_score",
    "adapt_to_formation",
]

logger = logging.getLogger(__name__)

# Tie-break order when two lithologies share the best score.
LITHOLOGIES = ("shale", "sandstone", "limestone", "dolomite")

# Quartz matrix, fresh water
MATRIX_DENSITY = 2.65
FLUID_DENSITY = 1.0


class LithologyResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    confidence: float
    scores: dict[str, float] = Field(default_factory=dict)
    indicators: list[str] = Field(default_factory=list)
    neutron_density_separation: Optional[float] = None
    gamma_ray_character: Optional[str] = None
    photoelectric_factor: Optional[float] = None
    porosity: Optional[float] = None
    mineralogy: list[str] = Field(default_factory=list)


class ValidationFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    curve: str
    message: str


class CrossCurveValidation(BaseModel):
    """Agreement (0-100 each) between the logs and the inferred formation."""
    model_config = ConfigDict(frozen=True)

    neutron_density_consistency: float = 100.0
    gamma_ray_lithology_match: float = 100.0
    porosity_density_relationship: float = 100.0
    photoelectric_factor_match: float = 100.0
    overall_consistency: float = 100.0
    flags: list[ValidationFlag] = Field(default_factory=list)


class GeologicalContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    lithology: LithologyResult
    validation: CrossCurveValidation
    formation_quality: str
    geological_consistency: float
    recommendations: list[str] = Field(default_factory=list)


def _curve_values(dataset, name):
    for curve in dataset.curves:
        if (curve.standard_mnemonic or curve.mnemonic).upper() == name:
            return dataset.values(curve.mnemonic)
    for curve in dataset.curves:
        if curve.mnemonic.upper() == name:
            return dataset.values(curve.mnemonic)
    return None


def _mean(values) -> Optional[float]:
    if values is None:
        return None
    v = np.asarray(values, dtype=float)
    v = v[np.isfinite(v)]
    return float(v.mean()) if v.size else None


def neutron_density_separation(nphi, rhob) -> Optional[float]:
    """Mean ``|NPHI - density porosity|`` over rows where both logs are valid.

    Density porosity assumes a quartz matrix and fresh water. Returns None
    when the two logs share no valid row.
    """
    nphi = np.asarray(nphi, dtype=float)
    rhob = np.asarray(rhob, dtype=float)
    both = np.isfinite(nphi) & np.isfinite(rhob)
    if not both.any():
        return None
    density_porosity = (MATRIX_DENSITY - rhob[both]) / (MATRIX_DENSITY - FLUID_DENSITY)
    return float(np.mean(np.abs(nphi[both] - density_porosity)))


def _mineralogy(pef, gr):
    minerals = []
    if pef is not None:
        if 4.5 <= pef <= 5.5:
            minerals.append("Calcite")
        if 2.8 <= pef <= 3.2:
            minerals.append("Dolomite")
        if 1.8 <= pef <= 2.2:
            minerals.append("Quartz")
    if gr is not None and gr > 80:
        minerals.append("Clay minerals")
    if pef is not None and pef > 5.5:
        minerals.append("Heavy minerals")
    return minerals or ["Mixed mineralogy"]


def _gamma_character(gr):
    if gr is None:
        return None
    if gr > 80:
        return "High"
    if gr < 40:
        return "Low"
    return "Moderate"


def infer_lithology(dataset) -> LithologyResult:
    """Score each lithology from mean log responses and pick the best.

    Returns ``unknown`` with zero confidence when no indicator fires,
    e.g. when none of GR, PEF, NPHI/RHOB or RT carries valid samples.
    """
    logs = {name: _curve_values(dataset, name) for name in ("GR", "NPHI", "RHOB", "PEF", "RT")}
    gr, nphi, rhob, pef, rt = (_mean(logs[n]) for n in ("GR", "NPHI", "RHOB", "PEF", "RT"))

    scores = dict.fromkeys(LITHOLOGIES, 0.0)
    indicators = []

    if gr is not None:
        if gr > 80:
            scores["shale"] += 30
            indicators.append(f"High gamma ray ({gr:.1f} API) suggests clay content")
        elif gr < 40:
            scores["limestone"] += 20
            scores["dolomite"] += 20
            scores["sandstone"] += 15
            indicators.append(f"Low gamma ray ({gr:.1f} API) suggests clean formation")
        else:
            scores["sandstone"] += 25
            indicators.append(f"Moderate gamma ray ({gr:.1f} API) suggests sandy formation")

    if pef is not None:
        if 4.5 <= pef <= 5.5:
            scores["limestone"] += 35
            indicators.append(f"PEF ~{pef:.1f} indicates calcite mineralogy")
        elif 2.8 <= pef <= 3.2:
            scores["dolomite"] += 30
            indicators.append(f"PEF ~{pef:.1f} indicates dolomite mineralogy")
        elif 1.8 <= pef <= 2.2:
            scores["sandstone"] += 30
            indicators.append(f"PEF ~{pef:.1f} indicates quartz mineralogy")
        elif 2.8 <= pef <= 3.5:
            scores["shale"] += 25
            indicators.append(f"PEF ~{pef:.1f} suggests clay minerals")

    separation = None
    if nphi is not None and rhob is not None:
        separation = neutron_density_separation(logs["NPHI"], logs["RHOB"])
        if separation is not None:
            if separation > 0.15:
                scores["shale"] += 25
                indicators.append(
                    f"Large neutron-density separation ({separation:.3f}) indicates clay"
                )
            elif separation < 0.05:
                scores["limestone"] += 20
                scores["dolomite"] += 15
                indicators.append("Small neutron-density separation indicates clean carbonate")

        if rhob > 2.7:
            scores["dolomite"] += 20
            scores["limestone"] += 15
            indicators.append(f"High bulk density ({rhob:.2f} g/cm3) suggests carbonate")
        elif rhob < 2.4:
            scores["shale"] += 20
            indicators.append(f"Low bulk density ({rhob:.2f} g/cm3) suggests clay content")

    if rt is not None:
        if rt < 10:
            scores["shale"] += 15
            indicators.append("Low resistivity suggests conductive clay minerals")
        elif rt > 100:
            scores["limestone"] += 10
            scores["dolomite"] += 15
            scores["sandstone"] += 10
            indicators.append("High resistivity suggests clean, tight formation")

    common = dict(
        scores=scores,
        neutron_density_separation=separation,
        gamma_ray_character=_gamma_character(gr),
        photoelectric_factor=pef,
        porosity=nphi,
        mineralogy=_mineralogy(pef, gr),
    )
    best = max(LITHOLOGIES, key=lambda name: scores[name])
    if scores[best] == 0:
        return LithologyResult(
            type="unknown", confidence=0.0,
            indicators=["Insufficient data for analysis"], **common,
        )

    ranked = sorted(scores.values(), reverse=True)
    confidence = float(round(min(100.0, ranked[0] + (ranked[0] - ranked[1]))))
    if confidence > 80:
        indicators.append("High confidence lithology identification")
    elif confidence > 60:
        indicators.append("Moderate confidence lithology identification")
    else:
        indicators.append("Low confidence - mixed or transitional lithology")

    return LithologyResult(type=best, confidence=confidence, indicators=indicators, **common)


def formation_parameters(lithology, formations):
    """Formation table entry for ``lithology``, ``unknown`` if untabulated."""
    return formations.get(lithology, formations["unknown"])


def _midpoint(limits):
    return (limits.min + limits.max) / 2.0


def cross_curve_validation(dataset, lithology, formations) -> CrossCurveValidation:
    """Check that the logs respond the way the inferred formation should.

    Four component scores, each 100 when the check does not apply:

    - neutron-density separation against the formation's expected value
    - GR mean inside the formation's GR range
    - NPHI-RHOB correlation against the formation's expected r
    - PEF mean inside the formation's PEF range
    """
    params = formation_parameters(lithology.type, formations)
    name = lithology.type
    flags = []
    nd = gr_match = pd_match = pef_match = 100.0

    nphi, rhob = _curve_values(dataset, "NPHI"), _curve_values(dataset, "RHOB")
    separation = None
    if nphi is not None and rhob is not None:
        separation = neutron_density_separation(nphi, rhob)
    if separation is not None:
        deviation = abs(separation - params.nd_separation)
        nd = max(0.0, 100.0 - deviation * 500.0)
        if deviation > 0.1:
            flags.append(ValidationFlag(
                type="warning", curve="NPHI-RHOB",
                message=f"Neutron-density separation ({separation:.3f}) inconsistent with {name}",
            ))

    gr = _mean(_curve_values(dataset, "GR"))
    limits = params.physical_ranges.get("GR")
    if gr is not None and limits is not None and not limits.min <= gr <= limits.max:
        gr_match = max(0.0, 100.0 - abs(gr - _midpoint(limits)))
        flags.append(ValidationFlag(
            type="warning", curve="GR",
            message=f"Gamma ray ({gr:.1f} API) outside expected range for {name}",
        ))

    if separation is not None:
        r = pearson_correlation(nphi, rhob)
        deviation = abs(r - params.porosity_density_r)
        pd_match = max(0.0, 100.0 - deviation * 100.0)
        if deviation > 0.3:
            flags.append(ValidationFlag(
                type="info", curve="NPHI-RHOB",
                message=f"Porosity-density correlation ({r:.2f}) differs from expected for {name}",
            ))

    pef = _mean(_curve_values(dataset, "PEF"))
    limits = params.physical_ranges.get("PEF")
    if pef is not None and limits is not None and not limits.min <= pef <= limits.max:
        pef_match = max(0.0, 100.0 - abs(pef - _midpoint(limits)) * 20.0)
        flags.append(ValidationFlag(
            type="warning", curve="PEF",
            message=f"Photoelectric factor ({pef:.1f}) inconsistent with {name} mineralogy",
        ))

    return CrossCurveValidation(
        neutron_density_consistency=nd,
        gamma_ray_lithology_match=gr_match,
        porosity_density_relationship=pd_match,
        photoelectric_factor_match=pef_match,
        overall_consistency=(nd + gr_match + pd_match + pef_match) / 4.0,
        flags=flags,
    )


def formation_quality(confidence, consistency) -> str:
    score = (confidence + consistency) / 2.0
    if score >= 85:
        return "excellent"
    if score >= 70:
        return "good"
    if score >= 55:
        return "fair"
    return "poor"


def _recommendations(lithology, validation, quality, params):
    recs = [
        f"Use {lithology.type}-specific processing parameters",
        f"Apply Hampel threshold of {params.hampel_threshold} for optimal spike detection",
        f"Use Savitzky-Golay window size of {params.sg_window} for formation-appropriate smoothing",
    ]
    if quality == "poor":
        recs.append("Consider additional quality control measures")
        recs.append("Review logging conditions and tool performance")
    if validation.overall_consistency < 70:
        recs.append("Investigate cross-curve inconsistencies")
        recs.append("Verify tool calibration and environmental corrections")
    if lithology.confidence < 60:
        recs.append("Mixed lithology detected - consider interval-specific analysis")
        recs.append("Additional geological information may improve interpretation")
    return recs


def analyze_geology(dataset, geology) -> GeologicalContext:
    """Infer the lithology of ``dataset`` and validate it across curves.

    Parameters
    ----------
    dataset : WellDataset
    geology : GeologyConfig

    Returns
    -------
    GeologicalContext
    """
    lithology = infer_lithology(dataset)
    validation = cross_curve_validation(dataset, lithology, geology.formations)
    quality = formation_quality(lithology.confidence, validation.overall_consistency)
    params = formation_parameters(lithology.type, geology.formations)
    logger.debug("%s: lithology %s (confidence %.0f, consistency %.1f)",
                 dataset.name, lithology.type, lithology.confidence,
                 validation.overall_consistency)
    return GeologicalContext(
        lithology=lithology,
        validation=validation,
        formation_quality=quality,
        geological_consistency=validation.overall_consistency,
        recommendations=_recommendations(lithology, validation, quality, params),
    )


def geological_quality_score(base_score, context) -> float:
    """Adjust a 0-100 QC score for geological consistency and confidence.

    +5 above 80% consistency, -10 below 50%, then ``(confidence - 50) / 10``,
    clamped to [0, 100].
    """
    score = float(base_score)
    if context.geological_consistency > 80:
        score += 5.0
    if context.geological_consistency < 50:
        score -= 10.0
    score += (context.lithology.confidence - 50.0) / 10.0
    return min(100.0, max(0.0, score))


def adapt_to_formation(denoise, despike, context, geology):
    """Denoise and despike options tuned to the inferred formation.

    The Hampel threshold replaces ``despike.threshold`` when despiking uses
    Hampel; the Savitzky-Golay window and order replace the denoise ones
    when denoising uses Savitzky-Golay. Options come back unchanged for an
    ``unknown`` lithology or one inferred below ``min_adapt_confidence``.
    """
    lithology = context.lithology
    if lithology.type == "unknown" or lithology.confidence < geology.min_adapt_confidence:
        return denoise, despike

    params = formation_parameters(lithology.type, geology.formations)
    if denoise.method == "savitzky_golay":
        denoise = denoise.model_copy(update={
            "window_size": params.sg_window,
            "polynomial_order": params.sg_polynomial,
        })
    if despike.method == "hampel":
        despike = despike.model_copy(update={"threshold": params.hampel_threshold})
    logger.info("Adapted processing to %s: Hampel threshold %.1f, SG window %d",
                lithology.type, despike.threshold, denoise.window_size)
    return denoise, despike
