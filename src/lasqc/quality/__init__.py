"""Quality assessment, scoring, and certification."""

from lasqc.quality.certificate import Certificate, certify, verify_certificate
from lasqc.quality.geology import GeologicalContext, LithologyResult, analyze_geology
from lasqc.quality.qc import CurveQuality, QCResults, compute_quality
from lasqc.quality.scoring import QualityMetrics, compute_quality_metrics

__all__ = [
    "Certificate",
    "certify",
    "verify_certificate",
    "GeologicalContext",
    "LithologyResult",
    "analyze_geology",
    "CurveQuality",
    "QCResults",
    "compute_quality",
    "QualityMetrics",
    "compute_quality_metrics",
]
