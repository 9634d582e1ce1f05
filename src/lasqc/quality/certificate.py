"""Quality certificates.

A certificate freezes the original and processed quality metrics of a run
together with its processing history and a signature over the canonical
JSON serialization (sorted keys, compact separators). ``certify`` is a
pure function: the same inputs always produce the same certificate.
"""

import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict

from lasqc.core.dataset import ProcessingStep
from lasqc.quality.scoring import QualityMetrics
from lasqc.schemas.param import CertificationConfig

__all__ = [
    "Certificate",
    "DEFAULT_GRADE_VALUES",
    "rolling_hash32",
    "canonical_payload",
    "sign_payload",
    "certify",
    "verify_certificate",
]

logger = logging.getLogger(__name__)

DEFAULT_GRADE_VALUES = {"A": 95.0, "B": 85.0, "C": 70.0, "D": 50.0, "F": 25.0}


class Certificate(BaseModel):
    model_config = ConfigDict(frozen=True)

    certificate_id: str
    issue_date: datetime
    las_file: str
    processor: str
    certification_level: str
    original_grade: str
    processed_grade: str
    quality_improvement: float
    confidence_level: str
    uncertainty_bounds: float
    original_metrics: QualityMetrics
    processed_metrics: QualityMetrics
    audit_trail: list[ProcessingStep]
    signature_algorithm: str
    signature: str = ""


def rolling_hash32(text: str) -> str:
    """32-bit ``h = h * 31 + c`` rolling hash, as 8 hex digits."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    return f"{h:08x}"


def canonical_payload(certificate: Certificate) -> str:
    body = certificate.model_dump(mode="json", exclude={"signature"})
    return json.dumps(body, sort_keys=True, separators=(",", ":"))


def sign_payload(payload: str, config: CertificationConfig) -> str:
    if config.algorithm == "hmac-sha256":
        return hmac.new(
            config.signing_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
        ).hexdigest()
    return rolling_hash32(payload)


def _quality_improvement(original_grade, processed_grade, grade_values):
    if original_grade == processed_grade:
        return 0.0
    before = grade_values[original_grade]
    after = grade_values[processed_grade]
    return (after - before) / before * 100.0


def certify(
    filename: str,
    original_metrics: QualityMetrics,
    processed_metrics: QualityMetrics,
    steps,
    config: Optional[CertificationConfig] = None,
    grade_values=None,
    issued_at: Optional[datetime] = None,
) -> Certificate:
    """Issue a signed certificate for a completed processing run.

    Parameters
    ----------
    filename : str
        Certified LAS file name.
    original_metrics, processed_metrics : QualityMetrics
        Scores before and after processing.
    steps : list of ProcessingStep
        Processing history; copied into the audit trail.
    config : CertificationConfig, optional
        Processor identity and signature algorithm. Defaults apply when
        omitted.
    grade_values : dict, optional
        Numeric value per grade for ``quality_improvement``.
    issued_at : datetime, optional
        Issue time. Defaults to the last step's timestamp so the result
        depends only on the inputs; the current time is used only when
        there is no history.

    Returns
    -------
    Certificate
        ``certificate_id`` is derived from the content digest.
    """
    config = config or CertificationConfig()
    grade_values = grade_values or DEFAULT_GRADE_VALUES
    steps = list(steps)
    if issued_at is None:
        issued_at = steps[-1].timestamp if steps else datetime.now(timezone.utc)

    draft = Certificate(
        certificate_id="",
        issue_date=issued_at,
        las_file=filename,
        processor=f"{config.processor_name} v{config.processor_version}",
        certification_level=config.certification_level,
        original_grade=original_metrics.overall_grade,
        processed_grade=processed_metrics.overall_grade,
        quality_improvement=_quality_improvement(
            original_metrics.overall_grade, processed_metrics.overall_grade, grade_values
        ),
        confidence_level=processed_metrics.confidence_level,
        uncertainty_bounds=processed_metrics.uncertainty_bounds,
        original_metrics=original_metrics,
        processed_metrics=processed_metrics,
        audit_trail=steps,
        signature_algorithm=config.algorithm,
    )
    digest = hashlib.sha256(canonical_payload(draft).encode("utf-8")).hexdigest()
    identified = draft.model_copy(update={
        "certificate_id": f"QC-{issued_at:%Y%m%d}-{digest[:12]}"
    })
    signed = identified.model_copy(update={
        "signature": sign_payload(canonical_payload(identified), config)
    })
    logger.info("Issued certificate %s for %s (%s -> %s)",
                signed.certificate_id, filename,
                signed.original_grade, signed.processed_grade)
    return signed


def verify_certificate(certificate: Certificate, config: Optional[CertificationConfig] = None) -> bool:
    """Recompute the signature and compare in constant time."""
    config = config or CertificationConfig()
    if certificate.signature_algorithm != config.algorithm:
        return False
    expected = sign_payload(canonical_payload(certificate), config)
    return hmac.compare_digest(expected, certificate.signature)
