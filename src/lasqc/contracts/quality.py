"""Quality assessment contract."""

import math
from lasqc.contracts.base import require


def assert_qc_result(qc, n_rows: int, n_curves: int) -> None:
    """Enforce the QC contract.

    Raises
    ------
    ContractViolation
        If point counts disagree with the dataset shape or the overall
        score is outside 0..100.
    """
    require(
        qc.total_points == n_rows * n_curves,
        f"QC contract violated: total_points {qc.total_points} != {n_rows} * {n_curves}"
    )
    require(
        0 <= qc.null_points <= qc.total_points,
        f"QC contract violated: null_points {qc.null_points} outside 0..{qc.total_points}"
    )
    require(
        math.isfinite(qc.overall_quality_score) and 0 <= qc.overall_quality_score <= 100,
        f"QC contract violated: overall score {qc.overall_quality_score} outside 0..100"
    )
