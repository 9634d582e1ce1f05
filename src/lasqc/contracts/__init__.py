"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when pipeline stages don't produce
their promised invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- Stages handle data edge cases (ProcessingError family)
"""

from lasqc.contracts.failure import (
    ContractViolation,
    FailurePolicy,
    FatalFileError,
    PreconditionError,
    ProcessingError,
    SingularMatrixError,
)
from lasqc.contracts.base import require
from lasqc.contracts.dataset import assert_parsed, assert_stage_output
from lasqc.contracts.quality import assert_qc_result

__all__ = [
    "ContractViolation",
    "FailurePolicy",
    "FatalFileError",
    "PreconditionError",
    "ProcessingError",
    "SingularMatrixError",
    "require",
    "assert_parsed",
    "assert_stage_output",
    "assert_qc_result",
]
