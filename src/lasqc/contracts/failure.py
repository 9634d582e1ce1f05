"""Centralized failure taxonomy for the lasqc pipeline.

Contracts fail fast, loud, and once. All contract violations raise the same
exception type, allowing callers to handle pipeline bugs uniformly. Data and
parameter problems use the ProcessingError family instead, which stages catch
and convert into per-curve or per-stage error records.
"""

from enum import Enum


class FailurePolicy(str, Enum):
    """What a stage does when a single curve cannot be processed.

    FAIL_FAST: Raise immediately (contract violations always do this)
    SKIP_CURVE (default for data stages): Keep the curve's pre-stage values,
        record the error, continue with the next curve
    """
    FAIL_FAST = "fail_fast"
    SKIP_CURVE = "skip_curve"


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic, not bad user input or recoverable
    data edge cases. It means a pipeline stage did not produce the invariants
    it promised.

    Key distinction:
    - ValidationError: User/config error (handled by Pydantic)
    - ContractViolation: Pipeline bug (programmer error)
    - ProcessingError: Recoverable data issues (handled per curve or stage)
    """
    pass


class ProcessingError(Exception):
    """Base class for recoverable processing failures."""
    pass


class PreconditionError(ProcessingError, ValueError):
    """Invalid filter parameters or insufficient curve data."""
    pass


class SingularMatrixError(ProcessingError, ArithmeticError):
    """Gauss-Jordan elimination met a pivot below the singularity tolerance."""
    pass


class FatalFileError(ProcessingError):
    """File-level problem that prevents any stage from running.

    Examples: empty buffer, payload above the configured size limit,
    content the LAS reader cannot parse.
    """
    pass
