"""Helpers shared by the data stages."""

import logging

import numpy as np
from pydantic import ValidationError

from lasqc.contracts.failure import FailurePolicy, PreconditionError

logger = logging.getLogger(__name__)

MIN_VALID_POINTS = 3


def coerce_options(options, model_cls):
    """Validate stage options into their config model.

    Accepts a model instance, a plain dict, or None (defaults). Pydantic
    validation failures surface as PreconditionError so stage callers see
    one error family for bad parameters.
    """
    if isinstance(options, model_cls):
        return options
    try:
        return model_cls.model_validate(options or {})
    except ValidationError as e:
        raise PreconditionError(f"invalid {model_cls.__name__} options: {e}") from e


def valid_series(values, mnemonic, minimum=MIN_VALID_POINTS):
    """Return ``(mask, compressed)`` for a curve, enforcing a minimum count."""
    mask = np.isfinite(values)
    count = int(mask.sum())
    if count < minimum:
        raise PreconditionError(
            f"curve '{mnemonic}': need at least {minimum} valid points, got {count}"
        )
    return mask, values[mask]


def is_strictly_increasing(x) -> bool:
    x = np.asarray(x, dtype=float)
    return bool(x.size < 2 or (np.all(np.isfinite(x)) and np.all(np.diff(x) > 0)))


def record_curve_error(policy, stage, mnemonic, error, errors):
    """Apply the stage's failure policy to one curve's ProcessingError.

    ``fail_fast`` re-raises ``error``; ``skip_curve`` logs it, appends
    ``"<stage> <mnemonic>: <error>"`` to ``errors`` and lets the caller
    move on with the curve's pre-stage values.
    """
    if policy == FailurePolicy.FAIL_FAST:
        raise error
    logger.warning("%s skipped %s: %s", stage, mnemonic, error)
    errors.append(f"{stage} {mnemonic}: {error}")
