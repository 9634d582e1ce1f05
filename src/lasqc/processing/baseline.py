"""Baseline (polynomial detrend) correction stage."""

import logging
from dataclasses import dataclass, field

import numpy as np

from lasqc.contracts.failure import PreconditionError, SingularMatrixError
from lasqc.processing.common import coerce_options, record_curve_error
from lasqc.schemas.param import BaselineConfig
from lasqc.signal.baseline import polynomial_trend

__all__ = ["BaselineResult", "baseline_correction"]

logger = logging.getLogger(__name__)


@dataclass
class BaselineResult:
    success: bool
    data: object
    metrics: dict = field(default_factory=dict)
    skipped: list = field(default_factory=list)
    errors: list = field(default_factory=list)


def baseline_correction(dataset, options=None) -> BaselineResult:
    """Subtract a fitted polynomial trend from every log curve.

    Curves with fewer than ``polynomial_order + 1`` valid samples are
    skipped and listed in ``skipped``; a singular fit is an error for that
    curve only.
    """
    options = coerce_options(options, BaselineConfig)
    order = options.polynomial_order
    updates, metrics, skipped, errors = {}, {}, [], []

    for curve in dataset.curves:
        mnemonic = curve.mnemonic
        values = dataset.values(mnemonic)
        try:
            trend, coeffs = polynomial_trend(values, order)
        except PreconditionError as e:
            logger.info("Baseline skipped %s: %s", mnemonic, e)
            skipped.append(mnemonic)
            continue
        except SingularMatrixError as e:
            record_curve_error(options.failure_policy, "baseline_correction", mnemonic, e, errors)
            continue

        updates[mnemonic] = values - trend
        metrics[mnemonic] = {
            "order": order,
            "coefficients": [float(c) for c in coeffs],
            "trend_range": float(np.nanmax(trend) - np.nanmin(trend)),
        }

    return BaselineResult(
        success=not errors,
        data=dataset.with_values(updates),
        metrics=metrics,
        skipped=skipped,
        errors=errors,
    )
