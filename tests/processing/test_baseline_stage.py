"""Baseline correction stage."""

import importlib

import numpy as np
import pytest

from lasqc.contracts import SingularMatrixError
from lasqc.processing import baseline_correction
from tests.helpers.fake_dataset import make_dataset

pytestmark = [pytest.mark.unit, pytest.mark.signal]


def test_linear_drift_removed():
    drift = [10.0 + 0.5 * i for i in range(25)]
    ds = make_dataset({"GR": drift})
    result = baseline_correction(ds, {"polynomial_order": 1})

    assert result.success
    np.testing.assert_allclose(result.data.values("GR"), 0.0, atol=1e-9)
    assert result.metrics["GR"]["order"] == 1
    assert result.metrics["GR"]["trend_range"] == pytest.approx(12.0)


def test_too_few_points_skipped_not_error():
    ds = make_dataset({"GR": [1.0, 2.0, None, None], "NPHI": [0.1, 0.2, 0.3, 0.4]})
    result = baseline_correction(ds, {"polynomial_order": 2})

    assert result.success
    assert result.skipped == ["GR"]
    assert "NPHI" in result.metrics
    np.testing.assert_array_equal(result.data.values("GR")[:2], [1.0, 2.0])


def test_nulls_stay_null():
    gr = [float(i) for i in range(10)]
    gr[4] = None
    result = baseline_correction(make_dataset({"GR": gr}), {"polynomial_order": 1})
    assert np.isnan(result.data.values("GR")[4])


class TestSingularFit:
    """A singular least-squares fit only costs the curve it happened on."""

    @pytest.fixture
    def singular_for_porosity(self, monkeypatch):
        baseline_module = importlib.import_module("lasqc.processing.baseline")
        real_trend = baseline_module.polynomial_trend

        def trend(values, order):
            # porosity is the only fractional curve in these datasets
            if np.nanmax(values) < 1.0:
                raise SingularMatrixError("pivot 3.1e-15 below tolerance")
            return real_trend(values, order)

        monkeypatch.setattr(baseline_module, "polynomial_trend", trend)

    def test_failed_curve_keeps_values(self, singular_for_porosity):
        drift = [10.0 + 0.5 * i for i in range(25)]
        nphi = [0.2 + 0.001 * i for i in range(25)]
        ds = make_dataset({"GR": drift, "NPHI": nphi})
        result = baseline_correction(ds, {"polynomial_order": 1})

        assert result.success is False
        assert result.errors == ["baseline_correction NPHI: pivot 3.1e-15 below tolerance"]
        assert result.skipped == []
        np.testing.assert_array_equal(result.data.values("NPHI"), ds.values("NPHI"))
        assert "NPHI" not in result.metrics

    def test_other_curves_still_corrected(self, singular_for_porosity):
        drift = [10.0 + 0.5 * i for i in range(25)]
        ds = make_dataset({"GR": drift, "NPHI": [0.2] * 25, "RHOB": [2.4 + 0.01 * i for i in range(25)]})
        result = baseline_correction(ds, {"polynomial_order": 1})

        assert len(result.errors) == 1
        assert set(result.metrics) == {"GR", "RHOB"}
        np.testing.assert_allclose(result.data.values("GR"), 0.0, atol=1e-9)
        np.testing.assert_allclose(result.data.values("RHOB"), 0.0, atol=1e-9)

    def test_fail_fast_policy_raises(self, singular_for_porosity):
        ds = make_dataset({"GR": [float(i) for i in range(10)], "NPHI": [0.2] * 10})
        with pytest.raises(SingularMatrixError):
            baseline_correction(ds, {"polynomial_order": 1, "failure_policy": "fail_fast"})
