"""Spike detectors and replacement policies."""

import numpy as np
import pytest

from lasqc.contracts import PreconditionError
from lasqc.signal.despiking import hampel, iqr_filter, modified_zscore, replace_spikes

pytestmark = [pytest.mark.unit, pytest.mark.signal]

SPIKY = [10.0, 10.0, 10.0, 10.0, 100.0, 10.0, 10.0, 10.0, 10.0]


class TestHampel:

    def test_flags_and_replaces_single_spike(self):
        result = hampel(SPIKY, window_size=5, threshold=3.0)
        assert result.spike_indices == [4]
        assert result.cleaned[4] == 10.0

    def test_clean_series_untouched(self):
        y = np.linspace(0, 1, 30)
        result = hampel(y, 5, 3.0)
        assert result.spike_indices == []
        np.testing.assert_array_equal(result.cleaned, y)

    def test_edges_not_evaluated(self):
        y = [100.0] + [10.0] * 8
        assert hampel(y, 5, 3.0).spike_indices == []

    def test_nan_never_flagged(self):
        y = list(SPIKY)
        y[2] = np.nan
        result = hampel(y, 5, 3.0)
        assert 2 not in result.spike_indices
        assert np.isnan(result.cleaned[2])

    def test_series_shorter_than_window(self):
        assert hampel([1.0, 50.0], 5, 3.0).spike_indices == []

    def test_even_window_rejected(self):
        with pytest.raises(PreconditionError):
            hampel(SPIKY, 4, 3.0)

    def test_non_positive_threshold_rejected(self):
        with pytest.raises(PreconditionError):
            hampel(SPIKY, 5, 0)


class TestGlobalDetectors:

    def test_modified_zscore(self):
        result = modified_zscore([1.0, 2.0, 3.0, 4.0, 5.0, 100.0], 3.5)
        assert result.spike_indices == [5]
        assert result.cleaned[5] == 3.5

    def test_modified_zscore_zero_mad(self):
        result = modified_zscore([5.0, 5.0, 5.0, 5.0, 6.0], 3.5)
        assert result.spike_indices == [4]

    def test_iqr_filter(self):
        y = [float(i) for i in range(1, 11)] + [100.0]
        result = iqr_filter(y, 1.5)
        assert result.spike_indices == [10]
        assert result.cleaned[10] == 6.0

    def test_all_null_series(self):
        y = [np.nan, np.nan]
        assert modified_zscore(y, 3.5).spike_indices == []
        assert iqr_filter(y, 1.5).spike_indices == []


class TestReplacement:

    def test_median_keeps_detector_output(self):
        detected = hampel(SPIKY, 5, 3.0)
        out = replace_spikes(SPIKY, detected.spike_indices, "median", detected.cleaned)
        assert out[4] == 10.0

    def test_null_blanks_samples(self):
        out = replace_spikes(SPIKY, [4], "null", SPIKY)
        assert np.isnan(out[4])
        assert np.isfinite(np.delete(out, 4)).all()

    def test_linear_interpolates_neighbors(self):
        y = [0.0, 1.0, 50.0, 3.0, 4.0]
        out = replace_spikes(y, [2], "linear", y)
        assert out[2] == pytest.approx(2.0)

    def test_pchip_uses_positions(self):
        y = [0.0, 2.0, 99.0, 6.0, 8.0]
        depth = [100.0, 101.0, 102.0, 103.0, 104.0]
        out = replace_spikes(y, [2], "pchip", y, positions=depth)
        assert out[2] == pytest.approx(4.0)

    def test_too_few_knots_falls_back_to_cleaned(self):
        y = [1.0, 50.0, 60.0]
        cleaned = [1.0, 1.0, 1.0]
        out = replace_spikes(y, [1, 2], "pchip", cleaned)
        assert out.tolist() == cleaned

    def test_no_spikes_is_copy(self):
        y = np.array([1.0, 2.0])
        out = replace_spikes(y, [], "null", y)
        assert out is not y
        assert out.tolist() == [1.0, 2.0]

    def test_unknown_method(self):
        with pytest.raises(PreconditionError):
            replace_spikes(SPIKY, [4], "spline", SPIKY)
