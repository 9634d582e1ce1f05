"""Haar transform and wavelet denoising."""

import numpy as np
import pytest

from lasqc.signal.wavelet import (
    haar_forward,
    haar_inverse,
    next_power_of_two,
    soft_threshold,
    universal_threshold,
    wavelet_denoise,
)

pytestmark = [pytest.mark.unit, pytest.mark.signal]


class TestHaar:

    def test_forward_layout(self):
        coeffs = haar_forward([4.0, 2.0, 6.0, 8.0])
        # average, coarsest detail, then finest details
        assert coeffs.tolist() == [5.0, -2.0, 1.0, -1.0]

    def test_inverse_restores_signal(self):
        rng = np.random.RandomState(0)
        x = rng.normal(size=64)
        np.testing.assert_allclose(haar_inverse(haar_forward(x)), x, atol=1e-12)

    def test_non_power_of_two_rejected(self):
        with pytest.raises(ValueError, match="power-of-two"):
            haar_forward(np.ones(6))

    def test_next_power_of_two(self):
        assert [next_power_of_two(n) for n in (1, 2, 3, 8, 9)] == [1, 2, 4, 8, 16]


class TestThresholding:

    def test_soft_threshold(self):
        assert soft_threshold([-3.0, -0.5, 0.5, 2.0], 1.0).tolist() == [-2.0, 0.0, 0.0, 1.0]

    def test_universal_threshold_zero_for_tiny_input(self):
        assert universal_threshold([], 1) == 0.0


class TestWaveletDenoise:

    def test_constant_signal_unchanged(self):
        y = np.full(16, 7.0)
        np.testing.assert_allclose(wavelet_denoise(y), y)

    def test_length_and_nulls_preserved(self):
        y = np.sin(np.linspace(0, 3, 37))
        y[[4, 20]] = np.nan
        out = wavelet_denoise(y)
        assert out.shape == y.shape
        assert np.isnan(out[[4, 20]]).all()
        assert np.isfinite(np.delete(out, [4, 20])).all()

    def test_reduces_noise(self):
        rng = np.random.RandomState(5)
        clean = np.full(256, 2.0)
        noisy = clean + rng.normal(0, 0.3, clean.size)
        assert np.std(wavelet_denoise(noisy) - clean) < np.std(noisy - clean)
