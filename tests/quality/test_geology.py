"""Lithology inference, cross-curve validation and formation adaptation."""

import numpy as np
import pytest

from lasqc.quality.geology import (
    GeologicalContext,
    LithologyResult,
    CrossCurveValidation,
    adapt_to_formation,
    analyze_geology,
    cross_curve_validation,
    formation_parameters,
    formation_quality,
    geological_quality_score,
    infer_lithology,
    neutron_density_separation,
)
from lasqc.quality.qc import compute_quality
from lasqc.schemas.param import (
    DenoiseConfig,
    DespikeConfig,
    GeologyConfig,
    QualityConfig,
    ValidationConfig,
)
from tests.helpers.fake_dataset import make_dataset

pytestmark = [pytest.mark.unit, pytest.mark.quality]

N = 20


def shale_log():
    return make_dataset({
        "GR": [120.0] * N,
        "NPHI": [0.40] * N,
        "RHOB": [2.30] * N,
        "RT": [5.0] * N,
    })


def limestone_log():
    return make_dataset({
        "GR": [20.0] * N,
        "PEF": [5.0] * N,
        "NPHI": [0.10] * N,
        "RHOB": [2.55] * N,
    })


@pytest.fixture
def formations():
    return GeologyConfig().formations


class TestNeutronDensitySeparation:

    def test_clean_sand_has_no_separation(self):
        # density porosity of 2.32 g/cc on a quartz matrix is 0.2
        assert neutron_density_separation([0.2, 0.2], [2.32, 2.32]) == pytest.approx(0.0)

    def test_uses_rows_where_both_logs_are_valid(self):
        nphi = [0.2, np.nan, 0.5]
        rhob = [2.32, 2.32, np.nan]
        assert neutron_density_separation(nphi, rhob) == pytest.approx(0.0)

    def test_no_shared_rows(self):
        assert neutron_density_separation([0.2, np.nan], [np.nan, 2.3]) is None


class TestInferLithology:

    def test_shale(self):
        result = infer_lithology(shale_log())

        # GR 30 + separation 25 + low RHOB 20 + low RT 15
        assert result.type == "shale"
        assert result.scores["shale"] == 90
        assert result.confidence == 100
        assert result.gamma_ray_character == "High"
        assert result.mineralogy == ["Clay minerals"]
        assert result.neutron_density_separation == pytest.approx(0.40 - 0.35 / 1.65)
        assert "High confidence lithology identification" in result.indicators

    def test_limestone(self):
        result = infer_lithology(limestone_log())

        assert result.type == "limestone"
        assert result.scores == {"shale": 0, "sandstone": 15, "limestone": 75, "dolomite": 35}
        assert result.confidence == 100
        assert result.mineralogy == ["Calcite"]
        assert result.photoelectric_factor == pytest.approx(5.0)

    def test_moderate_gamma_ray_alone_is_low_confidence_sandstone(self):
        result = infer_lithology(make_dataset({"GR": [60.0] * N}))

        assert result.type == "sandstone"
        assert result.confidence == 50
        assert result.gamma_ray_character == "Moderate"
        assert result.indicators[-1] == "Low confidence - mixed or transitional lithology"

    def test_ties_go_to_first_lithology(self):
        # low GR scores limestone and dolomite equally
        result = infer_lithology(make_dataset({"GR": [20.0] * N}))
        assert result.type == "limestone"
        assert result.confidence == 20

    def test_no_lithology_logs(self):
        result = infer_lithology(make_dataset({"CALI": [8.5] * N}))

        assert result.type == "unknown"
        assert result.confidence == 0
        assert result.indicators == ["Insufficient data for analysis"]
        assert result.mineralogy == ["Mixed mineralogy"]

    def test_all_null_gamma_ray(self):
        result = infer_lithology(make_dataset({"GR": [None] * N}))
        assert result.type == "unknown"
        assert result.gamma_ray_character is None

    def test_matches_standard_mnemonic(self):
        ds = make_dataset({"GAMMA": [120.0] * N})
        ds = ds.with_curves([ds.curve("GAMMA").model_copy(update={"standard_mnemonic": "GR"})])
        assert infer_lithology(ds).type == "shale"


class TestCrossCurveValidation:

    def test_consistent_limestone(self, formations):
        ds = limestone_log()
        validation = cross_curve_validation(ds, infer_lithology(ds), formations)

        sep = abs(0.10 - 0.10 / 1.65)
        assert validation.neutron_density_consistency == pytest.approx(100 - abs(sep - 0.02) * 500)
        assert validation.gamma_ray_lithology_match == 100
        assert validation.photoelectric_factor_match == 100
        # constant logs have no defined correlation (r = 0); -0.7 expected
        assert validation.porosity_density_relationship == pytest.approx(30.0)
        assert [f.type for f in validation.flags] == ["info"]

    def test_gamma_ray_outside_formation_range(self, formations):
        ds = make_dataset({"GR": [150.0] * N})
        lithology = LithologyResult(type="dolomite", confidence=80)
        validation = cross_curve_validation(ds, lithology, formations)

        # dolomite GR range 5-60, midpoint 32.5
        assert validation.gamma_ray_lithology_match == 0.0
        assert validation.overall_consistency == pytest.approx(75.0)
        assert validation.flags[0].curve == "GR"
        assert "outside expected range for dolomite" in validation.flags[0].message

    def test_pef_mismatch(self, formations):
        ds = make_dataset({"PEF": [2.0] * N})
        lithology = LithologyResult(type="limestone", confidence=80)
        validation = cross_curve_validation(ds, lithology, formations)

        assert validation.photoelectric_factor_match == pytest.approx(100 - 3.0 * 20)
        assert validation.flags[0].curve == "PEF"

    def test_no_logs_is_fully_consistent(self, formations):
        ds = make_dataset({"CALI": [8.5] * N})
        validation = cross_curve_validation(ds, infer_lithology(ds), formations)
        assert validation.overall_consistency == 100
        assert validation.flags == []


class TestFormationScoring:

    @pytest.mark.parametrize("confidence,consistency,expected", [
        (100, 70, "excellent"),
        (80, 60, "good"),
        (50, 60, "fair"),
        (20, 60, "poor"),
    ])
    def test_formation_quality(self, confidence, consistency, expected):
        assert formation_quality(confidence, consistency) == expected

    def _context(self, confidence, consistency):
        return GeologicalContext(
            lithology=LithologyResult(type="sandstone", confidence=confidence),
            validation=CrossCurveValidation(overall_consistency=consistency),
            formation_quality="good",
            geological_consistency=consistency,
        )

    def test_consistent_formation_earns_bonus(self):
        assert geological_quality_score(70, self._context(80, 90)) == pytest.approx(78.0)

    def test_inconsistent_formation_is_penalized(self):
        assert geological_quality_score(70, self._context(30, 40)) == pytest.approx(58.0)

    def test_score_is_clamped(self):
        assert geological_quality_score(99, self._context(100, 95)) == 100.0
        assert geological_quality_score(3, self._context(0, 10)) == 0.0

    def test_untabulated_lithology_falls_back_to_unknown(self, formations):
        assert formation_parameters("granite", formations) is formations["unknown"]


class TestAnalyzeGeology:

    def test_context_and_recommendations(self):
        context = analyze_geology(shale_log(), GeologyConfig())

        assert context.lithology.type == "shale"
        assert context.geological_consistency == context.validation.overall_consistency
        assert context.recommendations[:3] == [
            "Use shale-specific processing parameters",
            "Apply Hampel threshold of 2.0 for optimal spike detection",
            "Use Savitzky-Golay window size of 15 for formation-appropriate smoothing",
        ]

    def test_mixed_lithology_recommendation(self):
        context = analyze_geology(make_dataset({"GR": [60.0] * N}), GeologyConfig())
        assert "Mixed lithology detected - consider interval-specific analysis" in context.recommendations

    def test_custom_formation_table(self):
        formations = {k: v.model_dump() for k, v in GeologyConfig().formations.items()}
        formations["shale"]["hampel_threshold"] = 1.8
        context = analyze_geology(shale_log(), GeologyConfig(formations=formations))
        assert "Apply Hampel threshold of 1.8 for optimal spike detection" in context.recommendations


class TestComputeQualityGeology:

    def test_without_geology_config(self):
        qc = compute_quality(shale_log(), QualityConfig(), ValidationConfig())
        assert qc.geology is None
        assert qc.geological_quality_score is None

    def test_geology_attached(self):
        qc = compute_quality(shale_log(), QualityConfig(), ValidationConfig(), GeologyConfig())

        assert qc.geology.lithology.type == "shale"
        assert qc.geological_quality_score == pytest.approx(
            geological_quality_score(qc.overall_quality_score, qc.geology)
        )
        messages = [r["message"] for r in qc.recommendations]
        assert "Use shale-specific processing parameters" in messages

    def test_disabled_geology(self):
        qc = compute_quality(shale_log(), QualityConfig(), ValidationConfig(),
                             GeologyConfig(enabled=False))
        assert qc.geology is None


class TestAdaptToFormation:

    def _context(self, lithology, confidence):
        return GeologicalContext(
            lithology=LithologyResult(type=lithology, confidence=confidence),
            validation=CrossCurveValidation(),
            formation_quality="good",
            geological_consistency=100.0,
        )

    def test_confident_limestone(self):
        denoise, despike = adapt_to_formation(
            DenoiseConfig(), DespikeConfig(), self._context("limestone", 90), GeologyConfig()
        )
        assert (denoise.window_size, denoise.polynomial_order) == (7, 2)
        assert despike.threshold == 3.2

    def test_low_confidence_keeps_options(self):
        denoise, despike = DenoiseConfig(), DespikeConfig()
        adapted = adapt_to_formation(denoise, despike, self._context("shale", 40), GeologyConfig())
        assert adapted == (denoise, despike)

    def test_unknown_keeps_options(self):
        denoise, despike = DenoiseConfig(), DespikeConfig()
        adapted = adapt_to_formation(denoise, despike, self._context("unknown", 100), GeologyConfig())
        assert adapted == (denoise, despike)

    def test_other_methods_untouched(self):
        denoise, despike = adapt_to_formation(
            DenoiseConfig(method="gaussian", window_size=5),
            DespikeConfig(method="iqr", threshold=1.5),
            self._context("shale", 100),
            GeologyConfig(),
        )
        assert denoise.window_size == 5
        assert despike.threshold == 1.5


class TestGeologyConfig:

    def test_defaults_cover_every_lithology(self):
        assert set(GeologyConfig().formations) == {
            "shale", "sandstone", "limestone", "dolomite", "unknown",
        }

    def test_unknown_entry_required(self):
        formations = {k: v.model_dump() for k, v in GeologyConfig().formations.items()
                      if k != "unknown"}
        with pytest.raises(ValueError, match="unknown"):
            GeologyConfig(formations=formations)

    def test_even_window_rejected(self):
        formations = {k: v.model_dump() for k, v in GeologyConfig().formations.items()}
        formations["shale"]["sg_window"] = 14
        with pytest.raises(ValueError, match="odd"):
            GeologyConfig(formations=formations)
