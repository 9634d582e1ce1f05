"""ParamConfig: Expert defaults for the lasqc pipeline.

This module defines the complete default configuration, including the
petrophysical reference tables (physical ranges, mnemonic dictionaries,
expected cross-curve correlations, grade ladder, per-stage uncertainties).
ALL pipeline parameters must have defaults here. No runtime code should
define fallback values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from lasqc.contracts.failure import FailurePolicy
from lasqc.schemas.base import LasqcBaseModel


# =============================================================================
# Reference tables
# =============================================================================

DEFAULT_PHYSICAL_RANGES = {
    "GR": (0.0, 300.0),
    "NPHI": (-0.15, 1.0),
    "RHOB": (1.0, 3.5),
    "RT": (0.1, 10000.0),
    "CALI": (4.0, 20.0),
    "SP": (-200.0, 50.0),
    "PEF": (1.0, 10.0),
}

API_MNEMONICS = {
    "GAMMA": "GR", "GAMMA_RAY": "GR", "GRC": "GR", "SGR": "GR", "CGR": "GR",
    "NEUT": "NPHI", "NPOR": "NPHI", "TNPH": "NPHI", "PHIN": "NPHI", "NEU": "NPHI",
    "DENS": "RHOB", "RHOZ": "RHOB", "DEN": "RHOB", "ZDEN": "RHOB",
    "RILD": "RT", "ILD": "RT", "RES": "RT", "LLD": "RT", "RDEP": "RT", "AT90": "RT",
    "ILM": "RM", "RILM": "RM", "LLS": "RM",
    "MSFL": "RXO", "RXOZ": "RXO", "SFL": "RXO",
    "CAL": "CALI", "CALS": "CALI", "HCAL": "CALI", "C1": "CALI",
    "PE": "PEF", "PEFZ": "PEF",
    "SONIC": "DT", "AC": "DT", "DTC": "DT", "DTCO": "DT",
    "SPBR": "SP", "SSP": "SP",
    "DEPTH": "DEPT", "MD": "DEPT", "TVD": "DEPT",
}

CWLS_MNEMONICS = {
    "GAMMA": "GR", "SGR": "GR", "GRC": "GR",
    "TNPH": "NPHI", "NPOR": "NPHI", "NEUT": "NPHI",
    "RHOZ": "RHOB", "DENS": "RHOB", "ZDEN": "RHOB",
    "ILD": "ILD", "RILD": "ILD", "RT": "ILD",
    "ILM": "ILM", "RILM": "ILM",
    "MSFL": "MSFL", "RXO": "MSFL",
    "CAL": "CALI", "HCAL": "CALI",
    "PE": "PEF", "PEFZ": "PEF",
    "SONIC": "DT", "AC": "DT", "DTCO": "DT",
    "DEPTH": "DEPT", "MD": "DEPT",
}

DEFAULT_EXPECTED_CORRELATIONS = {
    "GR-NPHI": 0.3,
    "NPHI-RHOB": -0.7,
    "GR-RHOB": -0.4,
}

# lithology -> processing parameters, quality expectations and typical
# log response. "unknown" mirrors the generic physical ranges above.
DEFAULT_FORMATIONS = {
    "shale": {
        "hampel_threshold": 2.0, "sg_window": 15, "sg_polynomial": 3,
        "noise_level": 0.25, "spike_fraction": 0.15, "completeness": 0.90,
        "nd_separation": 0.15, "porosity_density_r": -0.6,
        "physical_ranges": {
            "GR": (80.0, 300.0), "NPHI": (0.15, 0.45), "RHOB": (2.0, 2.8),
            "PEF": (2.8, 3.5), "RT": (0.5, 50.0),
        },
        "characteristics": [
            "High gamma ray response", "Low resistivity", "High neutron porosity",
            "Low bulk density", "Photoelectric factor 2.8-3.5",
        ],
    },
    "sandstone": {
        "hampel_threshold": 2.8, "sg_window": 9, "sg_polynomial": 3,
        "noise_level": 0.15, "spike_fraction": 0.10, "completeness": 0.95,
        "nd_separation": 0.05, "porosity_density_r": -0.8,
        "physical_ranges": {
            "GR": (10.0, 100.0), "NPHI": (0.05, 0.35), "RHOB": (2.0, 2.8),
            "PEF": (1.8, 2.2), "RT": (1.0, 1000.0),
        },
        "characteristics": [
            "Low to moderate gamma ray", "Variable resistivity",
            "Quartz-dominated mineralogy", "Photoelectric factor ~1.8",
        ],
    },
    "limestone": {
        "hampel_threshold": 3.2, "sg_window": 7, "sg_polynomial": 2,
        "noise_level": 0.12, "spike_fraction": 0.20, "completeness": 0.92,
        "nd_separation": 0.02, "porosity_density_r": -0.7,
        "physical_ranges": {
            "GR": (5.0, 80.0), "NPHI": (0.0, 0.30), "RHOB": (2.3, 2.8),
            "PEF": (4.5, 5.5), "RT": (5.0, 5000.0),
        },
        "characteristics": [
            "Low gamma ray response", "High photoelectric factor (~5.0)",
            "Calcite-dominated mineralogy", "Potential fracture-related spikes",
        ],
    },
    "dolomite": {
        "hampel_threshold": 3.0, "sg_window": 9, "sg_polynomial": 3,
        "noise_level": 0.10, "spike_fraction": 0.08, "completeness": 0.95,
        "nd_separation": 0.03, "porosity_density_r": -0.75,
        "physical_ranges": {
            "GR": (5.0, 60.0), "NPHI": (0.0, 0.25), "RHOB": (2.6, 2.9),
            "PEF": (2.8, 3.2), "RT": (10.0, 8000.0),
        },
        "characteristics": [
            "Very low gamma ray", "High bulk density", "Photoelectric factor ~3.0",
            "Often high resistivity", "Dolomite-dominated mineralogy",
        ],
    },
    "unknown": {
        "hampel_threshold": 2.5, "sg_window": 11, "sg_polynomial": 3,
        "noise_level": 0.20, "spike_fraction": 0.15, "completeness": 0.90,
        "nd_separation": 0.08, "porosity_density_r": -0.6,
        "physical_ranges": {
            "GR": (0.0, 300.0), "NPHI": (-0.15, 1.0), "RHOB": (1.0, 3.5),
            "PEF": (1.0, 10.0), "RT": (0.1, 10000.0),
        },
        "characteristics": [
            "Mixed or unknown lithology", "Standard processing parameters",
            "Broad quality expectations",
        ],
    },
}

# operation -> method -> uncertainty (%). The top-level "default" entry covers
# every operation without its own row (parsing, QC, standardization...).
DEFAULT_STAGE_UNCERTAINTY = {
    "denoising": {"savitzky_golay": 3.5, "wavelet": 5.0, "default": 2.0},
    "despiking": {"hampel": 2.5, "modified_zscore": 4.0, "default": 5.5},
    "default": {"default": 2.0},
}


# =============================================================================
# Nested Configuration Models
# =============================================================================

class PhysicalRange(LasqcBaseModel):
    """Industry-expected plausibility window for one curve type."""
    min: float
    max: float

    @model_validator(mode="after")
    def check_ordering(self):
        if self.min >= self.max:
            raise ValueError(f"physical range min ({self.min}) must be below max ({self.max})")
        return self


def _default_ranges():
    return {k: PhysicalRange(min=lo, max=hi) for k, (lo, hi) in DEFAULT_PHYSICAL_RANGES.items()}


def _check_odd_window(window_size: int) -> int:
    if window_size % 2 == 0:
        raise ValueError(f"window size must be odd, got {window_size}")
    return window_size


class DenoiseConfig(LasqcBaseModel):
    """Curve smoothing configuration."""
    enabled: bool = True
    method: Literal["savitzky_golay", "wavelet", "moving_average", "gaussian"] = "savitzky_golay"
    window_size: int = Field(11, ge=3, le=21, description="Odd filter window length in samples")
    polynomial_order: int = Field(3, ge=1, description="Savitzky-Golay polynomial order")
    strength: float = Field(0.7, ge=0.0, le=1.0, description="Blend factor between original and filtered")
    preserve_spikes: bool = False
    failure_policy: FailurePolicy = FailurePolicy.SKIP_CURVE

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method_name(cls, v):
        """Normalize method names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("window_size")
    @classmethod
    def window_must_be_odd(cls, v):
        return _check_odd_window(v)

    @model_validator(mode="after")
    def order_below_window(self):
        # polynomial_order only parameterizes Savitzky-Golay
        if self.method == "savitzky_golay" and self.polynomial_order >= self.window_size:
            raise ValueError("polynomial order must be less than window size")
        return self


class DespikeConfig(LasqcBaseModel):
    """Spike detection and replacement configuration."""
    enabled: bool = True
    method: Literal["hampel", "modified_zscore", "iqr", "manual"] = "hampel"
    threshold: float = Field(2.5, gt=0, description="MAD / z-score / IQR multiplier")
    window_size: int = Field(5, ge=3, le=21)
    replacement_method: Literal["median", "pchip", "linear", "null"] = "median"
    failure_policy: FailurePolicy = FailurePolicy.SKIP_CURVE

    @field_validator("method", "replacement_method", mode="before")
    @classmethod
    def normalize_method_name(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("threshold", mode="before")
    @classmethod
    def coerce_threshold_to_float(cls, v):
        """Allow int or float for threshold."""
        return float(v)

    @field_validator("window_size")
    @classmethod
    def window_must_be_odd(cls, v):
        return _check_odd_window(v)


class BaselineConfig(LasqcBaseModel):
    """Polynomial detrending configuration."""
    enabled: bool = False
    method: Literal["polynomial"] = "polynomial"
    polynomial_order: int = Field(2, ge=0, le=6)
    failure_policy: FailurePolicy = FailurePolicy.SKIP_CURVE


class MnemonicConfig(LasqcBaseModel):
    """Mnemonic standardization configuration."""
    enabled: bool = True
    standard: Literal["api", "cwls", "custom"] = "api"
    preserve_original: bool = True
    custom_mappings: dict[str, str] = Field(default_factory=dict)
    api_table: dict[str, str] = Field(default_factory=lambda: dict(API_MNEMONICS))
    cwls_table: dict[str, str] = Field(default_factory=lambda: dict(CWLS_MNEMONICS))

    @field_validator("custom_mappings", "api_table", "cwls_table", mode="before")
    @classmethod
    def uppercase_keys(cls, v):
        """Mnemonic lookups are case-insensitive; store keys uppercased."""
        if isinstance(v, dict):
            return {str(k).upper().strip(): str(val).upper().strip() for k, val in v.items()}
        return v


class ValidationConfig(LasqcBaseModel):
    """Physical plausibility validation."""
    enabled: bool = True
    physical_ranges: dict[str, PhysicalRange] = Field(default_factory=_default_ranges)
    outlier_sigma: float = Field(3.0, gt=0, description="Sigma multiple for statistical outliers")
    depth_step_tolerance: float = Field(0.1, gt=0, lt=1.0, description="Relative depth step tolerance")


class GradeThreshold(LasqcBaseModel):
    """Minimum metric values for one letter grade (all must hold)."""
    completeness: float
    noise: float
    physical: float
    depth: float


def _default_grades():
    return {
        "A": GradeThreshold(completeness=98, noise=20, physical=95, depth=95),
        "B": GradeThreshold(completeness=90, noise=15, physical=85, depth=85),
        "C": GradeThreshold(completeness=75, noise=10, physical=70, depth=70),
        "D": GradeThreshold(completeness=50, noise=5, physical=50, depth=50),
    }


class QualityConfig(LasqcBaseModel):
    """Quality scoring configuration."""
    min_curve_points: int = Field(10, ge=2, description="Curves need more points than this to be scored")
    expected_correlations: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_EXPECTED_CORRELATIONS)
    )
    grade_thresholds: dict[str, GradeThreshold] = Field(default_factory=_default_grades)
    grade_values: dict[str, float] = Field(
        default_factory=lambda: {"A": 95.0, "B": 85.0, "C": 70.0, "D": 50.0, "F": 25.0}
    )
    high_confidence_max: float = Field(5.0, gt=0)
    medium_confidence_max: float = Field(10.0, gt=0)
    stage_uncertainty: dict[str, dict[str, float]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_STAGE_UNCERTAINTY.items()}
    )
    min_rows_warning: int = Field(100, ge=1)
    low_score_warning: float = Field(70.0, ge=0, le=100)

    @model_validator(mode="after")
    def confidence_ordering(self):
        if self.high_confidence_max > self.medium_confidence_max:
            raise ValueError("high_confidence_max must not exceed medium_confidence_max")
        return self


class FormationParams(LasqcBaseModel):
    """Processing parameters and expected log response of one lithology."""
    hampel_threshold: float = Field(gt=0)
    sg_window: int = Field(ge=3, le=21)
    sg_polynomial: int = Field(ge=1)
    noise_level: float = Field(ge=0, le=1, description="Tolerated relative noise")
    spike_fraction: float = Field(ge=0, le=1, description="Expected fraction of spiky samples")
    completeness: float = Field(ge=0, le=1)
    nd_separation: float = Field(ge=0, description="Expected neutron-density separation (v/v)")
    porosity_density_r: float = Field(ge=-1, le=1, description="Expected NPHI-RHOB Pearson r")
    physical_ranges: dict[str, PhysicalRange]
    characteristics: list[str] = Field(default_factory=list)

    @field_validator("sg_window")
    @classmethod
    def window_must_be_odd(cls, v):
        return _check_odd_window(v)

    @field_validator("physical_ranges", mode="before")
    @classmethod
    def ranges_from_pairs(cls, v):
        if isinstance(v, dict):
            return {
                str(k).upper(): ({"min": r[0], "max": r[1]} if isinstance(r, (tuple, list)) else r)
                for k, r in v.items()
            }
        return v

    @model_validator(mode="after")
    def order_below_window(self):
        if self.sg_polynomial >= self.sg_window:
            raise ValueError("sg_polynomial must be less than sg_window")
        return self


def _default_formations():
    return {name: FormationParams(**params) for name, params in DEFAULT_FORMATIONS.items()}


class GeologyConfig(LasqcBaseModel):
    """Lithology inference and formation-aware quality scoring."""
    enabled: bool = True
    adapt_parameters: bool = Field(
        False, description="Take Hampel threshold and Savitzky-Golay window from the inferred formation"
    )
    min_adapt_confidence: float = Field(60.0, ge=0, le=100)
    formations: dict[str, FormationParams] = Field(default_factory=_default_formations)

    @field_validator("formations", mode="before")
    @classmethod
    def lowercase_names(cls, v):
        if isinstance(v, dict):
            return {str(k).lower().strip(): val for k, val in v.items()}
        return v

    @model_validator(mode="after")
    def unknown_is_tabulated(self):
        if "unknown" not in self.formations:
            raise ValueError("formations must include an 'unknown' entry")
        return self


class CertificationConfig(LasqcBaseModel):
    """Certificate issuance configuration."""
    processor_name: str = "lasqc"
    processor_version: str = "1.0.0"
    certification_level: str = "Standard"
    algorithm: Literal["rolling32", "hmac-sha256"] = "rolling32"
    signing_key: Optional[str] = None

    @model_validator(mode="after")
    def hmac_needs_key(self):
        if self.algorithm == "hmac-sha256" and not self.signing_key:
            raise ValueError("hmac-sha256 signatures require signing_key")
        return self


class LimitsConfig(LasqcBaseModel):
    """File-level limits."""
    max_file_size: int = Field(104857600, ge=1, description="Maximum LAS payload in bytes")
    default_null_value: float = -999.25


class CacheConfig(LasqcBaseModel):
    """In-memory result cache."""
    ttl_seconds: float = Field(3600.0, gt=0)
    max_entries: int = Field(128, ge=1)


class PipelineConfig(LasqcBaseModel):
    """Batch pipeline settings."""
    workers: int = Field(1, ge=1, le=32)
    file_pattern: str = "*.las"
    db_filename: str = "lasqc_tracking.db"


class OutputConfig(LasqcBaseModel):
    """Output file configuration."""
    save_netcdf: bool = True
    write_report: bool = True
    write_certificate: bool = True


class LoggingConfig(LasqcBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(LasqcBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
    denoise: DenoiseConfig = Field(default_factory=DenoiseConfig)
    despike: DespikeConfig = Field(default_factory=DespikeConfig)
    baseline: BaselineConfig = Field(default_factory=BaselineConfig)
    mnemonics: MnemonicConfig = Field(default_factory=MnemonicConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    geology: GeologyConfig = Field(default_factory=GeologyConfig)
    certification: CertificationConfig = Field(default_factory=CertificationConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
