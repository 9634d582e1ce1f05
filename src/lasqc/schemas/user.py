"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., WINDOW_SIZE -> denoise.window_size,
SPIKE_THRESHOLD -> despike.threshold).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Unknown keys are ignored.
"""

from typing import Optional, Any
from pydantic import Field, field_validator
from lasqc.schemas.base import LasqcBaseModel


def _lower(v):
    if isinstance(v, str):
        return v.lower().strip()
    return v


class UserDenoiseConfig(LasqcBaseModel):
    """User-facing denoise config."""
    enabled: Optional[bool] = None
    method: Optional[str] = None
    window_size: Optional[int] = None
    polynomial_order: Optional[int] = None
    strength: Optional[float] = None
    preserve_spikes: Optional[bool] = None
    failure_policy: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        return _lower(v)


class UserDespikeConfig(LasqcBaseModel):
    """User-facing despike config."""
    enabled: Optional[bool] = None
    method: Optional[str] = None
    threshold: Optional[float] = None
    window_size: Optional[int] = None
    replacement_method: Optional[str] = None
    failure_policy: Optional[str] = None

    @field_validator("method", "replacement_method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        return _lower(v)


class UserBaselineConfig(LasqcBaseModel):
    """User-facing baseline config."""
    enabled: Optional[bool] = None
    polynomial_order: Optional[int] = None
    failure_policy: Optional[str] = None


class UserMnemonicConfig(LasqcBaseModel):
    """User-facing mnemonic standardization config."""
    enabled: Optional[bool] = None
    standard: Optional[str] = None
    preserve_original: Optional[bool] = None
    custom_mappings: Optional[dict[str, str]] = None


class UserConfig(LasqcBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            INPUT_DIR="/data/wells",
            DENOISE_METHOD="wavelet",
            SPIKE_THRESHOLD=3,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Operational settings
    input_dir: Optional[str] = Field(None, alias="INPUT_DIR")
    output_dir: Optional[str] = Field(None, alias="OUTPUT_DIR")
    workers: Optional[int] = Field(None, alias="WORKERS")

    # Denoise (flat aliases)
    denoise_method: Optional[str] = Field(None, alias="DENOISE_METHOD")
    window_size: Optional[int] = Field(None, alias="WINDOW_SIZE")
    polynomial_order: Optional[int] = Field(None, alias="POLYNOMIAL_ORDER")
    strength: Optional[float] = Field(None, alias="STRENGTH")

    # Despike (flat aliases)
    despike_method: Optional[str] = Field(None, alias="DESPIKE_METHOD")
    spike_threshold: Optional[float] = Field(None, alias="SPIKE_THRESHOLD")
    spike_window: Optional[int] = Field(None, alias="SPIKE_WINDOW")
    replacement_method: Optional[str] = Field(None, alias="REPLACEMENT_METHOD")

    # Baseline / mnemonics (flat aliases)
    baseline_correction: Optional[bool] = Field(None, alias="BASELINE_CORRECTION")
    mnemonic_standard: Optional[str] = Field(None, alias="MNEMONIC_STANDARD")

    # Geology (flat aliases)
    geological_analysis: Optional[bool] = Field(None, alias="GEOLOGICAL_ANALYSIS")
    adapt_to_formation: Optional[bool] = Field(None, alias="ADAPT_TO_FORMATION")

    # Per-curve failure handling for every data stage (skip_curve | fail_fast)
    curve_failure_policy: Optional[str] = Field(None, alias="CURVE_FAILURE_POLICY")

    # Certification
    signing_key: Optional[str] = Field(None, alias="SIGNING_KEY")

    # Nested overrides (advanced users)
    denoise: Optional[UserDenoiseConfig] = None
    despike: Optional[UserDespikeConfig] = None
    baseline: Optional[UserBaselineConfig] = None
    mnemonics: Optional[UserMnemonicConfig] = None
    validation: Optional[dict[str, Any]] = None
    quality: Optional[dict[str, Any]] = None
    geology: Optional[dict[str, Any]] = None
    output: Optional[dict[str, Any]] = None

    model_config = LasqcBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("strength", "spike_threshold", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if v is not None:
            return float(v)
        return v

    @field_validator(
        "denoise_method", "despike_method", "replacement_method", "mnemonic_standard",
        "curve_failure_policy",
        mode="before",
    )
    @classmethod
    def normalize_method_names(cls, v):
        return _lower(v)

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.input_dir is not None:
            overrides["input_dir"] = str(self.input_dir)
        if self.output_dir is not None:
            overrides["output_dir"] = str(self.output_dir)
        if self.workers is not None:
            overrides["pipeline"] = {"workers": self.workers}

        denoise = {}
        if self.denoise_method is not None:
            denoise["method"] = self.denoise_method
        if self.window_size is not None:
            denoise["window_size"] = self.window_size
        if self.polynomial_order is not None:
            denoise["polynomial_order"] = self.polynomial_order
        if self.strength is not None:
            denoise["strength"] = self.strength
        if self.curve_failure_policy is not None:
            denoise["failure_policy"] = self.curve_failure_policy
        if self.denoise is not None:
            denoise.update(self.denoise.model_dump(exclude_none=True))
        if denoise:
            overrides["denoise"] = denoise

        despike = {}
        if self.despike_method is not None:
            despike["method"] = self.despike_method
        if self.spike_threshold is not None:
            despike["threshold"] = self.spike_threshold
        if self.spike_window is not None:
            despike["window_size"] = self.spike_window
        if self.replacement_method is not None:
            despike["replacement_method"] = self.replacement_method
        if self.curve_failure_policy is not None:
            despike["failure_policy"] = self.curve_failure_policy
        if self.despike is not None:
            despike.update(self.despike.model_dump(exclude_none=True))
        if despike:
            overrides["despike"] = despike

        baseline = {}
        if self.baseline_correction is not None:
            baseline["enabled"] = self.baseline_correction
        if self.curve_failure_policy is not None:
            baseline["failure_policy"] = self.curve_failure_policy
        if self.baseline is not None:
            baseline.update(self.baseline.model_dump(exclude_none=True))
        if baseline:
            overrides["baseline"] = baseline

        mnemonics = {}
        if self.mnemonic_standard is not None:
            mnemonics["standard"] = self.mnemonic_standard
        if self.mnemonics is not None:
            mnemonics.update(self.mnemonics.model_dump(exclude_none=True))
        if mnemonics:
            overrides["mnemonics"] = mnemonics

        if self.signing_key is not None:
            overrides["certification"] = {
                "algorithm": "hmac-sha256",
                "signing_key": self.signing_key,
            }

        geology = {}
        if self.geological_analysis is not None:
            geology["enabled"] = self.geological_analysis
        if self.adapt_to_formation is not None:
            geology["adapt_parameters"] = self.adapt_to_formation
        if self.geology:
            geology.update(self.geology)
        if geology:
            overrides["geology"] = geology

        for section in ("validation", "quality", "output"):
            value = getattr(self, section)
            if value:
                overrides[section] = dict(value)

        return overrides
