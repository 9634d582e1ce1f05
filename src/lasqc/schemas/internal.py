"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and every section is required (no top-level defaults).

Section models are shared with ParamConfig so that the same validators
(odd windows, polynomial order below window, ordered physical ranges) run
again on the merged result. A user or CLI override that breaks a constraint
is therefore rejected here even if each layer looked valid on its own.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Optional
from pydantic import ConfigDict
from lasqc.schemas.base import LasqcBaseModel
from lasqc.schemas.param import (
    DenoiseConfig,
    DespikeConfig,
    BaselineConfig,
    MnemonicConfig,
    ValidationConfig,
    QualityConfig,
    GeologyConfig,
    CertificationConfig,
    LimitsConfig,
    CacheConfig,
    PipelineConfig,
    OutputConfig,
    LoggingConfig,
)


class InternalConfig(LasqcBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime modules receive InternalConfig (or one of its sections) and
    access fields directly:

        def __init__(self, config: InternalConfig):
            self.window = config.denoise.window_size  # NOT .get()

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation in runtime code
    """

    input_dir: Optional[str]
    output_dir: Optional[str]
    denoise: DenoiseConfig
    despike: DespikeConfig
    baseline: BaselineConfig
    mnemonics: MnemonicConfig
    validation: ValidationConfig
    quality: QualityConfig
    geology: GeologyConfig
    certification: CertificationConfig
    limits: LimitsConfig
    cache: CacheConfig
    pipeline: PipelineConfig
    output: OutputConfig
    logging: LoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
