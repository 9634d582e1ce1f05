"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: input/output directories, worker count, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import Field
from lasqc.schemas.base import LasqcBaseModel


class CLIConfig(LasqcBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(input_dir="/data/wells", workers=4)
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
    workers: Optional[int] = Field(None, ge=1)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    no_netcdf: bool = False

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

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
        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}
        if self.no_netcdf:
            overrides["output"] = {"save_netcdf": False}

        return overrides
