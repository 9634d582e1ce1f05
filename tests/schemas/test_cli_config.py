"""CLIConfig operational overrides."""

import pytest
from pydantic import ValidationError

from lasqc.schemas import CLIConfig, ParamConfig, UserConfig
from lasqc.schemas.resolve import resolve_config

pytestmark = [pytest.mark.unit]


class TestCLIConfig:

    def test_defaults_produce_no_overrides(self):
        assert CLIConfig().to_internal_overrides() == {}

    def test_no_netcdf_flag(self):
        overrides = CLIConfig(no_netcdf=True).to_internal_overrides()
        assert overrides == {"output": {"save_netcdf": False}}

    def test_log_level(self):
        config = resolve_config(ParamConfig(), None, CLIConfig(log_level="DEBUG"))
        assert config.logging.level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            CLIConfig(log_level="LOUD")

    def test_zero_workers_rejected(self):
        with pytest.raises(ValidationError):
            CLIConfig(workers=0)

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            CLIConfig(well_name="WELL_A")

    def test_cli_output_dir_wins(self):
        user = UserConfig(OUTPUT_DIR="/user/out")
        cli = CLIConfig(output_dir="/cli/out")
        config = resolve_config(ParamConfig(), user, cli)
        assert config.output_dir == "/cli/out"

    def test_cli_workers_override_user(self):
        config = resolve_config(ParamConfig(), UserConfig(WORKERS=2), CLIConfig(workers=6))
        assert config.pipeline.workers == 6
