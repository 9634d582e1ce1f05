"""CLI runner: config loading, resolution and end-to-end run."""

import pytest

from lasqc.cli.run_pipeline import build_config, load_user_config_dict, run_las_pipeline
from tests.helpers.fake_las import make_las_text

pytestmark = [pytest.mark.integration]


def _write_config(path, body):
    path.write_text(f"CONFIG = {body!r}\n")
    return path


class TestLoadUserConfig:

    def test_loads_config_dict(self, temp_dir):
        path = _write_config(temp_dir / "cfg.py", {"WINDOW_SIZE": 7})
        assert load_user_config_dict(path) == {"WINDOW_SIZE": 7}

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_user_config_dict(temp_dir / "nope.py")

    def test_no_config_dict(self, temp_dir):
        path = temp_dir / "cfg.py"
        path.write_text("SETTINGS = 1\n")
        with pytest.raises(ValueError, match="No CONFIG dict"):
            load_user_config_dict(path)


class TestBuildConfig:

    def test_cli_args_win(self):
        config = build_config({"WORKERS": 2}, {"workers": 5, "input_dir": None})
        assert config.pipeline.workers == 5

    def test_verbose_sets_debug(self):
        assert build_config(None, None, verbose=True).logging.level == "DEBUG"


def test_run_las_pipeline_end_to_end(temp_dir, restore_logging):
    las_dir = temp_dir / "las"
    las_dir.mkdir()
    (las_dir / "WELL_A.las").write_text(make_las_text(n=120))
    out_dir = temp_dir / "out"
    config_path = _write_config(
        temp_dir / "cfg.py",
        {"INPUT_DIR": str(las_dir), "OUTPUT_DIR": str(out_dir)},
    )

    summary = run_las_pipeline(str(config_path), cli_args={"no_netcdf": True}, rerun=True)

    assert summary["completed"] == 1
    assert (out_dir / "certificates" / "WELL_A_certificate.json").exists()
    assert not (out_dir / "processed" / "WELL_A_processed.nc").exists()
    assert (out_dir / "logs" / "pipeline.log").exists()


def test_run_requires_output_dir(temp_dir):
    config_path = _write_config(temp_dir / "cfg.py", {"INPUT_DIR": str(temp_dir)})
    with pytest.raises(ValueError, match="output_dir"):
        run_las_pipeline(str(config_path))
