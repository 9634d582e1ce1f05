from pathlib import Path

from lasqc.setup_directories import (
    get_certificate_path,
    get_log_path,
    get_netcdf_path,
    get_report_path,
    setup_output_directories,
)


def test_setup_output_directories_creates_all(tmp_path):
    dirs = setup_output_directories(tmp_path)

    expected = {"base", "reports", "certificates", "processed", "logs"}

    assert set(dirs.keys()) == expected

    for path in dirs.values():
        assert isinstance(path, Path)
        assert path.exists()
        assert path.is_dir()


def test_setup_output_directories_is_idempotent(tmp_path):
    dirs1 = setup_output_directories(tmp_path)
    dirs2 = setup_output_directories(tmp_path)

    assert dirs1 == dirs2


def test_default_base_is_cwd_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    dirs = setup_output_directories()
    assert dirs["base"] == (tmp_path / "output").resolve()


def test_verbose_prints(tmp_path, capsys):
    setup_output_directories(tmp_path, verbose=True)
    assert "Output directories created" in capsys.readouterr().out


def test_output_paths(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_report_path(dirs, "WELL_A.las") == dirs["reports"] / "WELL_A_report.json"
    assert get_certificate_path(dirs, "WELL_A.las") == dirs["certificates"] / "WELL_A_certificate.json"
    assert get_netcdf_path(dirs, "/data/WELL_A.LAS") == dirs["processed"] / "WELL_A_processed.nc"


def test_log_path_creates_directory(tmp_path):
    dirs = {"logs": tmp_path / "fresh" / "logs"}
    path = get_log_path(dirs)
    assert path == tmp_path / "fresh" / "logs" / "pipeline.log"
    assert path.parent.is_dir()
