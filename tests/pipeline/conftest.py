import pytest

from lasqc.pipeline.file_tracker import FileProcessingTracker
from lasqc.schemas import ParamConfig, InternalConfig, UserConfig
from lasqc.schemas.resolve import resolve_config
from lasqc.setup_directories import setup_output_directories
from tests.helpers.fake_las import make_las_text


@pytest.fixture
def tracker(temp_dir):
    db_path = temp_dir / "tracker.db"
    t = FileProcessingTracker(db_path)
    yield t
    t.close()


@pytest.fixture
def las_input_dir(temp_dir):
    """Directory holding two small LAS files."""
    d = temp_dir / "las"
    d.mkdir()
    (d / "WELL_A.las").write_text(make_las_text(n=120, seed=1, well="WELL A"))
    (d / "WELL_B.las").write_text(make_las_text(n=120, seed=2, spike_row=40, well="WELL B"))
    return d


@pytest.fixture
def pipeline_config(temp_dir, las_input_dir) -> InternalConfig:
    """InternalConfig for pipeline tests."""
    user = UserConfig(
        INPUT_DIR=str(las_input_dir),
        OUTPUT_DIR=str(temp_dir / "output"),
        WORKERS=2,
        BASELINE_CORRECTION=True,
    )
    return resolve_config(ParamConfig(), user, None)


@pytest.fixture
def pipeline_output_dirs(temp_dir):
    """Output directories for pipeline tests."""
    return setup_output_directories(temp_dir / "output")


@pytest.fixture
def processor_config(make_config):
    """Config with every processing stage enabled."""
    return make_config(BASELINE_CORRECTION=True)
