"""Root-level pytest fixtures for the lasqc test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture. Tests use these fixtures instead of raw dict configs.
"""

import logging
import pytest
from pathlib import Path
import tempfile
import shutil

from lasqc.schemas import ParamConfig, UserConfig, resolve_config
from lasqc.setup_directories import setup_output_directories
from tests.helpers.fake_dataset import make_log_dataset
from tests.helpers.fake_las import make_las_text


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides)."""
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Accepts UserConfig-compatible kwargs (aliases or field names).

    Examples
    --------
    >>> def test_window(make_config):
    ...     config = make_config(WINDOW_SIZE=7)
    ...     assert config.denoise.window_size == 7
    """
    def _make(**user_overrides):
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def output_dirs(temp_dir):
    """Standard lasqc output directory structure."""
    return setup_output_directories(temp_dir / "output")


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def log_dataset():
    """200-row synthetic GR/NPHI/RHOB dataset."""
    return make_log_dataset()


@pytest.fixture
def las_text():
    """60-row LAS 2.0 text with GR/NPHI/RHOB."""
    return make_las_text()


@pytest.fixture
def restore_logging():
    """Put back root logging handlers replaced by the orchestrator."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
