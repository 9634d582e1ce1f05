"""LasProcessor stage chain on well-formed input."""

import json
import queue
import threading
import tracemalloc

import pytest

from lasqc.pipeline.processor import LasProcessor, ProcessingResult, _ResourceMeter
from tests.helpers.fake_dataset import make_log_dataset
from tests.helpers.fake_las import make_las_text

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]

FULL_CHAIN = [
    "file_parsing",
    "quality_assessment",
    "mnemonic_standardization",
    "denoising",
    "despiking",
    "baseline_correction",
    "final_quality_assessment",
]


@pytest.fixture
def processor(processor_config):
    return LasProcessor(processor_config)


def test_full_chain_history_in_order(processor):
    result = processor.process_file(make_las_text(n=120).encode(), "WELL_A.las")

    assert result.success, result.errors
    assert [s.operation for s in result.processing_history] == FULL_CHAIN
    assert result.processed_data is not None
    assert result.processed_data.n_rows == 120


def test_disabled_stages_are_skipped(internal_config):
    """Default config leaves baseline correction off."""
    result = LasProcessor(internal_config).process_file(make_las_text().encode(), "w.las")
    operations = [s.operation for s in result.processing_history]

    assert "baseline_correction" not in operations
    assert operations[-1] == "final_quality_assessment"


def test_step_parameters_recorded(processor, processor_config):
    result = processor.process_file(make_las_text(n=120).encode(), "w.las")
    steps = {s.operation: s for s in result.processing_history}

    denoise_step = steps["denoising"]
    assert denoise_step.parameters["method"] == processor_config.denoise.method
    assert denoise_step.parameters["window_size"] == processor_config.denoise.window_size
    assert "enabled" not in denoise_step.parameters
    assert denoise_step.description == "Denoising using savitzky_golay"
    assert denoise_step.curves_affected == ["GR", "NPHI", "RHOB"]
    assert steps["mnemonic_standardization"].parameters["standard"] == "api"


def test_qc_and_metrics_populated(processor):
    result = processor.process_file(make_las_text(n=120).encode(), "w.las")

    assert result.initial_qc.total_points == 360
    assert result.qc_results.total_points == 360
    # file_parsing and quality_assessment at 2.0 each
    assert result.initial_metrics.uncertainty_bounds == pytest.approx(8.0 ** 0.5)
    assert result.initial_metrics.confidence_level == "High"
    # five 2.0 steps, savitzky_golay 3.5 and hampel 2.5 in quadrature
    assert result.final_metrics.uncertainty_bounds == pytest.approx((5 * 2.0**2 + 3.5**2 + 2.5**2) ** 0.5)
    assert result.final_metrics.confidence_level == "Medium"


def test_null_values_survive_processing(processor):
    result = processor.process_file(make_las_text(n=120, null_rows=(10, 11)).encode(), "w.las")

    assert result.success
    assert result.initial_qc.null_points == 6
    assert result.qc_results.null_points == 6


def test_original_snapshot_preserved(processor):
    text = make_las_text(n=120, spike_row=30)
    result = processor.process_file(text.encode(), "w.las")
    data = result.processed_data

    assert data.values("GR", original=True)[30] == pytest.approx(900.0)
    assert data.values("GR")[30] != pytest.approx(900.0)


def test_process_dataset_starts_at_quality_assessment(processor):
    result = processor.process_dataset(make_log_dataset())

    assert result.processing_history[0].operation == "quality_assessment"
    assert result.filename == "synthetic.las"


def test_resource_usage_measured(processor):
    result = processor.process_file(make_las_text().encode(), "w.las")
    assert result.execution_time > 0
    assert isinstance(result.memory_usage, int)


def test_report_is_json_serializable(processor):
    result = processor.process_file(make_las_text().encode(), "w.las")
    report = json.loads(json.dumps(result.to_report()))

    assert report["filename"] == "w.las"
    assert report["well"] == "TEST WELL 1"
    assert [c["mnemonic"] for c in report["curves"]] == ["GR", "NPHI", "RHOB"]
    assert report["processing_history"][0]["operation"] == "file_parsing"


def test_failed_result_report():
    report = ProcessingResult(success=False, filename="x.las", errors=["boom"]).to_report()
    assert report["rows"] == 0
    assert report["qc_results"] is None
    assert report["errors"] == ["boom"]


def test_process_path_tracks_and_hands_off(processor_config, tracker, tmp_path):
    path = tmp_path / "WELL_Z.las"
    path.write_text(make_las_text())
    handled = []

    proc = LasProcessor(processor_config, file_tracker=tracker,
                        result_handler=lambda p, r: handled.append((p, r)))
    result = proc.process_path(path)

    assert result.success
    assert handled == [(path, result)]
    status = tracker.get_file_status("WELL_Z")
    assert status["parsed_at"] is not None
    assert status["num_curves"] == 3


def test_worker_thread_consumes_queue(processor_config, tmp_path):
    paths = []
    for name in ("A", "B"):
        p = tmp_path / f"{name}.las"
        p.write_text(make_las_text(seed=len(paths) + 1))
        paths.append(p)

    q = queue.Queue()
    for p in paths:
        q.put(p)
    q.put(None)

    handled = []
    worker = LasProcessor(processor_config, input_queue=q,
                          result_handler=lambda p, r: handled.append(p.name))
    worker.start()
    worker.join(timeout=60)

    assert not worker.is_alive()
    assert handled == ["A.las", "B.las"]


def test_stop_flag(processor):
    assert not processor.stopped()
    processor.stop()
    assert processor.stopped()


class TestResourceMeter:

    def test_overlapping_meters_keep_tracing(self):
        """An inner meter exiting must not stop tracing for the outer one."""
        with _ResourceMeter() as outer:
            with _ResourceMeter():
                pass
            assert tracemalloc.is_tracing()
            buffer = bytearray(1 << 20)
        del buffer

        assert outer.memory >= 1 << 20
        assert not tracemalloc.is_tracing()

    def test_meters_on_separate_threads(self):
        started = threading.Event()
        release = threading.Event()
        inner = {}

        def worker():
            with _ResourceMeter() as meter:
                started.set()
                release.wait(timeout=10)
            inner["meter"] = meter

        thread = threading.Thread(target=worker)
        with _ResourceMeter() as outer:
            thread.start()
            started.wait(timeout=10)
            buffer = bytearray(1 << 20)
            release.set()
            thread.join(timeout=10)
            assert tracemalloc.is_tracing()
        del buffer

        assert outer.memory >= 1 << 20
        assert isinstance(inner["meter"].memory, int)
        assert not tracemalloc.is_tracing()

    def test_external_tracing_left_running(self):
        tracemalloc.start()
        try:
            with _ResourceMeter():
                pass
            assert tracemalloc.is_tracing()
        finally:
            tracemalloc.stop()


class TestFormationAdaptation:
    """The synthetic logs read as a moderate-GR sandstone at 50% confidence."""

    def _steps(self, config):
        result = LasProcessor(config).process_file(make_las_text(n=120).encode(), "w.las")
        assert result.success, result.errors
        assert result.initial_qc.geology.lithology.type == "sandstone"
        return {s.operation: s.parameters for s in result.processing_history}

    def test_geology_reported_without_adaptation(self, make_config):
        steps = self._steps(make_config())

        assert steps["denoising"]["window_size"] == 11
        assert steps["despiking"]["threshold"] == 2.5

    def test_confident_enough_formation_sets_parameters(self, make_config):
        config = make_config(ADAPT_TO_FORMATION=True, geology={"min_adapt_confidence": 40})
        steps = self._steps(config)

        assert steps["denoising"]["window_size"] == 9
        assert steps["denoising"]["polynomial_order"] == 3
        assert steps["despiking"]["threshold"] == 2.8

    def test_below_min_confidence_keeps_configured_parameters(self, make_config):
        steps = self._steps(make_config(ADAPT_TO_FORMATION=True))

        assert steps["denoising"]["window_size"] == 11
        assert steps["despiking"]["threshold"] == 2.5

    def test_geology_disabled(self, make_config):
        config = make_config(GEOLOGICAL_ANALYSIS=False, ADAPT_TO_FORMATION=True)
        result = LasProcessor(config).process_file(make_las_text(n=120).encode(), "w.las")

        assert result.initial_qc.geology is None
        assert result.qc_results.geological_quality_score is None
