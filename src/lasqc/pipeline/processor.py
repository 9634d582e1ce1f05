"""LAS processing pipeline.

Runs a LAS payload through parsing, quality assessment, mnemonic
standardization, denoising, despiking, baseline correction and final
quality assessment. Every stage appends a ``ProcessingStep``; a stage that
fails records an error and the run continues with the last good snapshot.
"""

import logging
import queue
import threading
import time
import tracemalloc
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, TYPE_CHECKING

from lasqc.contracts import (
    ContractViolation,
    assert_parsed,
    assert_qc_result,
    assert_stage_output,
)
from lasqc.core.dataset import ProcessingStep, WellDataset
from lasqc.io.las_reader import ParseError, read_las_bytes
from lasqc.processing import (
    MnemonicStandardizer,
    baseline_correction,
    denoise,
    despike,
    refresh_statistics,
    validate_physical_ranges,
)
from lasqc.quality.geology import adapt_to_formation
from lasqc.quality.qc import QCResults, compute_quality
from lasqc.quality.scoring import QualityMetrics, compute_quality_metrics

if TYPE_CHECKING:
    from lasqc.core.store import KeyedLocks
    from lasqc.pipeline.file_tracker import FileProcessingTracker
    from lasqc.schemas import InternalConfig

__all__ = ['ProcessingResult', 'LasProcessor']

logger = logging.getLogger(__name__)


@dataclass
class ProcessingResult:
    """Outcome of one processing run.

    ``success`` is False when a file-level precondition failed or any
    stage recorded an error. Failed runs still carry the partial
    ``processing_history`` and every warning and error gathered so far.
    """
    success: bool
    filename: str
    processed_data: Optional[WellDataset] = None
    qc_results: Optional[QCResults] = None
    initial_qc: Optional[QCResults] = None
    initial_metrics: Optional[QualityMetrics] = None
    final_metrics: Optional[QualityMetrics] = None
    physical_validation: dict = field(default_factory=dict)
    processing_history: List[ProcessingStep] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    memory_usage: int = 0

    def to_report(self) -> dict:
        """JSON-serializable summary (curve values are not included)."""
        def dump(model):
            return model.model_dump(mode="json") if model is not None else None

        data = self.processed_data
        return {
            "filename": self.filename,
            "success": self.success,
            "well": data.header.well if data is not None else None,
            "rows": data.n_rows if data is not None else 0,
            "curves": [c.model_dump(mode="json") for c in data.curves] if data is not None else [],
            "initial_qc": dump(self.initial_qc),
            "qc_results": dump(self.qc_results),
            "initial_metrics": dump(self.initial_metrics),
            "final_metrics": dump(self.final_metrics),
            "physical_validation": self.physical_validation,
            "processing_history": [s.model_dump(mode="json") for s in self.processing_history],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "execution_time": self.execution_time,
            "memory_usage": self.memory_usage,
        }


_trace_lock = threading.Lock()
_trace_users = 0
_trace_started = False


class _ResourceMeter:
    """Wall time and traced-memory delta of a block.

    tracemalloc is process-wide: the first active meter starts tracing and
    the last one to exit stops it, so concurrent workers never switch
    tracing off under each other. ``memory`` is the growth of traced memory
    across the block and includes allocations made by other threads
    meanwhile.
    """

    def __enter__(self):
        global _trace_users, _trace_started
        with _trace_lock:
            if _trace_users == 0 and not tracemalloc.is_tracing():
                tracemalloc.start()
                _trace_started = True
            _trace_users += 1
            self._memory = tracemalloc.get_traced_memory()[0]
        self._start = time.perf_counter()
        self.elapsed = 0.0
        self.memory = 0
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        global _trace_users, _trace_started
        self.elapsed = time.perf_counter() - self._start
        with _trace_lock:
            self.memory = max(0, tracemalloc.get_traced_memory()[0] - self._memory)
            _trace_users -= 1
            if _trace_users == 0 and _trace_started:
                tracemalloc.stop()
                _trace_started = False
        return False


def _stage_parameters(options) -> dict:
    return options.model_dump(mode="json", exclude={"enabled"})


class LasProcessor(threading.Thread):
    """Processes LAS files through the complete quality-control chain.

    Can be used directly (``process_file`` / ``process_dataset``) or as a
    worker thread that consumes file paths from ``input_queue``.

    **Processing Pipeline:**

    1. **file_parsing**: size checks, then lasio parsing. Empty, oversized
       or unreadable payloads end the run here with ``success=False``.
    2. **quality_assessment**: initial QC summary (with the inferred
       lithology), component metrics and physical range report. With
       ``geology.adapt_parameters`` the inferred formation then sets the
       Hampel threshold and Savitzky-Golay window for steps 4 and 5.
    3. **mnemonic_standardization** (optional): map curve names to the
       configured standard.
    4. **denoising** (optional): per-curve smoothing blended by strength.
    5. **despiking** (optional): spike detection and replacement.
    6. **baseline_correction** (optional): polynomial trend removal.
    7. **final_quality_assessment**: QC and metrics of the processed data.

    Stage exceptions become error strings. Contract violations are not
    caught here: they mean the code is wrong, not the data.

    Example usage (typically created by the orchestrator)::

        processor = LasProcessor(config)
        result = processor.process_file(path.read_bytes(), path.name)
    """

    def __init__(self, config: "InternalConfig",
                 input_queue: Optional[queue.Queue] = None,
                 result_handler: Optional[Callable[[Path, ProcessingResult], None]] = None,
                 file_tracker: Optional["FileProcessingTracker"] = None,
                 locks: Optional["KeyedLocks"] = None,
                 name: str = "LasProcessor"):
        """Initialize processor with validated configuration.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        input_queue : queue.Queue, optional
            Queue of LAS file paths, required only when run as a thread.
        result_handler : callable, optional
            Called as ``handler(path, result)`` after each queued file, while
            the file's lock is still held.
        file_tracker : FileProcessingTracker, optional
            Records the ``parsed`` and ``processed`` stages.
        locks : KeyedLocks, optional
            Serializes runs per file id.
        name : str, optional
            Thread name for logging.
        """
        super().__init__(daemon=True, name=name)

        self.config = config
        self.input_queue = input_queue
        self.result_handler = result_handler
        self.file_tracker = file_tracker
        self.locks = locks
        self.standardizer = MnemonicStandardizer(config.mnemonics)
        self._stop_event = threading.Event()

    def stop(self):
        """Signal the worker loop to exit."""
        self._stop_event.set()

    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process_file(self, buffer, filename: str) -> ProcessingResult:
        """Process a raw LAS payload.

        Parameters
        ----------
        buffer : bytes or str
            LAS file content.
        filename : str
            Name used in the dataset, logs and certificate.

        Returns
        -------
        ProcessingResult

        Raises
        ------
        ContractViolation
            If a stage breaks a structural guarantee.
        """
        with _ResourceMeter() as meter:
            result = self._process_buffer(buffer, filename)
        return replace(result, execution_time=meter.elapsed, memory_usage=meter.memory)

    def process_dataset(self, dataset: WellDataset, history=None) -> ProcessingResult:
        """Run the stage chain on an already parsed dataset."""
        with _ResourceMeter() as meter:
            result = self._run_stages(dataset, list(history or []))
        return replace(result, execution_time=meter.elapsed, memory_usage=meter.memory)

    def process_path(self, path) -> Optional[ProcessingResult]:
        """Read, process and hand off one file from disk.

        Returns None when the processor stopped because of a contract
        violation or the file could not be read.
        """
        path = Path(path)
        file_id = path.stem
        lock = self.locks.hold(file_id) if self.locks is not None else nullcontext()

        with lock:
            if self.file_tracker:
                self.file_tracker.register_file(file_id, las_path=path)
            try:
                logger.info("Processing: %s", path.name)
                result = self.process_file(path.read_bytes(), path.name)

                if self.file_tracker:
                    self._track(file_id, path, result)
                if self.result_handler:
                    self.result_handler(path, result)

                logger.info("Finished %s: success=%s, %d warning(s), %d error(s), %.2fs",
                            path.name, result.success, len(result.warnings),
                            len(result.errors), result.execution_time)
                return result

            except ContractViolation as e:
                logger.critical("Contract violation for %s: %s", path.name, e)
                if self.file_tracker:
                    self.file_tracker.mark_stage_complete(file_id, "processed", error=f"Contract: {e}")
                self.stop()
                return None

            except Exception as e:
                logger.exception("Error processing %s", path.name)
                if self.file_tracker:
                    self.file_tracker.mark_stage_complete(file_id, "processed", error=str(e))
                return None

    def _track(self, file_id, path, result):
        if result.processed_data is None:
            self.file_tracker.mark_stage_complete(
                file_id, "parsed", path=path, error="; ".join(result.errors)
            )
            return
        self.file_tracker.mark_stage_complete(
            file_id, "parsed", path=path, num_curves=len(result.processed_data.mnemonics)
        )

    def run(self):
        """Worker loop: consume paths from ``input_queue`` until stopped."""
        logger.info("Processor started, waiting for files...")

        while not self.stopped():
            try:
                path = self.input_queue.get(timeout=1)
            except queue.Empty:
                continue

            try:
                if path is None:
                    break
                self.process_path(path)
            finally:
                self.input_queue.task_done()

        logger.info("Processor stopped")

    # ------------------------------------------------------------------
    # Stage chain
    # ------------------------------------------------------------------

    def _fatal(self, filename, message, history):
        logger.error("%s: %s", filename, message)
        return ProcessingResult(
            success=False,
            filename=filename,
            processing_history=history,
            errors=[message],
        )

    def _process_buffer(self, buffer, filename):
        history = []
        size = len(buffer) if buffer is not None else 0
        limit = self.config.limits.max_file_size

        if size == 0:
            return self._fatal(filename, "Empty file buffer", history)
        if size > limit:
            return self._fatal(
                filename, f"File size {size} bytes exceeds maximum of {limit} bytes", history
            )

        history.append(ProcessingStep.record(
            "file_parsing",
            "Parse LAS file and extract curves",
            parameters={"filename": filename, "size_bytes": size},
        ))
        try:
            dataset = read_las_bytes(buffer, name=filename)
        except ParseError as e:
            return self._fatal(filename, f"Failed to parse LAS file: {e}", history)

        assert_parsed(dataset)
        return self._run_stages(dataset, history)

    def _run_stages(self, dataset, history):
        cfg = self.config
        warnings, errors = [], []

        current = refresh_statistics(dataset, cfg.validation.outlier_sigma)
        history.append(ProcessingStep.record(
            "quality_assessment",
            "Initial quality assessment",
            curves_affected=current.mnemonics,
        ))
        initial_qc = self._assess(current)
        initial_metrics = compute_quality_metrics(current, history, cfg.quality, cfg.validation)
        warnings.extend(initial_qc.warnings)

        physical = {}
        if cfg.validation.enabled:
            physical = validate_physical_ranges(current, cfg.validation.physical_ranges)
            warnings.extend(physical["warnings"])

        if cfg.mnemonics.enabled:
            history.append(ProcessingStep.record(
                "mnemonic_standardization",
                f"Standardize mnemonics to {cfg.mnemonics.standard.upper()}",
                parameters={
                    "standard": cfg.mnemonics.standard,
                    "preserve_original": cfg.mnemonics.preserve_original,
                    "custom_mappings": dict(cfg.mnemonics.custom_mappings),
                },
                curves_affected=current.mnemonics,
            ))
            current = self._run_stage("Mnemonic standardization", current,
                                      self._standardize, warnings, errors)

        denoise_options, despike_options = cfg.denoise, cfg.despike
        if cfg.geology.adapt_parameters and initial_qc.geology is not None:
            denoise_options, despike_options = adapt_to_formation(
                denoise_options, despike_options, initial_qc.geology, cfg.geology
            )

        data_stages = (
            (denoise_options, "denoising", "Denoising", denoise),
            (despike_options, "despiking", "Despiking", despike),
            (cfg.baseline, "baseline_correction", "Baseline correction", baseline_correction),
        )
        for options, operation, label, stage in data_stages:
            if not options.enabled:
                continue
            history.append(ProcessingStep.record(
                operation,
                f"{label} using {options.method}",
                parameters=_stage_parameters(options),
                curves_affected=current.mnemonics,
            ))
            before = current
            current = self._run_stage(
                label, current, lambda ds, s=stage, o=options: self._data_stage(s, ds, o),
                warnings, errors,
            )
            assert_stage_output(before, current, operation)

        current = refresh_statistics(current, cfg.validation.outlier_sigma)
        history.append(ProcessingStep.record(
            "final_quality_assessment",
            "Final quality assessment",
            curves_affected=current.mnemonics,
        ))
        final_qc = self._assess(current)
        final_metrics = compute_quality_metrics(current, history, cfg.quality, cfg.validation)
        warnings.extend(w for w in final_qc.warnings if w not in warnings)

        logger.info("%s: grade %s -> %s (confidence %s)", current.name,
                    initial_metrics.overall_grade, final_metrics.overall_grade,
                    final_metrics.confidence_level)
        return ProcessingResult(
            success=not errors,
            filename=current.name,
            processed_data=current,
            qc_results=final_qc,
            initial_qc=initial_qc,
            initial_metrics=initial_metrics,
            final_metrics=final_metrics,
            physical_validation=physical,
            processing_history=history,
            warnings=warnings,
            errors=errors,
        )

    def _assess(self, dataset):
        cfg = self.config
        qc = compute_quality(dataset, cfg.quality, cfg.validation, cfg.geology)
        assert_qc_result(qc, dataset.n_rows, len(dataset.mnemonics))
        return qc

    def _run_stage(self, label, dataset, stage, warnings, errors):
        """Run one stage; on failure keep ``dataset`` and record the error."""
        try:
            updated, stage_warnings, stage_errors = stage(dataset)
        except ContractViolation:
            raise
        except Exception as e:
            logger.exception("%s failed for %s", label, dataset.name)
            errors.append(f"{label} failed: {e}")
            return dataset

        warnings.extend(stage_warnings)
        errors.extend(stage_errors)
        return updated

    def _standardize(self, dataset):
        result = self.standardizer.standardize(dataset)
        return result.data, result.warnings, []

    @staticmethod
    def _data_stage(stage, dataset, options):
        result = stage(dataset, options)
        skipped = [
            f"{mnemonic}: too few valid samples for baseline correction"
            for mnemonic in getattr(result, "skipped", [])
        ]
        return result.data, skipped, result.errors

