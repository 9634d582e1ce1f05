"""Multi-threaded batch orchestration.

Discovers LAS files, feeds them to processor threads through a queue,
certifies successful runs and persists reports, certificates and processed
curves. Manages lifecycle, monitoring, and graceful shutdown.
"""

import json
import queue
import time
import logging
from pathlib import Path
from typing import Dict, List, Optional

from lasqc.core.store import KeyedLocks, TTLCache
from lasqc.pipeline.file_tracker import FileProcessingTracker
from lasqc.pipeline.processor import LasProcessor, ProcessingResult
from lasqc.quality.certificate import certify
from lasqc.setup_directories import (
    get_certificate_path,
    get_log_path,
    get_netcdf_path,
    get_report_path,
    setup_output_directories,
)

__all__ = ['PipelineOrchestrator']

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Manages the multi-threaded LAS processing pipeline.

    **Pipeline Architecture:**

    1. **Discovery**: LAS files matching ``pipeline.file_pattern`` in
       ``input_dir`` are registered with the tracker. Files already
       certified on a previous run are skipped.

    2. **Processor Threads**: ``pipeline.workers`` ``LasProcessor`` threads
       consume file paths from a shared queue. Runs on the same file id
       are serialized through ``KeyedLocks``.

    3. **Persistence** (on the worker thread, under the file's lock):
       - JSON report with QC results, metrics and processing history
       - quality certificate for successful runs
       - NetCDF file with the processed curves

    **File Tracking:**

    The FileProcessingTracker SQLite database (logs/<db_filename>) records
    each file as parsed, processed, certified or failed. This enables
    resumable batches and failure recovery.

    **Logging:**

    All output goes to both console and logs/pipeline.log at the level set
    in ``config.logging.level``.

    Example usage::

        from lasqc.schemas import ParamConfig, resolve_config
        from lasqc.pipeline.orchestrator import PipelineOrchestrator

        config = resolve_config(ParamConfig(), {"INPUT_DIR": "./las", "OUTPUT_DIR": "./out"})
        summary = PipelineOrchestrator(config).start()
    """

    def __init__(self, config, output_dirs: Optional[Dict[str, Path]] = None,
                 max_queue_size: int = 100, status_interval: float = 30.0):
        """Initialize orchestrator.

        Parameters
        ----------
        config : InternalConfig
            Fully validated runtime configuration.
        output_dirs : dict, optional
            Output directories from ``setup_output_directories``. Created
            under ``config.output_dir`` when omitted.
        max_queue_size : int, optional
            Maximum number of queued file paths.
        status_interval : float, optional
            Seconds between status log lines.
        """
        self.config = config
        self.output_dirs = output_dirs
        self.max_queue_size = max_queue_size
        self.status_interval = status_interval

        self.input_queue = None
        self.workers: List[LasProcessor] = []
        self.tracker = None
        self.locks = KeyedLocks()
        self.results = TTLCache(config.cache.ttl_seconds, config.cache.max_entries)

        self._stopped = False
        self._start_time = None
        self._queued = 0

    def _setup_logging(self):
        """Configure root logging to file and console."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)
        log_path = get_log_path(self.output_dirs)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)

    def _setup(self, configure_logging=True):
        if self.output_dirs is None:
            self.output_dirs = setup_output_directories(self.config.output_dir)
        if configure_logging:
            self._setup_logging()
        if self.tracker is None:
            tracker_path = Path(self.output_dirs["logs"]) / self.config.pipeline.db_filename
            self.tracker = FileProcessingTracker(tracker_path)

    def discover_files(self) -> List[Path]:
        """LAS files in ``input_dir`` matching the configured pattern, sorted."""
        if not self.config.input_dir:
            raise ValueError("input_dir is not configured")
        input_dir = Path(self.config.input_dir).expanduser()
        if not input_dir.is_dir():
            raise FileNotFoundError(f"Input directory not found: {input_dir}")
        return sorted(p for p in input_dir.glob(self.config.pipeline.file_pattern) if p.is_file())

    def start(self, max_runtime: Optional[float] = None, configure_logging: bool = True) -> Dict:
        """Process every pending LAS file in ``input_dir``.

        Blocking. Starts the worker threads, waits until the queue is
        consumed (or ``max_runtime`` minutes pass, or Ctrl+C), then stops.

        Returns
        -------
        dict
            Tracker statistics plus ``runtime`` in seconds.
        """
        self._setup(configure_logging)

        logger.info("=" * 60)
        logger.info("Starting LAS Quality Pipeline")
        logger.info("=" * 60)

        self._start_time = time.time()
        max_duration = max_runtime * 60 if max_runtime else None

        files = self.discover_files()
        logger.info("Found %d file(s) in %s", len(files), self.config.input_dir)

        self.input_queue = queue.Queue(maxsize=max(self.max_queue_size, len(files) + 1))
        for path in files:
            self.tracker.register_file(path.stem, las_path=path)
            if not self.tracker.should_process(path.stem, "certified"):
                logger.info("Skipping %s (already certified)", path.name)
                continue
            self.input_queue.put(path)
            self._queued += 1

        n_workers = self.config.pipeline.workers
        for i in range(n_workers):
            self.input_queue.put(None)

        for i in range(n_workers):
            worker = LasProcessor(
                self.config,
                input_queue=self.input_queue,
                result_handler=self.handle_result,
                file_tracker=self.tracker,
                locks=self.locks,
                name=f"LasProcessor-{i + 1}",
            )
            worker.start()
            self.workers.append(worker)
        logger.info("✓ %d processor(s) started, %d file(s) queued", n_workers, self._queued)

        try:
            self._main_loop(max_duration)
        except KeyboardInterrupt:
            logger.info("\nShutdown signal received (Ctrl+C)")
        finally:
            summary = self.stop()
        return summary

    def _main_loop(self, max_duration: Optional[float]):
        """Wait for workers, logging status periodically."""
        last_status = time.time()
        while any(w.is_alive() for w in self.workers):
            for worker in self.workers:
                worker.join(timeout=0.5)

            if max_duration and time.time() - self._start_time > max_duration:
                logger.info("Max duration reached")
                break

            if time.time() - last_status >= self.status_interval:
                self._log_status()
                last_status = time.time()

    def process_path(self, path) -> Optional[ProcessingResult]:
        """Process a single file synchronously with full persistence."""
        self._setup(configure_logging=False)
        path = Path(path)
        self.tracker.register_file(path.stem, las_path=path)
        processor = LasProcessor(
            self.config,
            result_handler=self.handle_result,
            file_tracker=self.tracker,
            locks=self.locks,
        )
        return processor.process_path(path)

    def handle_result(self, path: Path, result: ProcessingResult):
        """Certify and persist one processing result.

        Called from the worker thread while it holds the file's lock.
        """
        file_id = path.stem
        output = self.config.output
        self.results.set(file_id, result)

        report_path = None
        if output.write_report:
            report_path = get_report_path(self.output_dirs, path.name)
            self._write_json(report_path, result.to_report())

        netcdf_path = None
        if output.save_netcdf and result.processed_data is not None:
            netcdf_path = get_netcdf_path(self.output_dirs, path.name)
            result.processed_data.to_xarray().to_netcdf(netcdf_path, engine="scipy")
            logger.debug("Saved processed curves: %s", netcdf_path)

        if result.processed_data is None:
            return

        error = None if result.success else "; ".join(result.errors)
        self.tracker.mark_stage_complete(
            file_id, "processed", path=report_path, netcdf_path=netcdf_path, error=error,
        )
        if not result.success:
            logger.warning("%s finished with errors, not certified", path.name)
            return

        certificate = certify(
            path.name,
            result.initial_metrics,
            result.final_metrics,
            result.processing_history,
            config=self.config.certification,
            grade_values=self.config.quality.grade_values,
        )
        certificate_path = None
        if output.write_certificate:
            certificate_path = get_certificate_path(self.output_dirs, path.name)
            self._write_json(certificate_path, certificate.model_dump(mode="json"))
        self.tracker.mark_stage_complete(
            file_id, "certified", path=certificate_path,
            overall_grade=certificate.processed_grade,
        )
        self.results.set(f"{file_id}:certificate", certificate)

    @staticmethod
    def _write_json(path: Path, payload: dict):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
        logger.debug("Wrote %s", path)

    def get_result(self, file_id: str) -> Optional[ProcessingResult]:
        """Most recent result for ``file_id`` if still cached."""
        return self.results.get(file_id)

    def get_certificate(self, file_id: str):
        return self.results.get(f"{file_id}:certificate")

    def stop(self) -> Dict:
        """Stop workers, log the summary and close the tracker.

        Safe to call multiple times.
        """
        if self._stopped:
            return {}
        self._stopped = True
        logger.info("Stopping pipeline...")

        for worker in self.workers:
            if worker.is_alive():
                worker.stop()
                worker.join(timeout=5)
                if worker.is_alive():
                    logger.warning("%s did not stop cleanly", worker.name)

        elapsed = time.time() - self._start_time if self._start_time else 0
        summary = {"runtime": elapsed, "queued": self._queued}

        logger.info("=" * 60)
        logger.info("Pipeline stopped. Runtime: %.1f seconds", elapsed)
        if self.tracker:
            stats = self.tracker.get_statistics()
            summary.update(stats)
            logger.info("Statistics: total=%d, completed=%d, failed=%d",
                        stats.get('total', 0), stats.get('completed', 0), stats.get('failed', 0))
            self.tracker.close()
        logger.info("=" * 60)
        return summary

    def _log_status(self):
        alive = sum(1 for w in self.workers if w.is_alive())
        stats = self.tracker.get_statistics() if self.tracker else {}
        logger.info(
            "Status: workers=%d/%d Q=%d completed=%d failed=%d",
            alive, len(self.workers), self.input_queue.qsize() if self.input_queue else 0,
            stats.get('completed', 0), stats.get('failed', 0),
        )
