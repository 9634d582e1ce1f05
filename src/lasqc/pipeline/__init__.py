"""Pipeline modules.

- orchestrator: Batch pipeline controller
- processor: LAS processing chain and worker thread
- file_tracker: SQLite-based file tracking
"""

from lasqc.pipeline.orchestrator import PipelineOrchestrator
from lasqc.pipeline.processor import LasProcessor, ProcessingResult
from lasqc.pipeline.file_tracker import FileProcessingTracker

__all__ = [
    "PipelineOrchestrator",
    "LasProcessor",
    "ProcessingResult",
    "FileProcessingTracker",
]
