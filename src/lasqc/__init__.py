"""`lasqc` - quality control and conditioning of LAS well logs.

Subpackages:
- schemas: Layered pydantic configuration
- contracts: Stage invariants
- core: Well dataset model and in-memory stores
- signal: Numeric kernels and per-curve filters
- processing: Dataset-level processing stages
- quality: QC summaries, scoring and certificates
- io: LAS reading via lasio
- pipeline: Processor, orchestrator, tracking
"""

__version__ = "1.0.0"
