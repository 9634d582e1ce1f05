"""Core data model and in-memory stores."""

from lasqc.core.dataset import (
    Curve,
    CurveStatistics,
    ProcessingStep,
    WellDataset,
    WellHeader,
)
from lasqc.core.store import KeyedLocks, TTLCache

__all__ = [
    "Curve",
    "CurveStatistics",
    "ProcessingStep",
    "WellDataset",
    "WellHeader",
    "KeyedLocks",
    "TTLCache",
]
