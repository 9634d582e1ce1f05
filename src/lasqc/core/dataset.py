"""Well dataset model.

A ``WellDataset`` couples the curve metadata and header of one LAS file
with two depth-aligned pandas frames:

- ``original``: the parsed values, never modified after construction
- ``data``: the current (processed) values, replaced stage by stage

Both frames carry a ``depth`` column followed by one float column per
curve, with NaN standing for null samples.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Optional

import numpy as np
import pandas as pd
import xarray as xr
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from lasqc.contracts.base import require

__all__ = [
    "CurveStatistics",
    "Curve",
    "WellHeader",
    "ProcessingStep",
    "WellDataset",
    "DEPTH",
]

logger = logging.getLogger(__name__)

DEPTH = "depth"


class _Record(BaseModel):
    model_config = ConfigDict(
        extra='ignore',
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class CurveStatistics(_Record):
    """Summary statistics of one curve's valid samples."""
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    std: Optional[float] = None
    null_count: int = 0
    outlier_count: int = 0
    quality_score: float = 0.0


class Curve(_Record):
    """Metadata of a named measurement series."""
    mnemonic: str
    unit: str = ""
    description: str = ""
    category: str = "custom"
    track: int = 1
    color: str = "#000000"
    scale: Literal["linear", "logarithmic"] = "linear"
    visible: bool = True
    data_type: Literal["log", "index"] = Field(
        "log", validation_alias=AliasChoices("data_type", "dataType")
    )
    standard_mnemonic: Optional[str] = Field(
        None, validation_alias=AliasChoices("standard_mnemonic", "standardMnemonic")
    )
    statistics: Optional[CurveStatistics] = None


class WellHeader(_Record):
    """Well-level header fields.

    Accepts both ``snake_case`` and the ``camelCase`` keys produced by
    external parsers (``startDepth``, ``nullValue``...).
    """
    start_depth: Optional[float] = Field(
        None, validation_alias=AliasChoices("start_depth", "startDepth", "STRT")
    )
    stop_depth: Optional[float] = Field(
        None, validation_alias=AliasChoices("stop_depth", "stopDepth", "STOP")
    )
    step: Optional[float] = Field(None, validation_alias=AliasChoices("step", "STEP"))
    null_value: float = Field(
        -999.25, validation_alias=AliasChoices("null_value", "nullValue", "NULL")
    )
    version: str = "2.0"
    wrap: bool = False
    company: str = ""
    well: str = ""
    field: str = ""
    location: str = ""
    extra: dict[str, Any] = Field(default_factory=dict)


class ProcessingStep(_Record):
    """Immutable record of one pipeline stage execution."""
    id: str
    timestamp: datetime
    operation: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    curves_affected: list[str] = Field(default_factory=list)
    description: str = ""

    @classmethod
    def record(cls, operation, description="", parameters=None, curves_affected=None,
               timestamp=None):
        """Create a step with a fresh id and a UTC timestamp."""
        return cls(
            id=f"step_{uuid.uuid4().hex[:12]}",
            timestamp=timestamp or datetime.now(timezone.utc),
            operation=operation,
            parameters=dict(parameters or {}),
            curves_affected=list(curves_affected or []),
            description=description,
        )


def _frame_from_rows(rows, mnemonics, null_value):
    frame = pd.DataFrame.from_records(list(rows))
    if DEPTH not in frame.columns:
        frame[DEPTH] = np.nan
    for mnemonic in mnemonics:
        if mnemonic not in frame.columns:
            frame[mnemonic] = np.nan
    frame = frame[[DEPTH, *mnemonics]]
    frame = frame.apply(pd.to_numeric, errors="coerce").astype(float)
    if mnemonics:
        columns = list(mnemonics)
        sentinel = np.isclose(frame[columns].to_numpy(), null_value)
        frame[columns] = frame[columns].mask(sentinel)
    return frame.reset_index(drop=True)


class WellDataset:
    """One well's curves, header, and original/current value snapshots.

    Instances are treated as values: methods that change data return a
    new ``WellDataset`` sharing the same original snapshot.

    Parameters
    ----------
    name : str
        File name or identifier.
    header : WellHeader
    curves : list of Curve
        Curve metadata, in column order. Mnemonics must be unique.
    original : pd.DataFrame
        Parsed values with a ``depth`` column. Copied on construction.
    data : pd.DataFrame, optional
        Current values. Defaults to a copy of ``original``.
    """

    def __init__(self, name, header, curves, original, data=None):
        mnemonics = [c.mnemonic for c in curves]
        require(
            len(set(mnemonics)) == len(mnemonics),
            f"Dataset contract violated: duplicate curve mnemonics in {name}: {mnemonics}"
        )
        self.name = name
        self.header = header
        self._curves = list(curves)
        self._original = original.copy()
        self._data = (original if data is None else data).copy()

    @classmethod
    def from_parsed(cls, parsed, name="unnamed.las"):
        """Build a dataset from the external parser's tabular shape.

        Parameters
        ----------
        parsed : dict
            ``{"curves": [...], "rows": [{"depth": ..., MNEM: value|None}],
            "header": {...}}``
        name : str
            File name.
        """
        header = WellHeader.model_validate(parsed.get("header") or {})
        curves = [
            c if isinstance(c, Curve) else Curve.model_validate(c)
            for c in parsed.get("curves", [])
        ]
        curves = [c for c in curves if c.data_type == "log"]
        frame = _frame_from_rows(
            parsed.get("rows", []), [c.mnemonic for c in curves], header.null_value
        )
        return cls(name, header, curves, frame)

    def _derive(self, curves=None, data=None):
        new = WellDataset.__new__(WellDataset)
        new.name = self.name
        new.header = self.header
        new._curves = list(self._curves if curves is None else curves)
        new._original = self._original
        new._data = self._data.copy() if data is None else data
        return new

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def curves(self):
        return list(self._curves)

    @property
    def mnemonics(self):
        return [c.mnemonic for c in self._curves]

    @property
    def data(self) -> pd.DataFrame:
        """Current values (a copy; use ``with_data`` to replace)."""
        return self._data.copy()

    @property
    def original(self) -> pd.DataFrame:
        """Parsed values (a copy; the stored snapshot is never modified)."""
        return self._original.copy()

    @property
    def n_rows(self) -> int:
        return len(self._data)

    @property
    def depth(self) -> np.ndarray:
        return self._data[DEPTH].to_numpy(dtype=float, copy=True)

    def curve(self, mnemonic) -> Curve:
        for c in self._curves:
            if c.mnemonic == mnemonic:
                return c
        raise KeyError(mnemonic)

    def values(self, mnemonic, original=False) -> np.ndarray:
        """Return a float copy of one curve's samples (NaN = null)."""
        frame = self._original if original else self._data
        return frame[mnemonic].to_numpy(dtype=float, copy=True)

    def valid_mask(self, mnemonic) -> np.ndarray:
        return np.isfinite(self._data[mnemonic].to_numpy(dtype=float))

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def with_data(self, frame: pd.DataFrame) -> "WellDataset":
        """Return a dataset whose current snapshot is ``frame``."""
        require(
            list(frame.columns) == list(self._data.columns),
            "Dataset contract violated: replacement frame columns differ "
            f"({list(frame.columns)} vs {list(self._data.columns)})"
        )
        return self._derive(data=frame.copy())

    def with_values(self, updates) -> "WellDataset":
        """Return a dataset with some curve columns replaced.

        Parameters
        ----------
        updates : dict
            Mapping of mnemonic to a full-length array.
        """
        frame = self._data.copy()
        for mnemonic, values in updates.items():
            frame[mnemonic] = np.asarray(values, dtype=float)
        return self._derive(data=frame)

    def with_curves(self, curves, renames=None) -> "WellDataset":
        """Return a dataset with new curve metadata.

        ``renames`` maps old mnemonics to new ones and is applied to both
        snapshots so the columns keep matching the curve list.
        """
        mnemonics = [c.mnemonic for c in curves]
        require(
            len(set(mnemonics)) == len(mnemonics),
            f"Dataset contract violated: duplicate curve mnemonics after rename: {mnemonics}"
        )
        new = self._derive(curves=curves)
        if renames:
            new._original = self._original.rename(columns=renames)
            new._data = new._data.rename(columns=renames)
        return new

    def reset(self) -> "WellDataset":
        """Return a dataset whose current snapshot equals the original."""
        return self._derive(data=self._original.copy())

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def rows(self, original=False) -> list:
        """Rows as dictionaries with ``None`` for null samples."""
        frame = self._original if original else self._data
        cleaned = frame.astype(object).where(frame.notna(), None)
        return cleaned.to_dict(orient="records")

    def to_xarray(self) -> xr.Dataset:
        """Depth-indexed ``xarray.Dataset`` of the current snapshot."""
        ds = xr.Dataset(
            {m: (DEPTH, self._data[m].to_numpy(dtype=float)) for m in self.mnemonics},
            coords={DEPTH: self._data[DEPTH].to_numpy(dtype=float)},
        )
        for curve in self._curves:
            ds[curve.mnemonic].attrs.update({
                "units": curve.unit,
                "long_name": curve.description or curve.mnemonic,
                "category": curve.category,
                "standard_mnemonic": curve.standard_mnemonic or curve.mnemonic,
            })
        ds.attrs.update({
            "well": self.header.well,
            "company": self.header.company,
            "field": self.header.field,
            "source_file": self.name,
            "null_value": self.header.null_value,
        })
        return ds

    def __repr__(self):
        return f"WellDataset({self.name!r}, rows={self.n_rows}, curves={self.mnemonics})"
