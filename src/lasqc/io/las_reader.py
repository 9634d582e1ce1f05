"""LAS text reader built on lasio.

Turns a raw LAS 1.2/2.0 payload into the parsed tabular shape
(``{"curves", "rows", "header"}``) and then into a ``WellDataset``.
Curve display metadata (category, track, color, scale) is inferred from
the mnemonic and description.
"""

import io
import logging
import math

import lasio
import numpy as np

from lasqc.contracts.failure import FatalFileError
from lasqc.core.dataset import WellDataset

__all__ = ["ParseError", "CURVE_COLORS", "infer_category", "parse_las_text", "read_las_bytes"]

logger = logging.getLogger(__name__)

DEPTH_MNEMONICS = {"DEPT", "DEPTH", "MD"}

CURVE_COLORS = (
    "#3B82F6", "#EF4444", "#10B981", "#F59E0B", "#8B5CF6",
    "#EC4899", "#06B6D4", "#84CC16", "#F97316", "#6366F1",
)

# (category, track, mnemonic fragments, description keyword); first match wins
CATEGORY_RULES = (
    ("gamma_ray", 1, ("gr",), "gamma"),
    ("resistivity", 2, ("rt", "res", "ild", "lld", "msfl"), "resistivity"),
    ("porosity", 3, ("phi", "por"), "porosity"),
    ("density", 3, ("rhob", "rhoz", "den"), "density"),
    ("caliper", 4, ("cal",), "caliper"),
    ("sp", 5, ("sp",), "spontaneous"),
    ("sonic", 6, ("dt", "sonic"), "sonic"),
)


class ParseError(FatalFileError):
    """The payload is not readable LAS."""
    pass


def infer_category(mnemonic, description=""):
    """Return ``(category, track)`` for a curve, or ``("custom", None)``."""
    m = mnemonic.lower()
    d = (description or "").lower()
    for category, track, fragments, keyword in CATEGORY_RULES:
        if any(f in m for f in fragments) or keyword in d:
            return category, track
    return "custom", None


def _header_value(section, key, default=None):
    if key not in section:
        return default
    value = section[key].value
    if value in ("", None):
        return default
    return value


def _as_float(value):
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _header(las):
    well, version = las.well, las.version
    null_value = _as_float(_header_value(well, "NULL"))
    wrap = str(_header_value(version, "WRAP", "NO")).strip().upper() in ("YES", "Y", "TRUE")
    return {
        "startDepth": _as_float(_header_value(well, "STRT")),
        "stopDepth": _as_float(_header_value(well, "STOP")),
        "step": _as_float(_header_value(well, "STEP")),
        "nullValue": -999.25 if null_value is None else null_value,
        "version": str(_header_value(version, "VERS", "2.0")),
        "wrap": wrap,
        "company": str(_header_value(well, "COMP", "")),
        "well": str(_header_value(well, "WELL", "")),
        "field": str(_header_value(well, "FLD", "")),
        "location": str(_header_value(well, "LOC", "")),
        "extra": {
            item.mnemonic: str(item.value)
            for item in well
            if item.mnemonic not in ("STRT", "STOP", "STEP", "NULL", "COMP", "WELL", "FLD", "LOC")
        },
    }


def parse_las_text(text):
    """Parse LAS text into the ``{"curves", "rows", "header"}`` shape.

    Raises
    ------
    ParseError
        If lasio cannot read the content or it has no curves.
    """
    try:
        las = lasio.read(io.StringIO(text))
    except Exception as e:
        raise ParseError(f"unreadable LAS content: {e}") from e

    if len(las.curves) == 0:
        raise ParseError("LAS file defines no curves")

    index_mnemonic = las.curves[0].mnemonic
    depth = np.asarray(las.index, dtype=float)
    curves, columns = [], {}
    for position, item in enumerate(las.curves[1:]):
        mnemonic = item.mnemonic
        if mnemonic.upper() in DEPTH_MNEMONICS:
            continue
        category, track = infer_category(mnemonic, item.descr)
        curves.append({
            "mnemonic": mnemonic,
            "unit": item.unit or "",
            "description": item.descr or "",
            "category": category,
            "track": track if track is not None else position // 3 + 1,
            "color": CURVE_COLORS[position % len(CURVE_COLORS)],
            "scale": "logarithmic" if category == "resistivity" else "linear",
            "visible": True,
            "dataType": "log",
        })
        columns[mnemonic] = np.asarray(las[mnemonic], dtype=float)

    rows = []
    for i, d in enumerate(depth):
        row = {"depth": float(d)}
        for mnemonic, values in columns.items():
            v = values[i]
            row[mnemonic] = float(v) if np.isfinite(v) else None
        rows.append(row)

    logger.debug("Parsed LAS: index %s, %d curves, %d rows", index_mnemonic, len(curves), len(rows))
    return {"curves": curves, "rows": rows, "header": _header(las)}


def read_las_bytes(buffer, name="unnamed.las"):
    """Decode and parse a LAS payload into a ``WellDataset``.

    Raises
    ------
    ParseError
        For empty or unreadable input.
    """
    if not buffer:
        raise ParseError("empty buffer")
    if isinstance(buffer, bytes):
        text = buffer.decode("utf-8", errors="replace")
    else:
        text = str(buffer)
    if not text.strip():
        raise ParseError("empty buffer")
    return WellDataset.from_parsed(parse_las_text(text), name=name)
