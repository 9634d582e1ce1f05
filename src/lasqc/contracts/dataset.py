"""Dataset stage contracts.

Enforce the structural guarantees of parsing and of every data stage.
We do NOT validate petrophysical plausibility here (that is the quality
scorer's job); only shapes, columns, and null bookkeeping.
"""

import numpy as np
from lasqc.contracts.base import require

DEPTH = "depth"


def assert_parsed(dataset) -> None:
    """Enforce the parse contract.

    Raises
    ------
    ContractViolation
        If the frames lack a depth column, columns do not match the curve
        list, or the original and current snapshots differ in shape.
    """
    original = dataset.original
    data = dataset.data
    expected = [DEPTH, *dataset.mnemonics]

    require(
        list(original.columns) == expected,
        f"Parse contract violated: columns {list(original.columns)} != {expected}"
    )
    require(
        original.shape == data.shape,
        f"Parse contract violated: snapshot shapes differ {original.shape} vs {data.shape}"
    )
    for mnemonic in dataset.mnemonics:
        require(
            original[mnemonic].dtype.kind == "f",
            f"Parse contract violated: curve '{mnemonic}' is not float typed"
        )


def assert_stage_output(before, after, stage: str) -> None:
    """Enforce the contract shared by all data stages.

    Called after denoise/despike/baseline. A stage may change values but
    must not change shape, depth, or which samples exist, with one
    exception: despiking with ``null`` replacement may null out flagged
    samples, so only "no new data" is checked (null -> value is forbidden).
    """
    a, b = before.data, after.data
    require(
        list(a.columns) == list(b.columns),
        f"{stage} contract violated: columns changed {list(a.columns)} -> {list(b.columns)}"
    )
    require(
        a.shape == b.shape,
        f"{stage} contract violated: shape changed {a.shape} -> {b.shape}"
    )
    require(
        np.array_equal(a[DEPTH].to_numpy(), b[DEPTH].to_numpy(), equal_nan=True),
        f"{stage} contract violated: depth column modified"
    )
    for mnemonic in before.mnemonics:
        was_null = ~np.isfinite(a[mnemonic].to_numpy(dtype=float))
        now_valid = np.isfinite(b[mnemonic].to_numpy(dtype=float))
        require(
            not np.any(was_null & now_valid),
            f"{stage} contract violated: curve '{mnemonic}' gained values at null positions"
        )
    require(
        before.original.equals(after.original),
        f"{stage} contract violated: original snapshot modified"
    )
