"""Curve mnemonic standardization.

Maps vendor mnemonics (``TNPH``, ``RHOZ``, ``ILD``...) onto a naming
standard. Lookup tries an exact match first, then a partial match in
either direction, preferring the longest matching key.
"""

import logging
from dataclasses import dataclass, field

from lasqc.schemas.param import MnemonicConfig

__all__ = ["MnemonicStandardizer", "StandardizationResult"]

logger = logging.getLogger(__name__)

MIN_PARTIAL_LENGTH = 2


@dataclass
class StandardizationResult:
    data: object
    mapped: dict = field(default_factory=dict)
    unmapped: list = field(default_factory=list)
    warnings: list = field(default_factory=list)


class MnemonicStandardizer:
    """Standardize curve mnemonics against the configured table.

    Parameters
    ----------
    config : MnemonicConfig
        ``standard`` selects the api/cwls table; ``custom_mappings`` are
        layered on top (and are the whole table for ``custom``).
    """

    def __init__(self, config: MnemonicConfig):
        self.config = config
        if config.standard == "api":
            table = dict(config.api_table)
        elif config.standard == "cwls":
            table = dict(config.cwls_table)
        else:
            table = {}
        table.update(config.custom_mappings)
        self.table = table
        self.standard_names = set(table.values())

    def lookup(self, mnemonic):
        """Return the standard mnemonic for ``mnemonic`` or None."""
        key = mnemonic.upper().strip()
        if key in self.table:
            return self.table[key]
        if key in self.standard_names:
            return key
        if len(key) < MIN_PARTIAL_LENGTH:
            return None

        candidates = [
            k for k in (*self.table, *self.standard_names)
            if len(k) >= MIN_PARTIAL_LENGTH and (k in key or key in k)
        ]
        if not candidates:
            return None
        best = max(candidates, key=lambda k: (len(k), k))
        return self.table.get(best, best)

    def standardize(self, dataset) -> StandardizationResult:
        """Apply the mapping to every curve of ``dataset``.

        With ``preserve_original`` the mnemonic is kept and the mapping is
        recorded in ``standard_mnemonic``. Otherwise curves are renamed;
        a rename that would collide with another curve is refused with a
        warning and recorded in ``standard_mnemonic`` instead.
        """
        curves, renames, mapped, unmapped, warnings = [], {}, {}, [], []
        taken = set(dataset.mnemonics)

        for curve in dataset.curves:
            standard = self.lookup(curve.mnemonic)
            if standard is None:
                unmapped.append(curve.mnemonic)
                curves.append(curve)
                continue

            mapped[curve.mnemonic] = standard
            if self.config.preserve_original or standard == curve.mnemonic:
                curves.append(curve.model_copy(update={"standard_mnemonic": standard}))
            elif standard in taken:
                msg = (f"cannot rename {curve.mnemonic} to {standard}: "
                       f"mnemonic already present")
                logger.warning(msg)
                warnings.append(msg)
                curves.append(curve.model_copy(update={"standard_mnemonic": standard}))
            else:
                taken.discard(curve.mnemonic)
                taken.add(standard)
                renames[curve.mnemonic] = standard
                curves.append(curve.model_copy(update={
                    "mnemonic": standard,
                    "standard_mnemonic": standard,
                }))

        logger.info("Standardized %d/%d mnemonics (%s)",
                    len(mapped), len(curves), self.config.standard)
        return StandardizationResult(
            data=dataset.with_curves(curves, renames=renames),
            mapped=mapped,
            unmapped=unmapped,
            warnings=warnings,
        )

    def mapping_statistics(self, curves) -> dict:
        """Coverage of standardized curves.

        A curve counts as standardized when it has a ``standard_mnemonic``
        or its mnemonic already is a standard name.
        """
        total = len(curves)
        standardized = sum(
            1 for c in curves
            if c.standard_mnemonic or c.mnemonic.upper() in self.standard_names
        )
        return {
            "total": total,
            "standardized": standardized,
            "coverage": standardized / total * 100.0 if total else 0.0,
        }
