"""
Module: lot_engines.batch_codes
Responsibility:
    Suggest a traceable lot code for the next batch entry:
    ``{PREFIX}-B{YYMMDD}{SEQ}``.

Architecture position:
    Engines -- pure, the date is passed in.

The sequence is derived from the number of batches already entered, not
from a persisted counter, so a suggestion can collide with an existing
code.  Callers still run the result through duplicate validation.
"""

from __future__ import annotations

from datetime import date

DEFAULT_CODE_PREFIX = "BN"


def code_prefix(sku: str | None, fallback_prefix: str | None) -> str:
    """First ``-``-separated token of the SKU, else the category prefix."""
    if sku and sku.strip():
        token = sku.strip().split("-")[0]
        if token:
            return token
    return fallback_prefix or DEFAULT_CODE_PREFIX


def suggest_batch_code(
    existing_count: int,
    sku: str | None,
    fallback_prefix: str | None,
    as_of: date,
) -> str:
    """
    Build a suggested batch code.

    >>> suggest_batch_code(2, "PAN-500", "PH", date(2024, 3, 9))
    'PAN-B240309003'
    """
    prefix = code_prefix(sku, fallback_prefix)
    sequence = str(existing_count + 1).zfill(3)
    return f"{prefix}-B{as_of.strftime('%y%m%d')}{sequence}".upper()
