"""
Module: lot_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by
    the batch and serial registers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import lot_kernel.  MUST NOT import lot_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Callers pass the date to evaluate against.
    - Decimal-only arithmetic for quantities and prices.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from lot_engines import ExpiryClassifier, fefo_order, allocate_fefo
    from lot_engines import warranty_end_date, suggest_batch_code
"""

from lot_kernel.logging_config import get_logger

logger = get_logger("engines")

from lot_engines.batch_codes import code_prefix, suggest_batch_code
from lot_engines.expiry import (
    DEFAULT_EXPIRING_SOON_DAYS,
    ExpiryClassifier,
    ExpiryStatus,
    ExpiryTier,
    classify_expiry,
    days_until,
)
from lot_engines.fefo import (
    FefoAllocation,
    FefoAllocationLine,
    allocate_fefo,
    expiring_within,
    fefo_order,
    fefo_sort_key,
)
from lot_engines.tracer import traced_engine
from lot_engines.warranty import (
    WarrantyStatus,
    WarrantyTier,
    classify_warranty,
    is_in_warranty,
    warranty_end_date,
)

__all__ = [
    "code_prefix",
    "suggest_batch_code",
    "DEFAULT_EXPIRING_SOON_DAYS",
    "ExpiryClassifier",
    "ExpiryStatus",
    "ExpiryTier",
    "classify_expiry",
    "days_until",
    "FefoAllocation",
    "FefoAllocationLine",
    "allocate_fefo",
    "expiring_within",
    "fefo_order",
    "fefo_sort_key",
    "traced_engine",
    "WarrantyStatus",
    "WarrantyTier",
    "classify_warranty",
    "is_in_warranty",
    "warranty_end_date",
]
