"""
Batch Register Module.

Lot-tracked stock for one product: entry with sticky defaults, edit and
removal under the mutability policy, FEFO ordering, expiry tiers and
allocation planning.
"""

from lot_modules.batches.register import BatchRegister, BatchStats

__all__ = [
    "BatchRegister",
    "BatchStats",
]
