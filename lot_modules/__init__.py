"""
Lot Modules.

Thin orchestration layers over the lot kernel and engines.  Each register
owns one product's records and exposes entry, edit, removal and read-model
operations to the host form.

Modules:
- Batches: lot/expiry register, FEFO ordering and allocation, lot codes
- Serials: per-unit warranty register, bulk scan entry

Actual validation and calculation logic lives in the kernel and engines.
"""

from lot_modules.batches import BatchRegister, BatchStats
from lot_modules.config import TrackingConfig
from lot_modules.serials import SerialRegister, SerialStats

__all__ = [
    "BatchRegister",
    "BatchStats",
    "SerialRegister",
    "SerialStats",
    "TrackingConfig",
]
