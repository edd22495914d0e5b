"""
Tracking Configuration Schema.

Defines the knobs the batch and serial registers read.  Override at
instantiation:

    config = TrackingConfig(expiring_soon_days=60, lock_persisted_batch_removal=True)
"""

from dataclasses import dataclass

from lot_engines.expiry import DEFAULT_EXPIRING_SOON_DAYS
from lot_kernel.domain.identifiers import SESSION_ID_THRESHOLD
from lot_kernel.logging_config import get_logger

logger = get_logger("modules.config")


@dataclass(frozen=True)
class TrackingConfig:
    """
    Configuration for both registers.

    Removal locks: batches default to unlocked (a committed batch delete is
    reconciled by quantity elsewhere), serial units default to locked (a
    committed unit delete would lose a unique physical-unit record).  Both
    locks go through the same ``MutabilityGuard``.
    """

    # Expiry
    expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS

    # Identifiers
    session_id_threshold: int = SESSION_ID_THRESHOLD

    # Draft defaults
    default_location: str = "Main Warehouse"

    # Removal locks for persisted records
    lock_persisted_batch_removal: bool = False
    lock_persisted_serial_removal: bool = True

    def __post_init__(self):
        if self.expiring_soon_days < 0:
            raise ValueError("expiring_soon_days cannot be negative")
        if self.session_id_threshold <= 0:
            raise ValueError("session_id_threshold must be positive")
        logger.debug("tracking_config_created", extra={
            "expiring_soon_days": self.expiring_soon_days,
            "lock_persisted_batch_removal": self.lock_persisted_batch_removal,
            "lock_persisted_serial_removal": self.lock_persisted_serial_removal,
        })
