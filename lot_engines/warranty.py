"""
Module: lot_engines.warranty
Responsibility:
    Derive a serial unit's warranty end date and classify its warranty
    window against "now".

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Derivation is calendar-month arithmetic: the month component moves
      by ``months`` and the day is clamped to the target month's length
      (Jan 31 + 1 month = Feb 29 in a leap year).
    - Recomputing from the same start and length always reproduces the
      same end date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from dateutil.relativedelta import relativedelta

from lot_engines.expiry import as_calendar_date, days_until
from lot_kernel.logging_config import get_logger

logger = get_logger("engines.warranty")


class WarrantyTier(str, Enum):
    """Warranty window states."""

    ACTIVE = "active"
    EXPIRED = "expired"
    UNTRACKED = "untracked"  # no start date, so no window


@dataclass(frozen=True)
class WarrantyStatus:
    tier: WarrantyTier
    days_remaining: int | None


def warranty_end_date(start: date | None, months: int) -> date | None:
    """End of the warranty window, or None when there is no start date."""
    if start is None:
        return None
    return start + relativedelta(months=months)


def is_in_warranty(end_date: date | None, as_of: date | datetime) -> bool:
    """True while the window closes strictly after ``as_of``."""
    if end_date is None:
        return False
    return end_date > as_calendar_date(as_of)


def classify_warranty(end_date: date | None, as_of: date | datetime) -> WarrantyStatus:
    """
    Classify a warranty window.

    Postconditions:
        - None -> UNTRACKED.
        - end_date on or before the date of as_of -> EXPIRED.
        - otherwise ACTIVE.  Agrees with ``is_in_warranty`` at every instant.
    """
    if end_date is None:
        return WarrantyStatus(WarrantyTier.UNTRACKED, None)

    days = days_until(end_date, as_of)
    tier = WarrantyTier.EXPIRED if days < 1 else WarrantyTier.ACTIVE
    logger.debug("warranty_classified", extra={
        "warranty_end_date": end_date.isoformat(),
        "days_remaining": days,
        "tier": tier.value,
    })
    return WarrantyStatus(tier, days)
