"""
Module: lot_engines.expiry
Responsibility:
    Classify a calendar date against "now" into an expiry tier.  Used for
    per-batch status badges, the expired count in register stats, and the
    expiring-soon query.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Purity: no clock access; ``as_of`` is always passed in.
    - Deterministic tier for identical inputs.

Failure modes:
    - ValueError when the expiring-soon window is negative.

Usage:
    from datetime import date
    from lot_engines.expiry import ExpiryClassifier, ExpiryTier

    classifier = ExpiryClassifier()
    status = classifier.classify(date(2024, 2, 1), as_of=date(2024, 1, 15))
    status.tier            # ExpiryTier.EXPIRING_SOON
    status.days_remaining  # 17
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from lot_kernel.logging_config import get_logger

logger = get_logger("engines.expiry")

DEFAULT_EXPIRING_SOON_DAYS = 30


class ExpiryTier(str, Enum):
    """Severity tiers for a dated lot."""

    EXPIRED = "expired"
    EXPIRING_SOON = "expiring-soon"
    HEALTHY = "healthy"
    UNDATED = "undated"


@dataclass(frozen=True)
class ExpiryStatus:
    """A tier plus the day count it was derived from (None when undated)."""

    tier: ExpiryTier
    days_remaining: int | None

    @property
    def is_expired(self) -> bool:
        return self.tier is ExpiryTier.EXPIRED


def as_calendar_date(moment: date | datetime) -> date:
    """Reduce an instant to its calendar date."""
    if isinstance(moment, datetime):
        return moment.date()
    return moment


def days_until(target: date, as_of: date | datetime) -> int:
    """
    Whole days from ``as_of`` to ``target``.

    ``ceil((target - as_of) / 1 day)`` with ``target`` at midnight is the
    plain calendar-day difference against the date of ``as_of``: any
    fraction of the current day rounds back up to zero.
    """
    return (target - as_calendar_date(as_of)).days


class ExpiryClassifier:
    """
    Maps an expiry date to a tier.

    Contract:
        Pure -- no I/O, no clock.
    Guarantees:
        - None -> UNDATED.
        - days < 0 -> EXPIRED.
        - 0 <= days <= soon_days -> EXPIRING_SOON.
        - days > soon_days -> HEALTHY.
    """

    def __init__(self, soon_days: int = DEFAULT_EXPIRING_SOON_DAYS):
        if soon_days < 0:
            raise ValueError("soon_days cannot be negative")
        self.soon_days = soon_days

    def classify(self, expiry_date: date | None, as_of: date | datetime) -> ExpiryStatus:
        if expiry_date is None:
            return ExpiryStatus(ExpiryTier.UNDATED, None)

        days = days_until(expiry_date, as_of)
        if days < 0:
            tier = ExpiryTier.EXPIRED
        elif days <= self.soon_days:
            tier = ExpiryTier.EXPIRING_SOON
        else:
            tier = ExpiryTier.HEALTHY

        logger.debug("expiry_classified", extra={
            "expiry_date": expiry_date.isoformat(),
            "as_of": as_calendar_date(as_of).isoformat(),
            "days_remaining": days,
            "tier": tier.value,
        })
        return ExpiryStatus(tier, days)


def classify_expiry(
    expiry_date: date | None,
    as_of: date | datetime,
    soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> ExpiryStatus:
    """Convenience wrapper around ``ExpiryClassifier.classify``."""
    return ExpiryClassifier(soon_days).classify(expiry_date, as_of)
