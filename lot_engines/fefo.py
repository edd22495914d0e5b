"""
Module: lot_engines.fefo
Responsibility:
    First-Expiry-First-Out ordering of batches and the allocation of a
    requested quantity across them.  The first batch in FEFO order is the
    one downstream sale/issue logic should deplete first.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Never mutates batches;
    an allocation is a plan the caller may apply elsewhere.

Invariants enforced:
    - Dated batches sort ascending by expiry; undated batches sort after
      every dated batch.
    - The sort is stable: equal expiry dates keep insertion order.
    - An allocation's line quantities sum to exactly the requested quantity.

Failure modes:
    - ValueError if the requested quantity is not positive.
    - InsufficientStockError when the batches cannot cover the request.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from lot_engines.expiry import ExpiryClassifier, ExpiryTier, days_until
from lot_engines.tracer import traced_engine
from lot_kernel.domain.identifiers import RecordId
from lot_kernel.domain.records import Batch
from lot_kernel.exceptions import InsufficientStockError
from lot_kernel.logging_config import get_logger

logger = get_logger("engines.fefo")


def fefo_sort_key(batch: Batch) -> tuple[int, date]:
    """Undated batches sort as if they never expire."""
    if batch.expiry_date is None:
        return (1, date.max)
    return (0, batch.expiry_date)


def fefo_order(batches: Iterable[Batch]) -> list[Batch]:
    """All batches in consumption priority order (new list)."""
    return sorted(batches, key=fefo_sort_key)


@dataclass(frozen=True)
class FefoAllocationLine:
    """Quantity drawn from one batch."""

    batch_id: RecordId
    batch_number: str
    quantity: Decimal
    cost_price: Decimal
    expiry_date: date | None

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.cost_price


@dataclass(frozen=True)
class FefoAllocation:
    """
    A plan for drawing ``requested`` units.

    Guarantees:
        - sum(line.quantity) == requested.
        - Lines appear in FEFO order.
    """

    requested: Decimal
    lines: tuple[FefoAllocationLine, ...]

    @property
    def total_cost(self) -> Decimal:
        return sum((line.cost for line in self.lines), Decimal("0"))

    @property
    def batch_count(self) -> int:
        return len(self.lines)


@traced_engine("fefo_allocation", "1.0", fingerprint_fields=("quantity_needed", "exclude_expired_as_of"))
def allocate_fefo(
    batches: Sequence[Batch],
    quantity_needed: Decimal,
    exclude_expired_as_of: date | datetime | None = None,
) -> FefoAllocation:
    """
    Allocate ``quantity_needed`` across ``batches`` in FEFO order.

    Preconditions:
        quantity_needed > 0.

    Postconditions:
        Batches with no positive quantity are skipped.  When
        ``exclude_expired_as_of`` is given, batches already expired on that
        date are skipped too.

    Raises:
        ValueError: If quantity_needed <= 0.
        InsufficientStockError: If the eligible batches hold less than
            quantity_needed.
    """
    quantity_needed = Decimal(str(quantity_needed))
    if quantity_needed <= 0:
        raise ValueError(f"Quantity to allocate must be positive, got {quantity_needed}")

    lines: list[FefoAllocationLine] = []
    remaining = quantity_needed
    for batch in fefo_order(batches):
        if remaining <= 0:
            break
        if batch.quantity <= 0:
            continue
        if (
            exclude_expired_as_of is not None
            and batch.expiry_date is not None
            and days_until(batch.expiry_date, exclude_expired_as_of) < 0
        ):
            continue

        take = min(batch.quantity, remaining)
        lines.append(FefoAllocationLine(
            batch_id=batch.id,
            batch_number=batch.batch_number,
            quantity=take,
            cost_price=batch.cost_price,
            expiry_date=batch.expiry_date,
        ))
        remaining -= take

    if remaining > 0:
        available = quantity_needed - remaining
        logger.warning("fefo_allocation_short", extra={
            "needed": str(quantity_needed),
            "available": str(available),
        })
        raise InsufficientStockError(quantity_needed, available)

    logger.info("fefo_allocation_planned", extra={
        "requested": str(quantity_needed),
        "batch_count": len(lines),
    })
    return FefoAllocation(requested=quantity_needed, lines=tuple(lines))


def expiring_within(
    batches: Iterable[Batch],
    days: int,
    as_of: date | datetime,
) -> list[Batch]:
    """
    Batches that have not expired but will within ``days``, FEFO ordered.

    Raises:
        ValueError: If days is negative.
    """
    classifier = ExpiryClassifier(soon_days=days)
    return [
        b for b in fefo_order(batches)
        if classifier.classify(b.expiry_date, as_of).tier is ExpiryTier.EXPIRING_SOON
    ]
