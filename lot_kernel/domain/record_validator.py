"""RecordValidator -- Pure entry validation for batches and serial units."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from lot_kernel.domain.dtos import Rejection, RejectionKind
from lot_kernel.domain.identifiers import RecordId
from lot_kernel.domain.records import (
    Batch,
    BatchDraft,
    SerialDraft,
    SerialUnit,
    normalize_identifier,
)
from lot_kernel.logging_config import get_logger

logger = get_logger("domain.record_validator")


def validate_batch(
    candidate: BatchDraft,
    existing: Iterable[Batch],
    *,
    expiry_mandatory: bool,
    identifier_label: str = "Batch number",
    exclude_id: RecordId | None = None,
    check_quantity: bool = True,
) -> Rejection | None:
    """
    Check a batch candidate against the entry rules, in order.

    Preconditions:
        ``exclude_id`` is the id of the record being saved (its own number
        is not a duplicate of itself), or None for a new entry.
        ``check_quantity`` is False when saving a committed batch, whose
        stock may already be drawn down to zero.

    Postconditions:
        Returns the FIRST failing rule as a Rejection, or None if the
        candidate may be accepted.
    """
    rejection = (
        _check_identifier_present(candidate.batch_number, identifier_label, "batch_number")
        or _check_expiry_present(candidate, expiry_mandatory)
        or (_check_quantity_positive(candidate.quantity) if check_quantity else None)
        or _check_date_order(candidate)
        or _check_unique(
            candidate.batch_number,
            ((b.id, b.batch_number) for b in existing),
            identifier_label,
            "batch_number",
            exclude_id,
        )
    )
    _log_outcome("batch", candidate.batch_number, rejection)
    return rejection


def validate_serial(
    candidate: SerialDraft,
    existing: Iterable[SerialUnit],
    *,
    identifier_label: str = "Serial number",
) -> Rejection | None:
    """Check a serial candidate against the entry rules, in order."""
    rejection = (
        _check_identifier_present(candidate.serial_number, identifier_label, "serial_number")
        or _check_unique(
            candidate.serial_number,
            ((u.id, u.serial_number) for u in existing),
            identifier_label,
            "serial_number",
            None,
        )
        or _check_warranty_term(candidate.warranty_months)
    )
    _log_outcome("serial", candidate.serial_number, rejection)
    return rejection


def _check_identifier_present(value: str, label: str, field: str) -> Rejection | None:
    if not normalize_identifier(value):
        return Rejection(RejectionKind.EMPTY_IDENTIFIER, f"{label} is required", field)
    return None


def _check_expiry_present(candidate: BatchDraft, expiry_mandatory: bool) -> Rejection | None:
    if expiry_mandatory and candidate.expiry_date is None:
        return Rejection(
            RejectionKind.MISSING_EXPIRY,
            "Expiry date is required for this category",
            "expiry_date",
        )
    return None


def _check_quantity_positive(quantity: Decimal) -> Rejection | None:
    if quantity <= 0:
        return Rejection(
            RejectionKind.NON_POSITIVE_QUANTITY,
            "Quantity must be greater than 0",
            "quantity",
        )
    return None


def _check_date_order(candidate: BatchDraft) -> Rejection | None:
    mfg, exp = candidate.manufacturing_date, candidate.expiry_date
    if mfg is not None and exp is not None and exp <= mfg:
        return Rejection(
            RejectionKind.INVALID_DATE_ORDER,
            "Expiry date must be after manufacturing date",
            "expiry_date",
        )
    return None


def _check_unique(
    value: str,
    existing: Iterable[tuple[RecordId, str]],
    label: str,
    field: str,
    exclude_id: RecordId | None,
) -> Rejection | None:
    wanted = normalize_identifier(value)
    for record_id, number in existing:
        if exclude_id is not None and record_id == exclude_id:
            continue
        if normalize_identifier(number) == wanted:
            return Rejection(
                RejectionKind.DUPLICATE_IDENTIFIER,
                f"{label} {wanted} already exists",
                field,
            )
    return None


def _check_warranty_term(months: int) -> Rejection | None:
    if months < 0:
        return Rejection(
            RejectionKind.INVALID_WARRANTY_TERM,
            "Warranty length cannot be negative",
            "warranty_months",
        )
    return None


def _log_outcome(record_type: str, identifier: str, rejection: Rejection | None) -> None:
    if rejection is None:
        logger.debug("validation_passed", extra={
            "record_type": record_type,
            "identifier": normalize_identifier(identifier),
        })
        return
    logger.info("validation_failed", extra={
        "record_type": record_type,
        "identifier": normalize_identifier(identifier),
        "rejection_kind": rejection.kind.value,
        "field": rejection.field,
    })
