"""
BatchRegister -- lot/expiry register for one product.

Responsibility:
    Owns the product's batches; accepts entries through a draft with sticky
    defaults; edits and removes under the mutability policy; reports FEFO
    order, expiry tiers, stock and value totals; suggests lot codes.

Architecture position:
    Modules -- thin orchestration over lot_engines (expiry, FEFO, codes)
    and lot_kernel (records, validation, identifiers).

Invariants enforced:
    - Batch numbers are unique case-insensitively and stored upper-case.
    - Accepted entries have quantity > 0 and, when both dates are set,
      expiry strictly after manufacturing.
    - A persisted batch's quantity never changes through ``save``.
    - ``stats().total_quantity`` is always the sum over the current list.

Failure modes:
    - Entry problems come back as rejected ``RegisterResult`` values.
    - ``RecordNotFoundError`` from ``edit`` for an unknown id.
    - ``InsufficientStockError`` from ``allocate``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from lot_engines.batch_codes import suggest_batch_code
from lot_engines.expiry import ExpiryClassifier, ExpiryStatus
from lot_engines.fefo import FefoAllocation, allocate_fefo, expiring_within, fefo_order
from lot_kernel.domain.dtos import RegisterResult, RejectionKind
from lot_kernel.domain.identifiers import RecordId
from lot_kernel.domain.record_validator import validate_batch
from lot_kernel.domain.records import (
    BATCH_STATUS_ACTIVE,
    Batch,
    BatchDraft,
    normalize_identifier,
)
from lot_kernel.exceptions import InvalidRecordError, RecordNotFoundError
from lot_modules._register import RecordRegister, bound_to_session

_ZERO = Decimal("0")


@dataclass(frozen=True)
class BatchStats:
    """Aggregate view of a batch register."""

    total_quantity: Decimal
    total_value: Decimal
    expired_count: int
    next_to_expire: Batch | None
    next_expiry_days: int | None
    batch_count: int


class BatchRegister(RecordRegister[Batch]):
    """
    Batches of one product, in insertion order.

    Usage:
        register = BatchRegister(product=product, policies=policies, on_change=form.set_batches)
        register.update_draft(batch_number=register.suggest_code(), quantity=10,
                              expiry_date=date(2025, 6, 1))
        result = register.add()
        if not result:
            form.focus(result.rejection.field)
    """

    record_type = "batch"

    def __init__(self, initial=(), **kwargs: Any):
        super().__init__(initial, **kwargs)
        self._classifier = ExpiryClassifier(self._config.expiring_soon_days)
        self._editing_id: RecordId | None = None
        self._draft = self._smart_defaults(from_last_entry=False)

    def _from_mapping(self, data: Mapping[str, Any]) -> Batch:
        return Batch.from_mapping(data, self._config.session_id_threshold)

    # -- labels and policy ---------------------------------------------------

    @property
    def identifier_label(self) -> str:
        return self._policy.batch_label

    @property
    def expiry_mandatory(self) -> bool:
        return self._policy.expiry_mandatory

    # -- draft ---------------------------------------------------------------

    @property
    def draft(self) -> BatchDraft:
        return self._draft

    @property
    def editing_id(self) -> RecordId | None:
        return self._editing_id

    def update_draft(self, **changes: Any) -> BatchDraft:
        """Apply form input to the draft."""
        self._draft = replace(self._draft, **changes)
        return self._draft

    def _smart_defaults(self, from_last_entry: bool) -> BatchDraft:
        last = self._records[-1] if self._records else None
        manufacturing = self._clock.today()
        expiry = None
        if from_last_entry and last is not None:
            manufacturing = last.manufacturing_date
            expiry = last.expiry_date
        location = last.location if last is not None and last.location else self._config.default_location
        return BatchDraft(
            batch_number="",
            manufacturing_date=manufacturing,
            expiry_date=expiry,
            quantity=_ZERO,
            cost_price=self._product.cost_price,
            mrp=self._product.price,
            location=location,
        )

    def _resolve(
        self,
        candidate: BatchDraft | Mapping[str, Any] | None,
        base: BatchDraft | None = None,
    ) -> BatchDraft:
        """Fill a candidate from ``base`` (the draft unless given)."""
        base = self._draft if base is None else base
        if candidate is None:
            return base
        if isinstance(candidate, Mapping):
            return base.merge(candidate)
        return candidate

    def suggest_code(self, as_of: date | datetime | None = None) -> str:
        """Suggested lot code for the next entry; does not touch the draft."""
        return suggest_batch_code(
            len(self._records),
            self._product.sku,
            self._policy.batch_code_prefix,
            self._today(as_of),
        )

    # -- mutations -----------------------------------------------------------

    @bound_to_session
    def add(self, candidate: BatchDraft | Mapping[str, Any] | None = None) -> RegisterResult[Batch]:
        """
        Validate and append a new batch (defaults to the current draft).

        On success the draft keeps cost, MRP, location and both dates, and
        clears the batch number and quantity for the next entry.
        """
        try:
            candidate = self._resolve(candidate)
        except InvalidRecordError as e:
            return self._invalid_input(e)
        rejection = validate_batch(
            candidate,
            self._records,
            expiry_mandatory=self.expiry_mandatory,
            identifier_label=self.identifier_label,
        )
        if rejection is not None:
            self._logger.info("batch_rejected", extra={
                "batch_number": candidate.batch_number,
                "rejection_kind": rejection.kind.value,
            })
            return RegisterResult.from_rejection(rejection)

        batch = Batch(
            id=self._ids.next_id(),
            batch_number=normalize_identifier(candidate.batch_number),
            quantity=candidate.quantity,
            manufacturing_date=candidate.manufacturing_date,
            expiry_date=candidate.expiry_date,
            cost_price=candidate.cost_price,
            mrp=candidate.mrp,
            location=candidate.location,
            status=BATCH_STATUS_ACTIVE,
        )
        self._commit(self._records + (batch,))
        self._draft = replace(candidate, batch_number="", quantity=_ZERO)

        self._logger.info("batch_added", extra={
            "record_id": str(batch.id),
            "batch_number": batch.batch_number,
            "quantity": str(batch.quantity),
            "expiry_date": batch.expiry_date,
            "batch_count": len(self._records),
        })
        return RegisterResult.ok(batch)

    @bound_to_session
    def edit(self, record_id: Any) -> BatchDraft:
        """
        Load a batch into the draft for modification.

        Check ``is_quantity_locked`` to disable the quantity control for
        committed batches.

        Raises:
            RecordNotFoundError: If no batch has this id.
        """
        batch = self.get(record_id)
        if batch is None:
            raise RecordNotFoundError("batch", str(record_id))

        self._editing_id = batch.id
        self._draft = BatchDraft.from_batch(batch)
        self._logger.debug("batch_edit_started", extra={
            "record_id": str(batch.id),
            "persisted": batch.id.is_persisted,
        })
        return self._draft

    def is_quantity_locked(self, record_id: Any) -> bool:
        """True for committed batches: quantity is read-only here."""
        return self._guard.is_persisted(record_id)

    @bound_to_session
    def save(
        self,
        record_id: Any = None,
        updated: BatchDraft | Mapping[str, Any] | None = None,
    ) -> RegisterResult[Batch]:
        """
        Replace a batch in place after re-validating it.

        ``record_id`` defaults to the batch being edited and ``updated`` to
        the draft.  A mapping is applied over the batch being saved, or
        over the draft when that batch is the one in edit.  Id and status
        are kept; the number is re-normalized.
        """
        target = record_id if record_id is not None else self._editing_id
        existing = self.get(target) if target is not None else None
        if existing is None:
            return self._not_found(target)

        base = None if existing.id == self._editing_id else BatchDraft.from_batch(existing)
        try:
            candidate = self._resolve(updated, base)
        except InvalidRecordError as e:
            return self._invalid_input(e)
        locked = existing.id.is_persisted
        if locked and candidate.quantity != existing.quantity:
            self._logger.info("batch_quantity_edit_refused", extra={
                "record_id": str(existing.id),
                "stored_quantity": str(existing.quantity),
                "requested_quantity": str(candidate.quantity),
            })
            return RegisterResult.rejected(
                RejectionKind.PERSISTED_RECORD_IMMUTABLE,
                "Quantity of a committed batch cannot be edited here",
                "quantity",
            )

        rejection = validate_batch(
            candidate,
            self._records,
            expiry_mandatory=self.expiry_mandatory,
            identifier_label=self.identifier_label,
            exclude_id=existing.id,
            # a committed lot may already be drawn down to zero
            check_quantity=not locked,
        )
        if rejection is not None:
            self._logger.info("batch_rejected", extra={
                "record_id": str(existing.id),
                "batch_number": candidate.batch_number,
                "rejection_kind": rejection.kind.value,
            })
            return RegisterResult.from_rejection(rejection)

        saved = replace(
            existing,
            batch_number=normalize_identifier(candidate.batch_number),
            quantity=candidate.quantity,
            manufacturing_date=candidate.manufacturing_date,
            expiry_date=candidate.expiry_date,
            cost_price=candidate.cost_price,
            mrp=candidate.mrp,
            location=candidate.location,
        )
        self._commit(tuple(saved if b.id == existing.id else b for b in self._records))
        if existing.id == self._editing_id:
            self._editing_id = None
            self._draft = self._smart_defaults(from_last_entry=True)

        self._logger.info("batch_saved", extra={
            "record_id": str(saved.id),
            "batch_number": saved.batch_number,
            "persisted": locked,
        })
        return RegisterResult.ok(saved)

    def cancel_edit(self) -> BatchDraft:
        """Leave edit mode and reset the draft to smart defaults."""
        self._editing_id = None
        self._draft = self._smart_defaults(from_last_entry=True)
        return self._draft

    @bound_to_session
    def remove(self, record_id: Any) -> RegisterResult[Batch]:
        """Remove a batch (committed batches too, unless configured otherwise)."""
        result = self._remove(record_id, self._config.lock_persisted_batch_removal)
        if result and self._editing_id == result.record.id:
            self.cancel_edit()
        return result

    def is_removal_locked(self, record_id: Any) -> bool:
        return self._config.lock_persisted_batch_removal and self._guard.is_persisted(record_id)

    # -- read models ---------------------------------------------------------

    def fefo_order(self) -> list[Batch]:
        """Batches in consumption priority; undated last."""
        return fefo_order(self._records)

    def expiry_status(self, batch: Batch, as_of: date | datetime | None = None) -> ExpiryStatus:
        return self._classifier.classify(batch.expiry_date, self._today(as_of))

    def stats(self, as_of: date | datetime | None = None) -> BatchStats:
        today = self._today(as_of)
        expired_count = 0
        next_to_expire: Batch | None = None
        next_days: int | None = None

        for batch in self.fefo_order():
            status = self._classifier.classify(batch.expiry_date, today)
            if status.is_expired:
                expired_count += 1
            elif next_to_expire is None and status.days_remaining is not None:
                next_to_expire = batch
                next_days = status.days_remaining

        return BatchStats(
            total_quantity=sum((b.quantity for b in self._records), _ZERO),
            total_value=sum((b.value for b in self._records), _ZERO),
            expired_count=expired_count,
            next_to_expire=next_to_expire,
            next_expiry_days=next_days,
            batch_count=len(self._records),
        )

    def expiring_within(
        self,
        days: int | None = None,
        as_of: date | datetime | None = None,
    ) -> list[Batch]:
        """Unexpired batches expiring within ``days`` (default: the soon window)."""
        window = self._config.expiring_soon_days if days is None else days
        return expiring_within(self._records, window, self._today(as_of))

    @bound_to_session
    def allocate(
        self,
        quantity: Decimal | int | str,
        *,
        exclude_expired: bool = False,
        as_of: date | datetime | None = None,
    ) -> FefoAllocation:
        """Plan drawing ``quantity`` in FEFO order; the register is unchanged."""
        return allocate_fefo(
            self._records,
            quantity_needed=Decimal(str(quantity)),
            exclude_expired_as_of=self._today(as_of) if exclude_expired else None,
        )
