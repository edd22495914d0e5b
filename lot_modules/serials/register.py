"""
SerialRegister -- per-unit warranty register for one product.

Responsibility:
    Owns the product's serial units; accepts single and bulk entries through
    a draft with sticky dates and warranty length; derives each unit's
    warranty end date; removes under the mutability policy; reports
    availability and warranty counts.

Architecture position:
    Modules -- thin orchestration over lot_engines.warranty and the
    kernel records, validator and identifiers.

Invariants enforced:
    - Serial numbers are unique case-insensitively and stored upper-case.
    - ``warranty_end_date`` is derived at insertion from start date and
      length and is never taken from the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

from lot_engines.warranty import (
    WarrantyStatus,
    classify_warranty,
    is_in_warranty,
    warranty_end_date,
)
from lot_kernel.domain.dtos import BulkAddResult, RegisterResult
from lot_kernel.domain.record_validator import validate_serial
from lot_kernel.domain.records import (
    SERIAL_STATUS_AVAILABLE,
    SerialDraft,
    SerialUnit,
    normalize_identifier,
)
from lot_kernel.exceptions import InvalidRecordError
from lot_modules._register import RecordRegister, bound_to_session


@dataclass(frozen=True)
class SerialStats:
    """Aggregate view of a serial register."""

    total: int
    available: int
    in_warranty: int


class SerialRegister(RecordRegister[SerialUnit]):
    """
    Serial units of one product, in insertion order.

    Usage:
        register = SerialRegister(product=product, policies=policies)
        register.update_draft(serial_number="SN-0001")
        register.add()
        register.add_bulk("SN-0002\\nSN-0003")
    """

    record_type = "serial"

    def __init__(self, initial=(), **kwargs: Any):
        super().__init__(initial, **kwargs)
        today = self._clock.today()
        self._draft = SerialDraft(
            serial_number="",
            purchase_date=today,
            warranty_start_date=today,
            warranty_months=self.default_warranty_months,
        )

    def _from_mapping(self, data: Mapping[str, Any]) -> SerialUnit:
        return SerialUnit.from_mapping(data, self._config.session_id_threshold)

    @property
    def identifier_label(self) -> str:
        return self._policy.serial_label

    @property
    def default_warranty_months(self) -> int:
        """Product warranty length, else the category default."""
        if self._product.warranty_months is not None:
            return self._product.warranty_months
        return self._policy.default_warranty_months

    @property
    def draft(self) -> SerialDraft:
        return self._draft

    def update_draft(self, **changes: Any) -> SerialDraft:
        self._draft = replace(self._draft, **changes)
        return self._draft

    def _resolve(self, candidate: SerialDraft | Mapping[str, Any] | str | None) -> SerialDraft:
        if candidate is None:
            return self._draft
        if isinstance(candidate, str):
            return replace(self._draft, serial_number=candidate)
        if isinstance(candidate, Mapping):
            return self._draft.merge(candidate)
        return candidate

    # -- mutations -----------------------------------------------------------

    @bound_to_session
    def add(
        self,
        candidate: SerialDraft | Mapping[str, Any] | str | None = None,
    ) -> RegisterResult[SerialUnit]:
        """
        Validate and append one unit.

        ``candidate`` defaults to the draft; a bare string is a serial
        number entered against the draft's dates and warranty length.  On
        success only the draft's serial number is cleared.
        """
        try:
            candidate = self._resolve(candidate)
        except InvalidRecordError as e:
            return self._invalid_input(e)
        rejection = validate_serial(
            candidate,
            self._records,
            identifier_label=self.identifier_label,
        )
        if rejection is not None:
            self._logger.info("serial_rejected", extra={
                "serial_number": candidate.serial_number,
                "rejection_kind": rejection.kind.value,
            })
            return RegisterResult.from_rejection(rejection)

        unit = SerialUnit(
            id=self._ids.next_id(),
            serial_number=normalize_identifier(candidate.serial_number),
            purchase_date=candidate.purchase_date,
            warranty_start_date=candidate.warranty_start_date,
            warranty_months=candidate.warranty_months,
            warranty_end_date=warranty_end_date(
                candidate.warranty_start_date, candidate.warranty_months
            ),
            status=SERIAL_STATUS_AVAILABLE,
        )
        self._commit(self._records + (unit,))
        self._draft = replace(candidate, serial_number="")

        self._logger.info("serial_added", extra={
            "record_id": str(unit.id),
            "serial_number": unit.serial_number,
            "warranty_end_date": unit.warranty_end_date,
            "unit_count": len(self._records),
        })
        return RegisterResult.ok(unit)

    @bound_to_session
    def add_bulk(self, serial_numbers: str | Iterable[str]) -> BulkAddResult:
        """
        Add many scanned or pasted serial numbers against the draft.

        A string is split on newlines; blank lines are ignored.  Each
        number is validated independently (including against numbers
        accepted earlier in the same call) and ``on_change`` fires once.
        """
        if isinstance(serial_numbers, str):
            serial_numbers = serial_numbers.splitlines()

        accepted: list[SerialUnit] = []
        rejected = []
        template = self._draft
        with self.batched_changes():
            for raw in serial_numbers:
                if not raw or not raw.strip():
                    continue
                result = self.add(replace(template, serial_number=raw.strip()))
                if result:
                    accepted.append(result.record)
                else:
                    rejected.append((raw.strip(), result.rejection))

        self._logger.info("serial_bulk_add_completed", extra={
            "accepted_count": len(accepted),
            "rejected_count": len(rejected),
        })
        return BulkAddResult(accepted=tuple(accepted), rejected=tuple(rejected))

    @bound_to_session
    def remove(self, record_id: Any) -> RegisterResult[SerialUnit]:
        """Remove a unit; committed units are refused unless configured otherwise."""
        return self._remove(record_id, self._config.lock_persisted_serial_removal)

    def is_removal_locked(self, record_id: Any) -> bool:
        return self._config.lock_persisted_serial_removal and self._guard.is_persisted(record_id)

    # -- read models ---------------------------------------------------------

    def lookup(self, serial_number: str) -> SerialUnit | None:
        """Find a unit by serial number, case-insensitively."""
        wanted = normalize_identifier(serial_number)
        if not wanted:
            return None
        for unit in self._records:
            if normalize_identifier(unit.serial_number) == wanted:
                return unit
        return None

    def classify_warranty(
        self,
        unit: SerialUnit,
        as_of: date | datetime | None = None,
    ) -> WarrantyStatus:
        return classify_warranty(unit.warranty_end_date, self._today(as_of))

    def stats(self, as_of: date | datetime | None = None) -> SerialStats:
        today = self._today(as_of)
        return SerialStats(
            total=len(self._records),
            available=sum(1 for u in self._records if u.status == SERIAL_STATUS_AVAILABLE),
            in_warranty=sum(1 for u in self._records if is_in_warranty(u.warranty_end_date, today)),
        )
