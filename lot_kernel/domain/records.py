"""
Batch and serial-unit records.

Responsibility:
    Immutable value objects for the two kinds of trackable stock, the
    mutable-entry drafts the forms edit, and the read-only product context
    the registers default from.  Also the conversion to and from the
    host's plain mappings (camelCase or snake_case keys).

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - Quantities and prices are always ``Decimal`` (coerced on construction,
      floats go through ``str`` first).
    - Dates are always ``date`` or None (ISO strings are parsed).
    - Records are frozen; registers replace them, never mutate them.

Failure modes:
    - ``InvalidRecordError`` when a numeric or date field cannot be parsed.

Records do NOT enforce the entry rules (positive quantity, date order):
a committed batch may legitimately have been drawn down to zero.  Entry
rules live in ``record_validator`` and apply only on add/save.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from lot_kernel.domain.identifiers import (
    SESSION_ID_THRESHOLD,
    RecordId,
    coerce_record_id,
)
from lot_kernel.exceptions import InvalidRecordError

BATCH_STATUS_ACTIVE = "active"
SERIAL_STATUS_AVAILABLE = "available"

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def to_decimal(value: Any, field: str, record_type: str) -> Decimal:
    """Coerce a form or host value into a Decimal (blank -> 0)."""
    if value is None or value == "":
        return _ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidRecordError(record_type, field, "boolean is not a number")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidRecordError(record_type, field, f"not a number: {value!r}") from e


def to_date(value: Any, field: str, record_type: str) -> date | None:
    """Coerce a form or host value into a date (blank -> None)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            # Host timestamps ("2024-01-01T00:00:00Z") carry the date first
            return date.fromisoformat(value.strip()[:10])
        except ValueError as e:
            raise InvalidRecordError(record_type, field, f"not an ISO date: {value!r}") from e
    raise InvalidRecordError(record_type, field, f"not a date: {value!r}")


def to_int(value: Any, field: str, record_type: str) -> int:
    """Coerce a form or host value into an int (blank -> 0)."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidRecordError(record_type, field, "boolean is not a number")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise InvalidRecordError(record_type, field, f"not an integer: {value!r}") from e


def normalize_identifier(value: str | None) -> str:
    """Canonical form of a batch or serial number: trimmed, upper-case."""
    return (value or "").strip().upper()


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _overrides(data: Mapping[str, Any], draft_type: type) -> dict[str, Any]:
    """Draft fields present in a host mapping, under either key style."""
    found = {}
    for f in fields(draft_type):
        if f.name in data:
            found[f.name] = data[f.name]
        elif _camel(f.name) in data:
            found[f.name] = data[_camel(f.name)]
    return found


# ---------------------------------------------------------------------------
# Product context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProductContext:
    """Read-only product fields the registers use for defaults."""

    sku: str | None = None
    unit: str | None = None
    cost_price: Decimal = _ZERO
    price: Decimal = _ZERO
    warranty_months: int | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "cost_price", to_decimal(self.cost_price, "cost_price", "product"))
        object.__setattr__(self, "price", to_decimal(self.price, "price", "product"))
        if self.warranty_months is not None:
            object.__setattr__(
                self, "warranty_months", to_int(self.warranty_months, "warranty_months", "product")
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProductContext:
        return cls(
            sku=data.get("sku"),
            unit=data.get("unit"),
            cost_price=_pick(data, "cost_price", "costPrice"),
            price=data.get("price"),
            warranty_months=_pick(data, "warranty_months", "warrantyMonths"),
            category=data.get("category"),
        )


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Batch:
    """
    A lot of fungible stock sharing one expiry.

    Contract:
        Immutable.  ``id`` is tagged (``PersistedId`` or ``SessionId``).

    Guarantees:
        - ``batch_number`` is stored as given; registers normalize it on
          add/save.
        - ``value`` is ``cost_price * quantity``.
    """

    id: RecordId
    batch_number: str
    quantity: Decimal
    manufacturing_date: date | None = None
    expiry_date: date | None = None
    cost_price: Decimal = _ZERO
    mrp: Decimal = _ZERO
    location: str = ""
    status: str = BATCH_STATUS_ACTIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity", "batch"))
        object.__setattr__(self, "cost_price", to_decimal(self.cost_price, "cost_price", "batch"))
        object.__setattr__(self, "mrp", to_decimal(self.mrp, "mrp", "batch"))
        object.__setattr__(
            self, "manufacturing_date",
            to_date(self.manufacturing_date, "manufacturing_date", "batch"),
        )
        object.__setattr__(self, "expiry_date", to_date(self.expiry_date, "expiry_date", "batch"))

    @property
    def value(self) -> Decimal:
        """Acquisition value of the lot."""
        return self.cost_price * self.quantity

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        session_threshold: int = SESSION_ID_THRESHOLD,
    ) -> Batch:
        """Build a batch from a host mapping; raw ids are tagged here."""
        record_id = coerce_record_id(data.get("id"), session_threshold)
        if record_id is None:
            raise InvalidRecordError("batch", "id", "missing identifier")
        return cls(
            id=record_id,
            batch_number=_pick(data, "batch_number", "batchNumber", "") or "",
            quantity=data.get("quantity"),
            manufacturing_date=_pick(data, "manufacturing_date", "manufacturingDate"),
            expiry_date=_pick(data, "expiry_date", "expiryDate"),
            cost_price=_pick(data, "cost_price", "costPrice"),
            mrp=data.get("mrp"),
            location=data.get("location") or "",
            status=data.get("status") or BATCH_STATUS_ACTIVE,
        )

    def to_dict(self) -> dict[str, Any]:
        """Host mapping (camelCase), raw id restored."""
        return {
            "id": self.id.raw,
            "batchNumber": self.batch_number,
            "manufacturingDate": _iso(self.manufacturing_date),
            "expiryDate": _iso(self.expiry_date),
            "quantity": str(self.quantity),
            "costPrice": str(self.cost_price),
            "mrp": str(self.mrp),
            "location": self.location,
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class BatchDraft:
    """The batch entry form's current values."""

    batch_number: str = ""
    manufacturing_date: date | None = None
    expiry_date: date | None = None
    quantity: Decimal = _ZERO
    cost_price: Decimal = _ZERO
    mrp: Decimal = _ZERO
    location: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "batch_number", self.batch_number or "")
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity", "batch"))
        object.__setattr__(self, "cost_price", to_decimal(self.cost_price, "cost_price", "batch"))
        object.__setattr__(self, "mrp", to_decimal(self.mrp, "mrp", "batch"))
        object.__setattr__(
            self, "manufacturing_date",
            to_date(self.manufacturing_date, "manufacturing_date", "batch"),
        )
        object.__setattr__(self, "expiry_date", to_date(self.expiry_date, "expiry_date", "batch"))

    @classmethod
    def from_batch(cls, batch: Batch) -> BatchDraft:
        return cls(
            batch_number=batch.batch_number,
            manufacturing_date=batch.manufacturing_date,
            expiry_date=batch.expiry_date,
            quantity=batch.quantity,
            cost_price=batch.cost_price,
            mrp=batch.mrp,
            location=batch.location,
        )

    def merge(self, data: Mapping[str, Any]) -> BatchDraft:
        """Copy with the fields present in ``data`` replaced."""
        return replace(self, **_overrides(data, BatchDraft))


# ---------------------------------------------------------------------------
# Serial unit
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SerialUnit:
    """
    One physically distinct, quantity-one item with its own warranty.

    ``warranty_end_date`` is derived by the register at insertion time from
    ``warranty_start_date`` and ``warranty_months``.
    """

    id: RecordId
    serial_number: str
    purchase_date: date | None = None
    warranty_start_date: date | None = None
    warranty_months: int = 0
    warranty_end_date: date | None = None
    status: str = SERIAL_STATUS_AVAILABLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "purchase_date", to_date(self.purchase_date, "purchase_date", "serial"))
        object.__setattr__(
            self, "warranty_start_date",
            to_date(self.warranty_start_date, "warranty_start_date", "serial"),
        )
        object.__setattr__(
            self, "warranty_end_date",
            to_date(self.warranty_end_date, "warranty_end_date", "serial"),
        )
        object.__setattr__(
            self, "warranty_months", to_int(self.warranty_months, "warranty_months", "serial")
        )

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        session_threshold: int = SESSION_ID_THRESHOLD,
    ) -> SerialUnit:
        """Build a unit from a host mapping; raw ids are tagged here."""
        record_id = coerce_record_id(data.get("id"), session_threshold)
        if record_id is None:
            raise InvalidRecordError("serial", "id", "missing identifier")
        return cls(
            id=record_id,
            serial_number=_pick(data, "serial_number", "serialNumber", "") or "",
            purchase_date=_pick(data, "purchase_date", "purchaseDate"),
            warranty_start_date=_pick(data, "warranty_start_date", "warrantyStartDate"),
            warranty_months=_pick(data, "warranty_months", "warrantyMonths", 0),
            warranty_end_date=_pick(data, "warranty_end_date", "warrantyEndDate"),
            status=data.get("status") or SERIAL_STATUS_AVAILABLE,
        )

    def to_dict(self) -> dict[str, Any]:
        """Host mapping (camelCase), raw id restored."""
        return {
            "id": self.id.raw,
            "serialNumber": self.serial_number,
            "purchaseDate": _iso(self.purchase_date),
            "warrantyStartDate": _iso(self.warranty_start_date),
            "warrantyMonths": self.warranty_months,
            "warrantyEndDate": _iso(self.warranty_end_date),
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class SerialDraft:
    """The serial entry form's current values."""

    serial_number: str = ""
    purchase_date: date | None = None
    warranty_start_date: date | None = None
    warranty_months: int = 12

    def __post_init__(self) -> None:
        object.__setattr__(self, "serial_number", self.serial_number or "")
        object.__setattr__(self, "purchase_date", to_date(self.purchase_date, "purchase_date", "serial"))
        object.__setattr__(
            self, "warranty_start_date",
            to_date(self.warranty_start_date, "warranty_start_date", "serial"),
        )
        object.__setattr__(
            self, "warranty_months", to_int(self.warranty_months, "warranty_months", "serial")
        )

    def merge(self, data: Mapping[str, Any]) -> SerialDraft:
        """Copy with the fields present in ``data`` replaced."""
        return replace(self, **_overrides(data, SerialDraft))
