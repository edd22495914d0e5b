"""
Tests for batch and serial records and their host mappings.
"""

from dataclasses import FrozenInstanceError
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from lot_kernel.domain.identifiers import PersistedId, SessionId
from lot_kernel.domain.records import (
    BATCH_STATUS_ACTIVE,
    SERIAL_STATUS_AVAILABLE,
    Batch,
    BatchDraft,
    ProductContext,
    SerialDraft,
    SerialUnit,
    normalize_identifier,
    to_date,
    to_decimal,
)
from lot_kernel.exceptions import InvalidRecordError


class TestCoercion:
    """Field coercion helpers."""

    def test_decimal_from_float_goes_through_str(self):
        assert to_decimal(0.1, "quantity", "batch") == Decimal("0.1")

    def test_blank_decimal_is_zero(self):
        assert to_decimal("", "quantity", "batch") == Decimal("0")

    def test_bad_decimal(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            to_decimal("ten", "quantity", "batch")
        assert exc_info.value.field == "quantity"

    def test_iso_timestamp_keeps_date(self):
        assert to_date("2024-06-01T00:00:00.000Z", "expiry_date", "batch") == date(2024, 6, 1)

    def test_datetime_reduced_to_date(self):
        moment = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)
        assert to_date(moment, "expiry_date", "batch") == date(2024, 6, 1)

    def test_bad_date(self):
        with pytest.raises(InvalidRecordError):
            to_date("June first", "expiry_date", "batch")

    def test_normalize_identifier(self):
        assert normalize_identifier("  b-001 ") == "B-001"
        assert normalize_identifier(None) == ""


class TestBatch:
    """Batch value object."""

    def test_from_camel_case_mapping(self):
        batch = Batch.from_mapping({
            "id": 12,
            "batchNumber": "B-1",
            "quantity": "5",
            "manufacturingDate": "2023-12-01",
            "expiryDate": "2024-06-01",
            "costPrice": 10,
            "mrp": "15.5",
            "location": "Aisle 3",
        })

        assert batch.id == PersistedId(12)
        assert batch.quantity == Decimal("5")
        assert batch.expiry_date == date(2024, 6, 1)
        assert batch.mrp == Decimal("15.5")
        assert batch.status == BATCH_STATUS_ACTIVE

    def test_session_id_from_mapping(self):
        batch = Batch.from_mapping({"id": 1_704_067_200_000, "batch_number": "X", "quantity": 1})
        assert batch.id == SessionId(1_704_067_200_000)

    def test_missing_id_rejected(self):
        with pytest.raises(InvalidRecordError):
            Batch.from_mapping({"batchNumber": "B-1", "quantity": 1})

    def test_value(self):
        batch = Batch(id=PersistedId(1), batch_number="B", quantity=4, cost_price="2.50")
        assert batch.value == Decimal("10.00")

    def test_zero_quantity_allowed_on_record(self):
        """A committed lot may be fully drawn down."""
        batch = Batch(id=PersistedId(1), batch_number="B", quantity=0)
        assert batch.quantity == 0

    def test_frozen(self):
        batch = Batch(id=PersistedId(1), batch_number="B", quantity=1)
        with pytest.raises(FrozenInstanceError):
            batch.quantity = Decimal("2")

    def test_to_dict_restores_raw_id(self):
        batch = Batch(
            id=SessionId(1_704_067_200_000),
            batch_number="B",
            quantity=1,
            expiry_date=date(2024, 6, 1),
        )
        data = batch.to_dict()
        assert data["id"] == 1_704_067_200_000
        assert data["expiryDate"] == "2024-06-01"
        assert data["manufacturingDate"] is None
        assert Batch.from_mapping(data) == batch


class TestBatchDraft:
    """Batch entry draft."""

    def test_from_batch(self):
        batch = Batch(id=PersistedId(1), batch_number="B", quantity=3, location="Shelf")
        draft = BatchDraft.from_batch(batch)
        assert draft.batch_number == "B"
        assert draft.quantity == Decimal("3")
        assert draft.location == "Shelf"

    def test_blank_number_normalized_to_empty(self):
        assert BatchDraft(batch_number=None).batch_number == ""


class TestSerialUnit:
    """Serial value object."""

    def test_from_mapping(self):
        unit = SerialUnit.from_mapping({
            "id": "u-1",
            "serialNumber": "SN1",
            "warrantyStartDate": "2024-01-01",
            "warrantyMonths": "12",
            "warrantyEndDate": "2025-01-01",
        })
        assert unit.id == PersistedId("u-1")
        assert unit.warranty_months == 12
        assert unit.warranty_end_date == date(2025, 1, 1)
        assert unit.status == SERIAL_STATUS_AVAILABLE

    def test_to_dict(self):
        unit = SerialUnit(id=PersistedId(3), serial_number="SN", warranty_months=6)
        data = unit.to_dict()
        assert data["serialNumber"] == "SN"
        assert data["warrantyMonths"] == 6
        assert data["warrantyEndDate"] is None

    def test_draft_defaults(self):
        draft = SerialDraft()
        assert draft.serial_number == ""
        assert draft.warranty_months == 12


class TestProductContext:
    """Product defaults."""

    def test_from_mapping(self):
        product = ProductContext.from_mapping({
            "sku": "PAN-500",
            "costPrice": "10",
            "price": 15,
            "warrantyMonths": None,
            "category": "pharmacy",
        })
        assert product.cost_price == Decimal("10")
        assert product.price == Decimal("15")
        assert product.warranty_months is None

    def test_empty_defaults(self):
        product = ProductContext()
        assert product.sku is None
        assert product.cost_price == Decimal("0")


class TestDraftMerge:
    """Partial host input applied over a draft."""

    def test_batch_merge_keeps_unmentioned_fields(self):
        draft = BatchDraft(cost_price="10", location="Shelf")
        merged = draft.merge({"batchNumber": "B-9", "quantity": "4"})
        assert merged.batch_number == "B-9"
        assert merged.quantity == Decimal("4")
        assert merged.cost_price == Decimal("10")
        assert merged.location == "Shelf"

    def test_merge_coerces_values(self):
        merged = BatchDraft().merge({"expiry_date": "2024-06-01"})
        assert merged.expiry_date == date(2024, 6, 1)

    def test_serial_merge(self):
        draft = SerialDraft(warranty_months=24)
        merged = draft.merge({"serialNumber": "SN-5"})
        assert merged.serial_number == "SN-5"
        assert merged.warranty_months == 24
