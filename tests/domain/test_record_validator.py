"""
Tests for entry validation rules and their precedence.
"""

from datetime import date
from decimal import Decimal

from lot_kernel.domain.dtos import RejectionKind
from lot_kernel.domain.identifiers import PersistedId, SessionId
from lot_kernel.domain.record_validator import validate_batch, validate_serial
from lot_kernel.domain.records import Batch, BatchDraft, SerialDraft, SerialUnit


def _draft(**overrides):
    values = dict(
        batch_number="B-1",
        manufacturing_date=date(2024, 1, 1),
        expiry_date=date(2024, 6, 1),
        quantity=Decimal("10"),
    )
    values.update(overrides)
    return BatchDraft(**values)


EXISTING = (
    Batch(id=PersistedId(1), batch_number="LOT-A", quantity=5),
    Batch(id=SessionId(1_800_000_000_000), batch_number="LOT-B", quantity=5),
)


class TestValidateBatch:
    """Batch entry rules."""

    def test_valid_candidate(self):
        assert validate_batch(_draft(), EXISTING, expiry_mandatory=True) is None

    def test_blank_number(self):
        rejection = validate_batch(_draft(batch_number=""), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.EMPTY_IDENTIFIER
        assert rejection.field == "batch_number"

    def test_whitespace_number(self):
        rejection = validate_batch(_draft(batch_number="   "), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.EMPTY_IDENTIFIER

    def test_label_in_message(self):
        rejection = validate_batch(
            _draft(batch_number=""), EXISTING,
            expiry_mandatory=True, identifier_label="Lot No",
        )
        assert rejection.message == "Lot No is required"

    def test_missing_expiry_when_mandatory(self):
        rejection = validate_batch(_draft(expiry_date=None), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.MISSING_EXPIRY
        assert rejection.field == "expiry_date"

    def test_missing_expiry_allowed_when_optional(self):
        assert validate_batch(_draft(expiry_date=None), EXISTING, expiry_mandatory=False) is None

    def test_zero_quantity(self):
        rejection = validate_batch(_draft(quantity=0), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.NON_POSITIVE_QUANTITY

    def test_negative_quantity(self):
        rejection = validate_batch(_draft(quantity=-3), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.NON_POSITIVE_QUANTITY

    def test_quantity_check_can_be_skipped(self):
        rejection = validate_batch(
            _draft(quantity=0), EXISTING, expiry_mandatory=True, check_quantity=False,
        )
        assert rejection is None

    def test_expiry_equal_to_manufacturing(self):
        rejection = validate_batch(
            _draft(expiry_date=date(2024, 1, 1)), EXISTING, expiry_mandatory=True,
        )
        assert rejection.kind is RejectionKind.INVALID_DATE_ORDER

    def test_expiry_before_manufacturing(self):
        rejection = validate_batch(
            _draft(expiry_date=date(2023, 12, 1)), EXISTING, expiry_mandatory=True,
        )
        assert rejection.kind is RejectionKind.INVALID_DATE_ORDER

    def test_date_order_skipped_without_manufacturing(self):
        assert validate_batch(
            _draft(manufacturing_date=None), EXISTING, expiry_mandatory=True,
        ) is None

    def test_duplicate_is_case_insensitive(self):
        rejection = validate_batch(_draft(batch_number=" lot-a "), EXISTING, expiry_mandatory=True)
        assert rejection.kind is RejectionKind.DUPLICATE_IDENTIFIER
        assert "LOT-A" in rejection.message

    def test_own_number_not_a_duplicate(self):
        assert validate_batch(
            _draft(batch_number="lot-b"), EXISTING,
            expiry_mandatory=True, exclude_id=SessionId(1_800_000_000_000),
        ) is None

    def test_first_failing_rule_wins(self):
        """Blank number is reported before missing expiry and bad quantity."""
        rejection = validate_batch(
            _draft(batch_number="", expiry_date=None, quantity=0),
            EXISTING,
            expiry_mandatory=True,
        )
        assert rejection.kind is RejectionKind.EMPTY_IDENTIFIER

    def test_logs_failure(self, captured_logs):
        validate_batch(_draft(quantity=0), EXISTING, expiry_mandatory=True)
        failures = [r for r in captured_logs() if r["message"] == "validation_failed"]
        assert failures[0]["rejection_kind"] == "NON_POSITIVE_QUANTITY"


class TestValidateSerial:
    """Serial entry rules."""

    EXISTING = (SerialUnit(id=PersistedId("u1"), serial_number="SN-1"),)

    def test_valid(self):
        assert validate_serial(SerialDraft(serial_number="SN-2"), self.EXISTING) is None

    def test_blank(self):
        rejection = validate_serial(SerialDraft(serial_number=" "), self.EXISTING)
        assert rejection.kind is RejectionKind.EMPTY_IDENTIFIER
        assert rejection.field == "serial_number"

    def test_duplicate(self):
        rejection = validate_serial(SerialDraft(serial_number="sn-1"), self.EXISTING)
        assert rejection.kind is RejectionKind.DUPLICATE_IDENTIFIER

    def test_negative_warranty(self):
        rejection = validate_serial(
            SerialDraft(serial_number="SN-9", warranty_months=-1), self.EXISTING,
        )
        assert rejection.kind is RejectionKind.INVALID_WARRANTY_TERM
