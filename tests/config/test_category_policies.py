"""
Tests for category policy loading and lookup.
"""

from pathlib import Path

import pytest

from lot_config import DEFAULT_POLICY_FILE, get_category_policies
from lot_config.loader import (
    compute_checksum,
    load_category_policies,
    parse_policy,
    parse_policy_table,
)
from lot_config.schema import CategoryPolicy, CategoryPolicyTable
from lot_kernel.exceptions import CategoryPolicyError


class TestBundledPolicies:
    """The shipped categories.yaml."""

    def test_loads(self, policies):
        assert len(policies) > 0
        assert policies.checksum is not None

    def test_pharmacy_requires_expiry(self, policies):
        pharmacy = policies.get("pharmacy")
        assert pharmacy.expiry_mandatory
        assert pharmacy.batch_code_prefix == "PH"

    def test_electronics_expiry_optional(self, policies):
        electronics = policies.get("electronics")
        assert not electronics.expiry_mandatory
        assert electronics.serial_label == "Product Serial (SN)"

    def test_category_labels(self, policies):
        assert policies.get("textile-wholesale").batch_label == "Roll / Bale No"
        assert policies.get("garments").batch_label == "Lot No"

    def test_fields_inherited_from_default(self, policies):
        assert policies.get("garments").serial_label == policies.default.serial_label
        assert policies.get("food-beverages").batch_code_prefix == "BN"

    def test_unknown_category_falls_back(self, policies):
        assert policies.get("gardening") is policies.default
        assert policies.get(None) is policies.default

    def test_lookup_is_case_insensitive(self, policies):
        assert policies.get(" Pharmacy ") is policies.get("pharmacy")
        assert "PHARMACY" in policies

    def test_trace_logged(self, captured_logs):
        get_category_policies()
        traces = [r for r in captured_logs() if r["message"] == "LOT_CONFIG_TRACE"]
        assert traces[0]["source"] == str(DEFAULT_POLICY_FILE)


class TestParsing:
    """Loader validation."""

    def test_minimal_document(self):
        table = parse_policy_table({})
        assert table.default == CategoryPolicy(category="default")
        assert len(table) == 0

    def test_unknown_key_rejected(self):
        with pytest.raises(CategoryPolicyError) as exc_info:
            parse_policy("pets", {"colour": "blue"})
        assert exc_info.value.category == "pets"

    def test_wrong_type_rejected(self):
        with pytest.raises(CategoryPolicyError):
            parse_policy("pets", {"expiry_mandatory": "yes"})

    def test_bool_is_not_a_month_count(self):
        with pytest.raises(CategoryPolicyError):
            parse_policy("pets", {"default_warranty_months": True})

    def test_negative_warranty_rejected(self):
        with pytest.raises(CategoryPolicyError):
            parse_policy("pets", {"default_warranty_months": -1})

    def test_categories_must_be_mapping(self):
        with pytest.raises(CategoryPolicyError):
            parse_policy_table({"categories": ["pharmacy"]})

    def test_checksum_deterministic(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_invalid_yaml_file(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("default: [unclosed\n")
        with pytest.raises(CategoryPolicyError):
            load_category_policies(path)

    def test_non_mapping_file(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(CategoryPolicyError):
            load_category_policies(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_category_policies(tmp_path / "absent.yaml")

    def test_custom_file(self, tmp_path: Path):
        path = tmp_path / "policies.yaml"
        path.write_text(
            "default:\n  default_warranty_months: 6\n"
            "categories:\n  pets:\n    expiry_mandatory: false\n"
        )
        table = get_category_policies(path)
        assert table.get("pets").default_warranty_months == 6
        assert not table.get("pets").expiry_mandatory


class TestCategoryPolicyTable:
    """In-memory table behaviour."""

    def test_with_policy_adds_category(self):
        table = CategoryPolicyTable().with_policy(
            CategoryPolicy(category="Seeds", batch_label="Packet No")
        )
        assert table.get("seeds").batch_label == "Packet No"
        assert [p.category for p in table] == ["Seeds"]

    def test_with_policy_leaves_original(self):
        table = CategoryPolicyTable()
        table.with_policy(CategoryPolicy(category="seeds"))
        assert "seeds" not in table
