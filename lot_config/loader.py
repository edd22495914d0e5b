"""
Category policy loader (``lot_config.loader``).

Responsibility
--------------
Loads the category policy YAML file and parses it into a
``CategoryPolicyTable``.  Fields a category omits are inherited from the
``default`` entry.

Invariants enforced
-------------------
* Every parse error surfaces as ``CategoryPolicyError`` naming the
  offending category; no silent defaults for malformed values.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``CategoryPolicyError``.
* Wrong value types (e.g. a string where a bool is expected)
  -> ``CategoryPolicyError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from lot_config.schema import DEFAULT_POLICY_KEY, CategoryPolicy, CategoryPolicyTable
from lot_kernel.exceptions import CategoryPolicyError

_FIELD_TYPES: dict[str, type] = {
    "expiry_mandatory": bool,
    "batch_label": str,
    "serial_label": str,
    "default_warranty_months": int,
    "batch_code_prefix": str,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        CategoryPolicyError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CategoryPolicyError(str(path), f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise CategoryPolicyError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a parsed policy document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_policy(
    category: str,
    data: dict[str, Any] | None,
    inherited: dict[str, Any] | None = None,
) -> CategoryPolicy:
    """
    Parse one category entry, filling omitted fields from ``inherited``.

    Raises:
        CategoryPolicyError: on unknown keys or wrongly typed values.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise CategoryPolicyError(category, "entry must be a mapping")

    unknown = set(data) - set(_FIELD_TYPES)
    if unknown:
        raise CategoryPolicyError(category, f"unknown keys {sorted(unknown)}")

    merged = dict(inherited or {})
    merged.update(data)
    for key, value in merged.items():
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; reject it where a count is expected
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise CategoryPolicyError(
                category, f"{key} must be {expected.__name__}, got {value!r}"
            )

    try:
        return CategoryPolicy(category=category, **merged)
    except ValueError as e:
        raise CategoryPolicyError(category, str(e)) from e


def parse_policy_table(data: dict[str, Any]) -> CategoryPolicyTable:
    """Build a table from a parsed document (``default`` + ``categories``)."""
    default_data = data.get(DEFAULT_POLICY_KEY) or {}
    default = parse_policy(DEFAULT_POLICY_KEY, default_data)
    inherited = {key: getattr(default, key) for key in _FIELD_TYPES}

    categories = data.get("categories") or {}
    if not isinstance(categories, dict):
        raise CategoryPolicyError("categories", "must be a mapping")

    policies = {
        str(name): parse_policy(str(name), entry, inherited)
        for name, entry in categories.items()
    }
    return CategoryPolicyTable(
        default=default,
        policies=policies,
        checksum=compute_checksum(data),
    )


def load_category_policies(path: Path) -> CategoryPolicyTable:
    """Load and parse a category policy YAML file."""
    return parse_policy_table(load_yaml_file(path))
