"""
Category policy schema.

A category policy captures everything that varies by product category:
whether a batch must carry an expiry date, how the identifier fields are
labelled, the fallback warranty length, and the lot-code prefix used when
the product has no SKU.  The registers look policies up by category and
never branch on category names themselves.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

DEFAULT_POLICY_KEY = "default"


@dataclass(frozen=True)
class CategoryPolicy:
    """Per-category tracking rules."""

    category: str
    expiry_mandatory: bool = True
    batch_label: str = "Batch Number"
    serial_label: str = "Serial Number"
    default_warranty_months: int = 12
    batch_code_prefix: str = "BN"

    def __post_init__(self) -> None:
        if not self.category:
            raise ValueError("category is required")
        if self.default_warranty_months < 0:
            raise ValueError("default_warranty_months cannot be negative")


@dataclass(frozen=True)
class CategoryPolicyTable:
    """
    Lookup table of category policies with a default.

    Guarantees:
        - ``get()`` always returns a policy; unknown or missing categories
          resolve to ``default``.
        - Lookup is case-insensitive on the category key.
    """

    default: CategoryPolicy = field(
        default_factory=lambda: CategoryPolicy(category=DEFAULT_POLICY_KEY)
    )
    policies: Mapping[str, CategoryPolicy] = field(default_factory=dict)
    checksum: str | None = None

    def __post_init__(self) -> None:
        normalized = {key.strip().lower(): policy for key, policy in self.policies.items()}
        object.__setattr__(self, "policies", normalized)

    def get(self, category: str | None) -> CategoryPolicy:
        if not category:
            return self.default
        return self.policies.get(category.strip().lower(), self.default)

    def with_policy(self, policy: CategoryPolicy) -> CategoryPolicyTable:
        """Copy of the table with one policy added or replaced."""
        merged = dict(self.policies)
        merged[policy.category.strip().lower()] = policy
        return CategoryPolicyTable(default=self.default, policies=merged)

    def __contains__(self, category: object) -> bool:
        return isinstance(category, str) and category.strip().lower() in self.policies

    def __iter__(self) -> Iterator[CategoryPolicy]:
        return iter(self.policies.values())

    def __len__(self) -> int:
        return len(self.policies)
