"""
Register result types.

Registers report entry failures as values, never as exceptions: a
``RegisterResult`` is either accepted (carrying the affected record) or
rejected (carrying one ``Rejection``).  A rejected operation leaves the
register exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from lot_kernel.exceptions import EntryRejectedError

T = TypeVar("T")


class RejectionKind(str, Enum):
    """Machine-readable reasons an entry was refused."""

    EMPTY_IDENTIFIER = "EMPTY_IDENTIFIER"
    DUPLICATE_IDENTIFIER = "DUPLICATE_IDENTIFIER"
    MISSING_EXPIRY = "MISSING_EXPIRY"
    INVALID_DATE_ORDER = "INVALID_DATE_ORDER"
    NON_POSITIVE_QUANTITY = "NON_POSITIVE_QUANTITY"
    INVALID_WARRANTY_TERM = "INVALID_WARRANTY_TERM"
    PERSISTED_RECORD_IMMUTABLE = "PERSISTED_RECORD_IMMUTABLE"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    INVALID_FIELD = "INVALID_FIELD"


@dataclass(frozen=True)
class Rejection:
    """
    A single refused entry.

    Contract:
        Carries a machine-readable kind, a human message for the form, and
        the name of the input the form should return focus to.

    Non-goals:
        - Does NOT raise -- it IS the error representation.
    """

    kind: RejectionKind
    message: str
    field: str | None = None


@dataclass(frozen=True)
class RegisterResult(Generic[T]):
    """
    Outcome of a register mutation.

    Guarantees:
        - Exactly one of ``record`` / ``rejection`` is set.
        - bool(result) == result.accepted
    """

    accepted: bool
    record: T | None = None
    rejection: Rejection | None = None

    @classmethod
    def ok(cls, record: T) -> RegisterResult[T]:
        return cls(accepted=True, record=record)

    @classmethod
    def rejected(
        cls,
        kind: RejectionKind,
        message: str,
        field: str | None = None,
    ) -> RegisterResult[T]:
        return cls(accepted=False, rejection=Rejection(kind, message, field))

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> RegisterResult[T]:
        return cls(accepted=False, rejection=rejection)

    @property
    def kind(self) -> RejectionKind | None:
        return self.rejection.kind if self.rejection else None

    def unwrap(self) -> T:
        """Return the record, or raise ``EntryRejectedError``."""
        if self.rejection is not None:
            raise EntryRejectedError(
                self.rejection.kind.value,
                self.rejection.message,
                self.rejection.field,
            )
        return self.record  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class BulkAddResult(Generic[T]):
    """Outcome of adding several identifiers in one go."""

    accepted: tuple[T, ...] = field(default_factory=tuple)
    rejected: tuple[tuple[str, Rejection], ...] = field(default_factory=tuple)

    @property
    def accepted_count(self) -> int:
        return len(self.accepted)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)
