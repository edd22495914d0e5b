"""
Shared plumbing for the batch and serial registers.

Both registers own an ordered tuple of frozen records, replace it wholesale
on every accepted mutation, and hand a fresh list to the host's
``on_change`` callback.  Rejected operations never touch the tuple and
never emit.

Architecture: Modules layer.  Imports lot_kernel, lot_engines, lot_config.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Generic, TypeVar
from uuid import uuid4

from lot_config.schema import CategoryPolicy, CategoryPolicyTable
from lot_engines.expiry import as_calendar_date
from lot_kernel.domain.clock import Clock, SystemClock
from lot_kernel.domain.dtos import RegisterResult, RejectionKind
from lot_kernel.domain.identifiers import (
    MutabilityGuard,
    RecordId,
    SessionId,
    SessionIdGenerator,
)
from lot_kernel.domain.records import ProductContext
from lot_kernel.exceptions import InvalidRecordError
from lot_kernel.logging_config import LogContext, get_logger
from lot_modules.config import TrackingConfig

R = TypeVar("R")

OnChange = Callable[[list[Any]], None]


def bound_to_session(method: Callable[..., Any]) -> Callable[..., Any]:
    """Run a register method with its session id and product SKU on LogContext."""

    @functools.wraps(method)
    def wrapper(self: RecordRegister[Any], *args: Any, **kwargs: Any) -> Any:
        with LogContext.bind(session_id=self.session_id, product_sku=self._product.sku):
            return method(self, *args, **kwargs)

    return wrapper


class RecordRegister(Generic[R]):
    """
    Copy-on-write list of records for one product.

    Contract:
        Subclasses set ``record_type`` and implement ``_from_mapping``.
        All mutations go through ``_commit``.

    Guarantees:
        - ``records`` returns a new list on every call.
        - ``on_change`` receives a new list after every accepted mutation
          (once per ``batched_changes`` block).
    """

    record_type: str = "record"

    def __init__(
        self,
        initial: Iterable[R | Mapping[str, Any]] = (),
        *,
        product: ProductContext | Mapping[str, Any] | None = None,
        policies: CategoryPolicyTable | None = None,
        clock: Clock | None = None,
        config: TrackingConfig | None = None,
        on_change: OnChange | None = None,
        session_id: str | None = None,
    ):
        self._config = config or TrackingConfig()
        self._clock = clock or SystemClock()
        self._guard = MutabilityGuard(self._config.session_id_threshold)
        if isinstance(product, Mapping):
            product = ProductContext.from_mapping(product)
        self._product = product or ProductContext()
        self._policies = policies or CategoryPolicyTable()
        self._policy = self._policies.get(self._product.category)
        self._on_change = on_change
        self._suppress_emit = 0
        self._pending_emit = False
        self._session_id = session_id or uuid4().hex
        self._logger = get_logger(f"modules.{self.record_type}")

        self._records: tuple[R, ...] = tuple(self._coerce(item) for item in initial)
        last_session = max(
            (r.id.token for r in self._records if isinstance(r.id, SessionId)),  # type: ignore[attr-defined]
            default=0,
        )
        self._ids = SessionIdGenerator(self._clock, after=last_session)

    # -- read side -----------------------------------------------------------

    @property
    def records(self) -> list[R]:
        return list(self._records)

    @property
    def product(self) -> ProductContext:
        return self._product

    @property
    def policy(self) -> CategoryPolicy:
        return self._policy

    @property
    def session_id(self) -> str:
        """Tags every log line this register emits while mutating."""
        return self._session_id

    @property
    def guard(self) -> MutabilityGuard:
        return self._guard

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[R]:
        return iter(self._records)

    def get(self, record_id: Any) -> R | None:
        index = self._index_of(record_id)
        return None if index is None else self._records[index]

    def is_persisted(self, record_id: Any) -> bool:
        return self._guard.is_persisted(record_id)

    # -- change emission -----------------------------------------------------

    @contextmanager
    def batched_changes(self) -> Iterator[RecordRegister[R]]:
        """Emit a single ``on_change`` for all mutations inside the block."""
        self._suppress_emit += 1
        try:
            yield self
        finally:
            self._suppress_emit -= 1
            if not self._suppress_emit and self._pending_emit:
                self._pending_emit = False
                self._emit()

    def _commit(self, records: tuple[R, ...]) -> None:
        self._records = records
        if self._suppress_emit:
            self._pending_emit = True
            return
        self._emit()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(list(self._records))

    # -- helpers -------------------------------------------------------------

    def _coerce(self, item: R | Mapping[str, Any]) -> R:
        if isinstance(item, Mapping):
            return self._from_mapping(item)
        return item

    def _from_mapping(self, data: Mapping[str, Any]) -> R:
        raise NotImplementedError

    def _index_of(self, record_id: Any) -> int | None:
        tagged = self._guard.classify(record_id)
        if tagged is None:
            return None
        for index, record in enumerate(self._records):
            if record.id == tagged:  # type: ignore[attr-defined]
                return index
        return None

    def _today(self, as_of: date | datetime | None = None) -> date:
        if as_of is None:
            return self._clock.today()
        return as_calendar_date(as_of)

    def _not_found(self, record_id: Any) -> RegisterResult[R]:
        self._logger.warning(f"{self.record_type}_not_found", extra={
            "record_id": str(record_id),
        })
        return RegisterResult.rejected(
            RejectionKind.RECORD_NOT_FOUND,
            f"{self.record_type.capitalize()} {record_id} is not in this register",
        )

    def _invalid_input(self, error: InvalidRecordError) -> RegisterResult[R]:
        """Turn an unparseable form value into a rejection on that field."""
        self._logger.info(f"{self.record_type}_rejected", extra={
            "rejection_kind": RejectionKind.INVALID_FIELD.value,
            "field_name": error.field,
        })
        return RegisterResult.rejected(
            RejectionKind.INVALID_FIELD,
            f"{error.field.replace('_', ' ').capitalize()} is {error.reason}",
            error.field,
        )

    def _remove(self, record_id: Any, lock_persisted: bool) -> RegisterResult[R]:
        """Remove by id, refusing persisted records when ``lock_persisted``."""
        index = self._index_of(record_id)
        if index is None:
            return self._not_found(record_id)

        record = self._records[index]
        tagged: RecordId = record.id  # type: ignore[attr-defined]
        if lock_persisted and tagged.is_persisted:
            self._logger.info(f"{self.record_type}_removal_refused", extra={
                "record_id": str(tagged),
            })
            return RegisterResult.rejected(
                RejectionKind.PERSISTED_RECORD_IMMUTABLE,
                f"Committed {self.record_type} records cannot be deleted here",
            )

        self._commit(self._records[:index] + self._records[index + 1:])
        self._logger.info(f"{self.record_type}_removed", extra={
            "record_id": str(tagged),
            "persisted": tagged.is_persisted,
            "remaining": len(self._records),
        })
        return RegisterResult.ok(record)
