"""
Record identifiers and the mutability guard.

Responsibility:
    Carry a record's lifecycle state (committed to storage, or created in
    the current edit session) as data on its identifier, and decide whether
    a record may be freely edited or removed.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``SessionIdGenerator`` reads time
    only through an injected ``Clock``.

Invariants enforced:
    - A ``PersistedId`` is never produced by ``SessionIdGenerator``.
    - Session tokens are strictly increasing per generator, so two records
      created within the same millisecond still get distinct ids.

Failure modes:
    - ``InvalidRecordError`` from ``coerce_record_id`` for raw ids that are
      neither strings nor integers (e.g. booleans, lists).

Host records arrive with raw ids whose shape encodes their lifecycle: a
string or a small integer came from the database, a large integer is a
millisecond timestamp minted by a previous edit session.  That shape
heuristic is applied exactly once, at the boundary, by
``coerce_record_id``.  Past the boundary every record holds a tagged
``PersistedId`` or ``SessionId``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from lot_kernel.domain.clock import Clock
from lot_kernel.exceptions import InvalidRecordError

# Epoch milliseconds passed 1e12 in 2001; database sequences stay far below it.
SESSION_ID_THRESHOLD = 1_000_000_000_000


@dataclass(frozen=True, slots=True)
class PersistedId:
    """Identifier assigned by the backing store."""

    value: str | int

    @property
    def is_persisted(self) -> bool:
        return True

    @property
    def raw(self) -> str | int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class SessionId:
    """Identifier minted in the current edit session (epoch milliseconds)."""

    token: int

    @property
    def is_persisted(self) -> bool:
        return False

    @property
    def raw(self) -> int:
        return self.token

    def __str__(self) -> str:
        return str(self.token)


RecordId = Union[PersistedId, SessionId]


def coerce_record_id(
    raw: Any,
    session_threshold: int = SESSION_ID_THRESHOLD,
) -> RecordId | None:
    """
    Convert a host-supplied id into a tagged identifier.

    Preconditions:
        ``raw`` is None, a RecordId, a string, or an integral number.

    Postconditions:
        - None or "" -> None.
        - RecordId -> returned unchanged.
        - str -> PersistedId.
        - int (or integral float) below ``session_threshold`` -> PersistedId,
          otherwise SessionId.

    Raises:
        InvalidRecordError: For any other type.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (PersistedId, SessionId)):
        return raw
    if isinstance(raw, bool):
        raise InvalidRecordError("record", "id", "boolean is not an identifier")
    if isinstance(raw, str):
        return PersistedId(raw)
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidRecordError("record", "id", f"non-integral number {raw!r}")
        raw = int(raw)
    if isinstance(raw, int):
        if raw < session_threshold:
            return PersistedId(raw)
        return SessionId(raw)
    raise InvalidRecordError(
        "record", "id", f"unsupported identifier type {type(raw).__name__}"
    )


class MutabilityGuard:
    """
    Decides whether a record is committed to storage.

    Contract:
        Shared by both registers.  Accepts tagged ids and, for host
        convenience, raw ids (classified with ``coerce_record_id``).

    Guarantees:
        - ``is_persisted(None)`` is False.
        - ``is_persisted(PersistedId(...))`` is True regardless of value.
        - ``is_persisted(SessionId(...))`` is False regardless of value.

    Non-goals:
        - Does not know what a register does with the answer; the lock
          policy per action lives in ``TrackingConfig``.
    """

    def __init__(self, session_threshold: int = SESSION_ID_THRESHOLD):
        self.session_threshold = session_threshold

    def classify(self, raw: Any) -> RecordId | None:
        """Tag a raw or already-tagged id."""
        return coerce_record_id(raw, self.session_threshold)

    def is_persisted(self, record_id: Any) -> bool:
        """True when the record came from the backing store."""
        tagged = self.classify(record_id)
        if tagged is None:
            return False
        return tagged.is_persisted


class SessionIdGenerator:
    """
    Mints strictly increasing ``SessionId`` values from a clock.

    ``after`` seeds the generator past session ids already present in a
    register, so a new id never equals one loaded from the host.
    """

    def __init__(self, clock: Clock, after: int = 0):
        self._clock = clock
        self._last = after

    def next_id(self) -> SessionId:
        token = max(self._clock.epoch_millis(), self._last + 1)
        self._last = token
        return SessionId(token)
