"""
Pure domain layer.

Records, identifiers, results and validation with NO dependencies on
storage, I/O or wall-clock time (time arrives through ``Clock``).
All domain objects are immutable and deterministic.
"""

from lot_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from lot_kernel.domain.dtos import (
    BulkAddResult,
    RegisterResult,
    Rejection,
    RejectionKind,
)
from lot_kernel.domain.identifiers import (
    SESSION_ID_THRESHOLD,
    MutabilityGuard,
    PersistedId,
    RecordId,
    SessionId,
    SessionIdGenerator,
    coerce_record_id,
)
from lot_kernel.domain.records import (
    BATCH_STATUS_ACTIVE,
    SERIAL_STATUS_AVAILABLE,
    Batch,
    BatchDraft,
    ProductContext,
    SerialDraft,
    SerialUnit,
    normalize_identifier,
)
from lot_kernel.domain.record_validator import validate_batch, validate_serial

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "BulkAddResult",
    "RegisterResult",
    "Rejection",
    "RejectionKind",
    "SESSION_ID_THRESHOLD",
    "MutabilityGuard",
    "PersistedId",
    "RecordId",
    "SessionId",
    "SessionIdGenerator",
    "coerce_record_id",
    "BATCH_STATUS_ACTIVE",
    "SERIAL_STATUS_AVAILABLE",
    "Batch",
    "BatchDraft",
    "ProductContext",
    "SerialDraft",
    "SerialUnit",
    "normalize_identifier",
    "validate_batch",
    "validate_serial",
]
