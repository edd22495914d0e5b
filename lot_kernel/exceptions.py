"""
Typed Exception Hierarchy for the Lot Tracking Core.

Entry validation failures (blank identifiers, duplicates, bad dates) are
NOT exceptions: registers return them as ``Rejection`` values inside a
``RegisterResult`` so the form can refocus the offending field.  The
exceptions below are reserved for contract violations by the host or by
configuration, where there is no field to refocus.

Every exception carries a ``code`` class attribute (machine-readable) and
stores its context as attributes rather than only in the message.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LotTrackingError (base)
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |   +-- InvalidRecordError
    |   +-- EntryRejectedError
    |
    +-- AllocationError
    |   +-- InsufficientStockError
    |
    +-- ConfigurationError
        +-- CategoryPolicyError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Record          | RECORD_NOT_FOUND            | edit() called with an unknown id
                | INVALID_RECORD              | Host mapping cannot be read as a record
                | ENTRY_REJECTED              | RegisterResult.unwrap() on a rejection
----------------|-----------------------------|-----------------------------------------
Allocation      | INSUFFICIENT_STOCK          | FEFO allocation exceeds available stock
----------------|-----------------------------|-----------------------------------------
Configuration   | CATEGORY_POLICY_INVALID     | Category policy YAML is malformed
"""

from decimal import Decimal


class LotTrackingError(Exception):
    """
    Base exception for all lot tracking errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LOT_TRACKING_ERROR"


# Record-related exceptions


class RecordError(LotTrackingError):
    """Base exception for record lookup and parsing errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """No record with the given id exists in the register."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_type: str, record_id: str):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(f"{record_type} not found: {record_id}")


class InvalidRecordError(RecordError):
    """A host-supplied mapping could not be converted into a record."""

    code: str = "INVALID_RECORD"

    def __init__(self, record_type: str, field: str, reason: str):
        self.record_type = record_type
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {record_type} field '{field}': {reason}")


class EntryRejectedError(RecordError):
    """
    A rejected register result was unwrapped.

    Registers never raise this themselves; ``RegisterResult.unwrap()`` does,
    for callers that prefer exceptions over inspecting the result.
    """

    code: str = "ENTRY_REJECTED"

    def __init__(self, kind: str, message: str, field: str | None = None):
        self.kind = kind
        self.field = field
        super().__init__(f"{kind}: {message}")


# Allocation exceptions


class AllocationError(LotTrackingError):
    """Base exception for stock allocation errors."""

    code: str = "ALLOCATION_ERROR"


class InsufficientStockError(AllocationError):
    """Requested quantity exceeds the stock available across all batches."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, needed: Decimal, available: Decimal):
        self.needed = needed
        self.available = available
        super().__init__(
            f"Insufficient stock. Need {needed}, available {available}"
        )


# Configuration exceptions


class ConfigurationError(LotTrackingError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class CategoryPolicyError(ConfigurationError):
    """The category policy table could not be loaded."""

    code: str = "CATEGORY_POLICY_INVALID"

    def __init__(self, category: str, reason: str):
        self.category = category
        self.reason = reason
        super().__init__(f"Invalid category policy '{category}': {reason}")
