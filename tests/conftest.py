"""
Pytest fixtures for the lot tracking test suite.

Provides:
- Structured logging configuration and log capture
- Deterministic clocks
- Category policy tables and product contexts
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from lot_config import get_category_policies
from lot_kernel.domain.clock import DeterministicClock
from lot_kernel.domain.records import ProductContext
from lot_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

TODAY = date(2024, 1, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lot_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, batch_register):
            batch_register.add(...)
            logs = captured_logs()
            assert any(r["message"] == "batch_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lot_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def clock():
    """Clock fixed at noon UTC on 2024-01-01."""
    return DeterministicClock.on(TODAY)


# =============================================================================
# Configuration and product context
# =============================================================================


@pytest.fixture(scope="session")
def policies():
    """The bundled category policy table."""
    return get_category_policies()


@pytest.fixture
def pharmacy_product():
    return ProductContext(
        sku="PAN-500",
        unit="strip",
        cost_price=Decimal("10.00"),
        price=Decimal("15.00"),
        category="pharmacy",
    )


@pytest.fixture
def electronics_product():
    return ProductContext(
        sku="TV-55",
        unit="pcs",
        cost_price=Decimal("30000"),
        price=Decimal("42000"),
        warranty_months=24,
        category="electronics",
    )
