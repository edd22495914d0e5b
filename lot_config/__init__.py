"""
lot_config -- public entrypoint for category policy configuration.

Responsibility:
    Provides ``get_category_policies()``, the single way registers and
    host forms obtain the category policy table.  YAML parsing lives in
    ``lot_config.loader``.

Architecture position:
    Configuration -- sits above ``lot_kernel`` and below ``lot_modules``.
    The kernel MUST NEVER import from ``lot_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested policy file does not exist.
    - ``CategoryPolicyError`` -- the file is malformed.

Every successful load emits a ``LOT_CONFIG_TRACE`` log entry with the
source path, category count and checksum.
"""

from __future__ import annotations

from pathlib import Path

from lot_config.loader import load_category_policies
from lot_config.schema import CategoryPolicy, CategoryPolicyTable
from lot_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_POLICY_FILE = Path(__file__).parent / "categories.yaml"


def get_category_policies(path: Path | None = None) -> CategoryPolicyTable:
    """
    Load the category policy table.

    Args:
        path: Override policy file.  Defaults to the bundled
            ``lot_config/categories.yaml``.
    """
    source = path or DEFAULT_POLICY_FILE
    table = load_category_policies(source)
    _logger.info("LOT_CONFIG_TRACE", extra={
        "trace_type": "LOT_CONFIG_TRACE",
        "source": str(source),
        "category_count": len(table),
        "checksum": table.checksum,
    })
    return table


__all__ = [
    "CategoryPolicy",
    "CategoryPolicyTable",
    "DEFAULT_POLICY_FILE",
    "get_category_policies",
]
