"""
Lot Kernel

Pure building blocks for lot-based inventory tracking:
- Immutable batch and serial-unit records
- Explicit persisted/session identifiers
- Typed validation rejections and exceptions
- Structured JSON logging
"""

__version__ = "0.1.0"
