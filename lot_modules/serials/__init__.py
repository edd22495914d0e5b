"""
Serial Register Module.

Serial-tracked units for one product: single and bulk entry, warranty
derivation and classification.
"""

from lot_modules.serials.register import SerialRegister, SerialStats

__all__ = [
    "SerialRegister",
    "SerialStats",
]
