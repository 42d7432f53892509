# src/hl7_lab_parser/__init__.py
"""
hl7_lab_parser: HL7 v2 laboratory message parsing utilities.

This package provides:
- A parser that turns raw HL7 v2 text into typed MSH/OBR/OBX records.
- A file sink that persists parse results as JSON.
- An MLLP listener and a CLI built on top of the parser.
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "__version__",
]
