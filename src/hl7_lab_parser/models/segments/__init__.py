# src/hl7_lab_parser/models/segments/__init__.py
"""
Segment model variants.

Importing this package imports each variant module, whose @register(...)
decorator adds its extractor to the registry.
"""

from . import msh, obr, obx  # noqa: F401

__all__ = ["msh", "obr", "obx"]
