# src/hl7_lab_parser/models/__init__.py
"""
Models package initializer.

Imports the segment model variants so their @register(...) decorators run and
populate the registry.
"""

from __future__ import annotations

from .base import Segment, SegmentModel, SegmentType, field_at
from .registry import available_types, get_extractor, map_segment
from . import segments  # noqa: F401

__all__ = [
    "Segment",
    "SegmentModel",
    "SegmentType",
    "available_types",
    "field_at",
    "get_extractor",
    "map_segment",
]
