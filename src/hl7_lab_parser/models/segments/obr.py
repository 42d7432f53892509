# src/hl7_lab_parser/models/segments/obr.py
"""
OBR (observation request) model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..base import ModelMixin, Segment, SegmentType, field_at, require_type
from ..registry import register

KEY_INDEX = 6


@dataclass(frozen=True)
class OrderInfo(ModelMixin):
    clave: Optional[str] = None


@register(SegmentType.OBR)
def extract_order(segment: Segment) -> OrderInfo:
    """
    Build an OrderInfo from an OBR segment.

    Raises
    ------
    TypeMismatchError
        If segment is not an OBR segment.
    """
    require_type(segment, SegmentType.OBR)
    return OrderInfo(clave=field_at(segment, KEY_INDEX))
