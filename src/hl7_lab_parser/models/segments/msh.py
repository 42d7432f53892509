# src/hl7_lab_parser/models/segments/msh.py
"""
MSH (message header) model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..base import ModelMixin, Segment, SegmentType, field_at, require_type
from ..registry import register

# Split index 6 is MSH-7; MSH-1 is the separator itself and is not a split field.
KEY_INDEX = 6


@dataclass(frozen=True)
class HeaderInfo(ModelMixin):
    clave: Optional[str] = None


@register(SegmentType.MSH)
def extract_header(segment: Segment) -> HeaderInfo:
    """
    Build a HeaderInfo from an MSH segment.

    Raises
    ------
    TypeMismatchError
        If segment is not an MSH segment.
    """
    require_type(segment, SegmentType.MSH)
    return HeaderInfo(clave=field_at(segment, KEY_INDEX))
