# src/hl7_lab_parser/models/registry.py
"""
Registry for segment model variants.

Provides:
- a @register(segment_type) decorator to bind a SegmentType to its extractor,
- lookup by type code,
- dispatch of a split segment to its typed model.
"""

from __future__ import annotations

from typing import Dict, List, Union

from .base import Extractor, Segment, SegmentModel, SegmentType

# Map each modeled segment type to its extractor function.
_REGISTRY: Dict[SegmentType, Extractor] = {}


def register(segment_type: SegmentType):
    """
    Decorator to register an extractor function for a segment type.

    Parameters
    ----------
    segment_type : SegmentType
        The modeled segment type, e.g. SegmentType.OBX.

    Raises
    ------
    ValueError
        If the segment type is already registered.
    TypeError
        If segment_type is not a SegmentType, or the decorated object is not
        callable.

    Returns
    -------
    callable
        A function decorator that registers the extractor.
    """
    if not isinstance(segment_type, SegmentType):
        raise TypeError(
            f"segment_type must be SegmentType, got {type(segment_type).__name__}"
        )

    def _wrap(fn: Extractor) -> Extractor:
        if segment_type in _REGISTRY:
            raise ValueError(
                f"Extractor already registered for segment {segment_type.value!r}"
            )
        if not callable(fn):
            raise TypeError(f"Only callables can be registered, got {type(fn)}")

        _REGISTRY[segment_type] = fn
        return fn

    return _wrap


def available_types() -> List[str]:
    """
    List all registered segment type codes.

    Returns
    -------
    List[str]
        Sorted list of type codes (e.g., ["MSH", "OBR", "OBX"]).
    """
    return sorted(t.value for t in _REGISTRY)


def get_extractor(code: str) -> Extractor | None:
    """
    Look up the extractor for a segment type code.

    Returns None for codes without a SegmentType member or without a
    registered extractor.
    """
    segment_type = SegmentType.from_code(code)
    if segment_type is None:
        return None
    return _REGISTRY.get(segment_type)


def map_segment(segment: Segment) -> Union[SegmentModel, Segment]:
    """
    Map a split segment to its typed model.

    Segments of an unmodeled type are returned unchanged.
    """
    extractor = get_extractor(segment.type)
    if extractor is None:
        return segment
    return extractor(segment)
