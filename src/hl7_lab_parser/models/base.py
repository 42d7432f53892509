# src/hl7_lab_parser/models/base.py
"""
Core types shared by the segment models.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)

from ..exceptions import TypeMismatchError

__all__ = [
    "Extractor",
    "Segment",
    "SegmentModel",
    "SegmentType",
    "field_at",
    "require_type",
]


class SegmentType(str, Enum):
    """Segment type codes that have a typed model."""

    MSH = "MSH"
    OBR = "OBR"
    OBX = "OBX"

    @classmethod
    def from_code(cls, code: str) -> Optional["SegmentType"]:
        """
        Return the member for a type code, or None when the code is unmodeled.

        Parameters
        ----------
        code : str
            Three-letter segment type code, e.g. "OBX".

        Returns
        -------
        SegmentType or None
        """
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True)
class Segment:
    """
    One split HL7 segment.

    Attributes
    ----------
    type : str
        Segment type code; always equal to fields[0].
    fields : tuple of str
        Raw field strings in segment order, type code included.
    """

    type: str
    fields: Tuple[str, ...]

    @classmethod
    def from_fields(cls, fields: List[str]) -> "Segment":
        return cls(type=fields[0] if fields else "", fields=tuple(fields))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "fields": list(self.fields)}


@runtime_checkable
class SegmentModel(Protocol):
    """Interface shared by the typed segment records."""

    def to_dict(self) -> Dict[str, Any]:
        ...


# A model variant: pure function from a split segment to its typed record.
Extractor = Callable[[Segment], SegmentModel]


class ModelMixin:
    """Adds dict serialization to the model dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


def field_at(segment: Segment, index: int) -> Optional[str]:
    """
    Return the field at ``index`` or None when the segment is too short.

    Empty fields ("") are present values and are returned as-is.
    """
    if 0 <= index < len(segment.fields):
        return segment.fields[index]
    return None


def require_type(segment: Segment, expected: SegmentType) -> None:
    """
    Raise TypeMismatchError unless ``segment`` is of the ``expected`` type.
    """
    if segment.type != expected.value:
        raise TypeMismatchError(
            f"Segment {segment.type!r} does not match the {expected.value} model"
        )
