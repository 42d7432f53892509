# src/hl7_lab_parser/models/segments/obx.py
"""
OBX (observation result) model.

The result value is normalized the way lab consumers of this tool expect it:
- OBX-4 components are joined with spaces instead of "^".
- OBX-5 is read as a number from its leading numeric prefix and rendered with
  two decimals ("12.5" -> "12.50", "7.2 H" -> "7.20"). Values with no numeric
  prefix render as "NaN".
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Optional

from ..base import ModelMixin, Segment, SegmentType, field_at, require_type
from ..registry import register

KEY_INDEX = 14
NAME_INDEX = 4
VALUE_INDEX = 5

REPETITION_SEPARATOR = "^"
NAN_TEXT = "NaN"

_NUMERIC_PREFIX = re.compile(
    r"^[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_TWO_PLACES = Decimal("0.01")
# Wide enough to hold any finite float written out in fixed point.
_FIXED_POINT = Context(prec=400)
_EXPONENTIAL_FROM = 1e21


@dataclass(frozen=True)
class ObservationResult(ModelMixin):
    clave: Optional[str] = None
    nombre: Optional[str] = None
    resultado: Optional[str] = None


def parse_leading_float(text: str) -> float:
    """
    Parse the longest numeric prefix of ``text``.

    Leading whitespace is ignored. Returns NaN when no prefix is numeric.
    """
    m = _NUMERIC_PREFIX.match(text.lstrip())
    if m is None:
        return math.nan
    token = m.group(0)
    if token.endswith("Infinity"):
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def format_two_decimals(value: float) -> str:
    """
    Render ``value`` with exactly two decimals, rounding halves away from zero.

    Magnitudes of 1e21 and above keep the shortest exponential form
    ("1e+22"), the same text toFixed produces for them.
    """
    if math.isnan(value):
        return NAN_TEXT
    if math.isinf(value):
        return "-Infinity" if value < 0 else "Infinity"
    if abs(value) >= _EXPONENTIAL_FROM:
        return repr(value)
    if value == 0:
        value = 0.0  # drop the sign of -0.0
    exact = Decimal(value)
    rounded = exact.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP, context=_FIXED_POINT)
    return str(rounded)


def normalize_name(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return raw.replace(REPETITION_SEPARATOR, " ")


def normalize_result(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return format_two_decimals(parse_leading_float(raw))


@register(SegmentType.OBX)
def extract_observation(segment: Segment) -> ObservationResult:
    """
    Build an ObservationResult from an OBX segment.

    Fields missing from a short segment come back as None.

    Raises
    ------
    TypeMismatchError
        If segment is not an OBX segment.
    """
    require_type(segment, SegmentType.OBX)
    return ObservationResult(
        clave=field_at(segment, KEY_INDEX),
        nombre=normalize_name(field_at(segment, NAME_INDEX)),
        resultado=normalize_result(field_at(segment, VALUE_INDEX)),
    )
