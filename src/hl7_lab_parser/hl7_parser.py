# src/hl7_lab_parser/hl7_parser.py
"""
HL7 v2 parsing utilities.

Provides:
- split_segments: raw message -> segment strings
- detect_field_separator: field separator declared by the MSH segment
- split_fields: segment string -> Segment (type code + fields)
- parse: raw message -> {segment type: typed model}
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Union

from .exceptions import MalformedInputError
from .models import Segment, SegmentModel, map_segment

LOG = logging.getLogger(__name__)

HEADER_TYPE = "MSH"
DEFAULT_FIELD_SEPARATOR = "|"

# {type code: model} when repeats collapse, {type code: [model, ...]} otherwise.
ParsedMessage = Dict[str, Any]


def split_segments(raw: str) -> List[str]:
    """
    Split a raw HL7 message into segment strings.

    Parameters
    ----------
    raw : str
        Raw HL7 v2 message. Segments may end in LF, CR LF or CR.

    Returns
    -------
    List[str]
        Segment strings in message order. An empty (or blank) message
        yields [""].
    """
    normalized = raw.strip().replace("\r\n", "\n").replace("\r", "\n")
    return normalized.split("\n")


def detect_field_separator(message: Union[str, Sequence[str]]) -> str:
    """
    Return the field separator declared by the first MSH segment.

    Parameters
    ----------
    message : str or sequence of str
        Raw message, or segments already produced by split_segments.

    Returns
    -------
    str
        The character right after "MSH", or "|" when there is no MSH segment.

    Raises
    ------
    MalformedInputError
        If the MSH segment ends before declaring a separator.
    """
    segments = split_segments(message) if isinstance(message, str) else message
    header = next((s for s in segments if s.startswith(HEADER_TYPE)), None)
    if header is None:
        return DEFAULT_FIELD_SEPARATOR
    if len(header) <= len(HEADER_TYPE):
        raise MalformedInputError("MSH segment does not declare a field separator")
    return header[len(HEADER_TYPE)]


def split_fields(separator: str, segment: str) -> Segment:
    """
    Split one segment string on ``separator``.

    No HL7 escape handling is done; components stay inside their field.
    """
    return Segment.from_fields(segment.split(separator))


def parse(
    raw: str, *, require_header: bool = True, collapse_repeats: bool = True
) -> ParsedMessage:
    """
    Parse a raw HL7 v2 message into typed segment models.

    Parameters
    ----------
    raw : str
        Raw HL7 v2 message.
    require_header : bool, default True
        If True, a message without an MSH segment is rejected. If False, it is
        split with the default "|" separator.
    collapse_repeats : bool, default True
        If True, each segment type maps to the model of its last occurrence.
        If False, each type maps to a list of models in message order.

    Returns
    -------
    ParsedMessage
        Example: {"MSH": HeaderInfo(...), "OBX": ObservationResult(...)}.
        Segment types without a model are left out.

    Raises
    ------
    TypeError
        If raw is not a string.
    MalformedInputError
        If raw is empty, or has no usable MSH segment.
    """
    if not isinstance(raw, str):
        raise TypeError(f"raw must be str, got {type(raw).__name__}")
    if raw.strip() == "":
        raise MalformedInputError("raw must be a non-empty HL7 v2 string")

    segments = split_segments(raw)
    if require_header and not any(s.startswith(HEADER_TYPE) for s in segments):
        raise MalformedInputError("HL7 message has no MSH header segment")
    separator = detect_field_separator(segments)

    out: ParsedMessage = {}
    for line in segments:
        segment = split_fields(separator, line)
        model = map_segment(segment)
        if model is segment:
            LOG.debug("Skipping unmodeled segment %r", segment.type)
            continue
        if collapse_repeats:
            out[segment.type] = model
        else:
            out.setdefault(segment.type, []).append(model)
    return out


def to_dict(parsed: ParsedMessage) -> Dict[str, Any]:
    """
    Return a JSON-ready copy of a parse result.

    Parameters
    ----------
    parsed : ParsedMessage
        Output of parse(), in either repeat mode.

    Returns
    -------
    Dict[str, Any]
        Example: {"MSH": {"clave": "..."}, "OBX": [{"clave": ...}, ...]}.
    """
    out: Dict[str, Any] = {}
    for code, value in parsed.items():
        if isinstance(value, list):
            out[code] = [_model_to_dict(m) for m in value]
        else:
            out[code] = _model_to_dict(value)
    return out


def _model_to_dict(model: SegmentModel) -> Dict[str, Any]:
    if not isinstance(model, SegmentModel):
        raise TypeError(f"not a segment model: {type(model).__name__}")
    return model.to_dict()
