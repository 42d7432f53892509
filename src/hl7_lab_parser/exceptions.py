# src/hl7_lab_parser/exceptions.py
"""
Custom exceptions for hl7_lab_parser.

All exceptions inherit from HL7LabError so that callers can catch
tool-specific errors without grabbing unrelated built-in exceptions.
"""


class HL7LabError(Exception):
    """Base class for all hl7_lab_parser exceptions."""

    pass


class MalformedInputError(HL7LabError):
    """Raised when a raw HL7 message is empty or lacks a usable header."""

    pass


class TypeMismatchError(HL7LabError):
    """Raised when a segment model is applied to a segment of another type."""

    pass


class StorageError(HL7LabError):
    """Raised when a parse result cannot be persisted."""

    pass
