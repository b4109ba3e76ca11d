"""Errors raised by the pack input decision and projection engine.

Domain rule violations on aggregates keep using protean's ValidationError;
the classes here cover the engine's own failure modes.
"""

from protean.exceptions import ValidationError


class PackInputError(Exception):
    """Base class for pack input engine failures."""


class UnknownFieldError(ValidationError):
    """A field policy names a field the catalog never discovered."""

    def __init__(self, message_type: str, field_name: str):
        self.message_type = message_type
        self.field_name = field_name
        super().__init__({"field_name": [f"Unknown field '{field_name}' for {message_type}"]})


class FieldValueConversionError(PackInputError):
    """A custom override value cannot be parsed into the field's value kind."""

    def __init__(self, message_type: str, field_name: str, raw_value, reason: str = ""):
        self.message_type = message_type
        self.field_name = field_name
        self.raw_value = raw_value
        detail = f"Cannot convert {raw_value!r} for {message_type}.{field_name}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class ArticleAssignmentError(PackInputError):
    """Article information could not be assigned onto a pack."""


class DecodeError(PackInputError):
    """A scan code could not be interpreted by a decoder."""


class InfeedTimeoutError(PackInputError):
    """An infeed input request did not finish within the allotted time."""
