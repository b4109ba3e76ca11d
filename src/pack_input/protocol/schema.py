"""Static field schema for protocol messages.

Every message type lists its scalar fields once, in a ``SCHEMA`` tuple of
``FieldDescriptor`` objects, and its nested message attributes in
``CHILDREN``. Field discovery, projection and deep copies all read these
tables; nothing inspects attributes at runtime.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueKind(Enum):
    NUMERIC = "numeric"
    DATE = "date"
    BOOLEAN = "boolean"
    ENUMERATED = "enumerated"
    TEXT = "text"


@dataclass(frozen=True)
class FieldDescriptor:
    """One scalar field of a message type."""

    name: str
    value_kind: ValueKind
    is_mandatory: bool = False
    selectable: bool = True
    choices: type[Enum] | None = None

    def get(self, message: Any) -> Any:
        return getattr(message, self.name)

    def set(self, message: Any, value: Any) -> None:
        setattr(message, self.name, value)

    def zero(self) -> Any:
        """Value a deselected field is reset to."""
        if self.value_kind == ValueKind.NUMERIC:
            return 0
        if self.value_kind == ValueKind.BOOLEAN:
            return False
        return None


def field_names(message_type: type) -> frozenset[str]:
    """Names of all scalar fields declared by ``message_type``."""
    return frozenset(descriptor.name for descriptor in getattr(message_type, "SCHEMA", ()))


def snapshot(message):
    """Deep copy ``message`` through its static schema.

    Scalars are copied by value, nested messages (single or lists) are
    copied recursively. ``None`` passes through.
    """
    if message is None:
        return None

    message_type = type(message)
    values = {descriptor.name: descriptor.get(message) for descriptor in message_type.SCHEMA}
    for child in message_type.CHILDREN:
        value = getattr(message, child)
        if isinstance(value, list):
            values[child] = [snapshot(item) for item in value]
        else:
            values[child] = snapshot(value)
    return message_type(**values)
