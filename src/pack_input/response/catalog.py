"""Field catalog: the response fields an operator may override.

Discovery reads each message type's static schema once and keeps the
operator-selectable fields in lexicographic order. Lookups go through a typed
registry keyed by ``(type_name, field_name)``.
"""

from protean.exceptions import ValidationError

from pack_input.exceptions import UnknownFieldError
from pack_input.protocol.messages import Article, Handling, InputResponse, Pack
from pack_input.protocol.schema import FieldDescriptor


class FieldCatalog:
    """Registry of overridable fields per message type."""

    def __init__(self, message_types=()):
        self._types: dict[str, type] = {}
        self._fields: dict[str, tuple[FieldDescriptor, ...]] = {}
        self._index: dict[tuple[str, str], FieldDescriptor] = {}
        for message_type in message_types:
            self.register(message_type)

    def register(self, message_type: type) -> None:
        type_name = message_type.__name__
        descriptors = tuple(
            sorted(
                (descriptor for descriptor in message_type.SCHEMA if descriptor.selectable),
                key=lambda descriptor: descriptor.name,
            )
        )
        self._types[type_name] = message_type
        self._fields[type_name] = descriptors
        for descriptor in descriptors:
            self._index[(type_name, descriptor.name)] = descriptor

    @property
    def type_names(self) -> list[str]:
        return sorted(self._types)

    def type_name(self, message_type) -> str:
        """Normalize a message class or name to a registered type name."""
        type_name = message_type if isinstance(message_type, str) else message_type.__name__
        if type_name not in self._types:
            raise ValidationError({"message_type": [f"Unknown message type '{type_name}'"]})
        return type_name

    def discover(self, message_type) -> list[FieldDescriptor]:
        """Ordered overridable fields of ``message_type`` (class or name)."""
        return list(self._fields[self.type_name(message_type)])

    def descriptor(self, message_type, field_name: str) -> FieldDescriptor:
        type_name = self.type_name(message_type)
        try:
            return self._index[(type_name, field_name)]
        except KeyError:
            raise UnknownFieldError(type_name, field_name) from None

    def mandatory_fields(self, message_type) -> list[str]:
        return [descriptor.name for descriptor in self.discover(message_type) if descriptor.is_mandatory]


catalog = FieldCatalog((InputResponse, Article, Pack, Handling))
