"""Domain events for the ResponseProfile aggregate."""

from protean.fields import DateTime, Identifier, String

from pack_input.domain import pack_input


@pack_input.event(part_of="ResponseProfile")
class ResponseProfileCreated:
    """A response profile was created."""

    __version__ = 1

    profile_id = Identifier(required=True)
    name = String(required=True)
    created_at = DateTime(required=True)


@pack_input.event(part_of="ResponseProfile")
class ResponseOverridesEnabled:
    """Field overrides were switched on for a message type."""

    __version__ = 1

    profile_id = Identifier(required=True)
    message_type = String(required=True)
    enabled_at = DateTime(required=True)


@pack_input.event(part_of="ResponseProfile")
class ResponseOverridesDisabled:
    """Field overrides were switched off for a message type."""

    __version__ = 1

    profile_id = Identifier(required=True)
    message_type = String(required=True)
    disabled_at = DateTime(required=True)


@pack_input.event(part_of="ResponseProfile")
class FieldPolicySet:
    """The operator chose how one response field is populated."""

    __version__ = 1

    profile_id = Identifier(required=True)
    message_type = String(required=True)
    field_name = String(required=True)
    mode = String(required=True)
    raw_value = String()
    set_at = DateTime(required=True)


@pack_input.event(part_of="ResponseProfile")
class FieldDeselected:
    """An optional response field was removed from the response."""

    __version__ = 1

    profile_id = Identifier(required=True)
    message_type = String(required=True)
    field_name = String(required=True)
    deselected_at = DateTime(required=True)
