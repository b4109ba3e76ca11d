"""ResponseProfile aggregate holding the operator's field policies per message type.

A message type with at least one policy has overrides switched on; its
response objects are projected. Enabling a type starts every catalog field
at ``UseDefault``; deselecting an optional field removes its policy so the
projector resets it. Mandatory fields always keep a policy.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, String

from pack_input.domain import pack_input
from pack_input.response.catalog import catalog
from pack_input.response.events import (
    FieldDeselected,
    FieldPolicySet,
    ResponseOverridesDisabled,
    ResponseOverridesEnabled,
    ResponseProfileCreated,
)
from pack_input.response.projector import PolicyMode


@pack_input.entity(part_of="ResponseProfile")
class FieldPolicy:
    """How one field of one message type is populated in the response."""

    message_type = String(required=True, max_length=50)
    field_name = String(required=True, max_length=100)
    mode = String(choices=PolicyMode, default=PolicyMode.USE_DEFAULT.value)
    raw_value = String(max_length=255)


@pack_input.aggregate
class ResponseProfile:
    """A named set of field policies applied to outgoing input responses."""

    name = String(required=True, max_length=100)
    policies = HasMany(FieldPolicy)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name):
        """Create an empty profile; no message type is overridden yet."""
        now = datetime.now(UTC)
        profile = cls(name=name, created_at=now, updated_at=now)
        profile.raise_(
            ResponseProfileCreated(
                profile_id=str(profile.id),
                name=name,
                created_at=now,
            )
        )
        return profile

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def _policy(self, message_type, field_name):
        return next(
            (
                p
                for p in (self.policies or [])
                if p.message_type == message_type and p.field_name == field_name
            ),
            None,
        )

    def overrides_enabled(self, message_type) -> bool:
        type_name = catalog.type_name(message_type)
        return any(p.message_type == type_name for p in (self.policies or []))

    def policies_for(self, message_type):
        """Policies of ``message_type``, or None when its overrides are off."""
        type_name = catalog.type_name(message_type)
        policies = [p for p in (self.policies or []) if p.message_type == type_name]
        return policies or None

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def enable_overrides(self, message_type):
        """Switch on overrides for a message type with every field at UseDefault."""
        type_name = catalog.type_name(message_type)
        if self.overrides_enabled(type_name):
            return

        for descriptor in catalog.discover(type_name):
            self.add_policies(
                FieldPolicy(
                    message_type=type_name,
                    field_name=descriptor.name,
                    mode=PolicyMode.USE_DEFAULT.value,
                )
            )
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ResponseOverridesEnabled(
                profile_id=str(self.id),
                message_type=type_name,
                enabled_at=self.updated_at,
            )
        )

    def disable_overrides(self, message_type):
        """Switch off overrides; responses of this type are sent as computed."""
        type_name = catalog.type_name(message_type)
        policies = [p for p in (self.policies or []) if p.message_type == type_name]
        if not policies:
            return

        for policy in policies:
            self.remove_policies(policy)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ResponseOverridesDisabled(
                profile_id=str(self.id),
                message_type=type_name,
                disabled_at=self.updated_at,
            )
        )

    def set_policy(self, message_type, field_name, mode, raw_value=None):
        """Choose how one field is populated. Unknown fields are rejected."""
        type_name = catalog.type_name(message_type)
        catalog.descriptor(type_name, field_name)

        try:
            mode = PolicyMode(mode)
        except ValueError:
            raise ValidationError({"mode": [f"Unknown policy mode '{mode}'"]}) from None

        if mode == PolicyMode.CUSTOM and raw_value is None:
            raise ValidationError({"raw_value": ["A custom policy needs a value"]})
        if mode != PolicyMode.CUSTOM:
            raw_value = None

        self.enable_overrides(type_name)

        policy = self._policy(type_name, field_name)
        if policy is None:
            self.add_policies(
                FieldPolicy(
                    message_type=type_name,
                    field_name=field_name,
                    mode=mode.value,
                    raw_value=raw_value,
                )
            )
        else:
            policy.mode = mode.value
            policy.raw_value = raw_value

        self.updated_at = datetime.now(UTC)
        self.raise_(
            FieldPolicySet(
                profile_id=str(self.id),
                message_type=type_name,
                field_name=field_name,
                mode=mode.value,
                raw_value=raw_value,
                set_at=self.updated_at,
            )
        )

    def deselect(self, message_type, field_name):
        """Leave an optional field out of the response."""
        type_name = catalog.type_name(message_type)
        descriptor = catalog.descriptor(type_name, field_name)
        if descriptor.is_mandatory:
            raise ValidationError(
                {"field_name": [f"{type_name}.{field_name} is mandatory and cannot be deselected"]}
            )

        self.enable_overrides(type_name)

        policy = self._policy(type_name, field_name)
        if policy is not None:
            self.remove_policies(policy)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            FieldDeselected(
                profile_id=str(self.id),
                message_type=type_name,
                field_name=field_name,
                deselected_at=self.updated_at,
            )
        )
