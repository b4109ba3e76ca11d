"""Response profile management commands and their handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from pack_input.domain import pack_input
from pack_input.response.profile import ResponseProfile


@pack_input.command(part_of="ResponseProfile")
class CreateResponseProfile:
    """Create a new, empty response profile."""

    name = String(required=True, max_length=100)


@pack_input.command(part_of="ResponseProfile")
class EnableResponseOverrides:
    """Turn on field overrides for one message type."""

    profile_id = Identifier(required=True)
    message_type = String(required=True, max_length=50)


@pack_input.command(part_of="ResponseProfile")
class DisableResponseOverrides:
    """Turn off field overrides for one message type."""

    profile_id = Identifier(required=True)
    message_type = String(required=True, max_length=50)


@pack_input.command(part_of="ResponseProfile")
class SetFieldPolicy:
    """Choose how one response field is populated."""

    profile_id = Identifier(required=True)
    message_type = String(required=True, max_length=50)
    field_name = String(required=True, max_length=100)
    mode = String(required=True, max_length=20)  # UseDefault, MirrorInput, Custom
    raw_value = String(max_length=255)


@pack_input.command(part_of="ResponseProfile")
class DeselectResponseField:
    """Leave an optional field out of the response."""

    profile_id = Identifier(required=True)
    message_type = String(required=True, max_length=50)
    field_name = String(required=True, max_length=100)


@pack_input.command_handler(part_of=ResponseProfile)
class ResponseProfileHandler:
    @handle(CreateResponseProfile)
    def create_response_profile(self, command):
        profile = ResponseProfile.create(name=command.name)
        current_domain.repository_for(ResponseProfile).add(profile)
        return str(profile.id)

    @handle(EnableResponseOverrides)
    def enable_response_overrides(self, command):
        repo = current_domain.repository_for(ResponseProfile)
        profile = repo.get(command.profile_id)
        profile.enable_overrides(command.message_type)
        repo.add(profile)

    @handle(DisableResponseOverrides)
    def disable_response_overrides(self, command):
        repo = current_domain.repository_for(ResponseProfile)
        profile = repo.get(command.profile_id)
        profile.disable_overrides(command.message_type)
        repo.add(profile)

    @handle(SetFieldPolicy)
    def set_field_policy(self, command):
        repo = current_domain.repository_for(ResponseProfile)
        profile = repo.get(command.profile_id)
        profile.set_policy(
            command.message_type,
            command.field_name,
            command.mode,
            raw_value=command.raw_value,
        )
        repo.add(profile)

    @handle(DeselectResponseField)
    def deselect_response_field(self, command):
        repo = current_domain.repository_for(ResponseProfile)
        profile = repo.get(command.profile_id)
        profile.deselect(command.message_type, command.field_name)
        repo.add(profile)
