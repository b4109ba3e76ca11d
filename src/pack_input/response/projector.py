"""Field projector: applies an operator's field policies to a response object.

For every overridable field of the target's type:

- optional fields without a policy were deselected and are reset,
- ``UseDefault`` keeps whatever the decision pipeline computed,
- ``MirrorInput`` copies the value the request originally carried,
- ``Custom`` parses the operator's raw value by the field's value kind.

Conversion failures are raised, never swallowed: the caller decides whether
the whole response is abandoned.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

from pack_input.exceptions import FieldValueConversionError
from pack_input.protocol.schema import FieldDescriptor, ValueKind, field_names
from pack_input.response.catalog import catalog

BOOLEAN_TOKENS = {"False": False, "True": True}


class PolicyMode(Enum):
    USE_DEFAULT = "UseDefault"
    MIRROR_INPUT = "MirrorInput"
    CUSTOM = "Custom"


def project(target, snapshot, policies) -> None:
    """Mutate ``target`` in place according to ``policies``.

    ``snapshot`` is the pre-mutation copy used as the MirrorInput source; it
    is only read. ``policies`` is an iterable of objects exposing
    ``field_name``, ``mode`` and ``raw_value``.
    """
    type_name = catalog.type_name(type(target))
    by_name = {policy.field_name: policy for policy in policies}
    mirrored_fields = field_names(type(snapshot)) if snapshot is not None else frozenset()

    for descriptor in catalog.discover(type_name):
        policy = by_name.get(descriptor.name)

        if policy is None:
            if not descriptor.is_mandatory:
                descriptor.set(target, descriptor.zero())
            continue

        mode = PolicyMode(policy.mode)

        if mode == PolicyMode.USE_DEFAULT:
            continue

        if mode == PolicyMode.MIRROR_INPUT:
            if descriptor.name not in mirrored_fields:
                continue
            descriptor.set(target, descriptor.get(snapshot))
            continue

        descriptor.set(target, convert(type_name, descriptor, policy.raw_value))


def convert(type_name: str, descriptor: FieldDescriptor, raw_value):
    """Parse an operator's raw value into the field's value kind."""
    if raw_value is None:
        raise FieldValueConversionError(type_name, descriptor.name, raw_value, "no value given")

    text = str(raw_value).strip()
    kind = descriptor.value_kind

    if kind == ValueKind.TEXT:
        return str(raw_value)

    if kind == ValueKind.NUMERIC:
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise FieldValueConversionError(type_name, descriptor.name, raw_value, "not a number") from None
        if not number.is_finite() or number != number.to_integral_value():
            raise FieldValueConversionError(type_name, descriptor.name, raw_value, "not an integer")
        return int(number)

    if kind == ValueKind.BOOLEAN:
        if text not in BOOLEAN_TOKENS:
            raise FieldValueConversionError(type_name, descriptor.name, raw_value, "expected 'False' or 'True'")
        return BOOLEAN_TOKENS[text]

    if kind == ValueKind.DATE:
        return _parse_date(type_name, descriptor, raw_value, text)

    if kind == ValueKind.ENUMERATED:
        members = list(descriptor.choices)
        try:
            ordinal = int(text)
        except ValueError:
            raise FieldValueConversionError(type_name, descriptor.name, raw_value, "not an ordinal") from None
        if not 0 <= ordinal < len(members):
            raise FieldValueConversionError(
                type_name, descriptor.name, raw_value, f"ordinal out of range 0..{len(members) - 1}"
            )
        return members[ordinal]

    raise FieldValueConversionError(type_name, descriptor.name, raw_value, f"unsupported kind {kind.value}")


def _parse_date(type_name, descriptor, raw_value, text) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise FieldValueConversionError(type_name, descriptor.name, raw_value, "not a calendar date") from None
