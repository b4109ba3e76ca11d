"""Operator configuration consumed by the input decision pipeline."""

import os

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, String

from pack_input.domain import pack_input

ENV_PREFIX = "PACK_INPUT_"

_TRUE_TOKENS = {"true", "1", "yes", "on"}
_FALSE_TOKENS = {"false", "0", "no", "off"}

_BOOLEAN_OPTIONS = (
    "allow_stock_return_input",
    "allow_stock_delivery_input",
    "enforce_picking_indicator",
    "only_known_articles",
    "enforce_expiry_date",
    "enforce_batch_number",
    "enforce_stock_location",
    "enforce_serial_number",
    "parse_scancodes",
    "fridge_only",
    "set_max_sub_item_quantity",
    "set_virtual_article",
)
_INTEGER_OPTIONS = ("default_expiry_month_offset", "max_sub_item_quantity")
_TEXT_OPTIONS = ("overwrite_stock_location", "overwrite_article_name")


@pack_input.value_object
class InputConfiguration:
    """The toggles an operator sets for pack input.

    ``max_sub_item_quantity`` left empty means a random quantity is chosen per
    article. ``overwrite_stock_location`` and ``overwrite_article_name`` are
    only applied when set.
    """

    allow_stock_return_input = Boolean(default=True)
    allow_stock_delivery_input = Boolean(default=True)
    enforce_picking_indicator = Boolean(default=False)
    only_known_articles = Boolean(default=False)
    enforce_expiry_date = Boolean(default=False)
    enforce_batch_number = Boolean(default=False)
    enforce_stock_location = Boolean(default=False)
    enforce_serial_number = Boolean(default=False)
    parse_scancodes = Boolean(default=False)
    fridge_only = Boolean(default=False)
    default_expiry_month_offset = Integer(default=6)
    overwrite_stock_location = String(max_length=100)

    set_max_sub_item_quantity = Boolean(default=False)
    max_sub_item_quantity = Integer()
    set_virtual_article = Boolean(default=False)
    overwrite_article_name = String(max_length=255)

    @invariant.post
    def month_offset_must_not_be_negative(self):
        if self.default_expiry_month_offset is not None and self.default_expiry_month_offset < 0:
            raise ValidationError(
                {"default_expiry_month_offset": ["Expiry month offset must not be negative"]}
            )

    @invariant.post
    def max_sub_item_quantity_in_range(self):
        if self.max_sub_item_quantity is not None and not 1 <= self.max_sub_item_quantity <= 999:
            raise ValidationError(
                {"max_sub_item_quantity": ["Max sub item quantity must be between 1 and 999"]}
            )


def _parse_boolean(name, raw):
    token = raw.strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValidationError({name: [f"Expected a boolean, got {raw!r}"]})


def _parse_integer(name, raw):
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError({name: [f"Expected an integer, got {raw!r}"]}) from None


def load_configuration(environ=None) -> InputConfiguration:
    """Build the configuration from ``PACK_INPUT_*`` environment variables.

    Unset or empty variables keep their defaults.
    """
    environ = os.environ if environ is None else environ
    values = {}

    for name in _BOOLEAN_OPTIONS:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw:
            values[name] = _parse_boolean(name, raw)

    for name in _INTEGER_OPTIONS:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw:
            values[name] = _parse_integer(name, raw)

    for name in _TEXT_OPTIONS:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw:
            values[name] = raw

    return InputConfiguration(**values)
