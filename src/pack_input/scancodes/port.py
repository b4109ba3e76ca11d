"""Scan-code decoder port (abstract interface)."""

import calendar
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from pack_input.exceptions import DecodeError


@dataclass(frozen=True)
class DecodeResult:
    """Structured data extracted from a 2D scan code."""

    item_code: str | None = None
    batch_number: str | None = None
    external_id: str | None = None
    expiry_date: date | None = None
    sub_item_quantity: int = 0
    serial_number: str | None = None


class ScancodeDecoder(ABC):
    """One scan-code format."""

    name: str = "decoder"

    @abstractmethod
    def decode(self, scan_code: str) -> DecodeResult:
        """Decode ``scan_code`` or raise DecodeError."""
        ...


def is_digits(value: str) -> bool:
    """True for a non-empty run of ASCII digits 0-9."""
    return value.isascii() and value.isdigit()


def parse_yymmdd(value: str, decoder: str) -> date:
    """Parse a YYMMDD expiry. Day ``00`` means the last day of the month."""
    if len(value) != 6 or not is_digits(value):
        raise DecodeError(f"{decoder}: invalid expiry date '{value}'")
    year = 2000 + int(value[:2])
    month = int(value[2:4])
    day = int(value[4:6])
    if not 1 <= month <= 12:
        raise DecodeError(f"{decoder}: invalid expiry month in '{value}'")
    if day == 0:
        day = calendar.monthrange(year, month)[1]
    try:
        return date(year, month, day)
    except ValueError:
        raise DecodeError(f"{decoder}: invalid expiry date '{value}'") from None
