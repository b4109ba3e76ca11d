"""GS1 element string decoder.

Understands the application identifiers printed on pharmaceutical packs:

    01  GTIN (14 digits, fixed)
    10  batch number (variable, up to 20)
    17  expiry date YYMMDD (fixed)
    21  serial number (variable, up to 20)
    30  count of items (variable, up to 8)
    240 additional product identification (variable, up to 30)

Variable-length values end at a group separator (FNC1) or the end of input.
"""

from pack_input.exceptions import DecodeError
from pack_input.scancodes.port import DecodeResult, ScancodeDecoder, is_digits, parse_yymmdd

GS = "\x1d"
SYMBOLOGY_PREFIXES = ("]d2", "]C1", "]Q3", "]e0")

# ai -> (fixed length or None, max length)
APPLICATION_IDENTIFIERS = {
    "01": (14, 14),
    "10": (None, 20),
    "17": (6, 6),
    "21": (None, 20),
    "30": (None, 8),
    "240": (None, 30),
}


class Gs1Decoder(ScancodeDecoder):
    name = "gs1"

    def decode(self, scan_code: str) -> DecodeResult:
        data = self._strip_prefix(scan_code or "")
        if not data:
            raise DecodeError("gs1: empty scan code")

        elements = self._split(data)

        quantity = elements.get("30")
        if quantity is not None and not is_digits(quantity):
            raise DecodeError(f"gs1: invalid count '{quantity}'")

        expiry = elements.get("17")
        return DecodeResult(
            item_code=elements.get("01"),
            batch_number=elements.get("10"),
            external_id=elements.get("240"),
            expiry_date=parse_yymmdd(expiry, self.name) if expiry else None,
            sub_item_quantity=int(quantity) if quantity else 0,
            serial_number=elements.get("21"),
        )

    @staticmethod
    def _strip_prefix(data: str) -> str:
        for prefix in SYMBOLOGY_PREFIXES:
            if data.startswith(prefix):
                return data[len(prefix):]
        return data.lstrip(GS)

    def _split(self, data: str) -> dict[str, str]:
        elements: dict[str, str] = {}
        position = 0

        while position < len(data):
            if data[position] == GS:
                position += 1
                continue

            ai = self._match_ai(data, position)
            position += len(ai)
            fixed, maximum = APPLICATION_IDENTIFIERS[ai]

            if fixed is not None:
                value = data[position:position + fixed]
                if len(value) != fixed or not is_digits(value):
                    raise DecodeError(f"gs1: AI {ai} needs {fixed} digits")
                position += fixed
            else:
                end = data.find(GS, position)
                end = len(data) if end == -1 else end
                value = data[position:end]
                if not value or len(value) > maximum:
                    raise DecodeError(f"gs1: AI {ai} value length out of range")
                position = end

            elements[ai] = value

        return elements

    @staticmethod
    def _match_ai(data: str, position: int) -> str:
        for length in (2, 3):
            candidate = data[position:position + length]
            if candidate in APPLICATION_IDENTIFIERS:
                return candidate
        raise DecodeError(f"gs1: unknown application identifier at position {position}")
