"""IFA (ASC MH10) data-matrix decoder.

The code starts with ``[)>`` RS ``06`` GS and carries data identifiers
separated by GS, optionally terminated by RS EOT:

    9N  pharmacy product number (PPN)
    1T  batch number
    D   expiry date YYMMDD
    S   serial number
    8P  GTIN
    Q   quantity
"""

from pack_input.exceptions import DecodeError
from pack_input.scancodes.port import DecodeResult, ScancodeDecoder, is_digits, parse_yymmdd

RS = "\x1e"
GS = "\x1d"
EOT = "\x04"
HEADER = f"[)>{RS}06{GS}"

DATA_IDENTIFIERS = ("9N", "1T", "8P", "D", "S", "Q")


class IfaDecoder(ScancodeDecoder):
    name = "ifa"

    def decode(self, scan_code: str) -> DecodeResult:
        data = scan_code or ""
        if not data.startswith(HEADER):
            raise DecodeError("ifa: missing format header")

        body = data[len(HEADER):].rstrip(EOT).rstrip(RS)
        fields: dict[str, str] = {}
        for segment in filter(None, body.split(GS)):
            identifier = next((di for di in DATA_IDENTIFIERS if segment.startswith(di)), None)
            if identifier is None:
                raise DecodeError(f"ifa: unknown data identifier in '{segment}'")
            fields[identifier] = segment[len(identifier):]

        quantity = fields.get("Q")
        if quantity is not None and not is_digits(quantity):
            raise DecodeError(f"ifa: invalid quantity '{quantity}'")

        expiry = fields.get("D")
        return DecodeResult(
            item_code=fields.get("9N") or fields.get("8P"),
            batch_number=fields.get("1T"),
            expiry_date=parse_yymmdd(expiry, self.name) if expiry else None,
            sub_item_quantity=int(quantity) if quantity else 0,
            serial_number=fields.get("S"),
        )
