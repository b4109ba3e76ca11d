"""Ordered decoder chain and PZN derivation."""

import structlog

from pack_input.exceptions import DecodeError
from pack_input.scancodes.port import DecodeResult, ScancodeDecoder, is_digits

logger = structlog.get_logger(__name__)

PPN_PREFIX = "11"
NTIN_PREFIX = "04150"


class DecoderChain:
    """Tries decoders in priority order; the first non-empty item code wins."""

    def __init__(self, decoders: list[ScancodeDecoder]) -> None:
        self.decoders = list(decoders)

    def decode(self, scan_code: str) -> DecodeResult | None:
        for decoder in self.decoders:
            try:
                result = decoder.decode(scan_code)
            except DecodeError as exc:
                logger.warning("Scan code not decoded", decoder=decoder.name, scan_code=scan_code, error=str(exc))
                continue

            if result.item_code:
                logger.debug("Scan code decoded", decoder=decoder.name, item_code=result.item_code)
                return result

        return None


def _pzn_valid(pzn: str) -> bool:
    if len(pzn) != 8 or not is_digits(pzn):
        return False
    check = sum(int(digit) * weight for weight, digit in enumerate(pzn[:7], start=1)) % 11
    return check != 10 and check == int(pzn[7])


def _ppn_valid(ppn: str) -> bool:
    check = sum(ord(char) * weight for weight, char in enumerate(ppn[:-2], start=2)) % 97
    return f"{check:02d}" == ppn[-2:]


def _gtin_valid(gtin: str) -> bool:
    if not is_digits(gtin):
        return False
    total = sum(int(digit) * (3 if index % 2 == 0 else 1) for index, digit in enumerate(reversed(gtin[:-1])))
    return (10 - total % 10) % 10 == int(gtin[-1])


def pzn_from_item_code(item_code: str | None) -> str | None:
    """German PZN carried by a PPN or an NTIN, or None."""
    if not item_code:
        return None

    if len(item_code) == 12 and item_code.startswith(PPN_PREFIX) and _ppn_valid(item_code):
        pzn = item_code[2:10]
        return pzn if _pzn_valid(pzn) else None

    gtin = item_code.zfill(14) if len(item_code) == 13 else item_code
    if len(gtin) == 14 and gtin.startswith(NTIN_PREFIX) and _gtin_valid(gtin):
        pzn = gtin[5:13]
        return pzn if _pzn_valid(pzn) else None

    return None
