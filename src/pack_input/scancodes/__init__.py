"""Scan-code decoder factory.

get_decoder_chain() returns the default priority order: IFA before GS1.
"""

from pack_input.scancodes.chain import DecoderChain, pzn_from_item_code
from pack_input.scancodes.gs1_adapter import Gs1Decoder
from pack_input.scancodes.ifa_adapter import IfaDecoder
from pack_input.scancodes.port import DecodeResult, ScancodeDecoder


def get_decoder_chain() -> DecoderChain:
    return DecoderChain([IfaDecoder(), Gs1Decoder()])


__all__ = [
    "DecodeResult",
    "DecoderChain",
    "Gs1Decoder",
    "IfaDecoder",
    "ScancodeDecoder",
    "get_decoder_chain",
    "pzn_from_item_code",
]
