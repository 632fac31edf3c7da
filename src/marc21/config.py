from collections.abc import Callable
from dataclasses import dataclass
from functools import partial

from pymarc import marc8_to_unicode

TEXT_DECODINGS = ('none', 'utf8', 'marc8', 'auto')

TextDecoder = Callable[[bytes], str]


def _decode_utf8(value: bytes, errors: str = 'strict') -> str:
    return value.decode('utf-8', errors=errors)


def get_text_decoder(name: str, utf8_errors: str = 'strict') -> TextDecoder | None:
    """
    Look up the text decoder for subfield and control field values.

    "none" means values stay bytes, so no decoder is returned.
    """
    match name:
        case 'none':
            return None
        case 'utf8':
            return partial(_decode_utf8, errors=utf8_errors)
        case 'marc8':
            return marc8_to_unicode
        case _:
            raise ValueError(f"unknown text decoding {name!r}, expected one of none, utf8, marc8")


@dataclass(frozen=True)
class CodecConfig:
    # "auto" picks utf8 when leader position 9 is "a" and marc8 otherwise
    text_decoding: str = 'none'
    utf8_errors: str = 'strict'
    raise_on_fatal: bool = False

    def __post_init__(self) -> None:
        if self.text_decoding not in TEXT_DECODINGS:
            raise ValueError(f"unknown text decoding {self.text_decoding!r}, expected one of {', '.join(TEXT_DECODINGS)}")

    def decoder_for(self, leader=None) -> TextDecoder | None:
        name = self.text_decoding
        if name == 'auto':
            name = 'utf8' if leader is not None and leader.char_coding_scheme == 'a' else 'marc8'
        return get_text_decoder(name, self.utf8_errors)

    def decode_text(self, value: bytes, leader=None) -> str | bytes:
        decoder = self.decoder_for(leader)
        return value if decoder is None else decoder(value)
