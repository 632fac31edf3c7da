import io
import logging

from marc21.constants import *
from marc21.errors import BadTagError, InvalidContentError, LengthOverflowError, TooLargeError
from marc21.marc import (
    ControlField,
    DataField,
    Digits,
    DirectoryEntry,
    EntryMap,
    Field,
    Leader,
    MalformedField,
    Record,
    digits_needed,
    is_control_tag,
)

logger = logging.getLogger(__name__)


def encode_leader(leader: Leader) -> bytes:
    return leader.marshal()


def _encode_tag(tag: str) -> bytes:
    raw = tag.encode('ascii', errors='replace')
    if len(tag) != TAG_LENGTH or not tag.isascii() or any(byte in RESERVED_BYTES for byte in raw):
        raise BadTagError(f"tag {tag!r} is not {TAG_LENGTH} ASCII characters free of delimiters")
    return raw


def encode_directory(entries: list[DirectoryEntry], entry_map: EntryMap | None = None) -> bytes:
    """
    Render directory entries followed by the field terminator.

    With an entry map the lengths and starting positions are written at its
    widths, otherwise at the widths each entry carries.
    """
    dir_buf = io.BytesIO()

    for entry in entries:
        length, start, implementation = entry.length, entry.start, entry.implementation
        if entry_map is not None:
            length = Digits(length.value, entry_map.length_of_field_length)
            start = Digits(start.value, entry_map.length_of_starting_position)
            if len(implementation) > entry_map.length_of_impl_defined:
                raise LengthOverflowError(
                    f"implementation-defined portion of {entry.tag} is longer than {entry_map.length_of_impl_defined}")
            implementation = implementation.ljust(entry_map.length_of_impl_defined, b'0')

        dir_buf.write(_encode_tag(entry.tag))
        dir_buf.write(length.encode())
        dir_buf.write(start.encode())
        dir_buf.write(implementation)

    dir_buf.write(FT)
    return dir_buf.getvalue()


def _encode_char(tag: str, what: str, value: str) -> bytes:
    if len(value) != 1 or ord(value) > 0xff or ord(value) in RESERVED_BYTES:
        raise InvalidContentError(f"{what} of field {tag} must be one non-delimiter character, got {value!r}")
    return value.encode('latin-1')


def _check_value(tag: str, what: str, value: bytes, reserved: bytes) -> None:
    for byte in reserved:
        pos = value.find(bytes([byte]))
        if pos != -1:
            raise InvalidContentError(f"{what} of field {tag} contains reserved byte 0x{byte:02x}", pos)


def encode_field(field: Field) -> bytes:
    """Serialize a field's data followed by the field terminator."""
    match field:
        case MalformedField():
            logger.warning("Writing malformed field %s verbatim (%s)", field.tag, field.error.kind)
            return field.data
        case ControlField():
            if not is_control_tag(field.tag):
                raise InvalidContentError(f"control field tag {field.tag!r} is outside the 00X range")
            _check_value(field.tag, 'data', field.data, FT + RT)
            return field.data + FT
        case DataField():
            if is_control_tag(field.tag):
                raise InvalidContentError(f"data field tag {field.tag!r} is in the control field range")
            data_buf = io.BytesIO()
            data_buf.write(_encode_char(field.tag, 'ind1', field.ind1))
            data_buf.write(_encode_char(field.tag, 'ind2', field.ind2))
            for subfield in field.subfields:
                _check_value(field.tag, f"subfield ${subfield.code}", subfield.value, US + FT + RT)
                data_buf.write(US)
                data_buf.write(_encode_char(field.tag, 'subfield code', subfield.code))
                data_buf.write(subfield.value)
            data_buf.write(FT)
            return data_buf.getvalue()
        case _:
            raise TypeError(f"cannot encode {type(field).__name__}")


def encode_record(record: Record) -> bytes:
    """
    Serialize a record, recomputing leader lengths and the directory.

    The record itself is left untouched; the returned leader carries the
    computed record length, base address and entry map.
    """
    data_buf = io.BytesIO()
    layout: list[tuple[str, int, int]] = []

    for field in record.fields:
        start = data_buf.tell()
        data_buf.write(encode_field(field))
        layout.append((field.tag, data_buf.tell() - start, start))

    longest = max((length for _, length, _ in layout), default=0)
    furthest = max((start for _, _, start in layout), default=0)
    fl = max(DEFAULT_FIELD_LENGTH_WIDTH, digits_needed(longest))
    sp = max(DEFAULT_STARTING_POSITION_WIDTH, digits_needed(furthest))
    if fl > MAX_DIGIT_WIDTH or sp > MAX_DIGIT_WIDTH:
        raise TooLargeError(f"a field of {longest} bytes at offset {furthest} cannot be addressed in "
                            f"{MAX_DIGIT_WIDTH} digits")

    entry_map = EntryMap(fl, sp)
    entries = [DirectoryEntry(tag, Digits(length, fl), Digits(start, sp), index=i)
               for i, (tag, length, start) in enumerate(layout)]
    directory = encode_directory(entries)

    base_address = LEADER_LENGTH + len(directory)
    record_len = base_address + data_buf.tell() + len(RT)
    if record_len > MAX_RECORD_LENGTH:
        raise TooLargeError(f"record needs {record_len} bytes, the limit is {MAX_RECORD_LENGTH}")

    ldr = record.leader.copy()
    ldr.record_length = record_len
    ldr.base_address_of_data = base_address
    ldr.entry_map = entry_map

    logger.debug("Encoded record: %d field(s), %d bytes, entry map %s", len(entries), record_len, entry_map.marshal())
    return encode_leader(ldr) + directory + data_buf.getvalue() + RT
