import logging

from marc21.config import CodecConfig
from marc21.constants import *
from marc21.errors import (
    BadTagError,
    DirectoryMisalignedError,
    DirectoryTruncatedError,
    EmptySubfieldCodeError,
    FieldError,
    FieldOutOfBoundsError,
    InvalidContentError,
    LengthMismatchError,
    LengthOverflowError,
    MarcError,
    MissingIndicatorsError,
    MissingTerminatorError,
    RecordMisalignedError,
    StrayDataError,
)
from marc21.marc import (
    ControlField,
    DataField,
    Digits,
    DirectoryEntry,
    EntryMap,
    Leader,
    MalformedField,
    Record,
    SubField,
    is_control_tag,
)
from marc21.report import ErrorReport

logger = logging.getLogger(__name__)


def decode_leader(data: bytes) -> Leader:
    return Leader(bytes(data))


def _parse_digits(data: bytes, offset: int, width: int) -> Digits:
    chunk = data[offset:offset + width]
    if len(chunk) != width or not chunk.isdigit():
        raise LengthOverflowError(f"expected {width} digits, got {bytes(chunk)!r}", offset)
    return Digits(int(chunk), width)


def decode_directory(data: bytes, entry_map: EntryMap, base_address: int) -> list[DirectoryEntry]:
    """
    Decode the directory entries of a record.

    `data` is the record buffer starting at the leader, so that the directory
    occupies data[24:base_address - 1] and data[base_address - 1] holds its
    field terminator. Offsets carried by errors are relative to the record.
    """
    if base_address < MIN_BASE_ADDRESS:
        raise DirectoryMisalignedError(f"base address {base_address} leaves no room for the directory terminator", 12)
    if len(data) < base_address:
        raise DirectoryTruncatedError(f"directory runs to {base_address} but the buffer ends at {len(data)}", len(data))
    if data[base_address - 1:base_address] != FT:
        raise DirectoryMisalignedError("no field terminator in front of the base address", base_address - 1)

    width = entry_map.entry_width
    region_end = base_address - 1
    region_len = region_end - LEADER_LENGTH
    if region_len % width != 0:
        raise DirectoryMisalignedError(
            f"directory of {region_len} bytes is not a multiple of the {width}-byte entry width", LEADER_LENGTH)

    fl = entry_map.length_of_field_length
    sp = entry_map.length_of_starting_position

    entries = []
    for index, pos in enumerate(range(LEADER_LENGTH, region_end, width)):
        raw_tag = data[pos:pos + TAG_LENGTH]
        for i, byte in enumerate(raw_tag):
            if byte in RESERVED_BYTES or byte > 0x7f:
                raise BadTagError(f"byte 0x{byte:02x} in the tag of directory entry {index}", pos + i)

        length = _parse_digits(data, pos + TAG_LENGTH, fl)
        start = _parse_digits(data, pos + TAG_LENGTH + fl, sp)
        implementation = bytes(data[pos + TAG_LENGTH + fl + sp:pos + width])
        entries.append(DirectoryEntry(raw_tag.decode('ascii'), length, start, implementation, index))

    return entries


def read_directory(data: bytes) -> tuple[Leader, list[DirectoryEntry]]:
    """Decode the leader and directory only, leaving the field data untouched."""
    leader = decode_leader(data)
    return leader, decode_directory(data, leader.entry_map, leader.base_address_of_data)


def _decode_data_field(tag: str, body: bytes) -> DataField:
    first = body.find(US)
    head = body if first == -1 else body[:first]

    if len(head) < 2:
        raise MissingIndicatorsError(f"field {tag} has {len(head)} indicator byte(s)", len(head))
    if len(head) > 2:
        raise StrayDataError(f"field {tag} has {len(head) - 2} byte(s) between the indicators and the first subfield", 2)

    field = DataField(tag, chr(head[0]), chr(head[1]))
    if first == -1:
        return field

    pos = first
    for chunk in body[first + 1:].split(US):
        if not chunk:
            raise EmptySubfieldCodeError(f"subfield delimiter in field {tag} is not followed by a code", pos)
        field.subfields.append(SubField(chr(chunk[0]), chunk[1:]))
        pos += len(chunk) + 1

    return field


def decode_field(tag: str, raw: bytes) -> ControlField | DataField:
    """
    Decode the bytes the directory located for `tag`, field terminator included.

    Control fields keep their payload as opaque bytes. Data fields are split
    into two indicators and (code, value) subfields; values are kept verbatim.
    """
    raw = bytes(raw)
    end = raw.find(FT)
    if end == -1:
        raise MissingTerminatorError(f"field {tag} is not terminated", len(raw))
    if end != len(raw) - 1:
        raise MissingTerminatorError(f"field {tag} is terminated at {end}, {len(raw) - end - 1} byte(s) early", end)

    body = raw[:-1]
    if RT in body:
        raise InvalidContentError(f"field {tag} contains a record terminator", body.find(RT))

    if is_control_tag(tag):
        return ControlField(tag, body)
    return _decode_data_field(tag, body)


def _decode_entry(entry: DirectoryEntry, region: bytes, base_address: int, report: ErrorReport):
    start = entry.start.value
    end = entry.end
    raw = region[start:end]
    offset = base_address + start

    if end > len(region):
        error = FieldOutOfBoundsError(
            f"field {entry.tag} spans {start}..{end} but the data region holds {len(region)} bytes", len(raw))
    else:
        try:
            return decode_field(entry.tag, raw)
        except FieldError as e:
            error = e

    if error.offset is not None:
        offset += error.offset
    report.add_error(error, offset=offset, entry_index=entry.index, tag=entry.tag)
    logger.warning("Malformed field %s (directory entry %d) at offset %d: %s",
                   entry.tag, entry.index, offset, error.message)
    return MalformedField(entry.tag, raw, error)


def decode_record(data: bytes) -> Record:
    """
    Decode one complete ISO 2709 record.

    Leader, directory and record framing problems raise. A field that cannot
    be decoded is kept as a MalformedField and listed in `record.report`.
    """
    data = bytes(data)
    leader = decode_leader(data)

    if leader.record_length != len(data):
        raise LengthMismatchError(f"leader declares {leader.record_length} bytes, buffer holds {len(data)}", 0)

    base_address = leader.base_address_of_data
    if not MIN_BASE_ADDRESS <= base_address <= len(data) - 1:
        raise RecordMisalignedError(
            f"base address {base_address} outside {MIN_BASE_ADDRESS}..{len(data) - 1}", 12)
    if data[-1:] != RT:
        raise RecordMisalignedError("record does not end with the record terminator", len(data) - 1)

    entries = decode_directory(data, leader.entry_map, base_address)
    region = data[base_address:-1]

    record = Record(leader)
    for entry in entries:
        record.fields.append(_decode_entry(entry, region, base_address, record.report))

    logger.debug("Decoded record of %d bytes: %d field(s), %d malformed",
                 len(data), len(record.fields), len(record.report))
    return record


class MarcStreamReader:
    """
    Decode a batch of record buffers.

    `buffers` is any iterable of complete records; splitting a file on record
    terminators is left to the caller. Records that cannot be decoded at all
    are logged and recorded in `report`, then skipped, unless the config asks
    for the error to be raised.
    """

    def __init__(self, buffers, config: CodecConfig | None = None) -> None:
        self.__buffers = iter(buffers)
        self.config = CodecConfig() if config is None else config
        self.report = ErrorReport()
        self.records_read = 0

    def read_next(self) -> Record | None:
        data = next(self.__buffers)
        index = self.records_read
        self.records_read += 1

        try:
            record = decode_record(data)
        except MarcError as error:
            if self.config.raise_on_fatal:
                raise
            self.report.add_error(error, record_index=index)
            logger.warning("Skipping record %d: %s", index, error)
            return None

        self.report.extend(record.report.for_record(index))
        return record

    def __iter__(self):
        while True:
            try:
                record = self.read_next()
            except StopIteration:
                return
            if record is not None:
                yield record
