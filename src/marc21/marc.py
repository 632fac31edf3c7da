from dataclasses import dataclass

from marc21.constants import *
from marc21.errors import (
    FieldError,
    InconsistentEntryMapError,
    InvalidDigitsError,
    LeaderTooShortError,
    LengthOverflowError,
)
from marc21.report import ErrorReport

builtin_sorted = sorted


def is_control_tag(tag: str) -> bool:
    return tag[:2] == '00'


@dataclass(frozen=True)
class Digits:
    """A non-negative integer together with the number of ASCII digits it is written in."""
    value: int
    width: int

    def fits(self) -> bool:
        return 0 <= self.value < 10 ** self.width

    def encode(self) -> bytes:
        if not self.fits():
            raise LengthOverflowError(f"{self.value} does not fit in {self.width} digits")
        return f"{self.value:0{self.width}d}".encode('ascii')

    def widen(self, width: int) -> 'Digits':
        return Digits(self.value, max(self.width, width))

    def __int__(self) -> int:
        return self.value


def digits_needed(value: int) -> int:
    return len(str(value))


class EntryMap:
    def __init__(self, length_of_field_length: int = DEFAULT_FIELD_LENGTH_WIDTH,
                 length_of_starting_position: int = DEFAULT_STARTING_POSITION_WIDTH,
                 length_of_impl_defined: int = 0, undefined: str = '0') -> None:
        self.length_of_field_length = length_of_field_length
        self.length_of_starting_position = length_of_starting_position
        self.length_of_impl_defined = length_of_impl_defined
        self.undefined = undefined

    @property
    def entry_width(self) -> int:
        return TAG_LENGTH + self.length_of_field_length + self.length_of_starting_position + self.length_of_impl_defined

    def check(self, offset: int = 20) -> None:
        for name, width in (('field length', self.length_of_field_length),
                            ('starting position', self.length_of_starting_position)):
            if not 1 <= width <= MAX_DIGIT_WIDTH:
                raise InconsistentEntryMapError(
                    f"{name} width {width} outside 1..{MAX_DIGIT_WIDTH}", offset)

    def marshal(self) -> str:
        return f"{self.length_of_field_length}{self.length_of_starting_position}{self.length_of_impl_defined}{self.undefined}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, EntryMap):
            return NotImplemented
        return self.marshal() == other.marshal()

    def __repr__(self) -> str:
        return f"EntryMap('{self.marshal()}')"


class Leader:
    def __init__(self, leader: bytes | str | None = None) -> None:
        self.record_length = 0
        self.record_status: str = ' '
        self.type_of_record: str = ' '
        self.impl_defined1: str = '  '
        self.char_coding_scheme: str = ' '
        self.indicator_count = DEFAULT_INDICATOR_COUNT
        self.subfield_code_length = DEFAULT_SUBFIELD_CODE_LENGTH
        self.base_address_of_data = 0
        self.impl_defined2: str = '   '
        self.entry_map = EntryMap()
        if leader is not None:
            self.unmarshal(leader.encode('latin-1') if isinstance(leader, str) else leader)

    def __getitem__(self, key: int) -> str | None:
        marshal_str = self.marshal().decode('latin-1')
        return marshal_str[key] if 0 <= key < len(marshal_str) else None

    def content_key(self) -> tuple:
        return (self.record_status, self.type_of_record, self.impl_defined1, self.char_coding_scheme,
                self.indicator_count, self.subfield_code_length, self.impl_defined2)

    def marshal(self) -> bytes:
        for name, value, size in (('record_status', self.record_status, 1),
                                  ('type_of_record', self.type_of_record, 1),
                                  ('impl_defined1', self.impl_defined1, 2),
                                  ('char_coding_scheme', self.char_coding_scheme, 1),
                                  ('impl_defined2', self.impl_defined2, 3)):
            if len(value) != size:
                raise ValueError(f"leader {name} must be {size} character(s), got {value!r}")
        text = (f"{self.record_length:05d}{self.record_status}{self.type_of_record}{self.impl_defined1}"
                f"{self.char_coding_scheme}{self.indicator_count:d}{self.subfield_code_length:d}"
                f"{self.base_address_of_data:05d}{self.impl_defined2}{self.entry_map.marshal()}")
        if len(text) != LEADER_LENGTH:
            raise ValueError(f"leader numbers out of range: {text!r}")
        return text.encode('latin-1')

    def unmarshal(self, data: bytes) -> None:
        if len(data) < LEADER_LENGTH:
            raise LeaderTooShortError(f"leader needs {LEADER_LENGTH} bytes, got {len(data)}", len(data))

        def number(start: int, end: int) -> int:
            chunk = data[start:end]
            if not (chunk.isascii() and chunk.isdigit()):
                raise InvalidDigitsError(f"expected digits at positions {start}-{end - 1}, got {chunk!r}", start)
            return int(chunk)

        leader_str = data[:LEADER_LENGTH].decode('latin-1')
        self.record_length = number(0, 5)
        self.record_status = leader_str[5:6]
        self.type_of_record = leader_str[6:7]
        self.impl_defined1 = leader_str[7:9]
        self.char_coding_scheme = leader_str[9:10]
        self.indicator_count = number(10, 11)
        self.subfield_code_length = number(11, 12)
        self.base_address_of_data = number(12, 17)
        self.impl_defined2 = leader_str[17:20]
        self.entry_map = EntryMap(number(20, 21), number(21, 22), number(22, 23), leader_str[23:24])
        self.entry_map.check()

    def copy(self) -> 'Leader':
        leader = Leader()
        leader.__dict__.update(self.__dict__)
        em = self.entry_map
        leader.entry_map = EntryMap(em.length_of_field_length, em.length_of_starting_position,
                                    em.length_of_impl_defined, em.undefined)
        return leader

    def __eq__(self, other) -> bool:
        if not isinstance(other, Leader):
            return NotImplemented
        return self.marshal() == other.marshal()

    def __repr__(self) -> str:
        return f"Leader({self.marshal().decode('latin-1')!r})"

    def __str__(self) -> str:
        return f"=LDR  {self.marshal().decode('latin-1')}"


class DirectoryEntry:
    def __init__(self, tag: str, length: Digits, start: Digits, implementation: bytes = b'', index: int = 0) -> None:
        self.tag = tag
        self.length = length
        self.start = start
        self.implementation = implementation
        self.index = index

    @property
    def end(self) -> int:
        return self.start.value + self.length.value

    def __eq__(self, other) -> bool:
        if not isinstance(other, DirectoryEntry):
            return NotImplemented
        return (self.tag, self.length, self.start, self.implementation) == \
            (other.tag, other.length, other.start, other.implementation)

    def __repr__(self) -> str:
        return f"DirectoryEntry({self.tag!r}, length={self.length.value}, start={self.start.value})"


class VariableField:
    def __init__(self, tag: str) -> None:
        self.tag = tag

    @property
    def is_control_field(self) -> bool:
        return False

    @property
    def is_malformed(self) -> bool:
        return False


class ControlField(VariableField):
    def __init__(self, tag: str, data: bytes) -> None:
        super().__init__(tag)
        self.data = data

    @property
    def is_control_field(self) -> bool:
        return True

    def __eq__(self, other) -> bool:
        if not isinstance(other, ControlField):
            return NotImplemented
        return self.tag == other.tag and self.data == other.data

    def __repr__(self) -> str:
        return f"ControlField({self.tag!r}, {self.data!r})"

    def __str__(self) -> str:
        return f"{self.tag}  {self.data.decode('latin-1')}"


class SubField:
    def __init__(self, code: str, value: bytes) -> None:
        self.code = code
        self.value = value

    def __eq__(self, other) -> bool:
        if not isinstance(other, SubField):
            return NotImplemented
        return self.code == other.code and self.value == other.value

    def __repr__(self) -> str:
        return f"SubField({self.code!r}, {self.value!r})"

    def __str__(self) -> str:
        return f"${self.code}{self.value.decode('latin-1')}"


class DataField(VariableField):
    def __init__(self, tag: str, ind1: str = ' ', ind2: str = ' ', subfields: list[SubField] | None = None) -> None:
        super().__init__(tag)
        self.ind1 = ind1
        self.ind2 = ind2
        self.subfields: list[SubField] = [] if subfields is None else list(subfields)

    @property
    def indicators(self) -> tuple[str, str]:
        return self.ind1, self.ind2

    def add_subfield(self, code: str, value: bytes) -> SubField:
        subfield = SubField(code, value)
        self.subfields.append(subfield)
        return subfield

    def get_subfields(self, *codes: str) -> list[bytes]:
        return [subfield.value for subfield in self.subfields if subfield.code in codes]

    def __getitem__(self, key: str) -> list[SubField] | None:
        res = [subfield for subfield in self.subfields if subfield.code == key]
        return res if len(res) > 0 else None

    def __contains__(self, key: str) -> bool:
        return any(subfield.code == key for subfield in self.subfields)

    def __iter__(self):
        return iter(self.subfields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DataField):
            return NotImplemented
        return (self.tag, self.ind1, self.ind2, self.subfields) == (other.tag, other.ind1, other.ind2, other.subfields)

    def __repr__(self) -> str:
        return f"DataField({self.tag!r}, {self.ind1!r}, {self.ind2!r}, {self.subfields!r})"

    def __str__(self) -> str:
        # blank indicators are shown as backslashes
        indicators = f"{self.ind1}{self.ind2}".replace(' ', '\\')
        res = f"{self.tag}  {indicators}"
        for subfield in self.subfields:
            res += str(subfield)
        return res


class MalformedField(VariableField):
    """A field the directory located but whose bytes could not be decoded."""

    def __init__(self, tag: str, data: bytes, error: FieldError) -> None:
        super().__init__(tag)
        self.data = data
        self.error = error

    @property
    def is_malformed(self) -> bool:
        return True

    def __eq__(self, other) -> bool:
        if not isinstance(other, MalformedField):
            return NotImplemented
        return self.tag == other.tag and self.data == other.data and type(self.error) is type(other.error)

    def __repr__(self) -> str:
        return f"MalformedField({self.tag!r}, {self.data!r}, {self.error.kind})"

    def __str__(self) -> str:
        return f"{self.tag}  <malformed: {self.error.kind}>"


Field = ControlField | DataField | MalformedField


class Record:
    def __init__(self, leader: Leader | bytes | str | None = None, fields: list[Field] | None = None) -> None:
        self.leader = leader if isinstance(leader, Leader) else Leader(leader)
        self.fields: list[Field] = [] if fields is None else list(fields)
        self.report = ErrorReport()

    @property
    def control_fields(self) -> list[ControlField]:
        return [field for field in self.fields if isinstance(field, ControlField)]

    @property
    def data_fields(self) -> list[DataField]:
        return [field for field in self.fields if isinstance(field, DataField)]

    @property
    def malformed_fields(self) -> list[MalformedField]:
        return [field for field in self.fields if isinstance(field, MalformedField)]

    def get_control_fields(self, sorted: bool = False) -> list[ControlField]:
        fields = self.control_fields
        return builtin_sorted(fields, key=lambda cf: cf.tag) if sorted else fields

    def get_data_fields(self, sorted: bool = False) -> list[DataField]:
        fields = self.data_fields
        return builtin_sorted(fields, key=lambda df: df.tag) if sorted else fields

    def get_fields(self, *tags: str) -> list[Field]:
        if not tags:
            return list(self.fields)
        return [field for field in self.fields if field.tag in tags]

    def add_field(self, *fields: Field) -> None:
        self.fields.extend(fields)

    def remove_field(self, field: Field) -> None:
        for i, candidate in enumerate(self.fields):
            if candidate is field:
                del self.fields[i]
                return
        raise ValueError(f"field {field.tag} is not part of this record")

    def __getitem__(self, key: str) -> list[Field] | None:
        res = self.get_fields(key)
        return res if len(res) > 0 else None

    def __contains__(self, key: str) -> bool:
        return any(field.tag == key for field in self.fields)

    def __iter__(self):
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.leader.content_key() == other.leader.content_key() and self.fields == other.fields

    def __repr__(self) -> str:
        return f"Record({self.leader!r}, {len(self.fields)} fields)"

    def __str__(self) -> str:
        res = f"{self.leader}"
        for field in self.fields:
            res += f"\n={field}"
        return res

