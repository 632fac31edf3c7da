"""
Error hierarchy for the ISO 2709 codec.

MarcError (base)
├── LeaderError
│   ├── LeaderTooShortError
│   ├── InvalidDigitsError
│   └── InconsistentEntryMapError
├── DirectoryError
│   ├── DirectoryTruncatedError
│   ├── BadTagError
│   ├── LengthOverflowError
│   └── DirectoryMisalignedError
├── FieldError
│   ├── MissingIndicatorsError
│   ├── EmptySubfieldCodeError
│   ├── MissingTerminatorError
│   ├── StrayDataError
│   ├── FieldOutOfBoundsError
│   └── InvalidContentError
└── RecordError
    ├── LengthMismatchError
    ├── TooLargeError
    └── RecordMisalignedError

Leader, directory and record errors abort a decode. Field errors are caught by
the record assembler and kept on a MalformedField so the rest of the record
stays readable.
"""


class MarcError(Exception):
    """
    Base exception for all codec errors.

    Attributes:
        message: The error description
        offset: Byte offset where the problem was detected, if known
    """

    stage = 'record'
    kind = 'MarcError'

    def __init__(self, message: str, offset: int | None = None):
        self.message = message
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.offset is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} at offset {self.offset}: {self.message}"


class LeaderError(MarcError):
    stage = 'leader'
    kind = 'LeaderError'


class LeaderTooShortError(LeaderError):
    kind = 'TooShort'


class InvalidDigitsError(LeaderError):
    kind = 'InvalidDigits'


class InconsistentEntryMapError(LeaderError):
    kind = 'InconsistentEntryMap'


class DirectoryError(MarcError):
    stage = 'directory'
    kind = 'DirectoryError'


class DirectoryTruncatedError(DirectoryError):
    kind = 'Truncated'


class BadTagError(DirectoryError):
    kind = 'BadTag'


class LengthOverflowError(DirectoryError):
    """
    A numeric directory value does not fit its digit width.

    Raised on decode when the digits are not a decimal number, and on encode
    when a value needs more digits than the width allows.
    """
    kind = 'LengthOverflow'


class DirectoryMisalignedError(DirectoryError):
    kind = 'Misaligned'


class FieldError(MarcError):
    stage = 'field'
    kind = 'FieldError'


class MissingIndicatorsError(FieldError):
    kind = 'MissingIndicators'


class EmptySubfieldCodeError(FieldError):
    kind = 'EmptySubfieldCode'


class MissingTerminatorError(FieldError):
    kind = 'MissingTerminator'


class StrayDataError(FieldError):
    kind = 'StrayData'


class FieldOutOfBoundsError(FieldError):
    kind = 'FieldOutOfBounds'


class InvalidContentError(FieldError):
    kind = 'InvalidContent'


class RecordError(MarcError):
    stage = 'record'
    kind = 'RecordError'


class LengthMismatchError(RecordError):
    kind = 'LengthMismatch'


class TooLargeError(RecordError):
    kind = 'TooLarge'


class RecordMisalignedError(RecordError):
    kind = 'Misaligned'
