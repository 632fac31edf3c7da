US = b'\x1f'
FT = b'\x1e'
RT = b'\x1d'

SUBFIELD_DELIMITER = US
FIELD_TERMINATOR = FT
RECORD_TERMINATOR = RT

RESERVED_BYTES = frozenset(b'\x1d\x1e\x1f')

LEADER_LENGTH = 24
TAG_LENGTH = 3

MAX_RECORD_LENGTH = 99999
RECORD_LENGTH_WIDTH = 5
BASE_ADDRESS_WIDTH = 5

DEFAULT_FIELD_LENGTH_WIDTH = 4
DEFAULT_STARTING_POSITION_WIDTH = 5
MAX_DIGIT_WIDTH = 5

DEFAULT_INDICATOR_COUNT = 2
DEFAULT_SUBFIELD_CODE_LENGTH = 2

# the smallest base address: leader plus an empty directory's terminator
MIN_BASE_ADDRESS = LEADER_LENGTH + 1
