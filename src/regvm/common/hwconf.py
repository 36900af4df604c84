REGISTER_COUNT = 32
INSTRUCTION_SIZE = 4            # Every instruction is [opcode, b1, b2, b3]

MAX_REGISTER_INDEX = 0xFF       # Register operands are a single byte
MAX_INTEGER = 0xFFFF            # Immediates are two bytes, big-endian

WORD_MASK = 0xFFFFFFFF

REGISTER_SIGIL = '$'
INTEGER_SIGIL = '#'

OUTPUT_FLAG = -1                # Output slot value meaning "comparison flag"

MAX_HEAP = 0x100000             # Heap arena limit in bytes
