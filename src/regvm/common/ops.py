from enum import Enum, IntEnum


class Opcode(IntEnum):
    # Basic
    HLT = 0x00      # stop
    LOAD = 0x01     # U16 -> R1

    # Arithmetic
    ADD = 0x02      # R1 +  R2 -> R3
    SUB = 0x03      # R1 -  R2 -> R3
    MUL = 0x04      # R1 *  R2 -> R3
    DIV = 0x05      # R1 // R2 -> R3, R1 % R2 -> remainder

    # Jumps
    JMP = 0x06      # goto R1
    JMPF = 0x07     # IP + R1 -> IP
    JMPB = 0x08     # IP - R1 -> IP

    # Comparison
    EQ = 0x09       # R1 == R2 -> flag
    NEQ = 0x0A      # R1 != R2 -> flag
    GT = 0x0B       # R1 >  R2 -> flag
    LT = 0x0C       # R1 <  R2 -> flag
    GTEQ = 0x0D     # R1 >= R2 -> flag
    LTEQ = 0x0E     # R1 <= R2 -> flag
    JEQ = 0x0F      # if flag goto R1

    # Memory
    ALLOC = 0x10    # grow heap by R1 bytes

    ILLEGAL = 0xFF


class Shape(Enum):
    ''' Operand layout of a 4-byte instruction '''
    NULLARY = 'nullary'     # [op, 0, 0, 0]
    INTEGER = 'integer'     # [op, reg, hi, lo]
    BINARY = 'binary'       # [op, left, right, dest]
    COMPARE = 'compare'     # [op, left, right, 0]
    UNARY = 'unary'         # [op, reg, 0, 0]


MNEMONICS: dict[Opcode, str] = {
    Opcode.HLT: 'hlt',
    Opcode.LOAD: 'load',
    Opcode.ADD: 'add',
    Opcode.SUB: 'sub',
    Opcode.MUL: 'mul',
    Opcode.DIV: 'div',
    Opcode.JMP: 'jmp',
    Opcode.JMPF: 'jmpf',
    Opcode.JMPB: 'jmpb',
    Opcode.EQ: 'eq',
    Opcode.NEQ: 'neq',
    Opcode.GT: 'gt',
    Opcode.LT: 'lt',
    Opcode.GTEQ: 'gteq',
    Opcode.LTEQ: 'lteq',
    Opcode.JEQ: 'jeq',
    Opcode.ALLOC: 'alloc',
}

SHAPES: dict[Opcode, Shape] = {
    Opcode.HLT: Shape.NULLARY,
    Opcode.LOAD: Shape.INTEGER,
    Opcode.ADD: Shape.BINARY,
    Opcode.SUB: Shape.BINARY,
    Opcode.MUL: Shape.BINARY,
    Opcode.DIV: Shape.BINARY,
    Opcode.JMP: Shape.UNARY,
    Opcode.JMPF: Shape.UNARY,
    Opcode.JMPB: Shape.UNARY,
    Opcode.EQ: Shape.COMPARE,
    Opcode.NEQ: Shape.COMPARE,
    Opcode.GT: Shape.COMPARE,
    Opcode.LT: Shape.COMPARE,
    Opcode.GTEQ: Shape.COMPARE,
    Opcode.LTEQ: Shape.COMPARE,
    Opcode.JEQ: Shape.UNARY,
    Opcode.ALLOC: Shape.UNARY,
    Opcode.ILLEGAL: Shape.NULLARY,
}

ILLEGAL_MNEMONIC = 'ilgl'

_BY_MNEMONIC = {mnemonic: op for op, mnemonic in MNEMONICS.items()}
_BY_BYTE = {int(op): op for op in Opcode}


def mnemonic_to_opcode(text: str) -> Opcode:
    return _BY_MNEMONIC.get(text, Opcode.ILLEGAL)


def byte_to_opcode(byte: int) -> Opcode:
    return _BY_BYTE.get(byte, Opcode.ILLEGAL)


def opcode_to_byte(op: Opcode) -> int:
    return int(op)


def opcode_to_mnemonic(op: Opcode) -> str:
    return MNEMONICS.get(op, ILLEGAL_MNEMONIC)


def shape_of(op: Opcode) -> Shape:
    return SHAPES[op]
