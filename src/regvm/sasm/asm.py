import logging as lg
import struct
from typing import Iterable, Iterator

import regvm.common.ops as ops
from regvm.common.ops import Opcode, Shape
from regvm.common.hwconf import MAX_REGISTER_INDEX, MAX_INTEGER
from regvm.sasm.lexer import Token, Operator, Register, Integer, End, END, tokenize


class AssemblerError(Exception):
    ''' Base of every assembly fault; aborts the whole invocation '''
    reason = 'syntax error'

    def __init__(self, found: Token | None = None):
        self.found = found
        super().__init__(self.message())

    def message(self) -> str:
        return f'syntax error: {self.reason}'


def describe(tok: Token) -> str:
    match tok:
        case Register():
            return 'register'
        case Integer():
            return 'integer'
        case Operator():
            return 'operator'
        case _:
            return 'end of input'


class ExpectedRegister(AssemblerError):
    reason = 'expected register'

    def message(self) -> str:
        return f'syntax error: expected register, found {describe(self.found)}'


class ExpectedInteger(AssemblerError):
    reason = 'expected integer'

    def message(self) -> str:
        return f'syntax error: expected integer, found {describe(self.found)}'


class ExpectedOperator(AssemblerError):
    reason = 'operand in operator position'


class UnknownOperator(AssemblerError):
    reason = 'unknown operator'


class UnexpectedEnd(AssemblerError):
    reason = 'unexpected end of input'


class OperandRange(AssemblerError):
    reason = 'operand out of range'

    def message(self) -> str:
        return f'syntax error: operand {self.found} out of range'


class Assembler:
    ''' Pulls tokens and issues one 4-byte instruction per operator '''

    def __init__(self, tokens: Iterable[Token]):
        self.tokens = iter(tokens)

    def next_token(self) -> Token:
        return next(self.tokens, END)

    # - Operands - #

    def register(self) -> int:
        tok = self.next_token()

        match tok:
            case Register(index):
                if index > MAX_REGISTER_INDEX:
                    raise OperandRange(tok)
                return index
            case End():
                raise UnexpectedEnd(tok)
            case _:
                raise ExpectedRegister(tok)

    def integer(self) -> int:
        tok = self.next_token()

        match tok:
            case Integer(value):
                # Negative values only arrive from hand-built token streams
                if value > MAX_INTEGER or value < -0x8000:
                    raise OperandRange(tok)
                return value & MAX_INTEGER
            case End():
                raise UnexpectedEnd(tok)
            case _:
                raise ExpectedInteger(tok)

    # - Shapes - #

    def nullary_op(self, op: Opcode) -> bytes:
        return struct.pack('>BBBB', op, 0, 0, 0)

    def integer_op(self, op: Opcode) -> bytes:
        dest = self.register()
        value = self.integer()
        return struct.pack('>BBH', op, dest, value)

    def binary_op(self, op: Opcode) -> bytes:
        left = self.register()
        right = self.register()
        dest = self.register()
        return struct.pack('>BBBB', op, left, right, dest)

    def compare_op(self, op: Opcode) -> bytes:
        left = self.register()
        right = self.register()
        return struct.pack('>BBBB', op, left, right, 0)

    def unary_op(self, op: Opcode) -> bytes:
        reg = self.register()
        return struct.pack('>BBBB', op, reg, 0, 0)

    SHAPES = {
        Shape.NULLARY: nullary_op,
        Shape.INTEGER: integer_op,
        Shape.BINARY: binary_op,
        Shape.COMPARE: compare_op,
        Shape.UNARY: unary_op,
    }

    # -- Implementation -- #

    def next_instruction(self) -> bytes | None:
        tok = self.next_token()

        match tok:
            case End():
                return None
            case Operator(Opcode.ILLEGAL):
                raise UnknownOperator(tok)
            case Operator(op):
                issue = self.SHAPES[ops.shape_of(op)]
                instruction = issue(self, op)
                lg.debug(f'Issuing {ops.opcode_to_mnemonic(op)}: {instruction.hex(" ")}')
                return instruction
            case _:
                raise ExpectedOperator(tok)

    def __iter__(self) -> Iterator[bytes]:
        while (instruction := self.next_instruction()) is not None:
            yield instruction


def assemble(tokens: Iterable[Token]) -> Iterator[bytes]:
    ''' Lazy: one instruction per pull, AssemblerError on the first fault '''
    return iter(Assembler(tokens))


def assemble_string(text: str) -> list[bytes]:
    ''' All-or-nothing: either every instruction or an AssemblerError '''
    instructions = list(assemble(tokenize(text)))
    lg.info(f'Assembled {len(instructions)} instruction(s)')
    return instructions


def assemble_bytes(text: str) -> bytes:
    return b''.join(assemble_string(text))


def format_instruction(instruction: bytes) -> str:
    return ' '.join(f'{b:02X}' for b in instruction)


def format_program(program: bytes, width: int = 4) -> list[str]:
    return [
        format_instruction(program[i:i + width])
        for i in range(0, len(program), width)
    ]
