import struct
import logging as lg
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

import regvm.common.ops as ops
from regvm.common.ops import Opcode
from regvm.common.hwconf import REGISTER_COUNT, INSTRUCTION_SIZE, WORD_MASK, OUTPUT_FLAG, MAX_HEAP


class Halt(Exception):
    pass


class Illegal(Exception):
    pass


class Fault(Exception):
    ''' Raised before any write; the step rewinds to the instruction start '''
    pass


class Stop(Enum):
    HALT = 'halt'
    ILLEGAL = 'illegal'
    FAULT = 'fault'
    END = 'end'                 # Program counter left the program
    STEP_LIMIT = 'step-limit'


@dataclass(frozen=True)
class State:
    pc: int
    registers: tuple[int, ...]
    flag: bool
    remainder: int
    out: int
    heap: bytes


def to_int32(val: int) -> int:
    val &= WORD_MASK
    return val - 0x100000000 if val & 0x80000000 else val


def trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


class VM():
    pc: int                 # Program counter, byte offset into program
    registers: list[int]    # General purpose registers, signed 32-bit
    remainder: int          # Remainder of the last division, unsigned 32-bit
    flag: bool              # Comparison flag
    out: int                # Last written register or OUTPUT_FLAG
    heap: bytearray
    program: bytearray
    stop: Stop | None       # Why the last step stopped
    fault: str | None       # Diagnostic of the last non-halt stop

    def __init__(self):
        self.pc = 0
        self.registers = [0] * REGISTER_COUNT
        self.remainder = 0
        self.flag = False
        self.out = 0
        self.heap = bytearray()
        self.program = bytearray()
        self.stop = None
        self.fault = None

    # - Loading - #

    def append(self, data: int | Iterable[int]):
        if isinstance(data, int):
            self.program.append(data)
        else:
            self.program.extend(data)

    def append_instructions(self, instructions: Iterable[bytes]):
        for instruction in instructions:
            if len(instruction) != INSTRUCTION_SIZE:
                raise ValueError(f'Instruction {bytes(instruction).hex(" ")} is not {INSTRUCTION_SIZE} bytes')

            self.program.extend(instruction)

    # - Helpers - #

    def debug_dump(self):
        state = [f'{k}:{v}' for k, v in {
            'PC': self.pc,
            'FL': int(self.flag),
            'RM': self.remainder,
            'HP': len(self.heap)
        }.items()]

        state.extend([f'{i}:{self.registers[i]}' for i in range(len(self.registers))])

        lg.debug(' '.join(state))

    def snapshot(self) -> State:
        return State(
            pc=self.pc,
            registers=tuple(self.registers),
            flag=self.flag,
            remainder=self.remainder,
            out=self.out,
            heap=bytes(self.heap)
        )

    def output(self) -> int:
        if self.out == OUTPUT_FLAG:
            return int(self.flag)

        return self.registers[self.out]

    def in_bounds(self) -> bool:
        return 0 <= self.pc < len(self.program)

    def next_fmt(self, fmt: str):
        addr = self.pc
        size = struct.calcsize(fmt)

        if addr < 0 or addr + size > len(self.program):
            raise Fault(f'Operand fetch past end of program at {addr}')

        (val,) = struct.unpack_from(fmt, self.program, addr)
        self.pc += size
        return val

    def next(self) -> int:
        return self.next_fmt('>B')

    def next_gp(self) -> int:
        index = self.next()

        if index >= REGISTER_COUNT:
            raise Fault(f'Register ${index} out of range')

        return index

    def get_next_gp(self) -> int:
        return self.registers[self.next_gp()]

    def set_next_gp(self, val: int):
        self.write(self.next_gp(), val)

    def write(self, index: int, val: int):
        self.registers[index] = to_int32(val)
        self.out = index

    def arithm_pair(self, op: Callable[[int, int], int]):
        a = self.get_next_gp()
        b = self.get_next_gp()
        self.set_next_gp(op(a, b))

    def compare(self, op: Callable[[int, int], bool]):
        a = self.get_next_gp()
        b = self.get_next_gp()
        self.next()  # Padding
        self.flag = op(a, b)
        self.out = OUTPUT_FLAG

    # - Operations - #

    def hlt(self):
        raise Halt()

    def load(self):
        index = self.next_gp()
        val = self.next_fmt('>h')
        self.write(index, val)

    def add(self):
        self.arithm_pair(operator.add)

    def sub(self):
        self.arithm_pair(operator.sub)

    def mul(self):
        self.arithm_pair(operator.mul)

    def div(self):
        a = self.get_next_gp()
        b = self.get_next_gp()

        if b == 0:
            raise Fault('Division by zero')

        q = trunc_div(a, b)
        self.set_next_gp(q)
        self.remainder = (a - q * b) & WORD_MASK

    def jmp(self):
        self.pc = self.get_next_gp()

    def jmpf(self):
        offset = self.get_next_gp()
        self.pc += offset

    def jmpb(self):
        offset = self.get_next_gp()
        self.pc -= offset

    def eq(self):
        self.compare(operator.eq)

    def neq(self):
        self.compare(operator.ne)

    def gt(self):
        self.compare(operator.gt)

    def lt(self):
        self.compare(operator.lt)

    def gteq(self):
        self.compare(operator.ge)

    def lteq(self):
        self.compare(operator.le)

    def jeq(self):
        addr = self.get_next_gp()

        if self.flag:
            self.pc = addr
        else:
            self.next_fmt('>H')  # Padding

    def alloc(self):
        size = self.get_next_gp()

        if size < 0:
            raise Fault(f'Negative allocation of {size} bytes')

        if len(self.heap) + size > MAX_HEAP:
            raise Fault(f'Allocation of {size} bytes exceeds heap limit')

        self.next_fmt('>H')  # Padding
        self.heap.extend(bytes(size))

    def illegal(self):
        addr = self.pc - 1
        raise Illegal(f'Illegal opcode 0x{self.program[addr]:02X} at {addr}')

    HANDLERS = {
        Opcode.HLT: hlt,
        Opcode.LOAD: load,
        Opcode.ADD: add,
        Opcode.SUB: sub,
        Opcode.MUL: mul,
        Opcode.DIV: div,
        Opcode.JMP: jmp,
        Opcode.JMPF: jmpf,
        Opcode.JMPB: jmpb,
        Opcode.EQ: eq,
        Opcode.NEQ: neq,
        Opcode.GT: gt,
        Opcode.LT: lt,
        Opcode.GTEQ: gteq,
        Opcode.LTEQ: lteq,
        Opcode.JEQ: jeq,
        Opcode.ALLOC: alloc,
        Opcode.ILLEGAL: illegal,
    }

    # -- Implementation -- #

    def exec_next(self):
        op = ops.byte_to_opcode(self.next())
        handler = self.HANDLERS[op]
        handler(self)

    def step(self) -> bool:
        ''' Executes one instruction, returns whether execution may go on '''
        self.stop = None
        self.fault = None

        if not self.in_bounds():
            self.stop = Stop.END
            return False

        start = self.pc

        try:
            self.exec_next()

        except Halt:
            lg.info(f'Execution halted at {start}')
            self.debug_dump()
            self.stop = Stop.HALT
            return False

        except Illegal as e:
            lg.warning(f'Execution stopped: {e}')
            self.stop = Stop.ILLEGAL
            self.fault = str(e)
            return False

        except Fault as e:
            # Handlers never write before their last fetch
            self.pc = start
            lg.warning(f'Execution fault at {start}: {e}')
            self.stop = Stop.FAULT
            self.fault = str(e)
            return False

        if not self.in_bounds():
            self.stop = Stop.END
            return False

        return True

    def run(self, max_steps: int | None = None) -> Stop:
        ''' Runs until a stop; max_steps bounds the number of steps '''
        steps = 0

        while max_steps is None or steps < max_steps:
            if not self.step():
                return self.stop  # type: ignore

            steps += 1

        lg.info(f'Execution paused after {steps} step(s)')
        self.stop = Stop.STEP_LIMIT
        return self.stop
