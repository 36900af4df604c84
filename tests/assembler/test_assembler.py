import pytest

import regvm.sasm.asm as asm
from regvm.common.ops import Opcode
from regvm.sasm.lexer import Lexer, Operator, Register, Integer, tokenize


def words(text: str) -> list[list[int]]:
    return [list(i) for i in asm.assemble_string(text)]


def test_load():
    assert words('load $0 #500') == [[1, 0, 1, 244]]


def test_load_max():
    assert words('load $31 #65535') == [[1, 31, 255, 255]]


def test_hlt():
    assert words('hlt') == [[0, 0, 0, 0]]


@pytest.mark.parametrize('mnemonic, code', [('add', 2), ('sub', 3), ('mul', 4), ('div', 5)])
def test_binary(mnemonic, code):
    assert words(f'{mnemonic} $0 $1 $2') == [[code, 0, 1, 2]]


@pytest.mark.parametrize('mnemonic, code', [
    ('eq', 9), ('neq', 10), ('gt', 11), ('lt', 12), ('gteq', 13), ('lteq', 14)
])
def test_compare(mnemonic, code):
    assert words(f'{mnemonic} $3 $4') == [[code, 3, 4, 0]]


@pytest.mark.parametrize('mnemonic, code', [
    ('jmp', 6), ('jmpf', 7), ('jmpb', 8), ('jeq', 15), ('alloc', 16)
])
def test_unary(mnemonic, code):
    assert words(f'{mnemonic} $7') == [[code, 7, 0, 0]]


def test_program():
    assert asm.assemble_bytes('load $0 #500 load $1 #500 add $0 $1 $2 hlt') == bytes([
        1, 0, 1, 244,
        1, 1, 1, 244,
        2, 0, 1, 2,
        0, 0, 0, 0,
    ])


def test_empty():
    assert asm.assemble_string('') == []


def test_from_lexer():
    assert list(asm.assemble(Lexer('jmp $1'))) == [bytes([6, 1, 0, 0])]


def test_hand_built_negative_integer():
    tokens = [Operator(Opcode.LOAD), Register(0), Integer(-1)]
    assert list(asm.assemble(tokens)) == [bytes([1, 0, 255, 255])]


@pytest.mark.parametrize('text, error', [
    ('load #1 #2', asm.ExpectedRegister),
    ('load $0 $1', asm.ExpectedInteger),
    ('load $0 hlt', asm.ExpectedInteger),
    ('add $0 hlt $1', asm.ExpectedRegister),
    ('add $0 $1', asm.UnexpectedEnd),
    ('load', asm.UnexpectedEnd),
    ('$0', asm.ExpectedOperator),
    ('#5', asm.ExpectedOperator),
    ('foo $0', asm.UnknownOperator),
    (',', asm.UnknownOperator),
    ('load $256 #1', asm.OperandRange),
    ('load $0 #65536', asm.OperandRange),
    ('jmp $1000', asm.OperandRange),
])
def test_errors(text, error):
    with pytest.raises(error):
        asm.assemble_string(text)


def test_errors_share_base():
    with pytest.raises(asm.AssemblerError):
        asm.assemble_string('eq $0 #1')


def test_error_messages():
    assert str(asm.ExpectedRegister(Integer(1))) == 'syntax error: expected register, found integer'
    assert str(asm.ExpectedRegister(Operator(Opcode.HLT))) == 'syntax error: expected register, found operator'
    assert str(asm.ExpectedInteger(Register(1))) == 'syntax error: expected integer, found register'
    assert str(asm.UnexpectedEnd()) == 'syntax error: unexpected end of input'
    assert str(asm.OperandRange(Register(300))) == 'syntax error: operand $300 out of range'


def test_error_keeps_token():
    with pytest.raises(asm.ExpectedRegister) as e:
        asm.assemble_string('sub $0 #9 $1')

    assert e.value.found == Integer(9)


def test_lazy_until_fault():
    instructions = asm.assemble(tokenize('load $0 #1 add $0'))
    assert next(instructions) == bytes([1, 0, 0, 1])

    with pytest.raises(asm.UnexpectedEnd):
        next(instructions)


def test_format_program():
    program = asm.assemble_bytes('load $0 #500 hlt')
    assert asm.format_program(program) == ['01 00 01 F4', '00 00 00 00']
