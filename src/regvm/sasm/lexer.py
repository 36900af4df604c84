''' Assembly tokenizer '''

import logging as lg
from dataclasses import dataclass
from typing import Iterator, TypeAlias

import pyparsing as pp

from regvm.common.ops import Opcode, mnemonic_to_opcode, opcode_to_mnemonic
from regvm.common.hwconf import REGISTER_SIGIL, INTEGER_SIGIL


@dataclass(frozen=True)
class Operator:
    opcode: Opcode

    def __str__(self) -> str:
        return opcode_to_mnemonic(self.opcode)


@dataclass(frozen=True)
class Register:
    index: int

    def __str__(self) -> str:
        return f'{REGISTER_SIGIL}{self.index}'


@dataclass(frozen=True)
class Integer:
    value: int

    def __str__(self) -> str:
        return f'{INTEGER_SIGIL}{self.value}'


@dataclass(frozen=True)
class End:
    def __str__(self) -> str:
        return '<end>'


Token: TypeAlias = Operator | Register | Integer | End

END = End()


# pyparsing skips ' \t\n\r' before every expression by default
digits = pp.Word(pp.nums)

register = pp.Combine(pp.Suppress(REGISTER_SIGIL) + digits)
register.set_parse_action(lambda r: Register(int(r[0])))

integer = pp.Combine(pp.Suppress(INTEGER_SIGIL) + digits)
integer.set_parse_action(lambda r: Integer(int(r[0])))

identifier = pp.Word(pp.alphas + '_')
identifier.set_parse_action(lambda r: Operator(mnemonic_to_opcode(r[0])))

# Anything else, one character at a time
unknown = pp.Regex(r'[^ \t\n\r]')
unknown.set_parse_action(lambda _: Operator(Opcode.ILLEGAL))

token = register | integer | identifier | unknown


def tokenize(text: str) -> Iterator[Token]:
    ''' Lazily scans text, finishing with a single END '''
    for tokens, start, _ in token.scan_string(text):
        tok = tokens[0]
        lg.debug(f'Token {tok} @ {start}')
        yield tok

    yield END


class Lexer:
    ''' Forward-only token source; keeps returning END once exhausted '''
    done: bool

    def __init__(self, text: str):
        self.tokens = tokenize(text)
        self.done = False

    def next_token(self) -> Token:
        if self.done:
            return END

        tok = next(self.tokens)

        if isinstance(tok, End):
            self.done = True

        return tok

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        tok = self.next_token()

        if isinstance(tok, End):
            raise StopIteration

        return tok
