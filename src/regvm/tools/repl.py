''' Interactive driver owning a single VM '''

import logging as lg
from typing import Callable, TextIO

import click

from regvm.runtime.vm import VM, Stop
from regvm.sasm.asm import AssemblerError, assemble_string, format_program


PROMPT = '>>> '

STOP_MESSAGES = {
    Stop.HALT: 'halt!',
    Stop.ILLEGAL: 'unknown opcode',
    Stop.FAULT: 'fault',
}


def parse_hex(line: str) -> list[int]:
    ''' Keeps every whitespace-separated entry that is a valid hex byte '''
    result = []

    for entry in line.split():
        try:
            val = int(entry, 16)
        except ValueError:
            continue

        if 0 <= val <= 0xFF:
            result.append(val)

    return result


class REPL:
    vm: VM
    history: list[str]
    assembly: bool

    def __init__(self, vm: VM | None = None, assembly: bool = False):
        self.vm = vm if vm is not None else VM()
        self.history = []
        self.assembly = assembly

    # - Listings - #

    def listing(self, title: str, end: str, items: list[str]):
        click.echo(f'Listing {title}:')

        for item in items:
            click.echo(item)

        click.echo(f'End of {end} Listing')

    def show_history(self, _: str):
        self.listing('command history', 'Command', self.history)

    def show_program(self, _: str):
        self.listing('program instructions', 'Instruction', format_program(bytes(self.vm.program)))

    def show_registers(self, _: str):
        self.listing(
            'registers and all contents',
            'Register',
            [f'${i} = {v}' for i, v in enumerate(self.vm.registers)]
        )

    def show_heap(self, _: str):
        click.echo(f'heap: {len(self.vm.heap)} byte(s)')

    # - Execution - #

    def show_stop(self):
        message = STOP_MESSAGES.get(self.vm.stop)  # type: ignore

        if message is None:
            return

        if self.vm.fault is not None:
            message = f'{message}: {self.vm.fault}'

        click.echo(message)

    def step(self):
        self.vm.step()
        self.show_stop()
        click.echo(self.vm.output())

    def run(self, _: str):
        self.vm.run()
        self.show_stop()
        click.echo(self.vm.output())

    def append_assembly(self, text: str) -> int:
        try:
            instructions = assemble_string(text)
        except AssemblerError as e:
            click.echo(str(e))
            return 0

        self.vm.append_instructions(instructions)
        return len(instructions)

    def queue_assembly(self, text: str):
        count = self.append_assembly(text)
        click.echo(f'queued {count} instruction(s)')

    def eval_assembly(self, line: str):
        for _ in range(self.append_assembly(line)):
            self.step()

            if self.vm.stop is not None:
                break

    def eval_hex(self, line: str):
        data = parse_hex(line)

        if not data:
            click.echo('Unable to decode hex string. Please enter 4 groups of 2 hex characters.')
            return

        self.vm.append(data)
        self.step()

    def eval(self, line: str):
        if self.assembly:
            self.eval_assembly(line)
        else:
            self.eval_hex(line)

    COMMANDS: dict[str, Callable[['REPL', str], None]] = {
        ':history': show_history,
        ':h': show_history,
        ':program': show_program,
        ':p': show_program,
        ':registers': show_registers,
        ':r': show_registers,
        ':heap': show_heap,
        ':run': run,
        ':asm': queue_assembly,
    }

    QUIT = {':quit', ':q'}

    # -- Implementation -- #

    def handle(self, line: str) -> bool:
        ''' Returns True when the loop should stop '''
        self.history.append(line)
        command, _, arg = line.partition(' ')

        if command in self.QUIT:
            return True

        if command in self.COMMANDS:
            self.COMMANDS[command](self, arg)
        else:
            self.eval(line)

        return False

    def loop(self, stream: TextIO):
        while True:
            click.echo(PROMPT, nl=False)
            raw = stream.readline()

            if not raw:
                click.echo()
                break

            line = raw.strip()

            if not line:
                continue

            if self.handle(line):
                break


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--asm', 'assembly', is_flag=True, help='Read assembly instead of hex bytes')
def repl(verbose: bool, assembly: bool):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.WARNING)
    REPL(assembly=assembly).loop(click.get_text_stream('stdin'))


if __name__ == '__main__':
    repl()
