import sys
import logging as lg
from typing import Tuple

import click

import regvm.runtime.vm as vm
from regvm.sasm.asm import AssemblerError, assemble_string
from regvm.sasm.masm import collect_source


EXIT_HALT = 0
EXIT_ASM_ERROR = 1
EXIT_ILLEGAL = 2
EXIT_FAULT = 3
EXIT_STEP_LIMIT = 4

EXIT_CODES = {
    vm.Stop.HALT: EXIT_HALT,
    vm.Stop.END: EXIT_HALT,
    vm.Stop.ILLEGAL: EXIT_ILLEGAL,
    vm.Stop.FAULT: EXIT_FAULT,
    vm.Stop.STEP_LIMIT: EXIT_STEP_LIMIT,
}


def execute(binary: bytes, max_steps: int | None = None) -> vm.VM:
    machine = vm.VM()
    machine.append(binary)
    machine.run(max_steps)
    return machine


def execute_string(source: str, max_steps: int | None = None) -> vm.VM:
    machine = vm.VM()
    # Nothing reaches the machine unless the whole source assembles
    machine.append_instructions(assemble_string(source))
    machine.run(max_steps)
    return machine


def report(machine: vm.VM):
    stop = machine.stop.value if machine.stop is not None else 'running'
    click.echo(f'stop: {stop}')

    if machine.fault is not None:
        click.echo(f'reason: {machine.fault}')

    click.echo(f'output: {machine.output()}')
    click.echo(f'remainder: {machine.remainder}')
    click.echo(f'flag: {str(machine.flag).lower()}')

    for i, val in enumerate(machine.registers):
        if val != 0:
            click.echo(f'${i} = {val}')


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--max-steps', type=click.IntRange(min=1), default=None, help='Stop after this many steps')
@click.argument('source', nargs=-1)
def run(verbose: bool, max_steps: int | None, source: Tuple[str]):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("REGVM")

    try:
        machine = execute_string(collect_source(source), max_steps)

    except AssemblerError as e:
        click.echo(str(e), err=True)
        sys.exit(EXIT_ASM_ERROR)

    report(machine)
    sys.exit(EXIT_CODES[machine.stop])  # type: ignore


if __name__ == '__main__':
    run()
