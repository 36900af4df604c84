import sys
import logging as lg
from typing import Tuple

import click

from regvm.sasm.asm import AssemblerError, assemble_string, format_instruction


def collect_source(source: Tuple[str, ...]) -> str:
    ''' Joins command-line words, or reads stdin when there are none '''
    if source:
        return ' '.join(source)

    lg.debug('Reading source from stdin')
    return click.get_text_stream('stdin').read()


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.argument('source', nargs=-1)
def compile(verbose: bool, source: Tuple[str]):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("REGVM ASM")

    try:
        instructions = assemble_string(collect_source(source))

    except AssemblerError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    for instruction in instructions:
        click.echo(format_instruction(instruction))


if __name__ == "__main__":
    compile()
