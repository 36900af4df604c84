import regvm.tools.repl as repl
import regvm.runtime.vm as vm

from fixtures import runner  # noqa: F401


def test_parse_hex():
    assert repl.parse_hex('01 zz 100 ff') == [1, 255]
    assert repl.parse_hex('') == []


def test_hex_step(runner):  # noqa: F811
    result = runner.invoke(repl.repl, input='01 00 01 F4\n:q\n')
    assert result.exit_code == 0
    assert '500' in result.output


def test_bad_hex(runner):  # noqa: F811
    result = runner.invoke(repl.repl, input='zz\n:quit\n')
    assert 'Unable to decode hex string' in result.output


def test_halt(runner):  # noqa: F811
    result = runner.invoke(repl.repl, input='00 00 00 00\n')
    assert 'halt!' in result.output


def test_illegal(runner):  # noqa: F811
    result = runner.invoke(repl.repl, input='C8 00 00 00\n')
    assert 'unknown opcode: Illegal opcode 0xC8 at 0' in result.output


def test_listings(runner):  # noqa: F811
    result = runner.invoke(repl.repl, input='01 02 00 07\n:p\n:r\n:h\n:q\n')
    output = result.output
    assert 'Listing program instructions:' in output
    assert '01 02 00 07' in output
    assert '$2 = 7' in output
    assert 'Listing command history:' in output
    assert 'End of Command Listing' in output


def test_assembly_mode(runner):  # noqa: F811
    source = 'load $0 #500\nload $1 #500\nadd $0 $1 $2\n:q\n'
    result = runner.invoke(repl.repl, ['--asm'], input=source)
    assert '1000' in result.output


def test_assembly_error_leaves_program(runner):  # noqa: F811
    result = runner.invoke(repl.repl, ['--asm'], input='load $0\n:p\n')
    assert 'unexpected end of input' in result.output
    assert 'End of Instruction Listing' in result.output
    assert '01 00' not in result.output


def test_queue_and_run(runner):  # noqa: F811
    source = ':asm load $0 #3 load $1 #4 mul $0 $1 $2 alloc $2 hlt\n:run\n:heap\n'
    result = runner.invoke(repl.repl, input=source)
    assert 'queued 5 instruction(s)' in result.output
    assert 'halt!' in result.output
    assert 'heap: 12 byte(s)' in result.output


def test_handle():
    shell = repl.REPL()
    assert shell.handle('01 00 00 05') is False
    assert shell.vm.registers[0] == 5
    assert shell.handle(':q') is True
    assert shell.history == ['01 00 00 05', ':q']


def test_owns_given_vm():
    machine = vm.VM()
    shell = repl.REPL(machine, assembly=True)
    shell.handle('load $4 #9')
    assert machine.registers[4] == 9
