# type: ignore
import pytest
from click.testing import CliRunner

import regvm.runtime.vm as vm


@pytest.fixture
def machine():
    yield vm.VM()


@pytest.fixture
def runner():
    yield CliRunner()
