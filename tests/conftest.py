import pytest

from winchoco.errors import ExecutionError
from winchoco.runner import BinaryLocator, CommandResult

CHOCO = "choco.exe"


class FakeRunner:
    """Records command lines; answers `choco list` queries from canned output."""

    def __init__(self, installed="", available="", fail_on=None):
        self.installed = installed
        self.available = available
        self.fail_on = fail_on
        self.calls = []

    def run(self, command_line, timeout=None):
        self.calls.append(command_line)
        if self.fail_on and self.fail_on in command_line:
            raise ExecutionError(f"Command exited with status 1: {command_line}", command=command_line, exit_status=1)
        if "list -l -r" in command_line:
            return CommandResult(self.installed, 0)
        if "list -r" in command_line:
            return CommandResult(self.available, 0)
        return CommandResult("", 0)

    def actions(self):
        return [c for c in self.calls if " list " not in c]


@pytest.fixture
def locator():
    return BinaryLocator(CHOCO)


@pytest.fixture
def runner():
    return FakeRunner(
        installed="git|2.40.0\nvim|9.0.0\n",
        available="git|2.41.0\nvim|9.0.0\nnodejs|20.1.0\n7zip|23.1.0 \n",
    )
