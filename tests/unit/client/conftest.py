import pytest

from lvm2py.client import LVMClient
from lvm2py.core.command import CommandResult


class RecordingRunner:
    """Stands in for `run_command`: records every command and returns canned output."""

    def __init__(self, stdout: str = "", error: Exception = None):
        self.stdout = stdout
        self.error = error
        self.commands = []

    def __call__(self, command):
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return CommandResult(
            argv=command.argv,
            returncode=0,
            stdout=self.stdout,
            stderr="",
            duration_seconds=0.0,
        )

    @property
    def last(self):
        return self.commands[-1]


@pytest.fixture
def recorder():
    return RecordingRunner()


@pytest.fixture
def client(recorder):
    return LVMClient(lvm_binary="lvm", runner=recorder)
