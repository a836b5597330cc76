"""
Construction and execution of external processes.

`build_command` turns an executable and its arguments into a `Command`
descriptor that already reflects the execution context: nsenter wrapping when
running in a container, the ``LVM_VG_NAME`` default, locale normalisation and
caller supplied environment. `run_command` executes a descriptor, honouring
its cancel token and wait delay.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import IO, Dict, List, Optional, Sequence

from lvm2py.core import containerized
from lvm2py.core.context import (
    CancelToken,
    ExecutionContext,
    default_volume_group,
    get_cancel_token,
    get_custom_environment,
    get_process_cancel_wait_delay,
    use_standard_locale,
)
from lvm2py.core.errors import ExecutionError
from lvm2py.core.settings import Lvm2PySettings

logger = logging.getLogger(__name__)

NSENTER = Lvm2PySettings.from_env().nsenter_path
NSENTER_ARGS = ("-m", "-u", "-i", "-n", "-p", "-t", "1")
DEFAULT_VOLUME_GROUP_ENV = "LVM_VG_NAME"
STANDARD_LOCALE_ENV = "LC_ALL=C"

_READ_CHUNK = 64 * 1024


@dataclass
class Command:
    """
    A fully resolved process invocation.

    ``env`` only holds the entries added on top of the inherited environment,
    in the order they were added; `process_env` applies them so that later
    entries win over earlier ones.
    """

    path: str
    args: List[str]
    env: List[str] = field(default_factory=list)
    wait_delay: float = 0.0
    cancel_token: Optional[CancelToken] = None

    @property
    def argv(self) -> List[str]:
        return [self.path, *self.args]

    def process_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        for entry in self.env:
            key, _, value = entry.partition("=")
            env[key] = value
        return env

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float


def build_command(
    ctx: Optional[ExecutionContext],
    executable: str,
    *args: str,
    nsenter: Optional[str] = None,
) -> Command:
    """
    Build a `Command` for ``executable`` and ``args`` under ``ctx``.

    When running in a container (and the context does not force otherwise) the
    command is executed through nsenter in the mount, UTS, IPC, network and PID
    namespaces of PID 1. Otherwise it is equivalent to running the executable
    directly.
    """
    if containerized.will_use_nsenter(ctx):
        command = Command(
            path=nsenter or NSENTER,
            args=[*NSENTER_ARGS, executable, *args],
        )
    else:
        command = Command(path=executable, args=list(args))

    command.wait_delay = get_process_cancel_wait_delay(ctx)
    command.cancel_token = get_cancel_token(ctx)

    if vg := default_volume_group(ctx):
        command.env.append(f"{DEFAULT_VOLUME_GROUP_ENV}={vg}")

    return command_with_custom_environment(ctx, command)


def command_with_custom_environment(
    ctx: Optional[ExecutionContext], command: Command
) -> Command:
    if use_standard_locale():
        command.env.append(STANDARD_LOCALE_ENV)
    env = get_custom_environment(ctx)
    if env is not None:
        for key, value in env.items():
            command.env.append(f"{key}={value}")
    return command


def _start_reader(stream: IO[bytes], sink: List[bytes]) -> threading.Thread:
    def read() -> None:
        try:
            while chunk := stream.read(_READ_CHUNK):
                sink.append(chunk)
        finally:
            stream.close()

    reader = threading.Thread(target=read, daemon=True)
    reader.start()
    return reader


def _decode(chunks: Sequence[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


def run_command(command: Command) -> CommandResult:
    """
    Execute ``command`` and return its captured output.

    Once the process exits, output pipes are drained for at most
    ``command.wait_delay`` seconds (0 waits until EOF). Pipes still held open
    by orphaned grandchildren after that are abandoned to their reader threads.

    Cancelling ``command.cancel_token`` kills the process. The runner then waits
    at most ``wait_delay`` seconds for it to exit; if it has not, the runner
    gives up and the process may be left unreaped.

    Raises
    ------
    ExecutionError
        If the process cannot be started, exits non-zero or is cancelled.
    """
    argv = command.argv
    token = command.cancel_token
    if token is not None and token.cancelled:
        raise ExecutionError(argv, None, cancelled=True)

    logger.debug("running command: %s", command)
    started = time.monotonic()
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=command.process_env(),
            bufsize=0,
        )
    except OSError as e:
        raise ExecutionError(argv, None, reason=f"failed to start: {e}") from e

    stdout_chunks: List[bytes] = []
    stderr_chunks: List[bytes] = []
    readers = [
        _start_reader(proc.stdout, stdout_chunks),
        _start_reader(proc.stderr, stderr_chunks),
    ]

    wake = threading.Event()
    exited = threading.Event()
    killed = threading.Event()

    def wait_for_exit() -> None:
        proc.wait()
        exited.set()
        wake.set()

    def kill() -> None:
        killed.set()
        proc.kill()
        wake.set()

    threading.Thread(target=wait_for_exit, daemon=True).start()
    unregister = token.add_callback(kill) if token is not None else None
    delay = command.wait_delay
    try:
        wake.wait()
        if killed.is_set() and not exited.wait(delay or None):
            logger.warning(
                "process %d (%s) did not exit within %.2fs of cancellation; "
                "it may be left unreaped",
                proc.pid,
                argv[0],
                delay,
            )
            raise ExecutionError(
                argv,
                None,
                _decode(stdout_chunks),
                _decode(stderr_chunks),
                cancelled=True,
            )
    finally:
        if unregister is not None:
            unregister()

    for reader in readers:
        reader.join(delay or None)
    if any(reader.is_alive() for reader in readers):
        logger.warning(
            "output of %s still open %.2fs after exit; "
            "orphaned subprocesses may be holding its pipes",
            argv[0],
            delay,
        )

    stdout = _decode(stdout_chunks)
    stderr = _decode(stderr_chunks)
    duration = time.monotonic() - started

    if proc.returncode != 0:
        raise ExecutionError(
            argv, proc.returncode, stdout, stderr, cancelled=killed.is_set()
        )

    logger.debug("command %s finished in %.3fs", argv[0], duration)
    return CommandResult(
        argv=argv,
        returncode=proc.returncode,
        stdout=stdout,
        stderr=stderr,
        duration_seconds=duration,
    )
