"""
Error taxonomy for lvm2py.

Three kinds of failure can surface from a call:

-   **ValidationError**: an option list violated an invariant of its command
    (missing required name, mutually exclusive options both set, ...). No
    process is ever started for such a call.
-   **ExecutionError**: the external tool could not be started, exited with a
    non-zero status, or was killed because its call was cancelled. The error
    carries the tool's stdout/stderr so callers can classify known conditions
    with the predicates below instead of parsing strings at every call site.
-   **LockingError**: the call was cancelled while waiting for a resource lock.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence


class Lvm2Error(Exception):
    """Base class for every error raised by lvm2py."""


class ValidationError(Lvm2Error, ValueError):
    """An option list failed validation before any process was built."""


class LockingError(Lvm2Error):
    """A resource lock could not be acquired."""

    def __init__(self, message: str, resource: Optional[str] = None) -> None:
        self.resource = resource
        super().__init__(message)


class ExecutionError(Lvm2Error):
    """
    Raised when an external command fails.

    Attributes
    ----------
    command : List[str]
        The full argument vector that was executed (including any nsenter prefix).
    returncode : Optional[int]
        Exit status of the process, or None if it never started.
    stdout, stderr : str
        Captured output of the process.
    operation : Optional[str]
        The domain operation (e.g. ``"vgcreate"``) that issued the command.
    resource : Optional[str]
        The named resource the operation targeted, when known.
    cancelled : bool
        True if the process was killed because its call was cancelled.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
        *,
        operation: Optional[str] = None,
        resource: Optional[str] = None,
        cancelled: bool = False,
        reason: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.operation = operation
        self.resource = resource
        self.cancelled = cancelled
        self.reason = reason
        super().__init__(self._format())

    def _format(self) -> str:
        head = self.operation or (self.command[0] if self.command else "command")
        if self.resource:
            head = f"{head} on {self.resource!r}"
        if self.reason:
            detail = self.reason
        elif self.cancelled:
            detail = "cancelled"
        else:
            detail = f"exit status {self.returncode}"
        message = f"{head} failed: {detail}"
        stderr = self.stderr.strip()
        if stderr:
            message = f"{message}: {stderr}"
        return message

    def tag(self, operation: str, resource: Optional[str] = None) -> "ExecutionError":
        """Attach the issuing operation and resource, keeping values already set."""
        self.operation = self.operation or operation
        self.resource = self.resource or (str(resource) if resource else None)
        self.args = (self._format(),)
        return self


_NOT_FOUND = re.compile(r"not found|Failed to find|No such (file|device)", re.IGNORECASE)
_VG_NOT_FOUND = re.compile(r'Volume group "[^"]*" not found')
_LV_NOT_FOUND = re.compile(
    r'Failed to find logical volume "[^"]*"'
    r"|One or more specified logical volume\(s\) not found"
)
_ALREADY_EXISTS = re.compile(r"already exists", re.IGNORECASE)
_LOOP_READ_ERROR = re.compile(
    r"Error reading device /dev/loop\d+ at \d+ length \d+\."
)


def as_lvm_stderr(err: BaseException) -> Optional[str]:
    """Return the captured stderr of an ExecutionError, or None for anything else."""
    if isinstance(err, ExecutionError):
        return err.stderr
    return None


def _stderr_matches(err: BaseException, pattern: "re.Pattern[str]") -> bool:
    stderr = as_lvm_stderr(err)
    return bool(stderr) and pattern.search(stderr) is not None


def is_not_found(err: BaseException) -> bool:
    return _stderr_matches(err, _NOT_FOUND)


def is_volume_group_not_found(err: BaseException) -> bool:
    return _stderr_matches(err, _VG_NOT_FOUND)


def is_logical_volume_not_found(err: BaseException) -> bool:
    return _stderr_matches(err, _LV_NOT_FOUND)


def is_already_exists(err: BaseException) -> bool:
    return _stderr_matches(err, _ALREADY_EXISTS)


def is_skippable_error_for_cleanup(err: BaseException) -> bool:
    """
    True when a failed removal can be treated as already done.

    Covers missing volume groups, volumes and devices as well as read errors
    on loop devices that were detached before their volume group was removed.
    """
    return (
        is_not_found(err)
        or is_volume_group_not_found(err)
        or _stderr_matches(err, _LOOP_READ_ERROR)
    )
