"""
Per-call execution configuration.

Every outbound call carries an `ExecutionContext`. A context is immutable: each
``with_*`` method returns a derived copy, so a parent can be shared freely
between threads while decorators and callers layer their own settings on top.
Unset fields always resolve to an inert default through the module-level
getters, which also accept ``None`` for "no context".

Two values are process-wide rather than per call: whether LVM output should be
forced into the C locale, and the default wait delay used when a context does
not carry its own. Both are guarded by a lock and initialised from
`Lvm2PySettings.from_env()` at import time.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from lvm2py.core.settings import Lvm2PySettings


class CancelToken:
    """
    Cooperative cancellation handle shared between a caller and its calls.

    Callbacks registered with `add_callback` run exactly once, on the thread
    that calls `cancel` (or immediately if the token is already cancelled).
    A ``timeout`` cancels the token automatically after that many seconds.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._timer: Optional[threading.Timer] = None
        if timeout is not None:
            self._timer = threading.Timer(timeout, self.cancel)
            self._timer.daemon = True
            self._timer.start()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        if self._timer is not None:
            self._timer.cancel()
        for callback in callbacks:
            callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        callback()
        return lambda: None

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


@dataclass(frozen=True)
class ExecutionContext:
    """
    Immutable bag of per-call execution settings.

    Attributes
    ----------
    custom_environment : Optional[Mapping[str, str]]
        Extra environment variables appended to every command built with this context.
    wait_delay : Optional[float]
        Seconds to wait for output pipes (and, after cancellation, for the process)
        once the primary process has exited. None falls back to the process default.
    default_volume_group : str
        Exported as ``LVM_VG_NAME`` so commands may omit the volume group.
    force_no_nsenter : bool
        Execute directly even when running inside a container.
    cancel_token : Optional[CancelToken]
        Cancels lock waits and kills running processes when triggered.
    """

    custom_environment: Optional[Mapping[str, str]] = None
    wait_delay: Optional[float] = None
    default_volume_group: str = ""
    force_no_nsenter: bool = False
    cancel_token: Optional[CancelToken] = None

    def with_custom_environment(
        self, env: Optional[Mapping[str, str]]
    ) -> "ExecutionContext":
        frozen = None if env is None else MappingProxyType(dict(env))
        return replace(self, custom_environment=frozen)

    def with_wait_delay(self, seconds: Optional[float]) -> "ExecutionContext":
        if seconds is not None and seconds < 0:
            raise ValueError(f"wait delay must not be negative, got {seconds}")
        return replace(self, wait_delay=seconds)

    def with_default_volume_group(self, vg: str) -> "ExecutionContext":
        return replace(self, default_volume_group=str(vg or ""))

    def with_force_no_nsenter(self, force: bool) -> "ExecutionContext":
        return replace(self, force_no_nsenter=bool(force))

    def with_cancel_token(self, token: Optional[CancelToken]) -> "ExecutionContext":
        return replace(self, cancel_token=token)


BACKGROUND = ExecutionContext()


def get_custom_environment(ctx: Optional[ExecutionContext]) -> Optional[Mapping[str, str]]:
    return ctx.custom_environment if ctx is not None else None


def should_force_no_nsenter(ctx: Optional[ExecutionContext]) -> bool:
    return ctx.force_no_nsenter if ctx is not None else False


def default_volume_group(ctx: Optional[ExecutionContext]) -> str:
    return ctx.default_volume_group if ctx is not None else ""


def get_cancel_token(ctx: Optional[ExecutionContext]) -> Optional[CancelToken]:
    return ctx.cancel_token if ctx is not None else None


def get_process_cancel_wait_delay(ctx: Optional[ExecutionContext]) -> float:
    if ctx is not None and ctx.wait_delay is not None:
        return ctx.wait_delay
    return default_wait_delay()


# Process-wide state

_STATE_LOCK = threading.Lock()
_use_standard_locale = False
_default_wait_delay = 0.0


def use_standard_locale() -> bool:
    with _STATE_LOCK:
        return _use_standard_locale


def set_use_standard_locale(use: bool) -> None:
    global _use_standard_locale
    with _STATE_LOCK:
        _use_standard_locale = bool(use)


def default_wait_delay() -> float:
    with _STATE_LOCK:
        return _default_wait_delay


def set_default_wait_delay(seconds: float) -> None:
    """
    Set the wait delay used by contexts that do not carry one.

    With the default of 0, output pipes are read until EOF, which might not
    happen until orphaned grandchildren of the command close their copies.
    """
    global _default_wait_delay
    if seconds < 0:
        raise ValueError(f"wait delay must not be negative, got {seconds}")
    with _STATE_LOCK:
        _default_wait_delay = float(seconds)


def configure_from_settings(settings: Lvm2PySettings) -> None:
    set_use_standard_locale(settings.use_standard_locale)
    set_default_wait_delay(settings.wait_delay_seconds)


configure_from_settings(Lvm2PySettings.from_env())
