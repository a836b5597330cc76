"""
Per-resource serialisation of mutating LVM operations.

LVM gives no isolation between two of its own processes changing the same
volume group concurrently. `LockingClient` closes that gap inside one
process: every mutating call holds an exclusive lock per named resource for
the duration of the delegate call, while calls on different resources run in
parallel. Read-only calls never lock and may overlap with a held write lock,
so callers needing read-after-write consistency must serialise themselves.

Fairness between waiters is undefined; mutual exclusion is guaranteed.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from lvm2py.client.base import Client
from lvm2py.client.commands import (
    LVChangeOptions,
    LVCreateOptions,
    LVExtendOptions,
    LVRemoveOptions,
    LVRenameOptions,
    VGChangeOptions,
    VGCreateOptions,
    VGExtendOptions,
    VGReduceOptions,
    VGRemoveOptions,
    VGRenameOptions,
)
from lvm2py.client.decorators import ContextDecoratorClient
from lvm2py.core.context import (
    CancelToken,
    ExecutionContext,
    default_volume_group,
    get_cancel_token,
)
from lvm2py.core.errors import LockingError

logger = logging.getLogger(__name__)

# Physical volumes outside any volume group; LVM uses the same lock name.
ORPHANS = "#orphans"


class ResourceLock:
    """
    Exclusive, non-reentrant lock for one resource name.

    `acquire` blocks until the lock is free. With a cancel token, cancelling
    the token wakes the waiter, which then raises `LockingError`.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._cond = threading.Condition()
        self._held = False

    def locked(self) -> bool:
        with self._cond:
            return self._held

    def acquire(self, token: Optional[CancelToken] = None) -> None:
        with self._cond:
            if token is None:
                while self._held:
                    self._cond.wait()
                self._held = True
                return

            unregister = token.add_callback(self._wake)
            try:
                while self._held and not token.cancelled:
                    self._cond.wait()
                if token.cancelled:
                    raise LockingError(
                        f"cancelled while waiting for lock on {self.name!r}",
                        resource=self.name,
                    )
                self._held = True
            finally:
                unregister()

    def release(self) -> None:
        with self._cond:
            if not self._held:
                raise RuntimeError(f"release of unlocked resource {self.name!r}")
            self._held = False
            self._cond.notify_all()

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()


class ResourceLocks:
    """
    Registry of `ResourceLock` objects, created lazily per name.

    The registry guard is only held while looking up or creating a lock, never
    while a resource lock is being waited for or held.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, ResourceLock] = {}

    def get(self, name: str) -> ResourceLock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = ResourceLock(name)
            return lock

    @contextmanager
    def hold(self, *names: str, token: Optional[CancelToken] = None) -> Iterator[List[str]]:
        """Hold every named lock; names are acquired in sorted order to avoid deadlocks."""
        ordered = sorted({str(name) for name in names if name})
        acquired: List[ResourceLock] = []
        try:
            for name in ordered:
                lock = self.get(name)
                lock.acquire(token)
                acquired.append(lock)
            if ordered:
                logger.debug("holding resource locks %s", ordered)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()


class LockingClient(ContextDecoratorClient):
    """
    Serialises mutating operations per volume group.

    Lock keys are resolved from each call's options: the volume group for VG
    and LV operations (falling back to the default volume group of the
    context the wrapped decorators pass on to the innermost client),
    both names for ``vg_rename``, and `ORPHANS` for operations that move
    physical volumes into or out of the orphan set.
    """

    def __init__(self, client: Client, locks: Optional[ResourceLocks] = None) -> None:
        super().__init__(client)
        self.locks = locks if locks is not None else ResourceLocks()

    def _hold(self, ctx: Optional[ExecutionContext], *names: Any):
        return self.locks.hold(*names, token=get_cancel_token(self.resolve_context(ctx)))

    def _volume_group(self, options: Any, ctx: Optional[ExecutionContext]) -> str:
        # Wrapped decorators may supply the default volume group.
        vg = options.volume_group_name or default_volume_group(self.resolve_context(ctx))
        if not vg:
            logger.debug(
                "%s: no volume group resolved, running without a lock",
                type(options).command_name(),
            )
        return vg

    # Volume groups

    def vg_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGCreateOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name, ORPHANS):
            return self.client.vg_create(*opts, ctx=ctx)

    def vg_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGRemoveOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name, ORPHANS):
            return self.client.vg_remove(*opts, ctx=ctx)

    def vg_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGExtendOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name, ORPHANS):
            return self.client.vg_extend(*opts, ctx=ctx)

    def vg_reduce(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGReduceOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name, ORPHANS):
            return self.client.vg_reduce(*opts, ctx=ctx)

    def vg_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGRenameOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name, options.new_volume_group_name):
            return self.client.vg_rename(*opts, ctx=ctx)

    def vg_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = VGChangeOptions.from_options(*opts)
        with self._hold(ctx, options.volume_group_name):
            return self.client.vg_change(*opts, ctx=ctx)

    # Logical volumes

    def lv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = LVCreateOptions.from_options(*opts)
        with self._hold(ctx, self._volume_group(options, ctx)):
            return self.client.lv_create(*opts, ctx=ctx)

    def lv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = LVRemoveOptions.from_options(*opts)
        with self._hold(ctx, self._volume_group(options, ctx)):
            return self.client.lv_remove(*opts, ctx=ctx)

    def lv_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = LVExtendOptions.from_options(*opts)
        with self._hold(ctx, self._volume_group(options, ctx)):
            return self.client.lv_extend(*opts, ctx=ctx)

    def lv_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = LVRenameOptions.from_options(*opts)
        with self._hold(ctx, self._volume_group(options, ctx)):
            return self.client.lv_rename(*opts, ctx=ctx)

    def lv_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options = LVChangeOptions.from_options(*opts)
        with self._hold(ctx, self._volume_group(options, ctx)):
            return self.client.lv_change(*opts, ctx=ctx)

    # Physical volumes

    def pv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        with self._hold(ctx, ORPHANS):
            return self.client.pv_create(*opts, ctx=ctx)

    def pv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        with self._hold(ctx, ORPHANS):
            return self.client.pv_remove(*opts, ctx=ctx)


def new_locking_client(client: Client) -> LockingClient:
    return LockingClient(client)
