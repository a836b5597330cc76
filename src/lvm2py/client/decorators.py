"""
Client decorators that inject execution settings into every call.

A decorator holds another `Client` and implements the same contract; each
method derives a new context with `apply_context` and delegates. Decorators
never change arguments, results or errors, so they stack freely::

    client = NoNsenterClient(WaitDelayClient(LVMClient(), 3.0))
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from lvm2py.client.base import Client
from lvm2py.core.context import BACKGROUND, ExecutionContext
from lvm2py.models import LogicalVolume, PhysicalVolume, Version, VolumeGroup


class ContextDecoratorClient(Client):
    """Delegating client; subclasses override `apply_context`."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def apply_context(self, ctx: ExecutionContext) -> ExecutionContext:
        return ctx

    def _derive(self, ctx: Optional[ExecutionContext]) -> ExecutionContext:
        return self.apply_context(ctx if ctx is not None else BACKGROUND)

    def resolve_context(self, ctx: Optional[ExecutionContext]) -> ExecutionContext:
        """Return the context the innermost client receives for a call made with ``ctx``."""
        derived = self._derive(ctx)
        if isinstance(self.client, ContextDecoratorClient):
            return self.client.resolve_context(derived)
        return derived

    def version(self, *, ctx: Optional[ExecutionContext] = None) -> Version:
        return self.client.version(ctx=self._derive(ctx))

    def vgs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[VolumeGroup]:
        return self.client.vgs(*opts, ctx=self._derive(ctx))

    def vg(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[VolumeGroup]:
        return self.client.vg(*opts, ctx=self._derive(ctx))

    def vg_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_create(*opts, ctx=self._derive(ctx))

    def vg_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_remove(*opts, ctx=self._derive(ctx))

    def vg_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_extend(*opts, ctx=self._derive(ctx))

    def vg_reduce(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_reduce(*opts, ctx=self._derive(ctx))

    def vg_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_rename(*opts, ctx=self._derive(ctx))

    def vg_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.vg_change(*opts, ctx=self._derive(ctx))

    def lvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[LogicalVolume]:
        return self.client.lvs(*opts, ctx=self._derive(ctx))

    def lv(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[LogicalVolume]:
        return self.client.lv(*opts, ctx=self._derive(ctx))

    def lv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.lv_create(*opts, ctx=self._derive(ctx))

    def lv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.lv_remove(*opts, ctx=self._derive(ctx))

    def lv_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.lv_extend(*opts, ctx=self._derive(ctx))

    def lv_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.lv_rename(*opts, ctx=self._derive(ctx))

    def lv_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.lv_change(*opts, ctx=self._derive(ctx))

    def pvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[PhysicalVolume]:
        return self.client.pvs(*opts, ctx=self._derive(ctx))

    def pv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.pv_create(*opts, ctx=self._derive(ctx))

    def pv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        return self.client.pv_remove(*opts, ctx=self._derive(ctx))


class NoNsenterClient(ContextDecoratorClient):
    """
    Never wraps commands in nsenter, even when running in a container.

    Useful for long-lived components that already run in the host's
    namespaces (for example a privileged pod with ``hostPID``) and hold one
    client for their whole lifetime.
    """

    def apply_context(self, ctx: ExecutionContext) -> ExecutionContext:
        return ctx.with_force_no_nsenter(True)


class CustomEnvironmentClient(ContextDecoratorClient):
    """Appends a fixed set of environment variables to every command."""

    def __init__(self, client: Client, env: Mapping[str, str]) -> None:
        super().__init__(client)
        self.env = dict(env)

    def apply_context(self, ctx: ExecutionContext) -> ExecutionContext:
        merged = dict(ctx.custom_environment or {})
        merged.update(self.env)
        return ctx.with_custom_environment(merged)


class WaitDelayClient(ContextDecoratorClient):
    def __init__(self, client: Client, wait_delay: float) -> None:
        super().__init__(client)
        self.wait_delay = wait_delay

    def apply_context(self, ctx: ExecutionContext) -> ExecutionContext:
        return ctx.with_wait_delay(self.wait_delay)


class DefaultVolumeGroupClient(ContextDecoratorClient):
    def __init__(self, client: Client, volume_group: str) -> None:
        super().__init__(client)
        self.volume_group = volume_group

    def apply_context(self, ctx: ExecutionContext) -> ExecutionContext:
        return ctx.with_default_volume_group(self.volume_group)


def with_no_nsenter(client: Client) -> Client:
    return NoNsenterClient(client)
