"""
The concrete LVM client.

`LVMClient` composes arguments from option structs, builds the process with
`build_command` (so nsenter wrapping, ``LVM_VG_NAME`` and locale handling all
apply) and runs ``lvm <subcommand>``. Report commands are parsed into the
pydantic models in `lvm2py.models`.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Type

from lvm2py.client.base import Client
from lvm2py.client.commands import (
    REPORT_ARGS,
    LVChangeOptions,
    LVCreateOptions,
    LVExtendOptions,
    LVRemoveOptions,
    LVRenameOptions,
    LVsOptions,
    PVCreateOptions,
    PVRemoveOptions,
    PVsOptions,
    VGChangeOptions,
    VGCreateOptions,
    VGExtendOptions,
    VGReduceOptions,
    VGRemoveOptions,
    VGRenameOptions,
    VGsOptions,
)
from lvm2py.core.arguments import Arguments
from lvm2py.core.command import Command, CommandResult, build_command, run_command
from lvm2py.core.context import ExecutionContext, default_volume_group
from lvm2py.core.errors import ExecutionError
from lvm2py.core.options import qualified_lv_name
from lvm2py.core.settings import Lvm2PySettings
from lvm2py.models import (
    LogicalVolume,
    PhysicalVolume,
    Version,
    VolumeGroup,
    parse_report,
    parse_version,
)
from lvm2py.models.report import ReportModel

Runner = Callable[[Command], CommandResult]


class LVMClient(Client):
    """
    Runs LVM commands on the local host, or on the container host via nsenter.

    Parameters
    ----------
    lvm_binary : Optional[str]
        Executable to run; defaults to ``Lvm2PySettings.lvm_binary`` (``lvm``).
    runner : Runner
        Executes a built `Command`. Defaults to `run_command`.
    """

    def __init__(self, lvm_binary: Optional[str] = None, runner: Runner = run_command) -> None:
        self.lvm_binary = lvm_binary or Lvm2PySettings.from_env().lvm_binary
        self._runner = runner

    def run_lvm(
        self,
        ctx: Optional[ExecutionContext],
        subcommand: str,
        args: Arguments,
        resource: Optional[str] = None,
    ) -> CommandResult:
        command = build_command(ctx, self.lvm_binary, subcommand, *args.raw())
        try:
            return self._runner(command)
        except ExecutionError as err:
            raise err.tag(subcommand, resource)

    def _report(
        self,
        ctx: Optional[ExecutionContext],
        subcommand: str,
        args: Arguments,
        model: Type[ReportModel],
        resource: Optional[str] = None,
    ) -> List[ReportModel]:
        args.add(*REPORT_ARGS, f"--options={model.report_columns()}")
        result = self.run_lvm(ctx, subcommand, args, resource)
        return parse_report(result.stdout, model)

    def version(self, *, ctx: Optional[ExecutionContext] = None) -> Version:
        result = self.run_lvm(ctx, "version", Arguments())
        return parse_version(result.stdout)

    # Volume groups

    def vgs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[VolumeGroup]:
        options, args = VGsOptions.compose(*opts)
        return self._report(ctx, "vgs", args, VolumeGroup, options.volume_group_name)

    def vg(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[VolumeGroup]:
        options, args = VGsOptions.compose(*opts)
        options.require("volume_group_name")
        vgs = self._report(ctx, "vgs", args, VolumeGroup, options.volume_group_name)
        return vgs[0] if vgs else None

    def vg_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGCreateOptions.compose(*opts)
        self.run_lvm(ctx, "vgcreate", args, options.volume_group_name)

    def vg_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGRemoveOptions.compose(*opts)
        self.run_lvm(ctx, "vgremove", args, options.volume_group_name)

    def vg_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGExtendOptions.compose(*opts)
        self.run_lvm(ctx, "vgextend", args, options.volume_group_name)

    def vg_reduce(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGReduceOptions.compose(*opts)
        self.run_lvm(ctx, "vgreduce", args, options.volume_group_name)

    def vg_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGRenameOptions.compose(*opts)
        self.run_lvm(ctx, "vgrename", args, options.volume_group_name)

    def vg_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = VGChangeOptions.compose(*opts)
        self.run_lvm(ctx, "vgchange", args, options.volume_group_name)

    # Logical volumes

    @staticmethod
    def _lv_resource(options: Any, ctx: Optional[ExecutionContext]) -> str:
        vg = options.volume_group_name or default_volume_group(ctx)
        if options.logical_volume_name:
            return qualified_lv_name(vg, options.logical_volume_name)
        return vg

    def lvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[LogicalVolume]:
        options, args = LVsOptions.compose(*opts)
        return self._report(ctx, "lvs", args, LogicalVolume, self._lv_resource(options, ctx))

    def lv(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[LogicalVolume]:
        options, args = LVsOptions.compose(*opts)
        options.require("logical_volume_name")
        lvs = self._report(ctx, "lvs", args, LogicalVolume, self._lv_resource(options, ctx))
        return lvs[0] if lvs else None

    def lv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = LVCreateOptions.compose(*opts)
        self.run_lvm(ctx, "lvcreate", args, self._lv_resource(options, ctx))

    def lv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = LVRemoveOptions.compose(*opts)
        self.run_lvm(ctx, "lvremove", args, self._lv_resource(options, ctx))

    def lv_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = LVExtendOptions.compose(*opts)
        self.run_lvm(ctx, "lvextend", args, self._lv_resource(options, ctx))

    def lv_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = LVRenameOptions.compose(*opts)
        self.run_lvm(ctx, "lvrename", args, self._lv_resource(options, ctx))

    def lv_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = LVChangeOptions.compose(*opts)
        self.run_lvm(ctx, "lvchange", args, self._lv_resource(options, ctx))

    # Physical volumes

    def pvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[PhysicalVolume]:
        _, args = PVsOptions.compose(*opts)
        return self._report(ctx, "pvs", args, PhysicalVolume)

    def pv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = PVCreateOptions.compose(*opts)
        self.run_lvm(ctx, "pvcreate", args, ",".join(options.physical_volume_names))

    def pv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        options, args = PVRemoveOptions.compose(*opts)
        self.run_lvm(ctx, "pvremove", args, ",".join(options.physical_volume_names))


def new_client(lvm_binary: Optional[str] = None) -> LVMClient:
    return LVMClient(lvm_binary=lvm_binary)
