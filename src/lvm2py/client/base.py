"""
The `Client` contract shared by the concrete LVM client and its decorators.

Every operation takes its options positionally (in any order, nested lists are
flattened) and an optional keyword-only `ExecutionContext`. Options of the
same kind given twice resolve last-wins; see `lvm2py.core.options`.
"""

from __future__ import annotations

import abc
from typing import Any, List, Optional

from lvm2py.core.context import ExecutionContext
from lvm2py.models import LogicalVolume, PhysicalVolume, Version, VolumeGroup

MUTATING_OPERATIONS = frozenset(
    {
        "vg_create",
        "vg_remove",
        "vg_extend",
        "vg_reduce",
        "vg_rename",
        "vg_change",
        "lv_create",
        "lv_remove",
        "lv_extend",
        "lv_rename",
        "lv_change",
        "pv_create",
        "pv_remove",
    }
)
READ_ONLY_OPERATIONS = frozenset({"version", "vgs", "vg", "lvs", "lv", "pvs"})


class Client(abc.ABC):
    # Meta

    @abc.abstractmethod
    def version(self, *, ctx: Optional[ExecutionContext] = None) -> Version:
        """Return the versions reported by ``lvm version``."""

    # Volume groups

    @abc.abstractmethod
    def vgs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[VolumeGroup]:
        """
        List volume groups.

        Parameters
        ----------
        *opts : VGsOption
            An optional `VolumeGroupName` to restrict the report, plus common options.
        ctx : Optional[ExecutionContext]
            Execution context for this call.

        Returns
        -------
        List[VolumeGroup]
            One entry per reported volume group.
        """

    @abc.abstractmethod
    def vg(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[VolumeGroup]:
        """Return the single volume group named in ``opts``, or None if not reported."""

    @abc.abstractmethod
    def vg_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        """
        Create a volume group.

        Requires a `VolumeGroupName` and `PhysicalVolumeNames`.

        Raises
        ------
        ValidationError
            If required options are missing.
        ExecutionError
            If ``vgcreate`` fails.
        """

    @abc.abstractmethod
    def vg_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def vg_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def vg_reduce(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def vg_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def vg_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    # Logical volumes

    @abc.abstractmethod
    def lvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[LogicalVolume]: ...

    @abc.abstractmethod
    def lv(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> Optional[LogicalVolume]: ...

    @abc.abstractmethod
    def lv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None:
        """
        Create a logical volume.

        Requires a `LogicalVolumeName` and exactly one of `Size` or `Extents`.
        The `VolumeGroupName` may be omitted when the context carries a
        default volume group.
        """

    @abc.abstractmethod
    def lv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def lv_extend(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def lv_rename(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def lv_change(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    # Physical volumes

    @abc.abstractmethod
    def pvs(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> List[PhysicalVolume]: ...

    @abc.abstractmethod
    def pv_create(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...

    @abc.abstractmethod
    def pv_remove(self, *opts: Any, ctx: Optional[ExecutionContext] = None) -> None: ...
