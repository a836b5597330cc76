"""
Option structs for the LVM commands exposed by `Client`.

Each struct lists the options its command accepts, the invariants checked by
``validate`` and the order in which fields are rendered. Positional names are
rendered where LVM expects them; flags use ``--flag=value`` form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from lvm2py.core.arguments import Arguments
from lvm2py.core.errors import ValidationError
from lvm2py.core.options import (
    Activate,
    CommonOptions,
    DelTags,
    Extents,
    Force,
    LogicalVolumeName,
    NewLogicalVolumeName,
    NewVolumeGroupName,
    PhysicalExtentSize,
    PhysicalVolumeNames,
    RemoveMissing,
    Size,
    Tags,
    VolumeGroupName,
    qualified_lv_name,
)

REPORT_ARGS = ("--reportformat=json", "--units=b", "--nosuffix")


def _exactly_one_size(options) -> None:
    if options.size is not None and options.extents is not None:
        raise ValidationError(
            f"Size and Extents are mutually exclusive for {options.command_name()}"
        )
    if options.size is None and options.extents is None:
        raise ValidationError(
            f"one of Size or Extents is required for {options.command_name()}"
        )


def _reject_relative_size(options) -> None:
    if (options.size is not None and options.size.sign) or (
        options.extents is not None and options.extents.sign
    ):
        raise ValidationError(
            f"relative sizes are not supported by {options.command_name()}"
        )


# Volume groups


@dataclass
class VGsOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None

    command: ClassVar[str] = "vgs"
    render_order: ClassVar[Tuple[str, ...]] = ("volume_group_name",)


@dataclass
class VGCreateOptions(CommonOptions):
    """``vgcreate VG PV...``: the name and at least one physical volume are required."""

    volume_group_name: Optional[VolumeGroupName] = None
    physical_volume_names: Optional[PhysicalVolumeNames] = None
    physical_extent_size: Optional[PhysicalExtentSize] = None
    tags: Optional[Tags] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "vgcreate"
    render_order: ClassVar[Tuple[str, ...]] = (
        "volume_group_name",
        "physical_volume_names",
        "physical_extent_size",
        "tags",
        "force",
    )

    def validate(self) -> None:
        self.require("volume_group_name", "physical_volume_names")


@dataclass
class VGRemoveOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "vgremove"
    render_order: ClassVar[Tuple[str, ...]] = ("volume_group_name", "force")

    def validate(self) -> None:
        self.require("volume_group_name")


@dataclass
class VGExtendOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    physical_volume_names: Optional[PhysicalVolumeNames] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "vgextend"
    render_order: ClassVar[Tuple[str, ...]] = (
        "volume_group_name",
        "physical_volume_names",
        "force",
    )

    def validate(self) -> None:
        self.require("volume_group_name", "physical_volume_names")


@dataclass
class VGReduceOptions(CommonOptions):
    """
    ``vgreduce [--removemissing] VG [PV...]``.

    Either physical volumes to remove or ``RemoveMissing`` must be given.
    ``--removemissing`` is rendered before the volume group name.
    """

    volume_group_name: Optional[VolumeGroupName] = None
    physical_volume_names: Optional[PhysicalVolumeNames] = None
    remove_missing: Optional[RemoveMissing] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "vgreduce"
    render_order: ClassVar[Tuple[str, ...]] = (
        "remove_missing",
        "volume_group_name",
        "physical_volume_names",
        "force",
    )

    def validate(self) -> None:
        self.require("volume_group_name")
        if not self.physical_volume_names and not self.remove_missing:
            raise ValidationError(
                "at least one PhysicalVolumeName is required for reduction of a volume group"
            )


@dataclass
class VGRenameOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    new_volume_group_name: Optional[NewVolumeGroupName] = None

    command: ClassVar[str] = "vgrename"
    render_order: ClassVar[Tuple[str, ...]] = (
        "volume_group_name",
        "new_volume_group_name",
    )

    def validate(self) -> None:
        self.require("volume_group_name", "new_volume_group_name")


@dataclass
class VGChangeOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    tags: Optional[Tags] = None
    del_tags: Optional[DelTags] = None
    activate: Optional[Activate] = None

    command: ClassVar[str] = "vgchange"
    render_order: ClassVar[Tuple[str, ...]] = (
        "volume_group_name",
        "tags",
        "del_tags",
        "activate",
    )

    def validate(self) -> None:
        self.require("volume_group_name")
        if not (self.tags or self.del_tags or self.activate):
            raise ValidationError(
                "at least one of Tags, DelTags or Activate is required for vgchange"
            )


# Logical volumes. The volume group may be left out when the context
# provides a default volume group (exported as LVM_VG_NAME).


def _render_lv_path(options, args: Arguments) -> None:
    args.add(qualified_lv_name(options.volume_group_name, options.logical_volume_name))


@dataclass
class LVsOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None

    command: ClassVar[str] = "lvs"

    def apply_to_args(self, args: Arguments) -> None:
        if self.logical_volume_name:
            args.add(qualified_lv_name(self.volume_group_name, self.logical_volume_name))
        elif self.volume_group_name:
            args.add(str(self.volume_group_name))
        self.apply_common_args(args)


@dataclass
class LVCreateOptions(CommonOptions):
    """``lvcreate --name LV (--size|--extents) [VG]``; Size and Extents are exclusive."""

    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None
    size: Optional[Size] = None
    extents: Optional[Extents] = None
    tags: Optional[Tags] = None
    activate: Optional[Activate] = None

    command: ClassVar[str] = "lvcreate"
    render_order: ClassVar[Tuple[str, ...]] = (
        "volume_group_name",
        "logical_volume_name",
        "size",
        "extents",
        "tags",
        "activate",
    )

    def validate(self) -> None:
        self.require("logical_volume_name")
        _exactly_one_size(self)
        _reject_relative_size(self)


@dataclass
class LVRemoveOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "lvremove"

    def validate(self) -> None:
        self.require("logical_volume_name")

    def apply_to_args(self, args: Arguments) -> None:
        _render_lv_path(self, args)
        if self.force is not None:
            self.force.apply_to_args(args)
        self.apply_common_args(args)


@dataclass
class LVExtendOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None
    size: Optional[Size] = None
    extents: Optional[Extents] = None

    command: ClassVar[str] = "lvextend"

    def validate(self) -> None:
        self.require("logical_volume_name")
        _exactly_one_size(self)
        if (self.size is not None and self.size.sign == "-") or (
            self.extents is not None and self.extents.sign == "-"
        ):
            raise ValidationError("lvextend cannot shrink a logical volume")

    def apply_to_args(self, args: Arguments) -> None:
        _render_lv_path(self, args)
        for value in (self.size, self.extents):
            if value is not None:
                value.apply_to_args(args)
        self.apply_common_args(args)


@dataclass
class LVRenameOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None
    new_logical_volume_name: Optional[NewLogicalVolumeName] = None

    command: ClassVar[str] = "lvrename"

    def validate(self) -> None:
        self.require("logical_volume_name", "new_logical_volume_name")

    def apply_to_args(self, args: Arguments) -> None:
        # Without a volume group LVM takes it from LVM_VG_NAME.
        if self.volume_group_name:
            args.add(str(self.volume_group_name))
        args.add(str(self.logical_volume_name), str(self.new_logical_volume_name))
        self.apply_common_args(args)


@dataclass
class LVChangeOptions(CommonOptions):
    volume_group_name: Optional[VolumeGroupName] = None
    logical_volume_name: Optional[LogicalVolumeName] = None
    tags: Optional[Tags] = None
    del_tags: Optional[DelTags] = None
    activate: Optional[Activate] = None

    command: ClassVar[str] = "lvchange"

    def validate(self) -> None:
        self.require("logical_volume_name")
        if not (self.tags or self.del_tags or self.activate):
            raise ValidationError(
                "at least one of Tags, DelTags or Activate is required for lvchange"
            )

    def apply_to_args(self, args: Arguments) -> None:
        _render_lv_path(self, args)
        for value in (self.tags, self.del_tags, self.activate):
            if value is not None:
                value.apply_to_args(args)
        self.apply_common_args(args)


# Physical volumes


@dataclass
class PVsOptions(CommonOptions):
    physical_volume_names: Optional[PhysicalVolumeNames] = None

    command: ClassVar[str] = "pvs"
    render_order: ClassVar[Tuple[str, ...]] = ("physical_volume_names",)


@dataclass
class PVCreateOptions(CommonOptions):
    physical_volume_names: Optional[PhysicalVolumeNames] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "pvcreate"
    render_order: ClassVar[Tuple[str, ...]] = ("physical_volume_names", "force")

    def validate(self) -> None:
        self.require("physical_volume_names")


@dataclass
class PVRemoveOptions(CommonOptions):
    physical_volume_names: Optional[PhysicalVolumeNames] = None
    force: Optional[Force] = None

    command: ClassVar[str] = "pvremove"
    render_order: ClassVar[Tuple[str, ...]] = ("physical_volume_names", "force")

    def validate(self) -> None:
        self.require("physical_volume_names")
