"""
lvm2py: run LVM2 commands from Python, on the host or from inside a container.

This package provides the public API: execution contexts, typed options, the
LVM client with its decorators, and the error predicates used to classify
LVM failures.
"""

# Context
from lvm2py.core.context import (
    BACKGROUND,
    CancelToken,
    ExecutionContext,
    default_wait_delay,
    set_default_wait_delay,
    set_use_standard_locale,
    use_standard_locale,
)
from lvm2py.core.containerized import is_containerized, will_use_nsenter

# Errors
from lvm2py.core.errors import (
    ExecutionError,
    LockingError,
    Lvm2Error,
    ValidationError,
    as_lvm_stderr,
    is_already_exists,
    is_logical_volume_not_found,
    is_not_found,
    is_skippable_error_for_cleanup,
    is_volume_group_not_found,
)

# Options
from lvm2py.core.options import (
    Activate,
    DelTags,
    Devices,
    DevicesFile,
    Extents,
    Force,
    LogicalVolumeName,
    NewLogicalVolumeName,
    NewVolumeGroupName,
    PhysicalExtentSize,
    PhysicalVolumeNames,
    Profile,
    RemoveMissing,
    RequestConfirm,
    Size,
    Tags,
    Verbose,
    VolumeGroupName,
    physical_volumes_from,
)

# Clients
from lvm2py.client import (
    Client,
    CustomEnvironmentClient,
    DefaultVolumeGroupClient,
    LockingClient,
    LVMClient,
    NoNsenterClient,
    WaitDelayClient,
    new_client,
    new_locking_client,
    with_no_nsenter,
)

# Models
from lvm2py.models import LogicalVolume, PhysicalVolume, Version, VolumeGroup

__all__ = [
    # Context
    "BACKGROUND",
    "CancelToken",
    "ExecutionContext",
    "default_wait_delay",
    "set_default_wait_delay",
    "set_use_standard_locale",
    "use_standard_locale",
    "is_containerized",
    "will_use_nsenter",
    # Errors
    "Lvm2Error",
    "ExecutionError",
    "LockingError",
    "ValidationError",
    "as_lvm_stderr",
    "is_already_exists",
    "is_logical_volume_not_found",
    "is_not_found",
    "is_skippable_error_for_cleanup",
    "is_volume_group_not_found",
    # Options
    "Activate",
    "DelTags",
    "Devices",
    "DevicesFile",
    "Extents",
    "Force",
    "LogicalVolumeName",
    "NewLogicalVolumeName",
    "NewVolumeGroupName",
    "PhysicalExtentSize",
    "PhysicalVolumeNames",
    "Profile",
    "RemoveMissing",
    "RequestConfirm",
    "Size",
    "Tags",
    "Verbose",
    "VolumeGroupName",
    "physical_volumes_from",
    # Clients
    "Client",
    "LVMClient",
    "new_client",
    "CustomEnvironmentClient",
    "DefaultVolumeGroupClient",
    "NoNsenterClient",
    "WaitDelayClient",
    "with_no_nsenter",
    "LockingClient",
    "new_locking_client",
    # Models
    "LogicalVolume",
    "PhysicalVolume",
    "Version",
    "VolumeGroup",
]
