"""
The `client` module exposes the LVM client, its option structs and the
decorators that layer execution settings and locking on top of it.
"""

from lvm2py.client.base import MUTATING_OPERATIONS, READ_ONLY_OPERATIONS, Client
from lvm2py.client.client import LVMClient, new_client
from lvm2py.client.decorators import (
    ContextDecoratorClient,
    CustomEnvironmentClient,
    DefaultVolumeGroupClient,
    NoNsenterClient,
    WaitDelayClient,
    with_no_nsenter,
)
from lvm2py.client.locking import (
    ORPHANS,
    LockingClient,
    ResourceLock,
    ResourceLocks,
    new_locking_client,
)

__all__ = [
    "Client",
    "LVMClient",
    "new_client",
    "MUTATING_OPERATIONS",
    "READ_ONLY_OPERATIONS",
    # Decorators
    "ContextDecoratorClient",
    "CustomEnvironmentClient",
    "DefaultVolumeGroupClient",
    "NoNsenterClient",
    "WaitDelayClient",
    "with_no_nsenter",
    # Locking
    "ORPHANS",
    "LockingClient",
    "ResourceLock",
    "ResourceLocks",
    "new_locking_client",
]
