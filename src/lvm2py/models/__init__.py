"""
The `models` module defines the typed results returned by lvm2py clients.
"""

from __future__ import annotations

from lvm2py.models.report import (
    LogicalVolume,
    PhysicalVolume,
    Version,
    VolumeGroup,
    parse_report,
    parse_version,
)

__all__ = [
    "LogicalVolume",
    "PhysicalVolume",
    "Version",
    "VolumeGroup",
    "parse_report",
    "parse_version",
]
