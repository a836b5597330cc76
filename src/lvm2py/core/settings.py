"""Process-wide lvm2py settings read from ``LVM2PY_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "")
    if raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if raw == "":
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name, "").strip()
    return raw or default


@dataclass(frozen=True)
class Lvm2PySettings:
    lvm_binary: str = "lvm"
    nsenter_path: str = "/usr/bin/nsenter"
    use_standard_locale: bool = False
    wait_delay_seconds: float = 0.0

    @classmethod
    def from_env(cls) -> "Lvm2PySettings":
        return cls(
            lvm_binary=_env_str("LVM2PY_LVM_BINARY", "lvm"),
            nsenter_path=_env_str("LVM2PY_NSENTER_PATH", "/usr/bin/nsenter"),
            use_standard_locale=_env_bool("LVM2PY_USE_STANDARD_LOCALE", False),
            wait_delay_seconds=_env_float("LVM2PY_WAIT_DELAY_SECONDS", 0.0),
        )
