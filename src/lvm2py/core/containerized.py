"""
Detection of container runtimes.

When lvm2py runs inside a container, LVM commands have to be executed in the
host's namespaces (see `lvm2py.core.command`). Detection is done once per
process: the first call probes a fixed list of signals, most specific first,
and every later call returns the memoised answer without touching the
filesystem again.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional, Sequence, Tuple

from lvm2py.core.context import ExecutionContext, should_force_no_nsenter

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]

DOCKER_ENV_FILE = "/.dockerenv"
CONTAINER_ENV_FILE = "/.containerenv"
KUBERNETES_SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"
SERVICE_ACCOUNT_TOKEN_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/token"


def path_probe(path: str) -> Probe:
    def probe() -> bool:
        try:
            os.stat(path)
        except OSError:
            return False
        return True

    return probe


def env_probe(name: str) -> Probe:
    def probe() -> bool:
        return name in os.environ

    return probe


DEFAULT_PROBES: Tuple[Tuple[str, Probe], ...] = (
    (DOCKER_ENV_FILE, path_probe(DOCKER_ENV_FILE)),
    (CONTAINER_ENV_FILE, path_probe(CONTAINER_ENV_FILE)),
    (KUBERNETES_SERVICE_HOST_ENV, env_probe(KUBERNETES_SERVICE_HOST_ENV)),
    (SERVICE_ACCOUNT_TOKEN_FILE, path_probe(SERVICE_ACCOUNT_TOKEN_FILE)),
)


class ContainerizationDetector:
    """
    Compute-once cell holding the containerization verdict.

    Parameters
    ----------
    probes : Optional[Sequence[Tuple[str, Probe]]]
        Named zero-argument predicates, tried in order until one returns True.
        Defaults to `DEFAULT_PROBES`. A probe raising `OSError` counts as a
        negative signal.
    """

    def __init__(self, probes: Optional[Sequence[Tuple[str, Probe]]] = None) -> None:
        self._probes = tuple(DEFAULT_PROBES if probes is None else probes)
        self._lock = threading.Lock()
        self._done = False
        self._value = False

    @property
    def computed(self) -> bool:
        return self._done

    def detect(self, ctx: Optional[ExecutionContext] = None) -> bool:
        if self._done:
            return self._value
        with self._lock:
            if not self._done:
                self._value = self._probe()
                self._done = True
                if self._value:
                    logger.info("lvm2py is running in a container environment")
        return self._value

    def _probe(self) -> bool:
        for name, probe in self._probes:
            try:
                found = probe()
            except OSError as e:
                logger.debug("containerization probe %s failed: %s", name, e)
                continue
            if found:
                logger.debug("containerization signal present: %s", name)
                return True
        return False


_DETECTOR = ContainerizationDetector()


def is_containerized(ctx: Optional[ExecutionContext] = None) -> bool:
    return _DETECTOR.detect(ctx)


def will_use_nsenter(ctx: Optional[ExecutionContext] = None) -> bool:
    """
    Whether commands built for ``ctx`` will be wrapped in nsenter.

    Useful for debugging: it reports what `build_command` will do without
    building or running anything.
    """
    return is_containerized(ctx) and not should_force_no_nsenter(ctx)
