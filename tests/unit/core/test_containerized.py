import logging
import threading
import time

from lvm2py.core import containerized
from lvm2py.core.containerized import ContainerizationDetector, env_probe, path_probe
from lvm2py.core.context import BACKGROUND


class CountingProbe:
    def __init__(self, result=False, delay=0.0, error=None):
        self.result = result
        self.delay = delay
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def test_detection_is_computed_once():
    probe = CountingProbe(result=True)
    detector = ContainerizationDetector([("probe", probe)])

    assert detector.computed is False
    assert detector.detect() is True
    assert detector.detect() is True
    assert detector.detect(BACKGROUND) is True
    assert detector.computed is True
    assert probe.calls == 1


def test_concurrent_first_calls_probe_once():
    probe = CountingProbe(result=True, delay=0.05)
    detector = ContainerizationDetector([("probe", probe)])
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(detector.detect())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == [True] * 8
    assert probe.calls == 1


def test_first_positive_signal_short_circuits():
    first = CountingProbe(result=True)
    second = CountingProbe(result=True)
    detector = ContainerizationDetector([("first", first), ("second", second)])

    assert detector.detect() is True
    assert first.calls == 1
    assert second.calls == 0


def test_probe_errors_count_as_negative():
    failing = CountingProbe(error=PermissionError("denied"))
    positive = CountingProbe(result=True)
    detector = ContainerizationDetector([("failing", failing), ("positive", positive)])

    assert detector.detect() is True
    assert positive.calls == 1


def test_no_signals_means_not_containerized():
    detector = ContainerizationDetector(
        [("a", CountingProbe()), ("b", CountingProbe(error=OSError("gone")))]
    )

    assert detector.detect() is False


def test_detection_logged_once(caplog):
    detector = ContainerizationDetector([("probe", CountingProbe(result=True))])

    with caplog.at_level(logging.INFO, logger="lvm2py.core.containerized"):
        detector.detect()
        detector.detect()

    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    assert messages == ["lvm2py is running in a container environment"]


def test_path_probe(tmp_path):
    marker = tmp_path / ".dockerenv"
    marker.touch()

    assert path_probe(str(marker))() is True
    assert path_probe(str(tmp_path / "missing"))() is False


def test_env_probe(monkeypatch):
    monkeypatch.setenv("LVM2PY_TEST_SIGNAL", "1")
    assert env_probe("LVM2PY_TEST_SIGNAL")() is True

    monkeypatch.delenv("LVM2PY_TEST_SIGNAL")
    assert env_probe("LVM2PY_TEST_SIGNAL")() is False


def test_will_use_nsenter_when_containerized(containerized_host):
    assert containerized.will_use_nsenter() is True
    assert containerized.will_use_nsenter(BACKGROUND) is True


def test_force_no_nsenter_disables_wrapping(containerized_host):
    ctx = BACKGROUND.with_force_no_nsenter(True)

    assert containerized.will_use_nsenter(ctx) is False


def test_will_use_nsenter_outside_container():
    assert containerized.will_use_nsenter() is False


def test_default_signals_and_order():
    assert [name for name, _ in containerized.DEFAULT_PROBES] == [
        "/.dockerenv",
        "/.containerenv",
        "KUBERNETES_SERVICE_HOST",
        "/var/run/secrets/kubernetes.io/serviceaccount/token",
    ]


def test_default_signals_check_their_targets_in_order(monkeypatch):
    stat_calls = []

    def missing(path, *args, **kwargs):
        stat_calls.append(path)
        raise FileNotFoundError(path)

    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.setattr(containerized.os, "stat", missing)

    assert ContainerizationDetector().detect() is False
    assert stat_calls == [
        "/.dockerenv",
        "/.containerenv",
        "/var/run/secrets/kubernetes.io/serviceaccount/token",
    ]


def _missing_path(path, *args, **kwargs):
    raise FileNotFoundError(path)


def test_kubernetes_service_host_is_detected(monkeypatch):
    monkeypatch.setattr(containerized.os, "stat", _missing_path)
    monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")

    assert ContainerizationDetector().detect() is True


def test_marker_files_are_detected(tmp_path):
    marker = tmp_path / ".containerenv"
    marker.touch()
    detector = ContainerizationDetector(
        [
            ("dockerenv", path_probe(str(tmp_path / ".dockerenv"))),
            ("containerenv", path_probe(str(marker))),
        ]
    )

    assert detector.detect() is True
