"""
Tests for the locking client.

The wrapped client is a mock whose side effects record how many calls are in
flight at once, so mutual exclusion (and the lack of it across resources) can
be asserted without running LVM.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest

from lvm2py.client import (
    ORPHANS,
    Client,
    DefaultVolumeGroupClient,
    LockingClient,
    ResourceLock,
    ResourceLocks,
)
from lvm2py.core.context import BACKGROUND, CancelToken
from lvm2py.core.errors import ExecutionError, LockingError
from lvm2py.core.options import (
    Activate,
    LogicalVolumeName,
    NewVolumeGroupName,
    Size,
    VolumeGroupName,
    physical_volumes_from,
)


class InFlight:
    def __init__(self, hold=0.05):
        self.hold = hold
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, *opts, ctx=None):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.hold)
        with self._lock:
            self.active -= 1


def _run_threads(target, count):
    threads = [threading.Thread(target=target) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)


def _cancelling(timeout=0.1):
    return BACKGROUND.with_cancel_token(CancelToken(timeout=timeout))


@pytest.fixture
def inner():
    return MagicMock(spec=Client)


@pytest.fixture
def locking(inner):
    return LockingClient(inner)


def test_same_volume_group_calls_never_overlap(inner, locking):
    in_flight = InFlight()
    inner.vg_change.side_effect = in_flight

    _run_threads(lambda: locking.vg_change(VolumeGroupName("vg1"), Activate.YES), 4)

    assert inner.vg_change.call_count == 4
    assert in_flight.peak == 1


def test_lv_calls_serialise_on_their_volume_group(inner, locking):
    in_flight = InFlight()
    inner.lv_create.side_effect = in_flight
    inner.lv_remove.side_effect = in_flight

    threads = [
        threading.Thread(
            target=locking.lv_create,
            args=(VolumeGroupName("vg1"), LogicalVolumeName("a"), Size.parse("1g")),
        ),
        threading.Thread(
            target=locking.lv_remove,
            args=(VolumeGroupName("vg1"), LogicalVolumeName("b")),
        ),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert in_flight.peak == 1


def test_different_volume_groups_run_in_parallel(inner, locking):
    barrier = threading.Barrier(2, timeout=5)
    errors = []

    def meet(*opts, ctx=None):
        try:
            barrier.wait()
        except threading.BrokenBarrierError as e:
            errors.append(e)

    inner.vg_change.side_effect = meet
    threads = [
        threading.Thread(target=locking.vg_change, args=(VolumeGroupName(name), Activate.YES))
        for name in ("vg1", "vg2")
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert errors == []


def test_read_only_calls_never_lock(inner, locking):
    locking.locks.get("vg1").acquire()
    inner.vgs.return_value = []
    inner.lvs.return_value = []

    assert locking.vgs(VolumeGroupName("vg1")) == []
    assert locking.lvs(VolumeGroupName("vg1")) == []
    locking.version()
    locking.pvs()

    inner.vgs.assert_called_once()
    inner.version.assert_called_once()


def test_cancel_while_waiting_raises_locking_error(inner, locking):
    locking.locks.get("vg1").acquire()

    with pytest.raises(LockingError) as excinfo:
        locking.vg_remove(VolumeGroupName("vg1"), ctx=_cancelling())

    assert excinfo.value.resource == "vg1"
    inner.vg_remove.assert_not_called()


def test_physical_volume_operations_lock_orphans(inner, locking):
    locking.locks.get(ORPHANS).acquire()

    with pytest.raises(LockingError):
        locking.pv_create(physical_volumes_from("/dev/loop0"), ctx=_cancelling())
    with pytest.raises(LockingError):
        locking.vg_create(
            VolumeGroupName("vg1"), physical_volumes_from("/dev/loop0"), ctx=_cancelling()
        )
    inner.pv_create.assert_not_called()
    inner.vg_create.assert_not_called()


def test_vg_rename_locks_both_names(inner, locking):
    locking.locks.get("vg2").acquire()

    with pytest.raises(LockingError):
        locking.vg_rename(VolumeGroupName("vg1"), NewVolumeGroupName("vg2"), ctx=_cancelling())

    assert locking.locks.get("vg1").locked() is False


def test_lv_calls_fall_back_to_default_volume_group(inner, locking):
    locking.locks.get("vg1").acquire()
    ctx = _cancelling().with_default_volume_group("vg1")

    with pytest.raises(LockingError):
        locking.lv_remove(LogicalVolumeName("lv1"), ctx=ctx)


def test_locks_are_released_when_the_delegate_fails(inner, locking):
    inner.vg_change.side_effect = ExecutionError(["lvm", "vgchange"], 5)

    with pytest.raises(ExecutionError):
        locking.vg_change(VolumeGroupName("vg1"), Activate.YES)

    assert locking.locks.get("vg1").locked() is False


def test_waiter_acquires_after_release(inner, locking):
    lock = locking.locks.get("vg1")
    lock.acquire()
    threading.Timer(0.1, lock.release).start()

    locking.vg_change(VolumeGroupName("vg1"), Activate.YES)

    inner.vg_change.assert_called_once()
    assert lock.locked() is False


def test_hold_acquires_sorted_unique_names():
    locks = ResourceLocks()

    with locks.hold("vg2", "vg1", "vg2", "") as held:
        assert held == ["vg1", "vg2"]
        assert locks.get("vg1").locked()
        assert locks.get("vg2").locked()

    assert not locks.get("vg1").locked()
    assert not locks.get("vg2").locked()


def test_release_of_unlocked_resource_is_an_error():
    with pytest.raises(RuntimeError):
        ResourceLock("vg1").release()


def test_same_group_intervals_are_sequential_while_other_group_overlaps(inner, locking):
    intervals = {}
    guard = threading.Lock()

    def record(*opts, ctx=None):
        start = time.monotonic()
        time.sleep(0.2)
        with guard:
            intervals.setdefault(str(opts[0]), []).append((start, time.monotonic()))

    inner.vg_change.side_effect = record
    threads = [
        threading.Thread(target=locking.vg_change, args=(VolumeGroupName(name), Activate.YES))
        for name in ("vg1", "vg1", "vg2")
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    (a_start, a_end), (b_start, b_end) = sorted(intervals["vg1"])
    assert a_end <= b_start
    ((c_start, c_end),) = intervals["vg2"]
    assert c_start < max(a_end, b_end) and c_end > min(a_start, b_start)


def test_default_volume_group_from_wrapped_decorator_is_locked(inner):
    in_flight = InFlight()
    inner.lv_create.side_effect = in_flight
    locking = LockingClient(DefaultVolumeGroupClient(inner, "vg1"))

    threads = [
        threading.Thread(
            target=locking.lv_create,
            args=(LogicalVolumeName(name), Size.parse("1g")),
        )
        for name in ("a", "b")
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert inner.lv_create.call_count == 2
    assert in_flight.peak == 1


def test_wrapped_default_volume_group_blocks_on_held_lock(inner):
    locking = LockingClient(DefaultVolumeGroupClient(inner, "vg1"))
    locking.locks.get("vg1").acquire()

    with pytest.raises(LockingError) as excinfo:
        locking.lv_remove(LogicalVolumeName("lv1"), ctx=_cancelling())

    assert excinfo.value.resource == "vg1"
    inner.lv_remove.assert_not_called()
