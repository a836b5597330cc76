import json

import pytest

from lvm2py.client import LVMClient, new_client
from lvm2py.core.context import BACKGROUND
from lvm2py.core.errors import (
    ExecutionError,
    ValidationError,
    is_skippable_error_for_cleanup,
    is_volume_group_not_found,
)
from lvm2py.core.options import (
    Activate,
    Extents,
    Force,
    LogicalVolumeName,
    NewLogicalVolumeName,
    NewVolumeGroupName,
    RemoveMissing,
    Size,
    Tags,
    VolumeGroupName,
    physical_volumes_from,
)

VG_REPORT = json.dumps(
    {
        "report": [
            {
                "vg": [
                    {
                        "vg_name": "vg1",
                        "vg_uuid": "abc",
                        "vg_size": "10737418240",
                        "vg_free": "5368709120",
                        "vg_extent_size": "4194304",
                        "vg_extent_count": "2560",
                        "vg_free_count": "1280",
                        "pv_count": "1",
                        "lv_count": "2",
                        "vg_tags": "a,b",
                    }
                ]
            }
        ]
    }
)


def test_vg_create_argv(client, recorder):
    client.vg_create(VolumeGroupName("vg1"), physical_volumes_from("/dev/loop0"))

    assert recorder.last.argv == ["lvm", "vgcreate", "vg1", "/dev/loop0", "--yes"]


def test_vg_operations_argv(client, recorder):
    client.vg_remove(VolumeGroupName("vg1"), Force())
    client.vg_extend(VolumeGroupName("vg1"), physical_volumes_from("/dev/loop1"))
    client.vg_reduce(VolumeGroupName("vg1"), RemoveMissing())
    client.vg_rename(VolumeGroupName("vg1"), NewVolumeGroupName("vg2"))
    client.vg_change(VolumeGroupName("vg2"), Tags(["t"]))

    assert [c.args for c in recorder.commands] == [
        ["vgremove", "vg1", "--force", "--yes"],
        ["vgextend", "vg1", "/dev/loop1", "--yes"],
        ["vgreduce", "--removemissing", "vg1", "--yes"],
        ["vgrename", "vg1", "vg2", "--yes"],
        ["vgchange", "vg2", "--addtag=t", "--yes"],
    ]


def test_lv_operations_argv(client, recorder):
    client.lv_create(VolumeGroupName("vg1"), LogicalVolumeName("lv1"), Extents.parse("100%FREE"))
    client.lv_extend(VolumeGroupName("vg1"), LogicalVolumeName("lv1"), Size(bytes=4096, sign="+"))
    client.lv_change(VolumeGroupName("vg1"), LogicalVolumeName("lv1"), Activate.NO)
    client.lv_rename(VolumeGroupName("vg1"), LogicalVolumeName("lv1"), NewLogicalVolumeName("lv2"))
    client.lv_remove(VolumeGroupName("vg1"), LogicalVolumeName("lv2"))

    assert [c.args for c in recorder.commands] == [
        ["lvcreate", "vg1", "--name=lv1", "--extents=100%FREE", "--yes"],
        ["lvextend", "vg1/lv1", "--size=+4096b", "--yes"],
        ["lvchange", "vg1/lv1", "--activate=n", "--yes"],
        ["lvrename", "vg1", "lv1", "lv2", "--yes"],
        ["lvremove", "vg1/lv2", "--yes"],
    ]


def test_pv_operations_argv(client, recorder):
    client.pv_create(physical_volumes_from("/dev/loop0", "/dev/loop1"))
    client.pv_remove(physical_volumes_from("/dev/loop0"), Force())

    assert [c.args for c in recorder.commands] == [
        ["pvcreate", "/dev/loop0", "/dev/loop1", "--yes"],
        ["pvremove", "/dev/loop0", "--force", "--yes"],
    ]


def test_default_volume_group_is_exported(client, recorder):
    ctx = BACKGROUND.with_default_volume_group("vg1")

    client.lv_create(LogicalVolumeName("lv1"), Size.parse("1g"), ctx=ctx)

    assert recorder.last.args == ["lvcreate", "--name=lv1", "--size=1073741824b", "--yes"]
    assert "LVM_VG_NAME=vg1" in recorder.last.env


def test_vgs_requests_json_report(recorder):
    recorder.stdout = VG_REPORT
    client = LVMClient(lvm_binary="lvm", runner=recorder)

    groups = client.vgs()

    args = recorder.last.args
    assert args[0] == "vgs"
    assert "--reportformat=json" in args
    assert "--units=b" in args
    assert "--nosuffix" in args
    assert any(a.startswith("--options=vg_name,") for a in args)
    assert len(groups) == 1
    assert groups[0].name == "vg1"
    assert groups[0].free == 5368709120
    assert groups[0].tags == ["a", "b"]


def test_vg_returns_none_for_empty_report(client, recorder):
    recorder.stdout = json.dumps({"report": [{"vg": []}]})

    assert client.vg(VolumeGroupName("missing")) is None


def test_vg_requires_a_name(client, recorder):
    with pytest.raises(ValidationError):
        client.vg()

    assert recorder.commands == []


def test_validation_errors_start_no_process(client, recorder):
    with pytest.raises(ValidationError):
        client.vg_create(VolumeGroupName("vg1"))
    with pytest.raises(ValidationError):
        client.lv_create(LogicalVolumeName("lv1"), Size.parse("1g"), Extents(value=1))

    assert recorder.commands == []


def test_execution_errors_are_tagged(recorder):
    recorder.error = ExecutionError(
        ["lvm", "vgremove", "vg1", "--yes"], 5, "", '  Volume group "vg1" not found\n'
    )
    client = LVMClient(lvm_binary="lvm", runner=recorder)

    with pytest.raises(ExecutionError) as excinfo:
        client.vg_remove(VolumeGroupName("vg1"))

    err = excinfo.value
    assert err.operation == "vgremove"
    assert err.resource == "vg1"
    assert str(err).startswith("vgremove on 'vg1' failed")
    assert is_volume_group_not_found(err)
    assert is_skippable_error_for_cleanup(err)


def test_lv_errors_name_the_qualified_volume(recorder):
    recorder.error = ExecutionError(["lvm"], 5, "", "boom")
    client = LVMClient(lvm_binary="lvm", runner=recorder)

    with pytest.raises(ExecutionError) as excinfo:
        client.lv_remove(LogicalVolumeName("lv1"), ctx=BACKGROUND.with_default_volume_group("vg1"))

    assert excinfo.value.resource == "vg1/lv1"


def test_version(recorder):
    recorder.stdout = (
        "  LVM version:     2.03.16(2) (2022-05-18)\n"
        "  Library version: 1.02.185 (2022-05-18)\n"
        "  Driver version:  4.47.0\n"
    )
    client = LVMClient(lvm_binary="lvm", runner=recorder)

    version = client.version()

    assert recorder.last.args == ["version"]
    assert version.lvm_version == "2.03.16(2) (2022-05-18)"
    assert version.driver_version == "4.47.0"


def test_lvm_binary_from_settings(monkeypatch):
    monkeypatch.setenv("LVM2PY_LVM_BINARY", "/sbin/lvm")

    assert new_client().lvm_binary == "/sbin/lvm"
    assert new_client("lvm.static").lvm_binary == "lvm.static"
