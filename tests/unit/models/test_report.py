import json

import pytest

from lvm2py.core.errors import ValidationError
from lvm2py.models import (
    LogicalVolume,
    PhysicalVolume,
    VolumeGroup,
    parse_report,
    parse_version,
)


def _report(key, rows):
    return json.dumps({"report": [{key: rows}]})


def test_parse_logical_volumes():
    raw = _report(
        "lv",
        [
            {
                "lv_name": "data",
                "vg_name": "vg1",
                "lv_full_name": "vg1/data",
                "lv_path": "/dev/vg1/data",
                "lv_attr": "-wi-a-----",
                "lv_size": "1073741824",
                "lv_tags": "",
            },
            {"lv_name": "idle", "vg_name": "vg1", "lv_attr": "-wi-------", "lv_size": ""},
        ],
    )

    volumes = parse_report(raw, LogicalVolume)

    assert [v.name for v in volumes] == ["data", "idle"]
    assert volumes[0].size == 1073741824
    assert volumes[0].active is True
    assert volumes[0].tags == []
    assert volumes[1].active is False
    assert volumes[1].size == 0


def test_parse_physical_volumes_without_group():
    raw = _report("pv", [{"pv_name": "/dev/loop0", "vg_name": "", "pv_size": "104857600"}])

    (pv,) = parse_report(raw, PhysicalVolume)

    assert pv.name == "/dev/loop0"
    assert pv.vg_name == ""
    assert pv.size == 104857600


def test_unknown_columns_are_ignored():
    raw = _report("vg", [{"vg_name": "vg1", "vg_attr": "wz--n-", "vg_tags": "x"}])

    (vg,) = parse_report(raw, VolumeGroup)

    assert vg.name == "vg1"
    assert vg.tags == ["x"]


def test_models_accept_field_names():
    vg = VolumeGroup(name="vg1", size=10)

    assert vg.model_dump()["name"] == "vg1"


def test_empty_output_means_no_rows():
    assert parse_report("", VolumeGroup) == []
    assert parse_report(_report("vg", []), VolumeGroup) == []


def test_invalid_report_raises():
    with pytest.raises(ValidationError):
        parse_report("  WARNING: not json", VolumeGroup)


def test_report_columns_use_lvm_names():
    columns = LogicalVolume.report_columns().split(",")

    assert columns[0] == "lv_name"
    assert "lv_attr" in columns


def test_parse_version():
    version = parse_version(
        "  LVM version:     2.03.16(2) (2022-05-18)\n"
        "  Library version: 1.02.185 (2022-05-18)\n"
        "  Driver version:  4.47.0\n"
        "  Configuration:   ./configure --build=x86_64-linux-gnu\n"
    )

    assert version.lvm_version == "2.03.16(2) (2022-05-18)"
    assert version.library_version == "1.02.185 (2022-05-18)"
    assert version.configuration.startswith("./configure")


def test_large_byte_counts_are_exact():
    raw = _report(
        "pv",
        [{"pv_name": "/dev/big", "pv_size": "123456789123456789", "pv_free": "1024.00"}],
    )

    (pv,) = parse_report(raw, PhysicalVolume)

    assert pv.size == 123456789123456789
    assert pv.free == 1024
