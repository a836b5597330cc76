"""
Report models for ``vgs``, ``lvs`` and ``pvs`` JSON output.

Reports are requested with ``--reportformat=json --units=b --nosuffix`` so
every size arrives as a plain byte count string; the validators below turn
those strings, empty values and comma separated tag lists into typed fields.
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lvm2py.core.errors import ValidationError

ReportModel = TypeVar("ReportModel", bound="_ReportRow")


class _ReportRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    report_key: ClassVar[str] = ""

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def _split_tags(cls, value: Any) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [tag for tag in value.split(",") if tag]
        return list(value)

    @classmethod
    def report_columns(cls) -> str:
        return ",".join(
            field.alias or name for name, field in cls.model_fields.items()
        )


def _to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return int(Decimal(value))
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e


class VolumeGroup(_ReportRow):
    report_key: ClassVar[str] = "vg"

    name: str = Field(alias="vg_name")
    uuid: str = Field(default="", alias="vg_uuid")
    size: int = Field(default=0, alias="vg_size")
    free: int = Field(default=0, alias="vg_free")
    extent_size: int = Field(default=0, alias="vg_extent_size")
    extent_count: int = Field(default=0, alias="vg_extent_count")
    free_count: int = Field(default=0, alias="vg_free_count")
    pv_count: int = Field(default=0, alias="pv_count")
    lv_count: int = Field(default=0, alias="lv_count")
    tags: List[str] = Field(default_factory=list, alias="vg_tags")

    @field_validator(
        "size",
        "free",
        "extent_size",
        "extent_count",
        "free_count",
        "pv_count",
        "lv_count",
        mode="before",
    )
    @classmethod
    def _numbers(cls, value: Any) -> int:
        return _to_int(value)


class LogicalVolume(_ReportRow):
    report_key: ClassVar[str] = "lv"

    name: str = Field(alias="lv_name")
    uuid: str = Field(default="", alias="lv_uuid")
    full_name: str = Field(default="", alias="lv_full_name")
    path: str = Field(default="", alias="lv_path")
    vg_name: str = Field(default="", alias="vg_name")
    attr: str = Field(default="", alias="lv_attr")
    size: int = Field(default=0, alias="lv_size")
    tags: List[str] = Field(default_factory=list, alias="lv_tags")

    @field_validator("size", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> int:
        return _to_int(value)

    @property
    def active(self) -> bool:
        return len(self.attr) > 4 and self.attr[4] == "a"


class PhysicalVolume(_ReportRow):
    report_key: ClassVar[str] = "pv"

    name: str = Field(alias="pv_name")
    uuid: str = Field(default="", alias="pv_uuid")
    vg_name: str = Field(default="", alias="vg_name")
    size: int = Field(default=0, alias="pv_size")
    free: int = Field(default=0, alias="pv_free")
    tags: List[str] = Field(default_factory=list, alias="pv_tags")

    @field_validator("size", "free", mode="before")
    @classmethod
    def _numbers(cls, value: Any) -> int:
        return _to_int(value)


def parse_report(raw: str, model: Type[ReportModel]) -> List[ReportModel]:
    """
    Parse the JSON report printed by ``vgs``/``lvs``/``pvs`` into ``model`` rows.

    Raises
    ------
    ValidationError
        If the output is not a JSON report.
    """
    if not raw.strip():
        return []
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"could not decode LVM report: {e}") from e
    rows: List[ReportModel] = []
    for section in document.get("report", []):
        for row in section.get(model.report_key, []):
            rows.append(model.model_validate(row))
    return rows


class Version(BaseModel):
    lvm_version: str = ""
    library_version: str = ""
    driver_version: str = ""
    configuration: str = ""


_VERSION_LINE = re.compile(r"^\s*([A-Za-z ]+?):\s*(.*?)\s*$")
_VERSION_KEYS: Dict[str, str] = {
    "LVM version": "lvm_version",
    "Library version": "library_version",
    "Driver version": "driver_version",
    "Configuration": "configuration",
}


def parse_version(raw: str) -> Version:
    values: Dict[str, Optional[str]] = {}
    for line in raw.splitlines():
        match = _VERSION_LINE.match(line)
        if match and match.group(1) in _VERSION_KEYS:
            values[_VERSION_KEYS[match.group(1)]] = match.group(2)
    return Version(**values)
