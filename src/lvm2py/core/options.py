"""
Typed option values and the options-struct aggregation framework.

An *option* is a small typed value (a volume group name, a size, a force
flag, ...) that can render itself into `Arguments` and knows which field of an
options struct it fills. An *options struct* is a dataclass per LVM command.
Building arguments for a command is always the same three steps:

1.  aggregate: every option is applied onto a fresh struct, later options of
    the same kind replacing earlier ones (last wins);
2.  validate: the struct checks its invariants and raises `ValidationError`;
3.  render: fields are rendered in the struct's fixed ``render_order``,
    followed by the common options.

No `Arguments` are produced for a struct that fails validation.
"""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass, fields
from fractions import Fraction
from typing import Any, ClassVar, Iterable, Iterator, Optional, Tuple

from lvm2py.core.arguments import Arguments
from lvm2py.core.errors import ValidationError


class Option(abc.ABC):
    """Base for option values; ``slot`` names the options-struct field it fills."""

    slot: ClassVar[str] = ""

    @abc.abstractmethod
    def apply_to_args(self, args: Arguments) -> None: ...

    def apply_to_options(self, target: "CommonOptions") -> None:
        if not any(f.name == self.slot for f in fields(target)):
            raise ValidationError(
                f"{type(self).__name__} is not supported by {target.command_name()}"
            )
        setattr(target, self.slot, self)


# Names


class _Name(str, Option):
    def apply_to_args(self, args: Arguments) -> None:
        if self:
            args.add(str(self))


class VolumeGroupName(_Name):
    slot = "volume_group_name"


class NewVolumeGroupName(_Name):
    slot = "new_volume_group_name"


class LogicalVolumeName(_Name):
    slot = "logical_volume_name"

    def apply_to_args(self, args: Arguments) -> None:
        if self:
            args.add_or_replace(f"--name={self}")


class NewLogicalVolumeName(_Name):
    slot = "new_logical_volume_name"


def qualified_lv_name(vg: Optional[str], lv: Optional[str]) -> str:
    """Render ``vg/lv``, or just ``lv`` when the volume group comes from ``LVM_VG_NAME``."""
    if vg:
        return f"{vg}/{lv}"
    return str(lv)


class _Names(tuple, Option):
    def __new__(cls, names: Iterable[str] = ()) -> Any:
        if isinstance(names, str):
            names = (names,)
        return super().__new__(cls, (str(n) for n in names))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"


class PhysicalVolumeNames(_Names):
    slot = "physical_volume_names"

    def apply_to_args(self, args: Arguments) -> None:
        args.add(*self)


def physical_volumes_from(*devices: str) -> PhysicalVolumeNames:
    return PhysicalVolumeNames(devices)


class Tags(_Names):
    slot = "tags"

    def apply_to_args(self, args: Arguments) -> None:
        for tag in self:
            args.add(f"--addtag={tag}")


class DelTags(_Names):
    slot = "del_tags"

    def apply_to_args(self, args: Arguments) -> None:
        for tag in self:
            args.add(f"--deltag={tag}")


class Devices(_Names):
    slot = "devices"

    def apply_to_args(self, args: Arguments) -> None:
        if self:
            args.add_or_replace(f"--devices={','.join(self)}")


class DevicesFile(_Name):
    slot = "devices_file"

    def apply_to_args(self, args: Arguments) -> None:
        if self:
            args.add_or_replace(f"--devicesfile={self}")


class Profile(_Name):
    slot = "profile"

    def apply_to_args(self, args: Arguments) -> None:
        if self:
            args.add_or_replace(f"--profile={self}")


# Switches


@dataclass(frozen=True)
class _Switch(Option):
    enabled: bool = True
    flag: ClassVar[str] = ""

    def __bool__(self) -> bool:
        return self.enabled

    def apply_to_args(self, args: Arguments) -> None:
        if self.enabled:
            args.add_or_replace(self.flag)
        else:
            args.remove(self.flag)


@dataclass(frozen=True)
class Force(_Switch):
    slot = "force"
    flag = "--force"


@dataclass(frozen=True)
class RemoveMissing(_Switch):
    slot = "remove_missing"
    flag = "--removemissing"


@dataclass(frozen=True)
class Verbose(_Switch):
    slot = "verbose"
    flag = "--verbose"


@dataclass(frozen=True)
class RequestConfirm(_Switch):
    """When not requested (the default), ``--yes`` answers every prompt."""

    slot = "request_confirm"
    enabled: bool = False

    def apply_to_args(self, args: Arguments) -> None:
        if self.enabled:
            args.remove("--yes")
        else:
            args.add_or_replace("--yes")


@dataclass(frozen=True)
class Activate(Option):
    slot = "activate"
    value: str = "y"

    YES: ClassVar["Activate"]
    NO: ClassVar["Activate"]
    AUTO: ClassVar["Activate"]

    def __post_init__(self) -> None:
        if self.value not in {"y", "n", "ay"}:
            raise ValidationError(f"invalid activation mode {self.value!r}")

    def apply_to_args(self, args: Arguments) -> None:
        args.add_or_replace(f"--activate={self.value}")


Activate.YES = Activate("y")
Activate.NO = Activate("n")
Activate.AUTO = Activate("ay")


# Sizes

_UNIT_BYTES = {
    "b": 1,
    "s": 512,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
    "p": 1024**5,
    "e": 1024**6,
}
_SIZE_RE = re.compile(r"^([+-])?(\d+(?:\.\d+)?)\s*([bskmgtpe])?$", re.IGNORECASE)
_EXTENTS_RE = re.compile(r"^([+-])?(\d+)(?:%(FREE|VG|PVS|ORIGIN))?$", re.IGNORECASE)


@dataclass(frozen=True)
class Size(Option):
    """
    A size in bytes. ``sign`` is ``"+"`` or ``"-"`` for relative resizes.

    `parse` accepts LVM's unit suffixes (case-insensitive, powers of 1024,
    ``s`` for 512-byte sectors); a bare number is in mebibytes as with LVM.
    """

    slot = "size"
    flag: ClassVar[str] = "--size"
    bytes: int = 0
    sign: str = ""

    @classmethod
    def parse(cls, raw: str) -> "Size":
        match = _SIZE_RE.match(str(raw).strip())
        if not match:
            raise ValidationError(f"invalid size {raw!r}")
        sign, number, unit = match.groups()
        value = Fraction(number) * _UNIT_BYTES[(unit or "m").lower()]
        if value.denominator != 1:
            raise ValidationError(f"size {raw!r} is not a whole number of bytes")
        return cls(bytes=int(value), sign=sign or "")

    def round_up(self, multiple: int) -> "Size":
        return type(self)(bytes=-(-self.bytes // multiple) * multiple, sign=self.sign)

    def round_down(self, multiple: int) -> "Size":
        return type(self)(bytes=self.bytes // multiple * multiple, sign=self.sign)

    def apply_to_args(self, args: Arguments) -> None:
        args.add_or_replace(f"{self.flag}={self.sign}{self.bytes}b")


@dataclass(frozen=True)
class PhysicalExtentSize(Size):
    slot = "physical_extent_size"
    flag = "--physicalextentsize"


@dataclass(frozen=True)
class Extents(Option):
    """A number of extents, optionally a percentage of FREE, VG, PVS or ORIGIN."""

    slot = "extents"
    value: int = 0
    percent: Optional[str] = None
    sign: str = ""

    @classmethod
    def parse(cls, raw: str) -> "Extents":
        match = _EXTENTS_RE.match(str(raw).strip())
        if not match:
            raise ValidationError(f"invalid extents {raw!r}")
        sign, number, percent = match.groups()
        return cls(
            value=int(number),
            percent=percent.upper() if percent else None,
            sign=sign or "",
        )

    def to_size(self, extent_bytes: int) -> Size:
        if self.percent:
            raise ValidationError(f"cannot convert relative extents {self} to a size")
        return Size(bytes=self.value * extent_bytes, sign=self.sign)

    def __str__(self) -> str:
        suffix = f"%{self.percent}" if self.percent else ""
        return f"{self.sign}{self.value}{suffix}"

    def apply_to_args(self, args: Arguments) -> None:
        args.add_or_replace(f"--extents={self}")


# Option structs


def _flatten(opts: Iterable[Any]) -> Iterator[Any]:
    for opt in opts:
        if opt is None:
            continue
        if isinstance(opt, (list, tuple)) and not isinstance(opt, Option):
            yield from _flatten(opt)
        else:
            yield opt


@dataclass
class CommonOptions:
    """Options accepted by every LVM command, rendered after command specific ones."""

    devices: Optional[Devices] = None
    devices_file: Optional[DevicesFile] = None
    profile: Optional[Profile] = None
    verbose: Optional[Verbose] = None
    request_confirm: Optional[RequestConfirm] = None

    command: ClassVar[str] = ""
    render_order: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def command_name(cls) -> str:
        return cls.command or cls.__name__

    def apply_to_options(self, target: "CommonOptions") -> None:
        if type(self) is CommonOptions:
            for f in fields(CommonOptions):
                value = getattr(self, f.name)
                if value is not None:
                    setattr(target, f.name, value)
        elif type(target) is type(self):
            for f in fields(self):
                setattr(target, f.name, getattr(self, f.name))
        else:
            raise ValidationError(
                f"{type(self).__name__} is not supported by {target.command_name()}"
            )

    @classmethod
    def from_options(cls, *opts: Any) -> Any:
        """Aggregate ``opts`` onto a fresh struct without validating it."""
        options = cls()
        for opt in _flatten(opts):
            apply = getattr(opt, "apply_to_options", None)
            if apply is None:
                raise ValidationError(
                    f"unsupported option {opt!r} ({type(opt).__name__}) "
                    f"for {cls.command_name()}"
                )
            apply(options)
        return options

    @classmethod
    def compose(cls, *opts: Any) -> Tuple[Any, Arguments]:
        """Aggregate, validate and render ``opts``; return the struct and its arguments."""
        options = cls.from_options(*opts)
        options.validate()
        args = Arguments()
        options.apply_to_args(args)
        return options, args

    @classmethod
    def as_args(cls, *opts: Any) -> Arguments:
        return cls.compose(*opts)[1]

    def validate(self) -> None:
        pass

    def apply_to_args(self, args: Arguments) -> None:
        for name in self.render_order:
            value = getattr(self, name)
            if value is not None:
                value.apply_to_args(args)
        self.apply_common_args(args)

    def apply_common_args(self, args: Arguments) -> None:
        for value in (
            self.devices,
            self.devices_file,
            self.profile,
            self.verbose,
            self.request_confirm or RequestConfirm(),
        ):
            if value is not None:
                value.apply_to_args(args)

    def require(self, *names: str) -> None:
        for name in names:
            if not getattr(self, name):
                raise ValidationError(
                    f"{_display(name)} is required for {self.command_name()}"
                )


def _display(field_name: str) -> str:
    return "".join(part.capitalize() for part in field_name.split("_"))
