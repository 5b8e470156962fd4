"""Job file loading.

The job file is a Nomad job in its JSON form (what ``nomad job run -output``
prints) or the same tree written as YAML. Keys may use Nomad's PascalCase
(``TaskGroups``, ``PortLabel``) or snake_case (``task_groups``,
``port_label``). Only the parts the bridge needs are modelled; everything
else in the file is ignored.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import JobSpecError

_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(raw: str) -> int:
    """Parse a Go-style duration ("10s", "1m30s", "250ms") into nanoseconds."""
    text = raw.strip()
    sign = 1
    if text[:1] in {"-", "+"}:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise ValueError(f"invalid duration {raw!r}")
    total = 0.0
    pos = 0
    for m in _DURATION_PART_RE.finditer(text):
        if m.start() != pos:
            raise ValueError(f"invalid duration {raw!r}")
        total += float(m.group(1)) * _NS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        raise ValueError(f"invalid duration {raw!r}")
    return sign * int(round(total))


def _with_fraction(value: int, unit: int, digits: int) -> str:
    whole, rem = divmod(value, unit)
    if not rem:
        return str(whole)
    return f"{whole}.{str(rem).zfill(digits).rstrip('0')}"


def format_duration(ns: int) -> str:
    """Render nanoseconds the way Go's time.Duration.String does ("1m30s", "500ms")."""
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    u = abs(ns)
    if u < 1_000:
        return f"{sign}{u}ns"
    if u < 1_000_000:
        return f"{sign}{_with_fraction(u, 1_000, 3)}µs"
    if u < 1_000_000_000:
        return f"{sign}{_with_fraction(u, 1_000_000, 6)}ms"

    secs, frac = divmod(u, 1_000_000_000)
    hours, secs = divmod(secs, 3600)
    minutes, secs = divmod(secs, 60)
    out = _with_fraction(secs * 1_000_000_000 + frac, 1_000_000_000, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{out}"
    if minutes:
        return f"{sign}{minutes}m{out}"
    return sign + out


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _Decl(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class CheckDecl(_Decl):
    id: str = Field("", validation_alias=_alias("Id", "ID", "id", "check_id"))
    name: str = Field("", validation_alias=_alias("Name", "name"))
    type: str = Field("", validation_alias=_alias("Type", "type"))
    port_label: str = Field("", validation_alias=_alias("PortLabel", "port_label", "port"))
    path: str = Field("", validation_alias=_alias("Path", "path"))
    interval_ns: int = Field(0, validation_alias=_alias("Interval", "interval", "interval_ns"))
    timeout_ns: int | None = Field(None, validation_alias=_alias("Timeout", "timeout", "timeout_ns"))
    method: str = Field("", validation_alias=_alias("Method", "method"))

    @field_validator("id", "name", "type", "port_label", "path", "method", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("interval_ns", "timeout_ns", mode="before")
    @classmethod
    def _duration(cls, v: Any) -> Any:
        # Nomad JSON carries nanoseconds; hand-written files usually carry "10s".
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("interval_ns", mode="before")
    @classmethod
    def _null_interval(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def interval(self) -> str:
        return format_duration(self.interval_ns)

    @property
    def timeout(self) -> str | None:
        if self.timeout_ns is None:
            return None
        return format_duration(self.timeout_ns)


class ServiceDecl(_Decl):
    name: str = Field(..., validation_alias=_alias("Name", "name"))
    tags: list[str] = Field(default_factory=list, validation_alias=_alias("Tags", "tags"))
    port_label: str = Field("", validation_alias=_alias("PortLabel", "port_label", "port"))
    checks: list[CheckDecl] = Field(default_factory=list, validation_alias=_alias("Checks", "checks", "check"))

    @field_validator("port_label", mode="before")
    @classmethod
    def _port_as_str(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("tags", "checks", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v


class Task(_Decl):
    name: str = Field(..., validation_alias=_alias("Name", "name"))
    services: list[ServiceDecl] = Field(default_factory=list, validation_alias=_alias("Services", "services", "service"))

    @field_validator("services", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v


class TaskGroup(_Decl):
    name: str = Field(..., validation_alias=_alias("Name", "name"))
    tasks: list[Task] = Field(default_factory=list, validation_alias=_alias("Tasks", "tasks", "task"))

    @field_validator("tasks", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v


class JobSpec(_Decl):
    id: str | None = Field(None, validation_alias=_alias("ID", "Id", "id"))
    name: str | None = Field(None, validation_alias=_alias("Name", "name"))
    task_groups: list[TaskGroup] = Field(
        default_factory=list, validation_alias=_alias("TaskGroups", "task_groups", "groups", "group")
    )

    @field_validator("task_groups", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def label(self) -> str:
        return self.name or self.id or ""


def _load_document(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        pass
    return yaml.safe_load(text)


def parse_job(data: Any) -> JobSpec:
    """Validate an already-decoded job document (optionally wrapped in a "Job" key)."""
    if isinstance(data, dict):
        for key in ("Job", "job"):
            if isinstance(data.get(key), dict):
                data = data[key]
                break
    if not isinstance(data, dict):
        raise JobSpecError(f"Job document must be a mapping, got {type(data).__name__}")
    try:
        return JobSpec.model_validate(data)
    except ValidationError as e:
        raise JobSpecError(f"Invalid job document: {e}") from e


def parse_file(path: str | Path) -> JobSpec:
    """Read and validate a job file. Any failure raises JobSpecError."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise JobSpecError(f"Cannot read job file {path}: {e}") from e
    try:
        data = _load_document(text)
    except yaml.YAMLError as e:
        raise JobSpecError(f"Cannot parse job file {path}: {e}") from e
    return parse_job(data)
