from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeAlias

from usagerecon.errors import InvalidAttributionID


class WorkspaceType(str, Enum):
    REGULAR = "regular"
    PREBUILD = "prebuild"
    PROBE = "probe"
    IMAGEBUILD = "imagebuild"


class AttributionKind(str, Enum):
    TEAM = "team"
    USER = "user"


@dataclass(frozen=True, slots=True)
class AttributionID:
    """
    AttributionID names the billing owner of a workspace instance,
    either a team or a single user. The textual form is "<kind>:<id>".
    """

    kind: "AttributionKind"
    id: "str"

    @classmethod
    def team(cls, team_id: "str") -> "AttributionID":
        return cls(AttributionKind.TEAM, team_id)

    @classmethod
    def user(cls, user_id: "str") -> "AttributionID":
        return cls(AttributionKind.USER, user_id)

    @classmethod
    def parse(cls, value: "str") -> "AttributionID":
        """
        parses "team:<id>" or "user:<id>". Raises InvalidAttributionID
        for an unknown kind or an empty identifier.
        """
        kind, sep, ident = value.partition(":")
        if not sep or not ident:
            raise InvalidAttributionID(f"malformed attribution id: {value!r}")

        try:
            return cls(AttributionKind(kind), ident)
        except ValueError:
            raise InvalidAttributionID(
                f"unknown attribution kind {kind!r} in {value!r}"
            ) from None

    def __str__(self) -> "str":
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True, slots=True)
class InstanceRecord:
    """
    InstanceRecord is one workspace runtime instance as read
    from the instance store.
    """

    id: "str"
    workspace_id: "str"
    owner_id: "str"
    workspace_class: "str"
    # unknown types are kept as their raw string
    type: "WorkspaceType | str"
    usage_attribution_id: "AttributionID"
    # None marks the record as invalid, it can't be billed
    creation_time: "datetime | None"
    started_time: "datetime | None" = None
    # None while running, or when the instance never stopped cleanly
    stopped_time: "datetime | None" = None
    project_id: "str | None" = None

    @property
    def is_valid(self) -> "bool":
        return self.creation_time is not None


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """
    UsageRecord is the billable usage of one workspace instance
    for a single reconciliation run.
    """

    instance_id: "str"
    attribution_id: "AttributionID"
    user_id: "str"
    workspace_id: "str"
    project_id: "str"
    workspace_type: "WorkspaceType | str"
    workspace_class: "str"
    credits_used: "int"
    started_at: "datetime"
    # the real stop time, even when it lies past the cutoff
    stopped_at: "datetime | None" = None
    # owned by the storage side for idempotent overwrites
    generation_id: "int" = 0
    deleted: "bool" = False


UsageReport: TypeAlias = list[UsageRecord]


@dataclass(frozen=True, slots=True)
class ReconcileStatus:
    start_time: "datetime"
    end_time: "datetime"
    workspace_instances: "int"
    invalid_workspace_instances: "int"


def parse_workspace_type(value: "str | None") -> "WorkspaceType | str":
    """
    maps a known type to WorkspaceType. Types added after this release
    pass through as plain strings so the record is still billed.
    """
    if not value:
        return WorkspaceType.REGULAR

    try:
        return WorkspaceType(value)
    except ValueError:
        return value


def workspace_type_value(value: "WorkspaceType | str") -> "str":
    if isinstance(value, WorkspaceType):
        return value.value
    return value


def parse_time(value: "str | None") -> "datetime | None":
    """
    parses an RFC 3339 timestamp. Empty strings and None mean unset,
    naive values are taken as UTC.
    """
    if not value:
        return None

    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(value: "datetime | None") -> "str":
    if value is None:
        return ""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def instance_record_from_dict(data: "dict[str, Any]") -> "InstanceRecord":
    """
    builds an InstanceRecord from its JSON representation.
    """
    return InstanceRecord(
        id=data["id"],
        workspace_id=data.get("workspace_id", ""),
        owner_id=data.get("owner_id", ""),
        project_id=data.get("project_id") or None,
        workspace_class=data.get("workspace_class") or "",
        type=parse_workspace_type(data.get("type")),
        usage_attribution_id=AttributionID.parse(data["usage_attribution_id"]),
        creation_time=parse_time(data.get("creation_time")),
        started_time=parse_time(data.get("started_time")),
        stopped_time=parse_time(data.get("stopped_time")),
    )


def usage_record_to_dict(record: "UsageRecord") -> "dict[str, Any]":
    return {
        "instance_id": record.instance_id,
        "attribution_id": str(record.attribution_id),
        "user_id": record.user_id,
        "workspace_id": record.workspace_id,
        "project_id": record.project_id,
        "workspace_type": workspace_type_value(record.workspace_type),
        "workspace_class": record.workspace_class,
        "credits_used": record.credits_used,
        "started_at": format_time(record.started_at),
        "stopped_at": format_time(record.stopped_at),
        "generation_id": record.generation_id,
        "deleted": record.deleted,
    }
