import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from prometheus_client import CollectorRegistry

from usagerecon.models import AttributionID, InstanceRecord, WorkspaceType


@pytest.fixture()
def registry() -> "CollectorRegistry":
    """
    fresh Prometheus registry to avoid cross-test state.
    """
    return CollectorRegistry()


@pytest.fixture()
def team_id() -> "str":
    return str(uuid.uuid4())


@pytest.fixture()
def make_instance(team_id: "str") -> "Callable[..., InstanceRecord]":
    """
    returns a factory for instance records attributed to team_id,
    created and started at 2022-05-01 00:00 UTC unless overridden.
    """
    base = InstanceRecord(
        id="",
        workspace_id="ws-1",
        owner_id=str(uuid.uuid4()),
        workspace_class="default",
        type=WorkspaceType.REGULAR,
        usage_attribution_id=AttributionID.team(team_id),
        creation_time=datetime(2022, 5, 1, tzinfo=timezone.utc),
        started_time=datetime(2022, 5, 1, tzinfo=timezone.utc),
    )

    def _make(**overrides: "Any") -> "InstanceRecord":
        overrides.setdefault("id", str(uuid.uuid4()))
        return replace(base, **overrides)

    return _make
