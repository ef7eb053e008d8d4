from datetime import datetime, timezone
from typing import Callable

import pytest

from usagerecon.models import InstanceRecord
from usagerecon.store.memory import InMemoryInstanceStore, overlaps

START = datetime(2022, 5, 1, tzinfo=timezone.utc)
END = datetime(2022, 6, 1, tzinfo=timezone.utc)


class TestOverlaps:
    def test_running_instance_created_inside(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        assert overlaps(make_instance(), START, END)

    def test_stopped_exactly_at_start_is_excluded(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        instance = make_instance(
            creation_time=datetime(2022, 4, 30, tzinfo=timezone.utc),
            stopped_time=START,
        )
        assert not overlaps(instance, START, END)

    def test_created_exactly_at_end_is_excluded(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        assert not overlaps(make_instance(creation_time=END), START, END)

    def test_spanning_whole_window(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        instance = make_instance(
            creation_time=datetime(2022, 4, 1, tzinfo=timezone.utc),
            stopped_time=datetime(2022, 7, 1, tzinfo=timezone.utc),
        )
        assert overlaps(instance, START, END)

    def test_missing_creation_time_is_kept(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        instance = make_instance(
            creation_time=None,
            stopped_time=datetime(2022, 6, 1, 1, tzinfo=timezone.utc),
        )
        assert overlaps(instance, START, END)


class TestInMemoryInstanceStore:
    @pytest.mark.asyncio
    async def test_filters_and_keeps_order(
        self, make_instance: "Callable[..., InstanceRecord]"
    ) -> "None":
        inside = make_instance(id="inside")
        before = make_instance(
            id="before",
            creation_time=datetime(2022, 3, 1, tzinfo=timezone.utc),
            stopped_time=datetime(2022, 3, 2, tzinfo=timezone.utc),
        )
        running = make_instance(
            id="running", creation_time=datetime(2022, 5, 20, tzinfo=timezone.utc)
        )
        store = InMemoryInstanceStore([inside, before])
        store.add(running)

        result = await store.list_instances_overlapping(START, END)

        assert [i.id for i in result] == ["inside", "running"]
