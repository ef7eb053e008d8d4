from datetime import datetime
from typing import Iterable

from usagerecon.models import InstanceRecord


def overlaps(instance: "InstanceRecord", start: "datetime", end: "datetime") -> "bool":
    """
    reports whether the instance overlaps [start, end). A missing creation
    time does not exclude the instance.
    """
    if instance.creation_time is not None and instance.creation_time >= end:
        return False

    return instance.stopped_time is None or instance.stopped_time > start


class InMemoryInstanceStore:
    """
    InMemoryInstanceStore keeps instance records in a list and answers
    overlap queries by scanning it. Insertion order is preserved.
    """

    def __init__(self, instances: "Iterable[InstanceRecord]" = ()) -> "None":
        self._instances: "list[InstanceRecord]" = list(instances)

    def add(self, *instances: "InstanceRecord") -> "None":
        self._instances.extend(instances)

    async def list_instances_overlapping(
        self,
        start: "datetime",
        end: "datetime",
    ) -> "list[InstanceRecord]":
        return [i for i in self._instances if overlaps(i, start, end)]
