from datetime import datetime
from typing import Protocol, Sequence

from usagerecon.models import InstanceRecord


class InstanceStore(Protocol):
    """
    InstanceStore is the read side of the workspace instance table.

    list_instances_overlapping returns every instance that overlaps the
    half-open window [start, end): created before end, and either still
    running or stopped after start. Records without a creation time are
    returned as well so that the reconciler can account for them.
    """

    async def list_instances_overlapping(
        self,
        start: "datetime",
        end: "datetime",
    ) -> "Sequence[InstanceRecord]": ...
