from datetime import datetime, timedelta
from fractions import Fraction
from typing import Sequence

from usagerecon.models import InstanceRecord, UsageRecord, UsageReport
from usagerecon.pricer import WorkspacePricer

_MICROSECOND = timedelta(microseconds=1)


def instances_to_usage_records(
    instances: "Sequence[InstanceRecord]",
    pricer: "WorkspacePricer",
    cutoff: "datetime",
) -> "UsageReport":
    """
    converts valid instance records into usage records, one per instance
    and in input order. Runtime accrues from the creation time up to the
    earlier of the stop time and the cutoff. The output keeps the real
    stop time so the report can be audited against the instance table.

    Callers must drop records without a creation time beforehand.
    """
    records: "UsageReport" = []

    for instance in instances:
        if instance.creation_time is None:
            raise ValueError(f"instance {instance.id} has no creation time")

        stop = cutoff
        if instance.stopped_time is not None and instance.stopped_time < cutoff:
            stop = instance.stopped_time

        # exact seconds, microsecond resolution
        runtime = Fraction((stop - instance.creation_time) // _MICROSECOND, 1_000_000)

        records.append(
            UsageRecord(
                instance_id=instance.id,
                attribution_id=instance.usage_attribution_id,
                user_id=instance.owner_id,
                workspace_id=instance.workspace_id,
                project_id=instance.project_id or "",
                workspace_type=instance.type,
                workspace_class=instance.workspace_class,
                credits_used=pricer.credits_used(instance.workspace_class, runtime),
                started_at=instance.creation_time,
                stopped_at=instance.stopped_time,
            )
        )

    return records
