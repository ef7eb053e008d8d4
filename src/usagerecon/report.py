from collections import defaultdict
from typing import Iterable

from usagerecon.models import AttributionID, AttributionKind, UsageRecord


def credit_summary_for_teams(report: "Iterable[UsageRecord]") -> "dict[str, int]":
    """
    sums credits per team id. Records attributed to users are skipped,
    an empty report yields an empty summary.
    """
    summary: "dict[str, int]" = defaultdict(int)
    for record in report:
        if record.attribution_id.kind is not AttributionKind.TEAM:
            continue
        summary[record.attribution_id.id] += record.credits_used

    return dict(summary)


def credit_summary_by_attribution(
    report: "Iterable[UsageRecord]",
) -> "dict[AttributionID, int]":
    summary: "dict[AttributionID, int]" = defaultdict(int)
    for record in report:
        summary[record.attribution_id] += record.credits_used

    return dict(summary)
