import time
from datetime import datetime, timezone
from typing import Callable

import structlog

from usagerecon.billing.base import BillingController
from usagerecon.converter import instances_to_usage_records
from usagerecon.errors import BillingDispatchError, QueryError
from usagerecon.metrics import ReconcileMetrics
from usagerecon.models import InstanceRecord, ReconcileStatus, UsageReport
from usagerecon.pricer import DEFAULT_WORKSPACE_PRICER, WorkspacePricer
from usagerecon.report import credit_summary_for_teams
from usagerecon.store.base import InstanceStore

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> "datetime":
    return datetime.now(timezone.utc)


def month_window(at: "datetime") -> "tuple[datetime, datetime]":
    """
    returns [start of month, start of next month) for the month containing
    the given time, in UTC.
    """
    at = at.astimezone(timezone.utc)
    start = at.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class UsageReconciler:
    """
    UsageReconciler turns the workspace instances that overlap a time
    window into a usage report and hands that report to billing.

    Each run is independent: it reads the instances once, converts
    the valid ones and dispatches the result. Runs keep no state
    between calls, so overlapping windows can be reconciled again at
    any time as long as the consumer of the report upserts by instance.
    """

    def __init__(
        self,
        store: "InstanceStore",
        billing_controller: "BillingController",
        pricer: "WorkspacePricer" = DEFAULT_WORKSPACE_PRICER,
        now_func: "Clock" = utc_now,
        metrics: "ReconcileMetrics | None" = None,
    ) -> "None":
        self._store = store
        self._billing = billing_controller
        self._pricer = pricer
        self._now = now_func
        self._metrics = metrics

    async def reconcile(self) -> "tuple[ReconcileStatus, UsageReport]":
        """
        reconciles the calendar month containing now. Usage accrues up to
        now for instances that are still running.
        """
        start, end = month_window(self._now())
        return await self.reconcile_time_range(start, end)

    async def reconcile_time_range(
        self,
        start: "datetime",
        end: "datetime",
    ) -> "tuple[ReconcileStatus, UsageReport]":
        """
        reconciles the half-open window [start, end).

        Raises QueryError when the instances can't be listed and
        BillingDispatchError when billing rejects the report; the latter
        carries the computed status and report. Cancellation while the
        store is queried propagates unchanged.
        """
        if start.tzinfo is None or end.tzinfo is None:
            raise ValueError("reconciliation window must use timezone-aware times")
        if end <= start:
            raise ValueError(f"empty reconciliation window: {start} - {end}")

        now = self._now()
        run_start = time.monotonic()
        logger.info("reconcile_start", start=start.isoformat(), end=end.isoformat())

        try:
            return await self._run(start, end, now)
        finally:
            if self._metrics is not None:
                self._metrics.observe_duration(time.monotonic() - run_start)

    async def _run(
        self,
        start: "datetime",
        end: "datetime",
        now: "datetime",
    ) -> "tuple[ReconcileStatus, UsageReport]":
        try:
            instances = await self._store.list_instances_overlapping(start, end)
        except Exception as err:
            logger.exception("instance_query_error")
            self._inc_error("query")
            raise QueryError(f"failed to list workspace instances: {err}") from err

        valid: "list[InstanceRecord]" = []
        invalid: "list[InstanceRecord]" = []
        for instance in instances:
            (valid if instance.is_valid else invalid).append(instance)

        if invalid:
            logger.warning(
                "invalid_instances_skipped",
                count=len(invalid),
                instance_ids=[i.id for i in invalid],
            )

        # still running instances accrue usage up to now at most
        cutoff = min(end, now)
        report = instances_to_usage_records(valid, self._pricer, cutoff)

        status = ReconcileStatus(
            start_time=start,
            end_time=end,
            workspace_instances=len(valid),
            invalid_workspace_instances=len(invalid),
        )

        try:
            await self._billing.reconcile(report)
        except Exception as err:
            logger.exception("billing_dispatch_error", records=len(report))
            self._inc_error("billing")
            raise BillingDispatchError(
                f"billing rejected usage report: {err}", status, report
            ) from err

        if self._metrics is not None:
            self._metrics.observe_run(status, report)
            self._metrics.set_last_success(time.time())

        logger.info(
            "reconcile_end",
            workspace_instances=status.workspace_instances,
            invalid_workspace_instances=status.invalid_workspace_instances,
            teams=len(credit_summary_for_teams(report)),
            cutoff=cutoff.isoformat(),
        )
        return status, report

    def _inc_error(self, stage: "str") -> "None":
        if self._metrics is not None:
            self._metrics.inc_error(stage)
