from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from usagerecon.models import ReconcileStatus, UsageReport
from usagerecon.report import credit_summary_by_attribution


class ReconcileMetrics:
    """
    records the outcome of reconciliation runs in Prometheus metrics.
     - reconcile_duration_seconds: wall time of each run.
     - workspace_instances_total: instances seen, labeled by
     validity (valid/invalid).
     - credits_total: credits reported, labeled by attribution kind.
     - reconcile_errors_total: failed runs, labeled by the stage
     that failed (query/billing).
    """

    def __init__(self, registry: "CollectorRegistry" = REGISTRY) -> "None":
        self.registry: "CollectorRegistry" = registry
        self._duration: "Histogram" = Histogram(
            "usagerecon_reconcile_duration_seconds",
            "Duration of usage reconciliation runs",
            registry=registry,
        )
        self._instances: "Counter" = Counter(
            "usagerecon_workspace_instances_total",
            "Workspace instances considered by reconciliation",
            ["validity"],
            registry=registry,
        )
        self._credits: "Counter" = Counter(
            "usagerecon_credits_total",
            "Credits reported by reconciliation",
            ["attribution_kind"],
            registry=registry,
        )
        self._errors: "Counter" = Counter(
            "usagerecon_reconcile_errors_total",
            "Total number of failed reconciliation runs by stage",
            ["stage"],
            registry=registry,
        )
        self._last_success: "Gauge" = Gauge(
            "usagerecon_last_reconcile_success_timestamp_seconds",
            "Unix timestamp of the last successful reconciliation",
            registry=registry,
        )

    def observe_run(self, status: "ReconcileStatus", report: "UsageReport") -> "None":
        """
        updates instance and credit counters from a completed run.
        """
        self._instances.labels(validity="valid").inc(status.workspace_instances)
        self._instances.labels(validity="invalid").inc(
            status.invalid_workspace_instances
        )
        for attribution, credits in credit_summary_by_attribution(report).items():
            self._credits.labels(attribution_kind=attribution.kind.value).inc(credits)

    def observe_duration(self, duration_seconds: "float") -> "None":
        self._duration.observe(duration_seconds)

    def inc_error(self, stage: "str") -> "None":
        self._errors.labels(stage=stage).inc()

    def set_last_success(self, timestamp: "float") -> "None":
        self._last_success.set(timestamp)
