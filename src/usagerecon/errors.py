from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from usagerecon.models import ReconcileStatus, UsageRecord


class ReconcileError(Exception):
    """
    base class for failures that abort or taint a reconciliation run.
    """


class QueryError(ReconcileError):
    """
    the instance store could not return the instances for the window.
    No report and no status exist for the run.
    """


class BillingDispatchError(ReconcileError):
    """
    the billing controller rejected a report that was already computed.
    The status and report are attached so the caller can persist them
    or retry the dispatch on its own.
    """

    def __init__(
        self,
        message: "str",
        status: "ReconcileStatus",
        report: "list[UsageRecord]",
    ) -> "None":
        super().__init__(message)
        self.status = status
        self.report = report


class InvalidPricingError(ValueError):
    pass


class InvalidAttributionID(ValueError):
    pass
