from typing import Protocol

from usagerecon.models import UsageReport


class BillingController(Protocol):
    """
    BillingController receives the report of every successful
    reconciliation. Implementations must not mutate the report and
    should raise when the downstream system rejects it.
    """

    async def reconcile(self, report: "UsageReport") -> "None": ...


class NoOpBillingController:
    """
    used when billing is disabled.
    """

    async def reconcile(self, report: "UsageReport") -> "None":
        return None
