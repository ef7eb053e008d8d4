import math
from fractions import Fraction
from typing import Mapping

from usagerecon.errors import InvalidPricingError

DEFAULT_WORKSPACE_CLASS = "default"
DEFAULT_CREDITS_PER_HOUR = 10

_SECONDS_PER_HOUR = 3600


class WorkspacePricer:
    """
    WorkspacePricer maps workspace classes to integer credits per hour.

    Classes missing from the table are charged at the default class rate,
    so a pricing table that lags behind newly introduced classes never
    blocks reconciliation.
    """

    def __init__(self, rates: "Mapping[str, int]") -> "None":
        if DEFAULT_WORKSPACE_CLASS not in rates:
            raise InvalidPricingError(
                f"pricing must define the {DEFAULT_WORKSPACE_CLASS!r} workspace class"
            )
        for workspace_class, rate in rates.items():
            if isinstance(rate, bool) or not isinstance(rate, int) or rate < 0:
                raise InvalidPricingError(
                    f"invalid rate {rate!r} for workspace class {workspace_class!r}"
                )
        self._rates: "dict[str, int]" = dict(rates)

    @classmethod
    def from_string(cls, value: "str") -> "WorkspacePricer":
        """
        parses "default=10,g1-large=20". An empty string yields the
        default pricing.
        """
        if not value.strip():
            return cls({DEFAULT_WORKSPACE_CLASS: DEFAULT_CREDITS_PER_HOUR})

        rates: "dict[str, int]" = {}
        for entry in value.split(","):
            workspace_class, sep, rate = entry.strip().partition("=")
            if not sep or not workspace_class:
                raise InvalidPricingError(f"malformed pricing entry: {entry!r}")
            try:
                rates[workspace_class.strip()] = int(rate)
            except ValueError:
                raise InvalidPricingError(
                    f"rate for {workspace_class!r} is not an integer: {rate!r}"
                ) from None

        return cls(rates)

    @property
    def rates(self) -> "dict[str, int]":
        return dict(self._rates)

    def credits_per_hour(self, workspace_class: "str") -> "int":
        return self._rates.get(workspace_class, self._rates[DEFAULT_WORKSPACE_CLASS])

    def credits_used(
        self,
        workspace_class: "str",
        runtime_seconds: "float | Fraction",
    ) -> "int":
        """
        credits for the given runtime, rounded half-up to a whole credit.
        Negative runtimes are billed as zero. The product is computed on
        exact fractions.
        """
        if runtime_seconds <= 0:
            return 0

        credits = (
            Fraction(runtime_seconds)
            * self.credits_per_hour(workspace_class)
            / _SECONDS_PER_HOUR
        )
        return math.floor(credits + Fraction(1, 2))


DEFAULT_WORKSPACE_PRICER = WorkspacePricer(
    {DEFAULT_WORKSPACE_CLASS: DEFAULT_CREDITS_PER_HOUR}
)
