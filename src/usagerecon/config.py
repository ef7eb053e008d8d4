import os
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Config:
    # base URL of the workspace instance API
    store_url: "str" = ""
    # metering endpoint receiving team credit summaries,
    # billing is disabled when empty
    billing_url: "str" = ""
    api_token: "str" = ""
    # "default=10,g1-large=20"
    pricing: "str" = ""
    log_level: "str" = "info"
    log_json: "bool" = False
    # Pushgateway address, metrics are not pushed when empty
    pushgateway: "str" = ""

    # reconciliation window, defaults to the current month
    reconcile_from: "datetime | None" = None
    reconcile_to: "datetime | None" = None

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            store_url=os.environ.get("USAGERECON_STORE_URL", ""),
            billing_url=os.environ.get("USAGERECON_BILLING_URL", ""),
            api_token=os.environ.get("USAGERECON_API_TOKEN", ""),
            pricing=os.environ.get("USAGERECON_PRICING", ""),
        )

    @property
    def billing_enabled(self) -> "bool":
        return bool(self.billing_url)
