import asyncio

import structlog
from prometheus_client import CollectorRegistry, push_to_gateway

from usagerecon.billing.base import BillingController, NoOpBillingController
from usagerecon.billing.http import HTTPBillingController
from usagerecon.cli import parse_args
from usagerecon.config import Config
from usagerecon.errors import BillingDispatchError, InvalidPricingError, ReconcileError
from usagerecon.logging import setup_logging
from usagerecon.metrics import ReconcileMetrics
from usagerecon.pricer import WorkspacePricer
from usagerecon.reconciler import UsageReconciler
from usagerecon.report import credit_summary_for_teams
from usagerecon.store.http import HTTPInstanceStore

logger = structlog.get_logger()


async def run(
    config: "Config",
    pricer: "WorkspacePricer",
    metrics: "ReconcileMetrics",
) -> "None":
    store = HTTPInstanceStore(config.store_url, api_token=config.api_token)
    billing: "BillingController"
    if config.billing_enabled:
        billing = HTTPBillingController(config.billing_url, api_token=config.api_token)
        logger.info("billing_enabled", url=config.billing_url)
    else:
        billing = NoOpBillingController()
        logger.info("billing_disabled")

    reconciler = UsageReconciler(store, billing, pricer=pricer, metrics=metrics)

    try:
        if config.reconcile_from is not None and config.reconcile_to is not None:
            status, report = await reconciler.reconcile_time_range(
                config.reconcile_from, config.reconcile_to
            )
        else:
            status, report = await reconciler.reconcile()
    finally:
        await store.close()
        if isinstance(billing, HTTPBillingController):
            await billing.close()

    logger.info(
        "reconcile_summary",
        start=status.start_time.isoformat(),
        end=status.end_time.isoformat(),
        workspace_instances=status.workspace_instances,
        invalid_workspace_instances=status.invalid_workspace_instances,
        usage_records=len(report),
        team_credits=credit_summary_for_teams(report),
    )


def main() -> "None":
    config = parse_args()
    setup_logging(config.log_level, json_output=config.log_json)

    if not config.store_url:
        raise SystemExit(
            "No instance store configured. Set USAGERECON_STORE_URL environment variable."
        )

    try:
        pricer = WorkspacePricer.from_string(config.pricing)
    except InvalidPricingError as err:
        logger.error("invalid_pricing", error=str(err))
        raise SystemExit(2) from None
    logger.info("pricing_loaded", rates=pricer.rates)

    registry = CollectorRegistry()
    metrics = ReconcileMetrics(registry=registry)

    exit_code = 0
    try:
        asyncio.run(run(config, pricer, metrics))
    except BillingDispatchError as err:
        logger.error(
            "reconcile_failed",
            error=str(err),
            usage_records=len(err.report),
        )
        exit_code = 1
    except ReconcileError as err:
        logger.error("reconcile_failed", error=str(err))
        exit_code = 1
    finally:
        # batch job, so metrics are pushed instead of scraped
        if config.pushgateway:
            push_to_gateway(config.pushgateway, job="usagerecon", registry=registry)
            logger.info("metrics_pushed", gateway=config.pushgateway)

    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
