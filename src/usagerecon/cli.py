import argparse
from datetime import datetime

from usagerecon.config import Config
from usagerecon.models import parse_time


def _timestamp(value: "str") -> "datetime":
    try:
        parsed = parse_time(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timestamp: {value!r}") from None
    if parsed is None:
        raise argparse.ArgumentTypeError("timestamp must not be empty")
    return parsed


def parse_args(argv: "list[str] | None" = None) -> "Config":
    parser = argparse.ArgumentParser(
        prog="usagerecon",
        description="Reconcile workspace usage into credits",
    )
    parser.add_argument(
        "--reconcile.from",
        dest="reconcile_from",
        type=_timestamp,
        help="Start of the window, inclusive (default: start of current month)",
    )
    parser.add_argument(
        "--reconcile.to",
        dest="reconcile_to",
        type=_timestamp,
        help="End of the window, exclusive (default: start of next month)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--log.json",
        dest="log_json",
        action="store_true",
        help="Emit logs as JSON lines",
    )
    parser.add_argument(
        "--metrics.pushgateway",
        dest="pushgateway",
        default="",
        help="Prometheus Pushgateway address to push run metrics to",
    )

    args = parser.parse_args(argv)
    if (args.reconcile_from is None) != (args.reconcile_to is None):
        parser.error("--reconcile.from and --reconcile.to must be given together")
    if args.reconcile_from is not None and args.reconcile_from >= args.reconcile_to:
        parser.error("--reconcile.from must be before --reconcile.to")

    config = Config.from_env()
    config.reconcile_from = args.reconcile_from
    config.reconcile_to = args.reconcile_to
    config.log_level = args.log_level
    config.log_json = args.log_json
    config.pushgateway = args.pushgateway
    return config
