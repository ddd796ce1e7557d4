import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from src.app_shell.config import Settings, require_valid_settings
from src.app_shell.context import ServiceContext
from src.components.subscriptions import ConfigurationError
from src.rules.loader import load_rules

logger = logging.getLogger("cli")


def get_context(settings: Settings | None = None) -> ServiceContext:
    settings = settings or Settings.from_env()
    try:
        require_valid_settings(settings)
        rules = load_rules(settings.rules_path)
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration invalid: {e}")
        sys.exit(1)
    return ServiceContext.create(settings, rules)


def parse_date(value: str) -> datetime:
    """ISO date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


async def handle_check(ctx: ServiceContext, args: argparse.Namespace) -> int:
    subscribed = await ctx.gateway.is_subscribed(args.email)
    print("subscribed" if subscribed else "not subscribed")
    return 0


async def handle_stats(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await ctx.gateway.get_duplicate_stats()
    if not result.ok:
        logger.error(f"Query failed: {result.error}")
        return 1
    if not result.items:
        print("No duplicate attempts recorded.")
    for stat in result.items:
        last = stat.last_attempted_at.isoformat() if stat.last_attempted_at else "-"
        print(f"{stat.duplicate_count:>6}  {stat.email}  (last {last})")
    return 0


async def handle_duplicates(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await ctx.gateway.get_duplicates_for_email(args.email)
    if not result.ok:
        logger.error(f"Query failed: {result.error}")
        return 1
    print(f"{len(result.items)} duplicate attempt(s) for {args.email}")
    for attempt in result.items:
        print(f" - {attempt.attempted_at.isoformat()}  {attempt.reason}  [{attempt.user_agent}]")
    return 0


async def handle_range(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await ctx.gateway.get_duplicates_by_date_range(args.start, args.end)
    if not result.ok:
        logger.error(f"Query failed: {result.error}")
        return 1
    print(f"{len(result.items)} duplicate attempt(s) in range")
    for attempt in result.items:
        print(f" - {attempt.attempted_at.isoformat()}  {attempt.email}  {attempt.reason}")
    return 0


async def handle_prune(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = await ctx.gateway.clear_old_duplicates(args.days)
    if not result.ok:
        logger.error(f"Prune failed: {result.error}")
        return 1
    print(f"Pruned {result.count} duplicate attempt(s).")
    return 0


async def handle_remove(ctx: ServiceContext, args: argparse.Namespace) -> int:
    removed = await ctx.gateway.delete_subscription(args.email)
    print("Subscription removed." if removed else "No subscription removed.")
    return 0 if removed else 1


HANDLERS = {
    "check": handle_check,
    "stats": handle_stats,
    "duplicates": handle_duplicates,
    "range": handle_range,
    "prune": handle_prune,
    "remove": handle_remove,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RegPulse subscriptions CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Is an email subscribed? (advisory)")
    check_parser.add_argument("email")

    subparsers.add_parser("stats", help="Duplicate attempts per email")

    dup_parser = subparsers.add_parser("duplicates", help="Duplicate attempts for one email")
    dup_parser.add_argument("email")

    range_parser = subparsers.add_parser("range", help="Duplicate attempts in a date range")
    range_parser.add_argument("start", type=parse_date, help="ISO start date (inclusive)")
    range_parser.add_argument("end", type=parse_date, help="ISO end date (inclusive)")

    prune_parser = subparsers.add_parser("prune", help="Delete old duplicate attempts")
    prune_parser.add_argument(
        "--days", type=int, default=None, help="Age threshold in days (default from rules)"
    )

    remove_parser = subparsers.add_parser("remove", help="Delete a subscription")
    remove_parser.add_argument("email")

    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)
    ctx = get_context()
    return asyncio.run(HANDLERS[args.command](ctx, args))


if __name__ == "__main__":
    sys.exit(main())
