"""
CLI main entry point.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

from ..config import Config, create_default_config, load_config
from ..gobiz_client import GoBizError
from ..services import GoBizGateway

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def parse_date(value: str) -> datetime:
    """Parse an ISO date or datetime argument."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value!r}")


def mask_token(token: str | None) -> str:
    """Show only the edges of a secret."""
    if not token:
        return "-"
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}…{token[-4:]}"


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gobiz-bridge",
        description="Log in to GoBiz and query merchant transaction journals",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    # login command
    subparsers.add_parser("login", help="Check that the configured account can log in")

    def add_query_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--merchant-id",
            type=str,
            default=None,
            help="Merchant ID (default: account.merchant_id from config)",
        )
        sub.add_argument(
            "--json",
            action="store_true",
            help="Print the raw result as JSON",
        )

    # today command
    today_parser = subparsers.add_parser("today", help="Show today's transactions")
    add_query_options(today_parser)

    # search command
    search_parser = subparsers.add_parser("search", help="Search transactions in a date range")
    search_parser.add_argument("--start", type=parse_date, required=True, help="Start (ISO)")
    search_parser.add_argument("--end", type=parse_date, required=True, help="End (ISO)")
    search_parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page number, 1-based (default: 1)",
    )
    search_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Transactions per page (default: 20)",
    )
    add_query_options(search_parser)

    # summary command
    summary_parser = subparsers.add_parser(
        "summary", help="Summarize all transactions in a date range"
    )
    summary_parser.add_argument("--start", type=parse_date, required=True, help="Start (ISO)")
    summary_parser.add_argument("--end", type=parse_date, required=True, help="End (ISO)")
    add_query_options(summary_parser)

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


async def _with_login(
    config: Config,
    action: Callable[[GoBizGateway, str], Awaitable[Any]],
) -> Any:
    """Log in with the configured account, run action, always log out."""
    account = config.account
    async with GoBizGateway.from_config(config) as gateway:
        await gateway.login(account.user_id, account.email, account.password, account.merchant_id)
        try:
            return await action(gateway, account.user_id)
        finally:
            await gateway.logout(account.user_id)


def _check_config(config: Config, merchant_id: str | None = None, need_merchant: bool = False) -> bool:
    errors = config.validate() + config.validate_account()
    if need_merchant and not merchant_id:
        errors.append("merchant id is required (--merchant-id or account.merchant_id)")
    for error in errors:
        print(f"❌ Config error: {error}")
    return not errors


def cmd_init_config(config_path: Path, force: bool) -> int:
    """Write the default config file."""
    if config_path.exists() and not force:
        print(f"❌ {config_path} already exists (use --force to overwrite)")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_login(config: Config) -> int:
    """Log in and print token info."""
    if not _check_config(config):
        return 1

    async def action(gateway: GoBizGateway, user_id: str) -> Any:
        session = gateway.store.require(user_id)
        return session.access_token, session.expires_in

    print(f"🔑 Logging in as {config.account.email}...")
    try:
        access_token, expires_in = asyncio.run(_with_login(config, action))
    except GoBizError as e:
        print(f"❌ Login failed: {e}")
        return 1

    print(f"✓ Logged in (access token {mask_token(access_token)}, expires in {expires_in}s)")
    return 0


def cmd_today(config: Config, merchant_id: str | None, as_json: bool) -> int:
    """Show today's transactions."""
    merchant_id = merchant_id or config.account.merchant_id
    if not _check_config(config, merchant_id, need_merchant=True):
        return 1

    async def action(gateway: GoBizGateway, user_id: str) -> dict:
        return await gateway.today(user_id, merchant_id)

    try:
        result = asyncio.run(_with_login(config, action))
    except GoBizError as e:
        print(f"❌ Failed to fetch today's transactions: {e}")
        return 1

    if as_json:
        _print_json(result)
    else:
        print(f"📅 Today: {result['total']} transaction(s), total {result['total_amount']:,.2f}")
    return 0


def cmd_search(
    config: Config,
    merchant_id: str | None,
    start: datetime,
    end: datetime,
    page: int,
    limit: int,
    as_json: bool,
) -> int:
    """Search one page of transactions."""
    merchant_id = merchant_id or config.account.merchant_id
    if not _check_config(config, merchant_id, need_merchant=True):
        return 1

    async def action(gateway: GoBizGateway, user_id: str) -> dict:
        return await gateway.search_page(user_id, merchant_id, start, end, page, limit)

    try:
        result = asyncio.run(_with_login(config, action))
    except (GoBizError, ValueError) as e:
        print(f"❌ Search failed: {e}")
        return 1

    if as_json:
        _print_json(result)
        return 0

    print(
        f"🔍 Page {result['page']}/{result['total_pages']} "
        f"({result['total']} transaction(s), page total {result['total_amount']:,.2f})"
    )
    for record in result["transactions"]:
        transaction = (record.get("metadata") or {}).get("transaction") or {}
        print(
            f"  💳 {transaction.get('transaction_time', '?')} "
            f"{transaction.get('payment_type', '?'):<20} "
            f"{transaction.get('status', '?'):<15} "
            f"{transaction.get('gross_amount', 0)}"
        )
    return 0


def cmd_summary(
    config: Config,
    merchant_id: str | None,
    start: datetime,
    end: datetime,
    as_json: bool,
) -> int:
    """Summarize all transactions in a window."""
    merchant_id = merchant_id or config.account.merchant_id
    if not _check_config(config, merchant_id, need_merchant=True):
        return 1

    async def action(gateway: GoBizGateway, user_id: str):
        return await gateway.summary(user_id, merchant_id, start, end)

    try:
        summary = asyncio.run(_with_login(config, action))
    except GoBizError as e:
        print(f"❌ Summary failed: {e}")
        return 1

    if as_json:
        _print_json(summary.to_dict())
        return 0

    print("=" * 50)
    print("📊 Transaction Summary")
    print("=" * 50)
    print(f"  Transactions: {summary.total_transactions}")
    print(f"  Total amount: {summary.total_amount:,.2f}")
    print("\nBy payment type:")
    for key, bucket in sorted(summary.by_payment_type.items()):
        print(f"  {key:<22} {bucket.count:>6}  {bucket.amount:>16,.2f}")
    print("\nBy status:")
    for key, bucket in sorted(summary.by_status.items()):
        print(f"  {key:<22} {bucket.count:>6}  {bucket.amount:>16,.2f}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config, parsed.force)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "login":
        return cmd_login(config)
    elif parsed.command == "today":
        return cmd_today(config, parsed.merchant_id, parsed.json)
    elif parsed.command == "search":
        return cmd_search(
            config,
            parsed.merchant_id,
            parsed.start,
            parsed.end,
            parsed.page,
            parsed.limit,
            parsed.json,
        )
    elif parsed.command == "summary":
        return cmd_summary(config, parsed.merchant_id, parsed.start, parsed.end, parsed.json)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
