#!/usr/bin/env python3
"""
Print the dashboard numbers for one period.

Logs in against the configured backend and prints totals plus the
account type, product, customer and supplier breakdowns.

Usage:
    python3 scripts/view_dashboard.py --granularity month --value 2025-02
    python3 scripts/view_dashboard.py --granularity week --value 2025-02-12 --local
    python3 scripts/view_dashboard.py --customer 7 --value 2025-02

Credentials come from --email/--password or RESALE_EMAIL/RESALE_PASSWORD.
"""

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def field(label: str, value: object, indent: int = 2) -> None:
    print(f"{' ' * indent}{label:<22} {value}")


def print_counts(title: str, entries) -> None:
    print()
    print(f"--- {title} ---")
    if not entries:
        print("  (none)")
    for entry in entries:
        print(f"  {entry.count:>5}  {entry.name or entry.key}")


def print_dashboard(view) -> None:
    banner(f"DASHBOARD  {view.period}")
    summary = view.summary
    if summary is None:
        print("  No data.")
        return
    field("contracts", summary.total_contracts)
    field("revenue", summary.revenue)
    field("profit", summary.profit)
    field("received", summary.received)
    field("top account type", summary.top_account_type or "-")
    print_counts("Account types", summary.account_types)
    print_counts("Products", summary.products)
    print_counts("Customers", summary.customers)
    print_counts("Suppliers", summary.suppliers)


def print_groups(title: str, groups) -> None:
    print()
    print(f"--- {title} ---")
    for group in groups:
        print(f"  {group.count:>5}  {group.name:<30} {group.money}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Print dashboard numbers for a period.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/view_dashboard.py --granularity month --value 2025-02\n"
            "  python3 scripts/view_dashboard.py --supplier 3 --value 2025-02\n"
        ),
    )
    parser.add_argument(
        "--granularity", choices=("date", "week", "month", "year"), default="month",
        help="Period granularity (default: month)",
    )
    parser.add_argument(
        "--value", required=True,
        help="YYYY-MM-DD for date/week, YYYY-MM for month, YYYY for year",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--customer", help="Print the monthly overview of this customer id")
    target.add_argument("--supplier", help="Print the monthly overview of this supplier id")
    parser.add_argument(
        "--local", action="store_true",
        help="Compute the dashboard from contracts and payments instead of asking the backend",
    )
    parser.add_argument("--email", default=os.environ.get("RESALE_EMAIL"))
    parser.add_argument("--password", default=os.environ.get("RESALE_PASSWORD"))
    parser.add_argument("--config", help="YAML config file (default: RESALE_CONFIG or defaults)")
    parser.add_argument(
        "--json", action="store_true",
        help="Output the raw summary as JSON",
    )
    args = parser.parse_args()

    if not args.email or not args.password:
        print("  ERROR: --email and --password (or RESALE_EMAIL/RESALE_PASSWORD) are required",
              file=sys.stderr)
        return 1

    from resale_config import get_active_config
    from resale_kernel.domain.session import AuthSession
    from resale_kernel.exceptions import ConfigError, InvalidPeriodError
    from resale_kernel.logging_config import configure_logging
    from resale_services.api_client import ApiClient
    from resale_services.auth_service import AuthService
    from resale_services.gateway import ResaleGateway
    from resale_services.notifications import CollectingNotifier
    from resale_services.screens import DashboardScreen

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ConfigError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    configure_logging(level=config.logging.level)

    notifier = CollectingNotifier()
    with ApiClient(config.api, AuthSession()) as client:
        auth = AuthService(client, notifier)
        if not auth.login(args.email, args.password):
            print(f"  ERROR: {notifier.last.message if notifier.last else 'login failed'}",
                  file=sys.stderr)
            return 1

        screen = DashboardScreen(ResaleGateway(client, notifier, config.display.currency))
        try:
            if args.customer or args.supplier:
                year, _, month = args.value.partition("-")
                if args.customer:
                    report = screen.customer_overview(args.customer, year, month)
                else:
                    report = screen.supplier_overview(args.supplier, year, month)
                result = report
            elif args.local:
                result = screen.local_dashboard(args.granularity, args.value)
            else:
                result = screen.dashboard(args.granularity, args.value)
        except InvalidPeriodError as exc:
            print(f"  ERROR: {exc}", file=sys.stderr)
            return 1

        if result is None:
            print(f"  ERROR: {notifier.last.message if notifier.last else 'no data'}",
                  file=sys.stderr)
            return 1

        if args.json:
            print(json.dumps(asdict(result), indent=2, default=str))
            return 0

        if args.customer:
            banner(f"CUSTOMER {result.customer.name if result.customer else args.customer}  {args.value}")
            overview = result.overview
            field("runs", overview.total_runs)
            field("total money", overview.total_money)
            field("paid", overview.total_paid)
            field("debt", overview.total_debt)
            print_groups("Runs by account type", overview.runs_by_account_type)
            print_groups("Runs by product", overview.runs_by_product)
        elif args.supplier:
            banner(f"SUPPLIER {result.supplier.name if result.supplier else args.supplier}  {args.value}")
            overview = result.overview
            field("budgets", overview.total_budget_count)
            field("budget money", overview.total_budget_money)
            field("payable", overview.total_payable)
            print_groups("Budgets by account type", overview.budget_by_account_type)
        else:
            print_dashboard(result)

    banner("DONE")
    return 0


if __name__ == "__main__":
    sys.exit(main())
