from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from shopledger.application.container import AppContainer, build_container
from shopledger.config import load_config
from shopledger.domain.errors import AppError
from shopledger.logging_config import setup_logging

log = logging.getLogger(__name__)


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _cmd_customers(c: AppContainer, args: argparse.Namespace) -> None:
    summaries = c.customers.summaries()
    if args.search:
        wanted = {x.id for x in c.customers.search(args.search)}
        summaries = [s for s in summaries if s.customer.id in wanted]
    for s in summaries:
        cust = s.customer
        print(f"{cust.id:<8} {cust.name:<24} {cust.phone:<14} due={_money(s.due_amount):>12}  last={s.last_purchase}")


def _cmd_dues(c: AppContainer, args: argparse.Namespace) -> None:
    owing = [s for s in c.customers.summaries() if s.due_amount > 0]
    for s in sorted(owing, key=lambda s: s.due_since):
        print(f"{s.customer.id:<8} {s.customer.name:<24} {_money(s.due_amount):>12}  since {s.due_since}")
    print(f"Total due: {_money(c.customers.total_due())}")


def _cmd_pay(c: AppContainer, args: argparse.Namespace) -> None:
    result = c.payments.record_payment(args.customer_id, args.amount, method=args.method)
    print(f"Recorded {result.payment.id} for {_money(result.payment.amount)}")
    for sale_id, applied in result.allocations:
        print(f"  {sale_id}: {_money(applied)}")
    if result.unapplied:
        print(f"  unapplied: {_money(result.unapplied)}")


def _cmd_report(c: AppContainer, args: argparse.Namespace) -> None:
    r = c.reporting.period_report(args.start, args.end)
    print(f"Window {r.start} -> {r.end}")
    print(f"  Total Sell & Service: {_money(r.total_revenue)}")
    print(f"  Paid Amount:          {_money(r.total_paid)}")
    print(f"  Due Amount:           {_money(r.total_due)}")
    print(f"  Total Profit:         {_money(r.total_profit)}")
    print(f"  Total Expenses:       {_money(r.total_expenses)}")
    print(f"  Stock Value:          {_money(r.stock_value)}")


def _cmd_export_report(c: AppContainer, args: argparse.Namespace) -> None:
    c.reporting.export_report_excel(args.path, args.start, args.end)
    print(f"Report written to {args.path}")


def _cmd_import_customers(c: AppContainer, args: argparse.Namespace) -> None:
    count = c.excel.import_customers_excel(args.path)
    print(f"Imported {count} customers")


def _cmd_export_customers(c: AppContainer, args: argparse.Namespace) -> None:
    count = c.excel.export_customers_excel(args.path)
    print(f"Exported {count} customers to {args.path}")


def build_parser() -> argparse.ArgumentParser:
    first_of_month = date.today().replace(day=1).isoformat()
    today = date.today().isoformat()

    parser = argparse.ArgumentParser(prog="shopledger", description="Shop ledger: sales, purchases, dues and reports.")
    parser.add_argument("--db", help="Path to the ledger database (defaults to the per-user data dir).")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("customers", help="List customers with their derived dues.")
    p.add_argument("--search", help="Filter by name or phone.")
    p.set_defaults(func=_cmd_customers)

    p = sub.add_parser("dues", help="List customers who owe money, oldest debt first.")
    p.set_defaults(func=_cmd_dues)

    p = sub.add_parser("pay", help="Record a customer payment and settle oldest invoices first.")
    p.add_argument("customer_id")
    p.add_argument("amount", type=float)
    p.add_argument("--method", default="Cash")
    p.set_defaults(func=_cmd_pay)

    for name, func, help_text in (
        ("report", _cmd_report, "Print the period report."),
        ("export-report", _cmd_export_report, "Write the period report to an .xlsx file."),
    ):
        p = sub.add_parser(name, help=help_text)
        if name == "export-report":
            p.add_argument("path")
        p.add_argument("--from", dest="start", default=first_of_month)
        p.add_argument("--to", dest="end", default=today)
        p.set_defaults(func=func)

    p = sub.add_parser("import-customers", help="Import customers from an .xlsx file (Name, Phone, Address).")
    p.add_argument("path")
    p.set_defaults(func=_cmd_import_customers)

    p = sub.add_parser("export-customers", help="Export customers with dues to an .xlsx file.")
    p.add_argument("path")
    p.set_defaults(func=_cmd_export_customers)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config()
    setup_logging(config.logs_dir, level=config.log_level)
    db_path = Path(args.db) if args.db else config.db_path

    container = build_container(db_path)
    try:
        args.func(container, args)
    except AppError as e:
        log.warning("command_failed command=%s error=%s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
