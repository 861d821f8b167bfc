"""Command-line client for the invoicing backend."""
import argparse
import asyncio
import getpass
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from invoicedash.app import App, build_app, watch_invoices
from invoicedash.core.logging import configure_logging
from invoicedash.core.models import (
    CreateInvoiceInput,
    Invoice,
    InvoiceType,
    LoginCredentials,
    RegisterCredentials,
)
from invoicedash.core.status import classify, pending_invoices, status_label
from invoicedash.processing.stats import compute_stats, expense_breakdown, monthly_revenue
from invoicedash.reporting.sinks import push_to_google_sheets, write_csv, write_excel
from invoicedash.reporting.templates import invoices_to_rows

logger = logging.getLogger(__name__)


def _invoice_type(value: str) -> InvoiceType:
    try:
        return InvoiceType(value.upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"type must be one of {', '.join(t.value for t in InvoiceType)}") from exc


def _date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value}") from exc


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per operation."""

    parser = argparse.ArgumentParser(description="Manage invoices and follow their OCR processing")
    parser.add_argument("--log-level", help="Override LOG_LEVEL for this run")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Log in and store the session token")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")
    login.add_argument("--remember-me", action="store_true", help="Keep the session for longer")

    register = commands.add_parser("register", help="Create an account")
    register.add_argument("--email", required=True)
    register.add_argument("--first-name", required=True)
    register.add_argument("--last-name", required=True)
    register.add_argument("--password", help="Prompted for when omitted")
    register.add_argument("--accept-terms", action="store_true")

    commands.add_parser("logout", help="End the session")

    listing = commands.add_parser("list", help="List invoices with their processing status")
    listing.add_argument("--page", type=int, default=1)
    listing.add_argument("--limit", type=int, default=10)

    show = commands.add_parser("show", help="Show one invoice and its extracted lines")
    show.add_argument("invoice_id", type=int)

    upload = commands.add_parser("upload", help="Upload a document as a new invoice")
    upload.add_argument("file", type=Path)
    upload.add_argument("--name", help="Defaults to the file name")
    upload.add_argument("--type", type=_invoice_type, default=InvoiceType.EMIS)
    upload.add_argument("--date", type=_date, help="ISO date, defaults to now")
    upload.add_argument("--tag", type=int, action="append", default=[], dest="tags")
    upload.add_argument("--watch", action="store_true", help="Wait for extraction to finish")

    bulk = commands.add_parser("import", help="Upload several documents (.pdf, .csv, .xlsx)")
    bulk.add_argument("files", type=Path, nargs="+")
    bulk.add_argument("--type", type=_invoice_type, default=InvoiceType.RECUS)

    delete = commands.add_parser("delete", help="Delete an invoice")
    delete.add_argument("invoice_id", type=int)

    watch = commands.add_parser("watch", help="Poll processing invoices until extraction completes")
    watch.add_argument("--limit", type=int, default=100, help="How many recent invoices to watch")
    watch.add_argument("--interval-ms", type=int, help="Polling period (defaults to settings)")
    watch.add_argument("--timeout", type=float, help="Give up after this many seconds")

    stats = commands.add_parser("stats", help="Summarize revenue and expenses")
    stats.add_argument("--limit", type=int, default=100)
    stats.add_argument("--year", type=int)

    export = commands.add_parser("export", help="Export invoices to CSV, Excel, or Google Sheets")
    export.add_argument("--limit", type=int, default=100)
    export.add_argument(
        "--output",
        type=Path,
        default=Path("output/invoices.csv"),
        help="CSV file to write invoice rows to",
    )
    export.add_argument(
        "--sink",
        choices=["csv", "sheets", "excel"],
        default="csv",
        help="Where to forward rows after writing the CSV",
    )
    export.add_argument("--spreadsheet-id", help="Google Sheets spreadsheet ID for the sheets sink")
    export.add_argument("--worksheet", default="Sheet1", help="Worksheet title inside the Google Sheets document")
    export.add_argument(
        "--service-account",
        type=Path,
        help="Path to a Google service account JSON key used for Sheets pushes",
    )
    export.add_argument(
        "--excel-output",
        type=Path,
        help="Excel file to write when --sink=excel (defaults to --output with .xlsx)",
    )
    return parser


def _print_invoice_line(invoice: Invoice) -> None:
    date = invoice.date.date().isoformat() if invoice.date else "-"
    total = f"{invoice.total_amount:.2f}" if invoice.invoice_data else "-"
    print(f"{invoice.id:>6}  {date:<10}  {invoice.type.value:<5}  {total:>10}  {status_label(classify(invoice))}  {invoice.name}")


def _fail(message: Optional[str]) -> int:
    print(f"Error: {message or 'unknown error'}")
    return 1


def _load(app: App, limit: int) -> bool:
    return app.invoices.fetch_invoices(page=1, limit=limit)


def _cmd_login(app: App, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    if not app.auth.login(LoginCredentials(args.email, password, remember_me=args.remember_me)):
        return _fail(app.auth.state.error)
    print(f"Logged in as {app.auth.state.user.display_name}")
    return 0


def _cmd_register(app: App, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Password: ")
    credentials = RegisterCredentials(
        email=args.email,
        password=password,
        first_name=args.first_name,
        last_name=args.last_name,
        accept_terms=args.accept_terms,
    )
    if not app.auth.register(credentials):
        return _fail(app.auth.state.error)
    print(f"Registered {app.auth.state.user.email}")
    return 0


def _cmd_logout(app: App, args: argparse.Namespace) -> int:
    if not app.auth.logout():
        print(f"Logged out locally; backend reported: {app.auth.state.error}")
        return 0
    print("Logged out")
    return 0


def _cmd_list(app: App, args: argparse.Namespace) -> int:
    if not app.invoices.fetch_invoices(page=args.page, limit=args.limit):
        return _fail(app.invoices.state.error)
    state = app.invoices.state
    for invoice in state.invoices:
        _print_invoice_line(invoice)
    pending = len(pending_invoices(state.invoices))
    print(
        f"Page {state.pagination.page}/{max(state.pagination.total_pages, 1)} "
        f"({state.pagination.total} invoices, {pending} processing)"
    )
    return 0


def _cmd_show(app: App, args: argparse.Namespace) -> int:
    invoice = app.invoices.fetch_invoice(args.invoice_id)
    if invoice is None:
        return _fail(app.invoices.state.error)
    _print_invoice_line(invoice)
    if invoice.file_path:
        print(f"File: {invoice.file_path}")
    for line in invoice.invoice_data or []:
        print(f"    {line.amount:>10.2f}  {line.content}")
    return 0


def _cmd_upload(app: App, args: argparse.Namespace) -> int:
    if not args.file.exists():
        return _fail(f"{args.file} does not exist")
    details = CreateInvoiceInput(
        name=args.name or args.file.stem,
        date=args.date or datetime.now(),
        type=args.type,
        tag_ids=args.tags,
    )
    invoice = app.invoices.create_invoice(details, file=args.file)
    if invoice is None:
        return _fail(app.invoices.state.error)
    print(f"Created invoice {invoice.id}: {status_label(classify(invoice))}")
    if args.watch:
        return _watch(app, timeout=None, interval_ms=None)
    return 0


def _cmd_import(app: App, args: argparse.Namespace) -> int:
    result = app.invoices.import_invoices(args.files, type=args.type)
    for invoice in result.created:
        print(f"Imported {invoice.name} as invoice {invoice.id}")
    for name in result.skipped:
        print(f"Skipped {name}: unsupported file type")
    for name, message in result.failed.items():
        print(f"Failed {name}: {message}")
    return 1 if result.failed else 0


def _cmd_delete(app: App, args: argparse.Namespace) -> int:
    if not app.invoices.delete_invoice(args.invoice_id):
        return _fail(app.invoices.state.error)
    print(f"Deleted invoice {args.invoice_id}")
    return 0


def _watch(app: App, timeout: Optional[float], interval_ms: Optional[int]) -> int:
    pending = len(pending_invoices(app.invoices.state.invoices))
    if not pending:
        print("No invoices are processing")
        return 0
    interval = app.settings.poll_interval_ms if interval_ms is None else interval_ms
    if interval <= 0:
        return _fail(f"Polling interval must be positive to watch invoices (got {interval} ms)")
    print(f"Waiting for {pending} invoice(s) to finish processing...")
    finished = asyncio.run(watch_invoices(app, timeout=timeout, interval_ms=interval_ms))
    remaining = len(pending_invoices(app.invoices.state.invoices))
    if not finished:
        print(f"Timed out with {remaining} invoice(s) still processing")
        return 2
    print("All invoices processed")
    return 0


def _cmd_watch(app: App, args: argparse.Namespace) -> int:
    if not _load(app, args.limit):
        return _fail(app.invoices.state.error)
    return _watch(app, timeout=args.timeout, interval_ms=args.interval_ms)


def _cmd_stats(app: App, args: argparse.Namespace) -> int:
    if not _load(app, args.limit):
        return _fail(app.invoices.state.error)
    invoices = app.invoices.state.invoices
    stats = compute_stats(invoices)
    print(
        f"Invoices: {stats.total_invoices} "
        f"(processed {stats.completed}, processing {stats.processing}, uploaded {stats.uploaded})"
    )
    print(f"Revenue:  {stats.revenue:.2f}")
    print(f"Expenses: {stats.expenses:.2f}")
    print("Monthly revenue:")
    for row in monthly_revenue(invoices, year=args.year):
        print(f"    {row.month:<4} {row.revenue:>10.2f}")
    breakdown = expense_breakdown(invoices)
    if breakdown:
        print("Expenses by category:")
        for category in breakdown:
            print(f"    {category.amount:>10.2f}  {category.category}")
    return 0


def _cmd_export(app: App, args: argparse.Namespace) -> int:
    if not _load(app, args.limit):
        return _fail(app.invoices.state.error)
    rows = invoices_to_rows(app.invoices.state.invoices)
    if args.sink == "sheets" and not args.spreadsheet_id:
        return _fail("--spreadsheet-id is required when --sink=sheets")

    count = write_csv(rows, args.output)
    logger.info("Wrote CSV output to %s", args.output)
    print(f"Wrote {count} invoice(s) to {args.output}")

    if args.sink == "excel":
        excel_target = args.excel_output or args.output.with_suffix(".xlsx")
        write_excel(rows, excel_target)
        print(f"Wrote {count} invoice(s) to {excel_target}")
    elif args.sink == "sheets":
        pushed = push_to_google_sheets(
            rows,
            spreadsheet_id=args.spreadsheet_id,
            worksheet_title=args.worksheet,
            service_account_path=args.service_account,
        )
        if pushed:
            print(f"Pushed {pushed} invoice(s) to Google Sheets document {args.spreadsheet_id}")
        else:
            print("No invoices to push to Google Sheets")
    return 0


COMMANDS = {
    "login": _cmd_login,
    "register": _cmd_register,
    "logout": _cmd_logout,
    "list": _cmd_list,
    "show": _cmd_show,
    "upload": _cmd_upload,
    "import": _cmd_import,
    "delete": _cmd_delete,
    "watch": _cmd_watch,
    "stats": _cmd_stats,
    "export": _cmd_export,
}


def main(argv: Optional[List[str]] = None, app: Optional[App] = None) -> int:
    """Entrypoint for the ``invoicedash`` command."""

    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    app = app or build_app()
    return COMMANDS[args.command](app, args)


if __name__ == "__main__":
    raise SystemExit(main())
