"""Export destinations for invoice rows: CSV, Excel, and Google Sheets.

CSV and Excel exports always produce a file, header-only when there are no
invoices. Google Sheets pushes are skipped for an empty export so an existing
worksheet is not wiped.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

from invoicedash.reporting.templates import INVOICE_HEADERS

logger = logging.getLogger(__name__)


def _table(rows: Iterable[Dict[str, Any]]) -> List[List[Any]]:
    """Header row followed by one list of cells per invoice, in column order."""

    return [list(INVOICE_HEADERS)] + [[row.get(header, "") for header in INVOICE_HEADERS] for row in rows]


def write_csv(rows: Iterable[Dict[str, Any]], output_path: Path) -> int:
    """Write invoice rows to ``output_path``; return how many rows were written."""

    table = _table(rows)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        csv.writer(csvfile).writerows(table)
    return len(table) - 1


def write_excel(rows: Iterable[Dict[str, Any]], output_path: Path) -> int:
    """Write invoice rows to an ``invoices`` sheet; return how many rows were written."""

    from openpyxl import Workbook

    table = _table(rows)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "invoices"
    for values in table:
        sheet.append(values)
    workbook.save(output_path)
    return len(table) - 1


def push_to_google_sheets(
    rows: Iterable[Dict[str, Any]],
    spreadsheet_id: str,
    worksheet_title: str = "Sheet1",
    service_account_path: Path | None = None,
) -> int:
    """Replace a worksheet's content with the invoice rows; return how many were pushed."""

    table = _table(rows)
    if len(table) == 1:
        logger.info("No invoice rows to push to Google Sheets document %s", spreadsheet_id)
        return 0

    import gspread

    client = (
        gspread.service_account(filename=str(service_account_path))
        if service_account_path
        else gspread.service_account()
    )
    worksheet = client.open_by_key(spreadsheet_id).worksheet(worksheet_title)
    worksheet.clear()
    worksheet.append_rows(table)
    return len(table) - 1
