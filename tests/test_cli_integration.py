"""Integration-style tests that drive the CLI against the in-memory backend."""
import csv
from dataclasses import replace
from pathlib import Path

import pytest
from openpyxl import load_workbook

from conftest import PASSWORD, TOKEN
from invoicedash import cli
from invoicedash.app import build_app
from invoicedash.cli import main as cli_main


def _document(tmp_path: Path, name: str = "april.pdf") -> Path:
    path = tmp_path / name
    path.write_bytes(b"%PDF-1.4 fake")
    return path


def test_cli_login(app, capsys) -> None:
    app.session.clear()

    assert cli_main(["login", "--email", "ada@example.com", "--password", PASSWORD, "--remember-me"], app=app) == 0

    assert "Logged in as Ada Lovelace" in capsys.readouterr().out
    assert app.session.token()


def test_cli_login_failure_exits_non_zero(app, capsys) -> None:
    assert cli_main(["login", "--email", "ada@example.com", "--password", "nope"], app=app) == 1
    assert "Error: Invalid credentials" in capsys.readouterr().out


def test_cli_list_shows_status_badges(app, backend, capsys) -> None:
    backend.add("done", file_path="uploads/done.pdf", lines=[{"content": "Work", "amount": 10}])
    backend.add_processing("scan")

    assert cli_main(["list"], app=app) == 0

    out = capsys.readouterr().out
    assert "🟢 Processed" in out
    assert "🟡 Processing..." in out
    assert "(2 invoices, 1 processing)" in out


def test_cli_list_reports_connection_error(app, backend, capsys) -> None:
    backend.offline = True

    assert cli_main(["list"], app=app) == 1
    assert "Error: Could not reach the server" in capsys.readouterr().out


def test_cli_show_prints_lines(app, backend, capsys) -> None:
    record = backend.add_processing("scan", reads=1)

    assert cli_main(["show", str(record["id"])], app=app) == 0

    out = capsys.readouterr().out
    assert "Consulting" in out
    assert "1200.00" in out


def test_cli_upload_and_watch_until_processed(app, backend, tmp_path: Path, capsys) -> None:
    document = _document(tmp_path)

    assert cli_main(["upload", str(document), "--type", "recus", "--tag", "3", "--watch"], app=app) == 0

    out = capsys.readouterr().out
    assert "Created invoice 1: 🟡 Processing..." in out
    assert "All invoices processed" in out
    assert app.invoices.state.invoices[0].total_amount == pytest.approx(1500.5)
    assert backend.operations().count("GetInvoice") >= backend.reads_before_extraction


def test_cli_upload_missing_file(app, tmp_path: Path, capsys) -> None:
    assert cli_main(["upload", str(tmp_path / "missing.pdf")], app=app) == 1
    assert "does not exist" in capsys.readouterr().out


def test_cli_watch_times_out(app, backend, capsys) -> None:
    backend.add_processing("slow", reads=10_000)

    assert cli_main(["watch", "--timeout", "0.1", "--interval-ms", "20"], app=app) == 2
    assert "Timed out with 1 invoice(s) still processing" in capsys.readouterr().out


def test_cli_watch_rejects_non_positive_interval(app, backend, capsys) -> None:
    backend.add_processing("scan")

    assert cli_main(["watch", "--interval-ms", "0"], app=app) == 1
    assert "Polling interval must be positive" in capsys.readouterr().out
    assert backend.operations().count("GetInvoice") == 0


def test_cli_upload_watch_with_polling_disabled(backend, settings, tmp_path: Path, capsys) -> None:
    app = build_app(settings=replace(settings, poll_interval_ms=0), http_session=backend)
    app.session.save(TOKEN)

    assert cli_main(["upload", str(_document(tmp_path)), "--watch"], app=app) == 1
    assert "Polling interval must be positive" in capsys.readouterr().out


def test_cli_watch_with_nothing_pending(app, backend, capsys) -> None:
    backend.add("manual")

    assert cli_main(["watch"], app=app) == 0
    assert "No invoices are processing" in capsys.readouterr().out


def test_cli_import_reports_each_file(app, tmp_path: Path, capsys) -> None:
    files = [_document(tmp_path, "a.pdf"), _document(tmp_path, "b.docx")]

    assert cli_main(["import", *map(str, files)], app=app) == 0

    out = capsys.readouterr().out
    assert "Imported a as invoice 1" in out
    assert "Skipped b.docx" in out


def test_cli_delete(app, backend, capsys) -> None:
    record = backend.add("old")

    assert cli_main(["delete", str(record["id"])], app=app) == 0
    assert record["id"] not in backend.records


def test_cli_stats(app, backend, capsys) -> None:
    backend.add("done", file_path="uploads/done.pdf", lines=[{"content": "Work", "amount": 80}])
    backend.add("bill", file_path="uploads/bill.pdf", type="RECUS", lines=[{"content": "Rent", "amount": 30}])

    assert cli_main(["stats"], app=app) == 0

    out = capsys.readouterr().out
    assert "Revenue:  80.00" in out
    assert "Expenses: 30.00" in out
    assert "Rent" in out


def test_cli_writes_csv_output(app, backend, tmp_path: Path) -> None:
    backend.add("one")
    backend.add("two")
    output = tmp_path / "invoices.csv"

    assert cli_main(["export", "--output", str(output)], app=app) == 0

    with output.open(encoding="utf-8") as fh:
        assert [row["Name"] for row in csv.DictReader(fh)] == ["two", "one"]


def test_cli_writes_excel_output(app, backend, tmp_path: Path) -> None:
    backend.add("one")
    excel_output = tmp_path / "invoices.xlsx"

    assert (
        cli_main(
            ["export", "--output", str(tmp_path / "invoices.csv"), "--sink", "excel", "--excel-output", str(excel_output)],
            app=app,
        )
        == 0
    )

    sheet = load_workbook(excel_output).active
    assert sheet.title == "invoices"
    assert sheet.max_row == 2


def test_cli_sheets_sink(app, backend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backend.add("one")
    captured = {}

    def fake_push(rows, **kwargs):
        captured["rows"] = list(rows)
        captured.update(kwargs)

    monkeypatch.setattr(cli, "push_to_google_sheets", fake_push)

    assert (
        cli_main(
            ["export", "--output", str(tmp_path / "x.csv"), "--sink", "sheets", "--spreadsheet-id", "abc"],
            app=app,
        )
        == 0
    )
    assert captured["spreadsheet_id"] == "abc"
    assert len(captured["rows"]) == 1


def test_cli_sheets_sink_requires_spreadsheet_id(app, backend, tmp_path: Path, capsys) -> None:
    backend.add("one")

    assert cli_main(["export", "--output", str(tmp_path / "x.csv"), "--sink", "sheets"], app=app) == 1
    assert "--spreadsheet-id is required" in capsys.readouterr().out


def test_cli_export_without_invoices_writes_headers(app, tmp_path: Path, capsys) -> None:
    output = tmp_path / "invoices.csv"

    assert cli_main(["export", "--output", str(output)], app=app) == 0

    assert f"Wrote 0 invoice(s) to {output}" in capsys.readouterr().out
    with output.open(encoding="utf-8") as fh:
        assert next(csv.reader(fh))[0] == "Id"


def test_cli_list_reports_malformed_backend_records(app, backend, capsys) -> None:
    backend.add("odd", type="BOGUS")

    assert cli_main(["list"], app=app) == 1
    assert "Error: Failed to fetch invoices" in capsys.readouterr().out
