"""Unit tests for the account copy and file exports"""

import io
import json
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from conftest import credit, debit
from interest_calc.data_models import LedgerSettings
from interest_calc.engine import calculate_interest
from interest_calc.exporters import export_filename, export_result, render_export, result_to_dict
from interest_calc.formatter import (
    ACCOUNT_TOTAL_LABEL,
    OPENING_BALANCE_LABEL,
    describe_period,
    interest_footer,
    ledger_rows,
    print_ledger,
    print_summary,
    report_title,
)


@pytest.fixture
def result():
    entries = [
        debit("2024-01-01", 10000, voucher_no="SR-1", description="Yarn"),
        credit("2024-02-01", 4000, voucher_no="CH-1"),
    ]
    return calculate_interest(entries, "Acme Traders", "2024-03-01", 15, 18)


@pytest.fixture
def settings():
    return LedgerSettings(party_name="Acme Traders", firm_name="H.S. TRADERS")


def test_describe_period(result):
    period = result.debit_settlements[0].periods[0]
    assert describe_period(period, result.interest_rate) == (
        "16/01/2024 to 01/02/2024: 10000.00 × 18% × 16/365 = 78.90"
    )


def test_ledger_rows_running_balance(result):
    rows = ledger_rows(result)

    assert rows[0].narration == OPENING_BALANCE_LABEL
    assert rows[0].balance == "0.00 Dr"
    assert rows[1].debit == "10000.00"
    assert rows[1].balance == "10000.00 Dr"
    assert rows[1].narration.startswith("SR-1  Yarn")
    assert len(rows[1].interest_lines) == 2
    assert rows[2].credit == "4000.00"
    assert rows[2].balance == "6000.00 Dr"
    assert "(CH)" in rows[2].narration
    assert rows[2].interest_lines == []
    assert rows[-1].narration == ACCOUNT_TOTAL_LABEL
    assert rows[-1].balance == "6000.00 Dr"


def test_ledger_rows_credit_balance():
    result = calculate_interest(
        [debit("2024-01-01", 100), credit("2024-01-02", 250)], "Acme", "2024-01-10", 15, 18
    )
    assert ledger_rows(result)[-1].balance == "150.00 Cr"


def test_title_and_footer(result):
    assert report_title(result) == "Copy of A/C of: Acme Traders From 01/01/2024 TO 01/03/2024"
    assert interest_footer(result) == "INTEREST @ 18% is Rs. 164.71 Receivable"


def test_fractional_rate_in_footer():
    result = calculate_interest([debit("2024-01-01", 100)], "Acme", "2024-01-02", 0, Decimal("12.50"))
    assert "@ 12.5%" in interest_footer(result)


def test_print_summary_and_ledger(result, capsys):
    print_summary(result)
    print_ledger(result, "H.S. TRADERS")
    out = capsys.readouterr().out

    assert "Total interest     : 164.71" in out
    assert "H.S. TRADERS" in out
    assert "Receivable" in out


def test_result_to_dict(result):
    data = result_to_dict(result)

    assert data["summary"]["total_interest"] == 164.71
    voucher = data["debit_vouchers"][0]
    assert voucher["due_date"] == "2024-01-16"
    assert voucher["payments"][0]["applied_amount"] == 4000.0
    assert [p["days"] for p in voucher["periods"]] == [16, 29]
    assert voucher["outstanding_amount"] == 6000.0
    json.dumps(data)


def test_export_csv(result, settings):
    content = render_export("csv", result, settings).decode("utf-8")
    lines = content.splitlines()

    assert lines[0].startswith("Date,Narration,Debit,Credit,Balance")
    assert OPENING_BALANCE_LABEL in lines[1]
    assert ACCOUNT_TOTAL_LABEL in lines[-1]


def test_export_excel(result, settings):
    content = render_export("xlsx", result, settings)
    ws = load_workbook(io.BytesIO(content)).active

    values = [cell.value for row in ws.iter_rows() for cell in row if cell.value]
    assert ws["A1"].value == "H.S. TRADERS"
    assert ws["A2"].value == report_title(result)
    assert OPENING_BALANCE_LABEL in values
    assert "INTEREST @ 18% is Rs. 164.71 Receivable" in values


def test_export_pdf(result, settings):
    content = render_export("pdf", result, settings)
    assert content.startswith(b"%PDF")


def test_export_result_writes_file(result, settings, tmp_path):
    path = tmp_path / export_filename(result, "json")
    export_result(path, result, settings)

    assert path.name == "Acme Traders_Interest_2024-03-01.json"
    assert json.loads(path.read_text())["summary"]["party_name"] == "Acme Traders"


def test_unknown_export_format(result, settings):
    with pytest.raises(ValueError, match="Unsupported"):
        render_export("docx", result, settings)
