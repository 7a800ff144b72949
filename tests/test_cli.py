"""Tests for the click command-line interface"""

import json

import pytest
from click.testing import CliRunner

from interest_calc.main import cli, parse_amount


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, store, *args):
    return runner.invoke(cli, list(args), obj={"store": store})


def test_parse_amount_suffixes():
    assert parse_amount("50k") == 50_000
    assert parse_amount("2l") == 200_000
    assert parse_amount("1,250.50") == parse_amount("1250.50")


def test_settings_show_and_update(runner, store):
    result = invoke(runner, store, "settings")
    assert result.exit_code == 0
    assert "(not set)" in result.output

    result = invoke(runner, store, "settings", "--party", "Acme Traders", "--grace", "10", "--rate", "24")
    assert result.exit_code == 0, result.output
    assert "Settings saved" in result.output
    saved = store.load_settings()
    assert saved.party_name == "Acme Traders"
    assert saved.default_grace_period == 10
    assert str(saved.default_interest_rate) == "24"


def test_settings_rejects_negative_rate(runner, store):
    result = invoke(runner, store, "settings", "--party", "Acme", "--rate", "-1")
    assert result.exit_code != 0


@pytest.mark.parametrize("rate", ["nan", "inf"])
def test_settings_rejects_non_finite_rate(runner, store, rate):
    result = invoke(runner, store, "settings", "--party", "Acme", "--rate", rate)

    assert result.exit_code == 2
    assert "finite number" in result.output
    assert store.load_settings().party_name == ""


def test_add_requires_party_name(runner, store):
    result = invoke(runner, store, "add", "--no", "SR-1", "--date", "2024-01-01", "--amount", "1000")
    assert result.exit_code != 0
    assert "party name" in result.output
    assert store.list_vouchers() == []


def test_add_list_edit_delete(runner, configured_store):
    result = invoke(runner, configured_store, "add", "--no", "SR-1", "--date", "01/01/2024", "--amount", "10k")
    assert result.exit_code == 0, result.output
    entry = configured_store.list_vouchers()[0]
    assert str(entry.amount) == "10000"

    result = invoke(runner, configured_store, "list")
    assert "SR-1" in result.output
    assert "10000.00" in result.output

    result = invoke(runner, configured_store, "edit", entry.id, "--amount", "12000")
    assert result.exit_code == 0, result.output
    assert str(configured_store.get_voucher(entry.id).amount) == "12000"

    result = invoke(runner, configured_store, "delete", entry.id)
    assert result.exit_code == 0
    assert configured_store.list_vouchers() == []


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_add_rejects_non_positive_amount(runner, configured_store, amount):
    result = invoke(runner, configured_store, "add", "--no", "SR-1", "--date", "2024-01-01", "--amount", amount)

    assert result.exit_code == 2
    assert "amount must be a positive number" in result.output
    assert configured_store.list_vouchers() == []


def test_edit_and_delete_unknown_voucher(runner, configured_store):
    assert invoke(runner, configured_store, "edit", "nope", "--amount", "1").exit_code != 0
    assert invoke(runner, configured_store, "delete", "nope").exit_code != 0


def test_add_rejects_bad_date(runner, configured_store):
    result = invoke(runner, configured_store, "add", "--no", "SR-1", "--date", "2024-02-30", "--amount", "10")
    assert result.exit_code != 0
    assert configured_store.list_vouchers() == []


def test_import_vouchers(runner, configured_store, tmp_path):
    path = tmp_path / "vouchers.json"
    path.write_text(
        json.dumps(
            [
                {"voucherNo": "SR-1", "voucherDate": "2024-01-01", "type": "debit", "amount": 10000},
                {"voucherNo": "CH-1", "voucherDate": "2024-02-01", "type": "credit", "amount": 4000},
            ]
        )
    )
    result = invoke(runner, configured_store, "import", str(path))
    assert result.exit_code == 0, result.output
    assert "Imported 2 vouchers" in result.output


def test_calculate_requires_party_name(runner, store):
    store.add_voucher("SR-1", "2024-01-01", "debit", 1000)
    result = invoke(runner, store, "calculate", "--as-of", "2024-03-01")
    assert result.exit_code != 0
    assert "party name" in result.output


def test_calculate_requires_vouchers(runner, configured_store):
    result = invoke(runner, configured_store, "calculate")
    assert result.exit_code != 0
    assert "No vouchers found" in result.output


def test_calculate_prints_report(runner, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)
    result = invoke(runner, configured_store, "calculate", "--as-of", "2024-03-01")

    assert result.exit_code == 0, result.output
    assert "Total interest     : 221.92" in result.output
    assert "16/01/2024 to 01/03/2024: 10000.00 × 18% × 45/365 = 221.92" in result.output
    assert "INTEREST @ 18% is Rs. 221.92 Receivable" in result.output


def test_calculate_overrides_rate_and_grace(runner, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)
    result = invoke(runner, configured_store, "calculate", "--as-of", "2024-03-01", "--grace", "0", "--rate", "0")

    assert result.exit_code == 0, result.output
    assert "Total interest     : 0.00" in result.output


def test_calculate_exports(runner, configured_store, tmp_path):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)
    out = tmp_path / "report.json"
    result = invoke(runner, configured_store, "calculate", "--as-of", "2024-03-01", "--output", str(out))

    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text())["summary"]["total_interest"] == 221.92

    bad = invoke(runner, configured_store, "calculate", "--output", str(tmp_path / "report.txt"))
    assert bad.exit_code != 0


def test_calculate_rejects_nan_rate(runner, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)
    result = invoke(runner, configured_store, "calculate", "--as-of", "2024-03-01", "--rate", "nan")

    assert result.exit_code == 2
    assert "finite number" in result.output
