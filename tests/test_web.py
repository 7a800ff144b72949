"""Tests for the Flask web front end"""

import pytest

from interest_calc.data_models import LedgerSettings
from interest_calc_web.app import create_app


@pytest.fixture
def client(configured_store):
    app = create_app(configured_store)
    app.config["TESTING"] = True
    return app.test_client()


def test_index_lists_vouchers(client, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000, "Yarn")
    response = client.get("/?sort=amount&dir=asc")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "Acme Traders" in body
    assert "SR-1" in body
    assert "10000.00" in body


def test_add_voucher(client, configured_store):
    response = client.post(
        "/vouchers/add",
        data={"voucher_no": "SR-1", "voucher_date": "2024-01-01", "kind": "debit", "amount": "2500", "description": ""},
    )

    assert response.status_code == 302
    assert [v.voucher_no for v in configured_store.list_vouchers()] == ["SR-1"]


def test_add_voucher_missing_fields(client, configured_store):
    response = client.post("/vouchers/add", data={"voucher_no": "", "voucher_date": "2024-01-01", "amount": "1"})

    assert response.status_code == 200
    assert "Please fill all required fields" in response.get_data(as_text=True)
    assert configured_store.list_vouchers() == []


def test_add_voucher_requires_party_name(store):
    client = create_app(store).test_client()
    response = client.post(
        "/vouchers/add",
        data={"voucher_no": "SR-1", "voucher_date": "2024-01-01", "kind": "debit", "amount": "1"},
    )

    assert "party name" in response.get_data(as_text=True)
    assert store.list_vouchers() == []


def test_edit_and_delete_voucher(client, configured_store):
    entry = configured_store.add_voucher("SR-1", "2024-01-01", "debit", 1000)

    assert client.get(f"/vouchers/{entry.id}/edit").status_code == 200
    response = client.post(
        f"/vouchers/{entry.id}/edit",
        data={"voucher_no": "SR-1A", "voucher_date": "2024-01-02", "kind": "debit", "amount": "1200", "description": "x"},
    )
    assert response.status_code == 302
    assert configured_store.get_voucher(entry.id).voucher_no == "SR-1A"

    assert client.post(f"/vouchers/{entry.id}/delete").status_code == 302
    assert configured_store.list_vouchers() == []
    assert client.post(f"/vouchers/{entry.id}/delete").status_code == 404
    assert client.get(f"/vouchers/{entry.id}/edit").status_code == 404


def test_settings_page(client, configured_store):
    response = client.post(
        "/settings",
        data={"party_name": "Beta Mills", "default_grace_period": "30", "default_interest_rate": "12"},
    )

    assert response.status_code == 302
    settings = configured_store.load_settings()
    assert settings.party_name == "Beta Mills"
    assert settings.default_grace_period == 30


def test_settings_page_requires_party_name(client):
    response = client.post("/settings", data={"party_name": ""})
    assert "Party name is required" in response.get_data(as_text=True)


def test_calculate_interest_page(client, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)
    configured_store.add_voucher("CH-1", "2024-02-01", "credit", 4000)

    response = client.post(
        "/calculate-interest",
        data={"as_of_date": "2024-03-01", "grace_period": "15", "interest_rate": "18"},
    )

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Total Interest: Rs. 164.71" in body
    assert "16/01/2024 to 01/02/2024" in body
    assert "INTEREST @ 18% is Rs. 164.71 Receivable" in body


def test_settings_page_rejects_nan_rate(client, configured_store):
    response = client.post(
        "/settings",
        data={"party_name": "Beta Mills", "default_grace_period": "30", "default_interest_rate": "nan"},
    )

    assert response.status_code == 200
    assert "finite number" in response.get_data(as_text=True)
    assert configured_store.load_settings().party_name == "Acme Traders"


def test_calculate_interest_rejects_nan_rate(client, configured_store):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)

    response = client.post("/calculate-interest", data={"as_of_date": "2024-03-01", "interest_rate": "nan"})

    assert response.status_code == 200
    assert "finite number" in response.get_data(as_text=True)


def test_calculate_interest_without_vouchers(client):
    response = client.post("/calculate-interest", data={"as_of_date": "2024-03-01"})
    assert "No vouchers found" in response.get_data(as_text=True)


@pytest.mark.parametrize(
    "fmt,content_type",
    [
        ("xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ("pdf", "application/pdf"),
        ("csv", "text/csv"),
        ("json", "application/json"),
    ],
)
def test_export_download(client, configured_store, fmt, content_type):
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)

    response = client.get(f"/calculate-interest/export/{fmt}?as_of_date=2024-03-01")

    assert response.status_code == 200
    assert response.mimetype == content_type
    assert "attachment" in response.headers["Content-Disposition"]


def test_export_unknown_format(client):
    assert client.get("/calculate-interest/export/docx").status_code == 404


def test_export_filename_with_quotes_and_non_latin_party_name(client, configured_store):
    configured_store.save_settings(LedgerSettings(party_name='Şahin "Textiles"'))
    configured_store.add_voucher("SR-1", "2024-01-01", "debit", 10000)

    response = client.get("/calculate-interest/export/csv?as_of_date=2024-03-01")

    disposition = response.headers["Content-Disposition"]
    assert response.status_code == 200
    assert disposition.startswith("attachment")
    assert "filename*=UTF-8''%C5%9Eahin%20%22Textiles%22_Interest_2024-03-01.csv" in disposition
