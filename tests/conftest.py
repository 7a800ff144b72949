"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal
from itertools import count

import pytest

from interest_calc.data_models import EntryKind, LedgerEntry, LedgerSettings
from interest_calc.ledger_store import LedgerStore

_ids = count(1)


def make_entry(kind: str, voucher_date: str, amount, voucher_no: str | None = None, description: str = "") -> LedgerEntry:
    """Build a ledger entry with a fresh id"""
    n = next(_ids)
    return LedgerEntry(
        id=f"{kind}-{n}",
        voucher_no=voucher_no or f"{'SR' if kind == 'debit' else 'CH'}-{n}",
        voucher_date=date.fromisoformat(voucher_date),
        description=description,
        kind=EntryKind(kind),
        amount=Decimal(str(amount)),
    )


def debit(voucher_date: str, amount, **kwargs) -> LedgerEntry:
    return make_entry("debit", voucher_date, amount, **kwargs)


def credit(voucher_date: str, amount, **kwargs) -> LedgerEntry:
    return make_entry("credit", voucher_date, amount, **kwargs)


@pytest.fixture
def store(tmp_path) -> LedgerStore:
    """Ledger store backed by a temporary SQLite file"""
    return LedgerStore(f"sqlite:///{tmp_path / 'ledger.sqlite3'}")


@pytest.fixture
def configured_store(store: LedgerStore) -> LedgerStore:
    """Store with a party name and the usual defaults"""
    store.save_settings(LedgerSettings(party_name="Acme Traders", firm_name="H.S. TRADERS"))
    return store


@pytest.fixture
def sample_ledger() -> list[LedgerEntry]:
    """Two invoices and a payment split across them"""
    return [
        debit("2024-01-01", 5000, voucher_no="SR-1"),
        debit("2024-01-05", 5000, voucher_no="SR-2"),
        credit("2024-02-01", 7000, voucher_no="CH-1"),
    ]
