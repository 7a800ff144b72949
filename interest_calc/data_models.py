"""Data models for the interest calculator.

This module defines dataclasses representing the entities used by the
calculator: ledger entries (debit and credit vouchers), the allocation of a
payment to an invoice, the constant-principal interest periods of an invoice
and the final calculation result. Derived structures are frozen so that no
stage of the pipeline can change another stage's output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List


class EntryKind(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class LedgerEntry:
    """A single voucher in the counterparty ledger.

    Attributes
    ----------
    id: str
        Opaque identifier assigned by the ledger store.
    voucher_no: str
        Free-text label. Not guaranteed to be unique.
    voucher_date: date
        Calendar date of the voucher.
    description: str
        Free text, may be empty.
    kind: EntryKind
        ``DEBIT`` for an invoice/bill, ``CREDIT`` for a payment.
    amount: Decimal
        Strictly positive amount.
    """

    id: str
    voucher_no: str
    voucher_date: date
    description: str
    kind: EntryKind
    amount: Decimal

    @property
    def is_debit(self) -> bool:
        return self.kind is EntryKind.DEBIT


@dataclass(frozen=True)
class PaymentAllocation:
    """The portion of a credit entry applied to settle one debit entry."""

    credit_entry: LedgerEntry
    applied_amount: Decimal

    @property
    def payment_date(self) -> date:
        return self.credit_entry.voucher_date


@dataclass(frozen=True)
class InterestPeriod:
    """A constant-principal interval of an invoice's settlement history."""

    from_date: date
    to_date: date
    principal: Decimal
    days: int
    interest_amount: Decimal


@dataclass(frozen=True)
class DebitSettlement:
    """How one debit entry was reduced over time and what interest it accrued.

    ``interest_total`` is always the exact sum of ``periods``; the periods
    are ordered chronologically and neither overlap nor leave gaps.
    """

    entry: LedgerEntry
    due_date: date
    allocations: List[PaymentAllocation]
    periods: List[InterestPeriod]
    interest_total: Decimal

    @property
    def settled_amount(self) -> Decimal:
        return sum((a.applied_amount for a in self.allocations), Decimal("0"))

    @property
    def outstanding_amount(self) -> Decimal:
        return self.entry.amount - self.settled_amount

    @property
    def is_settled(self) -> bool:
        return self.outstanding_amount <= 0


@dataclass(frozen=True)
class CalculationResult:
    """Final output of the engine, consumed by the report renderers."""

    party_name: str
    as_of_date: date
    grace_period: int
    interest_rate: Decimal  # annual rate in percent
    debit_settlements: List[DebitSettlement]
    credit_entries: List[LedgerEntry]
    all_entries: List[LedgerEntry]
    total_debit: Decimal
    total_credit: Decimal
    total_interest: Decimal

    @property
    def net_balance(self) -> Decimal:
        """Positive when the party owes money (Dr), negative when in credit (Cr)."""
        return self.total_debit - self.total_credit

    @property
    def unapplied_credit(self) -> Decimal:
        applied = sum(
            (s.settled_amount for s in self.debit_settlements), Decimal("0")
        )
        return self.total_credit - applied

    @property
    def start_date(self) -> date:
        return self.all_entries[0].voucher_date if self.all_entries else self.as_of_date


@dataclass
class LedgerSettings:
    """Persisted configuration for the ledger being calculated.

    ``party_name`` must be set before interest can be calculated; the
    defaults are pre-filled into the calculation form and CLI options.
    """

    party_name: str = ""
    default_grace_period: int = 15
    default_interest_rate: Decimal = field(default_factory=lambda: Decimal("18"))
    currency_symbol: str = "Rs."
    firm_name: str = ""
