"""Output helpers for the interest calculator.

This module turns a ``CalculationResult`` into the account-copy ledger that
the terminal, web page and file exports all show: an opening balance row,
one row per voucher with its running balance, the interest narration under
each interest-bearing invoice and an account total. Amounts are rounded to
two places here and nowhere earlier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from .data_models import CalculationResult, DebitSettlement, InterestPeriod, LedgerEntry
from .utils import (
    DISPLAY_DATE_FORMAT,
    NARRATION_DATE_FORMAT,
    format_amount,
    format_balance,
    format_rate,
)

LEDGER_HEADERS = ["Date", "Narration", "Debit", "Credit", "Balance"]

OPENING_BALANCE_LABEL = "<<< Opening Balance >>>"
ACCOUNT_TOTAL_LABEL = "<<< Account Total >>>"


@dataclass
class LedgerRow:
    """One printable line of the account copy.

    ``interest_lines`` carries the period narrations for a debit voucher
    that accrued interest; it is empty for every other row.
    """

    date: str
    narration: str
    debit: str
    credit: str
    balance: str
    interest_lines: List[str] = field(default_factory=list)

    def as_list(self) -> List[str]:
        return [self.date, self.narration, self.debit, self.credit, self.balance]


def describe_period(period: InterestPeriod, rate: Decimal) -> str:
    """Human-readable working for one interest period.

    Example: ``16/01/2024 to 01/03/2024: 10000.00 × 18% × 45/365 = 221.92``
    """
    return (
        f"{period.from_date.strftime(DISPLAY_DATE_FORMAT)} to "
        f"{period.to_date.strftime(DISPLAY_DATE_FORMAT)}: "
        f"{format_amount(period.principal)} × {format_rate(rate)}% × {period.days}/365 = "
        f"{format_amount(period.interest_amount)}"
    )


def voucher_narration(entry: LedgerEntry) -> str:
    parts = [entry.voucher_no]
    if entry.description:
        parts.append(entry.description)
    if not entry.is_debit:
        parts.append("(CH)")
    parts.append(entry.voucher_date.strftime(NARRATION_DATE_FORMAT))
    return "  ".join(parts)


def report_title(result: CalculationResult) -> str:
    return (
        f"Copy of A/C of: {result.party_name} From "
        f"{result.start_date.strftime(DISPLAY_DATE_FORMAT)} TO "
        f"{result.as_of_date.strftime(DISPLAY_DATE_FORMAT)}"
    )


def interest_footer(result: CalculationResult, currency_symbol: str = "Rs.") -> str:
    return (
        f"INTEREST @ {format_rate(result.interest_rate)}% is {currency_symbol} "
        f"{format_amount(result.total_interest)} Receivable"
    )


def ledger_rows(result: CalculationResult) -> List[LedgerRow]:
    """Build the account copy rows in chronological order."""
    settlements: Dict[str, DebitSettlement] = {
        s.entry.id: s for s in result.debit_settlements
    }
    rows = [
        LedgerRow(
            date=result.start_date.strftime(DISPLAY_DATE_FORMAT),
            narration=OPENING_BALANCE_LABEL,
            debit=format_amount(Decimal("0")),
            credit=format_amount(Decimal("0")),
            balance=format_balance(Decimal("0")),
        )
    ]
    balance = Decimal("0")
    for entry in result.all_entries:
        if entry.is_debit:
            balance += entry.amount
        else:
            balance -= entry.amount
        row = LedgerRow(
            date=entry.voucher_date.strftime(DISPLAY_DATE_FORMAT),
            narration=voucher_narration(entry),
            debit=format_amount(entry.amount) if entry.is_debit else "",
            credit="" if entry.is_debit else format_amount(entry.amount),
            balance=format_balance(balance),
        )
        settlement = settlements.get(entry.id)
        if entry.is_debit and settlement is not None and settlement.interest_total > 0:
            row.interest_lines = [
                describe_period(p, result.interest_rate) for p in settlement.periods
            ]
        rows.append(row)
    rows.append(
        LedgerRow(
            date="",
            narration=ACCOUNT_TOTAL_LABEL,
            debit=format_amount(result.total_debit),
            credit=format_amount(result.total_credit),
            balance=format_balance(result.net_balance),
        )
    )
    return rows


def print_summary(result: CalculationResult) -> None:
    """Print the calculation summary in a human-readable format."""
    print("Calculation Summary")
    print("-" * 72)
    print(f"Party              : {result.party_name}")
    print(f"As of date         : {result.as_of_date.strftime(DISPLAY_DATE_FORMAT)}")
    print(f"Grace period       : {result.grace_period} days")
    print(f"Interest rate      : {format_rate(result.interest_rate)}%")
    print(f"Total debit        : {format_amount(result.total_debit)}")
    print(f"Total credit       : {format_amount(result.total_credit)}")
    if result.unapplied_credit > 0:
        print(f"Unapplied credit   : {format_amount(result.unapplied_credit)}")
    print(f"Total interest     : {format_amount(result.total_interest)}")
    print("-" * 72)


def print_ledger(result: CalculationResult, firm_name: str = "", currency_symbol: str = "Rs.") -> None:
    """Print the account copy as a tab-separated table."""
    if firm_name:
        print(firm_name)
    print(report_title(result))
    print("\t".join(LEDGER_HEADERS))
    for row in ledger_rows(result):
        print("\t".join(row.as_list()))
        for line in row.interest_lines:
            print(f"\t  {line}")
    print(interest_footer(result, currency_symbol))
