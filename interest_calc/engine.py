"""Core calculation engine for the interest calculator.

This module implements simple (non-compounding) interest on unpaid invoices
of a single counterparty ledger. Payments are matched to invoices first in,
first out; each invoice's balance is then split into constant-principal
periods running from its due date to each payment that reduces it and, if it
is still open, to the as-of date. Results are returned as a
``CalculationResult``.

The pipeline is a pure function of its inputs: every call builds its own
working state and returns new structures.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, getcontext
from typing import Dict, Iterable, List, Sequence, Union

from .data_models import (
    CalculationResult,
    DebitSettlement,
    InterestPeriod,
    LedgerEntry,
    PaymentAllocation,
)
from .normalizer import RawEntry, partition_entries, sort_by_date, validate_entries
from .utils import add_days, days_between, parse_date, parse_rate

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

DAYS_IN_YEAR = Decimal(365)
ZERO = Decimal("0")


def calculate_period_interest(principal: Decimal, annual_rate: Decimal, days: int) -> Decimal:
    """Return simple interest for ``days`` days on ``principal``.

    The formula is:

        interest = principal * rate * days / 365 / 100

    where ``rate`` is the annual rate in percent. A 365-day year is used
    regardless of leap years.
    """
    if days <= 0:
        return ZERO
    return principal * annual_rate * Decimal(days) / DAYS_IN_YEAR / Decimal(100)


def allocate_payments(
    debits: Sequence[LedgerEntry], credits: Sequence[LedgerEntry]
) -> Dict[str, List[PaymentAllocation]]:
    """Match payments to invoices first in, first out.

    ``debits`` and ``credits`` must already be sorted by date (stable). Each
    debit, oldest first, draws on the earliest credits dated strictly after
    it that still have an unconsumed balance. Credits left over at the end
    are simply unapplied, and a debit that cannot be fully covered stays
    partly open; neither is an error.

    Returns a mapping of debit id to its ordered allocations.
    """
    # working balances are local to this call
    remaining: Dict[str, Decimal] = {c.id: c.amount for c in credits}
    allocations: Dict[str, List[PaymentAllocation]] = {}

    for debit in debits:
        to_cover = debit.amount
        applied: List[PaymentAllocation] = []
        for credit in credits:
            if to_cover <= 0:
                break
            if credit.voucher_date <= debit.voucher_date:
                continue
            available = remaining[credit.id]
            if available <= 0:
                continue
            amount = min(available, to_cover)
            applied.append(PaymentAllocation(credit_entry=credit, applied_amount=amount))
            remaining[credit.id] = available - amount
            to_cover -= amount
            logger.debug(
                "Applied %s of payment %s (%s) to voucher %s",
                amount,
                credit.voucher_no,
                credit.voucher_date.isoformat(),
                debit.voucher_no,
            )
        allocations[debit.id] = applied
    return allocations


def accrue_interest(
    debit: LedgerEntry,
    allocations: Sequence[PaymentAllocation],
    grace_period: int,
    annual_rate: Decimal,
    as_of_date: date,
) -> DebitSettlement:
    """Split one debit's settlement history into interest periods.

    Interest runs from the due date (voucher date plus ``grace_period``
    days). Each payment dated after the due date closes a period at the
    principal outstanding up to that day; payments on or before the due date
    only reduce the principal. Whatever is still open accrues until
    ``as_of_date``.
    """
    due_date = add_days(debit.voucher_date, grace_period)
    periods: List[InterestPeriod] = []

    def add_period(start: date, end: date, principal: Decimal) -> None:
        days = days_between(start, end)
        if days <= 0:
            return
        periods.append(
            InterestPeriod(
                from_date=start,
                to_date=end,
                principal=principal,
                days=days,
                interest_amount=calculate_period_interest(principal, annual_rate, days),
            )
        )

    principal = debit.amount
    cursor = due_date
    if not allocations:
        if as_of_date > due_date:
            add_period(due_date, as_of_date, principal)
    else:
        for allocation in allocations:
            payment_date = allocation.payment_date
            if payment_date > due_date and principal > 0:
                add_period(cursor, payment_date, principal)
                cursor = payment_date
            principal -= allocation.applied_amount
        if principal > 0 and as_of_date > cursor:
            add_period(cursor, as_of_date, principal)

    interest_total = sum((p.interest_amount for p in periods), ZERO)
    return DebitSettlement(
        entry=debit,
        due_date=due_date,
        allocations=list(allocations),
        periods=periods,
        interest_total=interest_total,
    )


def calculate_interest(
    entries: Iterable[RawEntry],
    party_name: str,
    as_of_date: Union[date, str],
    grace_period: int,
    interest_rate: Union[Decimal, int, float, str],
) -> CalculationResult:
    """Run the full calculation for one counterparty ledger.

    Parameters
    ----------
    entries: Iterable[RawEntry]
        Ledger entries in any order, either ``LedgerEntry`` objects or raw
        mappings as stored.
    party_name: str
        Echoed into the result for the report header.
    as_of_date: date
        Open balances accrue interest up to this date.
    grace_period: int
        Days after a debit's voucher date before interest starts.
    interest_rate: Decimal
        Annual rate in percent.

    Returns
    -------
    CalculationResult
        Totals, one ``DebitSettlement`` per debit in date order, the credit
        entries and all entries merged chronologically.

    Raises
    ------
    ValidationError
        If any entry is malformed. No partial result is produced.
    ValueError
        If the rate is not a finite, non-negative number.
    """
    as_of = parse_date(as_of_date)
    rate = parse_rate(interest_rate)
    grace = int(grace_period)

    validated = validate_entries(entries)
    debits, credits = partition_entries(validated)
    allocations = allocate_payments(debits, credits)
    settlements = [
        accrue_interest(debit, allocations[debit.id], grace, rate, as_of) for debit in debits
    ]

    total_debit = sum((d.amount for d in debits), ZERO)
    total_credit = sum((c.amount for c in credits), ZERO)
    total_interest = sum((s.interest_total for s in settlements), ZERO)
    # same-day entries keep their input order
    all_entries = sort_by_date(validated)

    logger.info(
        "Interest calculated",
        extra={
            "party_name": party_name,
            "as_of_date": as_of.isoformat(),
            "debits": len(debits),
            "credits": len(credits),
            "total_interest": str(total_interest),
        },
    )

    return CalculationResult(
        party_name=party_name,
        as_of_date=as_of,
        grace_period=grace,
        interest_rate=rate,
        debit_settlements=settlements,
        credit_entries=list(credits),
        all_entries=all_entries,
        total_debit=total_debit,
        total_credit=total_credit,
        total_interest=total_interest,
    )
