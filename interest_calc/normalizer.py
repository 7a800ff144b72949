"""Validation and coercion of raw ledger entries.

Raw entries come from the ledger store, a JSON import or a form, so dates may
still be strings and amounts may be strings or floats. This is the only place
that reads those loose shapes; everything downstream works on
``LedgerEntry`` objects with real ``date`` and ``Decimal`` values.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Tuple, Union

from .data_models import EntryKind, LedgerEntry
from .exceptions import ValidationError
from .utils import parse_date, to_decimal

logger = logging.getLogger(__name__)

RawEntry = Union[LedgerEntry, Mapping[str, Any]]

# storage/form field name -> accepted aliases
_FIELD_ALIASES = {
    "id": ("id",),
    "voucher_no": ("voucher_no", "voucherNo"),
    "voucher_date": ("voucher_date", "voucherDate"),
    "description": ("description",),
    "kind": ("kind", "type"),
    "amount": ("amount",),
}


def _get_field(raw: Mapping[str, Any], name: str) -> Any:
    for alias in _FIELD_ALIASES[name]:
        if alias in raw and raw[alias] is not None:
            return raw[alias]
    return None


def parse_kind(value: Any) -> EntryKind:
    if isinstance(value, EntryKind):
        return value
    if isinstance(value, str):
        try:
            return EntryKind(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"Entry kind must be 'debit' or 'credit'; got {value!r}")


def normalize_entry(raw: RawEntry, index: int = 0) -> LedgerEntry:
    """Validate a single raw entry and return a ``LedgerEntry``.

    Raises
    ------
    ValidationError
        If a required field is missing, the date is not a valid calendar
        date, the amount is not a finite positive number or the kind is
        neither debit nor credit.
    """
    if isinstance(raw, LedgerEntry):
        fields: Mapping[str, Any] = {
            "id": raw.id,
            "voucher_no": raw.voucher_no,
            "voucher_date": raw.voucher_date,
            "description": raw.description,
            "kind": raw.kind,
            "amount": raw.amount,
        }
    elif isinstance(raw, Mapping):
        fields = raw
    else:
        raise ValidationError(f"Entry {index}: expected a mapping, got {type(raw).__name__}")

    entry_id = _get_field(fields, "id")
    if entry_id is None or str(entry_id).strip() == "":
        raise ValidationError(f"Entry {index}: missing id")
    voucher_no = _get_field(fields, "voucher_no")
    if voucher_no is None or str(voucher_no).strip() == "":
        raise ValidationError(f"Entry {index}: missing voucher number")

    raw_date = _get_field(fields, "voucher_date")
    if raw_date is None:
        raise ValidationError(f"Entry {index}: missing voucher date")
    try:
        voucher_date = parse_date(raw_date)
    except ValueError as exc:
        raise ValidationError(f"Entry {index}: {exc}") from exc

    raw_amount = _get_field(fields, "amount")
    if raw_amount is None:
        raise ValidationError(f"Entry {index}: missing amount")
    try:
        amount = to_decimal(raw_amount)
    except ValueError as exc:
        raise ValidationError(f"Entry {index}: {exc}") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"Entry {index}: amount must be a positive number; got {raw_amount!r}")

    try:
        kind = parse_kind(_get_field(fields, "kind"))
    except ValueError as exc:
        raise ValidationError(f"Entry {index}: {exc}") from exc

    description = _get_field(fields, "description")
    return LedgerEntry(
        id=str(entry_id),
        voucher_no=str(voucher_no),
        voucher_date=voucher_date,
        description="" if description is None else str(description),
        kind=kind,
        amount=amount,
    )


def sort_by_date(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    # sorted() is stable, so same-day entries keep their input order
    return sorted(entries, key=lambda e: e.voucher_date)


def validate_entries(raw_entries: Iterable[RawEntry]) -> List[LedgerEntry]:
    """Validate every raw entry, keeping the input order.

    Entry ids key the allocation state, so a repeated id is rejected.
    """
    entries = []
    seen = set()
    for index, raw in enumerate(raw_entries):
        entry = normalize_entry(raw, index)
        if entry.id in seen:
            raise ValidationError(f"Entry {index}: duplicate id {entry.id!r}")
        seen.add(entry.id)
        entries.append(entry)
    return entries


def partition_entries(entries: Iterable[LedgerEntry]) -> Tuple[List[LedgerEntry], List[LedgerEntry]]:
    entries = list(entries)
    debits = sort_by_date(e for e in entries if e.kind is EntryKind.DEBIT)
    credits = sort_by_date(e for e in entries if e.kind is EntryKind.CREDIT)
    logger.debug("Normalized %d debit and %d credit entries", len(debits), len(credits))
    return debits, credits


def normalize_entries(raw_entries: Iterable[RawEntry]) -> Tuple[List[LedgerEntry], List[LedgerEntry]]:
    """Validate raw entries and split them into date-sorted debits and credits.

    The whole input is validated before anything is returned; a single bad
    entry aborts the calculation.
    """
    return partition_entries(validate_entries(raw_entries))
