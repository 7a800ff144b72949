"""Persistence layer for ledger vouchers and settings.

The calculator keeps its vouchers and the ledger settings (party name,
default grace period and rate) in a database instead of in memory. It
defaults to SQLite for local use, but accepts any SQLAlchemy-compatible URL
(e.g. PostgreSQL/MySQL) so the CLI and the web app can share one ledger.

Every write goes through the normalizer, so the store never holds an entry
the engine would reject.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .data_models import EntryKind, LedgerEntry, LedgerSettings
from .exceptions import VoucherNotFoundError
from .normalizer import normalize_entry, validate_entries
from .utils import parse_rate, to_decimal

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///interest_calc.sqlite3"

SORT_KEYS = ("voucher_no", "voucher_date", "description", "kind", "amount")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoucherModel(Base):
    __tablename__ = "vouchers"

    id = Column(String(64), primary_key=True)
    voucher_no = Column(String(64), nullable=False)
    voucher_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    kind = Column(String(8), nullable=False)
    # stored as text so amounts round-trip exactly on every backend
    amount = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class SettingModel(Base):
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)


def _sort_value(entry: LedgerEntry, key: str) -> Any:
    if key == "amount":
        # debits count as positive, credits as negative
        return entry.amount if entry.is_debit else -entry.amount
    if key == "kind":
        return entry.kind.value
    if key in ("voucher_no", "description"):
        return getattr(entry, key).lower()
    return getattr(entry, key)


class LedgerStore:
    """Database-backed voucher and settings store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    # vouchers

    def list_vouchers(self, sort_key: str = "voucher_date", descending: bool = False) -> List[LedgerEntry]:
        """Return all vouchers, in insertion order then sorted by ``sort_key``.

        Sorting is stable, so vouchers that compare equal keep the order in
        which they were added.
        """
        if sort_key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {sort_key!r}; use one of {', '.join(SORT_KEYS)}")
        with self._session_factory() as session:
            rows: Iterable[VoucherModel] = session.execute(
                select(VoucherModel).order_by(VoucherModel.position.asc(), VoucherModel.created_at.asc())
            ).scalars()
            entries = [self._to_entry(row) for row in rows]
        return sorted(entries, key=lambda e: _sort_value(e, sort_key), reverse=descending)

    def get_voucher(self, voucher_id: str) -> LedgerEntry:
        with self._session_factory() as session:
            row = session.get(VoucherModel, voucher_id)
            if row is None:
                raise VoucherNotFoundError(voucher_id)
            return self._to_entry(row)

    def add_voucher(
        self,
        voucher_no: str,
        voucher_date: Any,
        kind: Any,
        amount: Any,
        description: str = "",
        voucher_id: Optional[str] = None,
    ) -> LedgerEntry:
        entry = normalize_entry(
            {
                "id": voucher_id or uuid4().hex,
                "voucher_no": voucher_no,
                "voucher_date": voucher_date,
                "kind": kind,
                "amount": amount,
                "description": description,
            }
        )
        with self._session_factory() as session:
            position = self._next_position(session)
            session.add(self._to_model(entry, position))
            session.commit()
        logger.info("Voucher added", extra={"voucher_id": entry.id, "voucher_no": entry.voucher_no})
        return entry

    def update_voucher(self, voucher_id: str, **changes: Any) -> LedgerEntry:
        """Apply ``changes`` to a voucher and return the updated entry.

        Accepted keys are ``voucher_no``, ``voucher_date``, ``kind``,
        ``amount`` and ``description``; ``None`` values are ignored.
        """
        unknown = set(changes) - {"voucher_no", "voucher_date", "kind", "amount", "description"}
        if unknown:
            raise ValueError(f"Unknown voucher fields: {', '.join(sorted(unknown))}")
        with self._session_factory() as session:
            row = session.get(VoucherModel, voucher_id)
            if row is None:
                raise VoucherNotFoundError(voucher_id)
            current = self._to_entry(row)
            merged: Dict[str, Any] = {
                "id": current.id,
                "voucher_no": current.voucher_no,
                "voucher_date": current.voucher_date,
                "kind": current.kind,
                "amount": current.amount,
                "description": current.description,
            }
            merged.update({k: v for k, v in changes.items() if v is not None})
            entry = normalize_entry(merged)
            row.voucher_no = entry.voucher_no
            row.voucher_date = entry.voucher_date
            row.description = entry.description
            row.kind = entry.kind.value
            row.amount = str(entry.amount)
            session.commit()
        logger.info("Voucher updated", extra={"voucher_id": voucher_id})
        return entry

    def delete_voucher(self, voucher_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(VoucherModel, voucher_id)
            if row is None:
                raise VoucherNotFoundError(voucher_id)
            session.delete(row)
            session.commit()
        logger.info("Voucher deleted", extra={"voucher_id": voucher_id})

    def clear_vouchers(self) -> None:
        with self._session_factory() as session:
            session.execute(VoucherModel.__table__.delete())
            session.commit()

    def import_vouchers(self, records: Iterable[Mapping[str, Any]]) -> List[LedgerEntry]:
        """Validate and add a batch of voucher records.

        Records without an id get a fresh one. The batch is validated as a
        whole before anything is written.
        """
        batch = []
        for record in records:
            data = dict(record)
            if not data.get("id"):
                data["id"] = uuid4().hex
            batch.append(data)
        entries = validate_entries(batch)
        with self._session_factory() as session:
            position = self._next_position(session)
            for offset, entry in enumerate(entries):
                session.merge(self._to_model(entry, position + offset))
            session.commit()
        logger.info("Vouchers imported", extra={"count": len(entries)})
        return entries

    # settings

    def load_settings(self) -> LedgerSettings:
        with self._session_factory() as session:
            rows = session.execute(select(SettingModel)).scalars().all()
            values = {row.key: row.value for row in rows}
        defaults = LedgerSettings()
        return LedgerSettings(
            party_name=values.get("party_name", defaults.party_name),
            default_grace_period=int(values.get("default_grace_period", defaults.default_grace_period)),
            default_interest_rate=to_decimal(values.get("default_interest_rate", defaults.default_interest_rate)),
            currency_symbol=values.get("currency_symbol", defaults.currency_symbol),
            firm_name=values.get("firm_name", defaults.firm_name),
        )

    def save_settings(self, settings: LedgerSettings) -> None:
        if settings.default_grace_period < 0:
            raise ValueError("Grace period must not be negative")
        parse_rate(settings.default_interest_rate)
        values = {
            "party_name": settings.party_name.strip(),
            "default_grace_period": str(int(settings.default_grace_period)),
            "default_interest_rate": str(settings.default_interest_rate),
            "currency_symbol": settings.currency_symbol,
            "firm_name": settings.firm_name,
        }
        with self._session_factory() as session:
            for key, value in values.items():
                session.merge(SettingModel(key=key, value=value))
            session.commit()
        logger.info("Settings saved", extra={"party_name": values["party_name"]})

    @staticmethod
    def _next_position(session) -> int:
        rows = session.execute(select(VoucherModel.position)).scalars().all()
        return max(rows, default=-1) + 1

    @staticmethod
    def _to_model(entry: LedgerEntry, position: int) -> VoucherModel:
        return VoucherModel(
            id=entry.id,
            voucher_no=entry.voucher_no,
            voucher_date=entry.voucher_date,
            description=entry.description,
            kind=entry.kind.value,
            amount=str(entry.amount),
            position=position,
        )

    @staticmethod
    def _to_entry(row: VoucherModel) -> LedgerEntry:
        voucher_date = row.voucher_date
        if isinstance(voucher_date, datetime):
            voucher_date = voucher_date.date()
        return LedgerEntry(
            id=row.id,
            voucher_no=row.voucher_no,
            voucher_date=voucher_date,
            description=row.description or "",
            kind=EntryKind(row.kind),
            amount=Decimal(row.amount),
        )


def create_store_from_env(url: str | None) -> LedgerStore:
    return LedgerStore(url or DEFAULT_DATABASE_URL)
