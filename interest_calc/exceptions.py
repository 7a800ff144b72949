"""Exceptions raised by the interest calculator."""

from __future__ import annotations

from .data_models import LedgerSettings


class InterestCalcError(Exception):
    """Base exception for the calculator"""

    pass


class ValidationError(InterestCalcError, ValueError):
    """A ledger entry is malformed (bad date, amount, kind or missing field)"""

    pass


class ConfigurationError(InterestCalcError):
    """Required configuration, such as the party name, is missing"""

    pass


class VoucherNotFoundError(InterestCalcError, KeyError):
    """No voucher with the requested id exists in the ledger store"""

    def __str__(self) -> str:
        return f"Voucher not found: {self.args[0]}" if self.args else "Voucher not found"


def require_party_name(settings: LedgerSettings) -> str:
    """Return the configured party name or raise ``ConfigurationError``.

    Callers check this before running the engine; the engine itself assumes
    its configuration is valid.
    """
    name = (settings.party_name or "").strip()
    if not name:
        raise ConfigurationError("Please set a party name in the settings first")
    return name
