"""Command‑line interface for the interest calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can keep the ledger settings, add, edit, list, import and
delete vouchers, and calculate interest as of a date. Results are printed to
the terminal or exported to JSON/CSV/XLSX/PDF files.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import click

from .data_models import LedgerSettings
from .engine import calculate_interest
from .exceptions import ConfigurationError, VoucherNotFoundError, require_party_name
from .exporters import EXPORTERS, export_result
from .formatter import print_ledger, print_summary
from .ledger_store import SORT_KEYS, LedgerStore, create_store_from_env
from .logging_config import setup_logging
from .utils import DISPLAY_DATE_FORMAT, decimal_from_str, format_amount, format_rate, parse_date, parse_rate


def parse_amount(value: str):
    """Parse a numeric string with optional suffixes.

    Accepts plain amounts ("5000") and shorthand with ``k``/``l`` suffixes
    (e.g., "50k" meaning 50_000, "2l" meaning 2 lakh). Returns a Decimal.
    """
    value = value.strip().lower().replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    elif value.endswith("l"):
        factor = 100_000
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_date_option(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _store(ctx: click.Context) -> LedgerStore:
    if ctx.obj.get("store") is None:
        ctx.obj["store"] = create_store_from_env(ctx.obj.get("database_url"))
    return ctx.obj["store"]


@click.group()
@click.option("--db", "database_url", envvar="INTEREST_CALC_DATABASE_URL", help="SQLAlchemy database URL of the ledger")
@click.option("--log-level", "log_level", envvar="INTEREST_CALC_LOG_LEVEL", default="WARNING", show_default=True, help="Logging level")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], log_level: str) -> None:
    """Interest on overdue invoices for a single party ledger."""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("database_url", database_url)


@cli.command()
@click.option("--party", "party_name", help="Party name shown on the account copy")
@click.option("--grace", "grace_period", type=click.IntRange(min=0), help="Default grace period in days")
@click.option("--rate", "interest_rate", help="Default annual interest rate (percent)")
@click.option("--firm", "firm_name", help="Firm name printed above the account copy")
@click.option("--currency", "currency_symbol", help="Currency symbol used in reports")
@click.pass_context
def settings(
    ctx: click.Context,
    party_name: Optional[str],
    grace_period: Optional[int],
    interest_rate: Optional[str],
    firm_name: Optional[str],
    currency_symbol: Optional[str],
) -> None:
    """Show the ledger settings, updating any that are given."""
    store = _store(ctx)
    current = store.load_settings()
    if any(v is not None for v in (party_name, grace_period, interest_rate, firm_name, currency_symbol)):
        if party_name is not None and not party_name.strip():
            raise click.BadParameter("Party name is required", param_hint="--party")
        rate = current.default_interest_rate
        if interest_rate is not None:
            try:
                rate = parse_rate(interest_rate)
            except ValueError as exc:
                raise click.BadParameter(str(exc), param_hint="--rate")
        current = LedgerSettings(
            party_name=party_name if party_name is not None else current.party_name,
            default_grace_period=grace_period if grace_period is not None else current.default_grace_period,
            default_interest_rate=rate,
            currency_symbol=currency_symbol if currency_symbol is not None else current.currency_symbol,
            firm_name=firm_name if firm_name is not None else current.firm_name,
        )
        store.save_settings(current)
        click.echo("Settings saved")
    click.echo(f"Party name     : {current.party_name or '(not set)'}")
    click.echo(f"Grace period   : {current.default_grace_period} days")
    click.echo(f"Interest rate  : {format_rate(current.default_interest_rate)}%")
    click.echo(f"Firm name      : {current.firm_name or '(not set)'}")
    click.echo(f"Currency       : {current.currency_symbol}")


@cli.command()
@click.option("--no", "voucher_no", required=True, help="Voucher number")
@click.option("--date", "voucher_date", required=True, help="Voucher date (YYYY-MM-DD or DD/MM/YYYY)")
@click.option("--type", "kind", type=click.Choice(["debit", "credit"]), default="debit", show_default=True, help="debit (bill/invoice) or credit (payment)")
@click.option("--amount", "amount", required=True, help="Voucher amount")
@click.option("--description", "description", default="", help="Description or reference")
@click.pass_context
def add(ctx: click.Context, voucher_no: str, voucher_date: str, kind: str, amount: str, description: str) -> None:
    """Add a voucher to the ledger."""
    store = _store(ctx)
    if not store.load_settings().party_name:
        raise click.ClickException("Please set a party name first with 'interest-calc settings --party NAME'")
    try:
        entry = store.add_voucher(
            voucher_no=voucher_no,
            voucher_date=parse_date_option(voucher_date),
            kind=kind,
            amount=parse_amount(amount),
            description=description,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Voucher {entry.voucher_no} has been added ({entry.id})")


@cli.command()
@click.argument("voucher_id")
@click.option("--no", "voucher_no", help="Voucher number")
@click.option("--date", "voucher_date", help="Voucher date (YYYY-MM-DD or DD/MM/YYYY)")
@click.option("--type", "kind", type=click.Choice(["debit", "credit"]), help="debit or credit")
@click.option("--amount", "amount", help="Voucher amount")
@click.option("--description", "description", help="Description or reference")
@click.pass_context
def edit(
    ctx: click.Context,
    voucher_id: str,
    voucher_no: Optional[str],
    voucher_date: Optional[str],
    kind: Optional[str],
    amount: Optional[str],
    description: Optional[str],
) -> None:
    """Change fields of an existing voucher."""
    store = _store(ctx)
    try:
        entry = store.update_voucher(
            voucher_id,
            voucher_no=voucher_no,
            voucher_date=parse_date_option(voucher_date),
            kind=kind,
            amount=parse_amount(amount) if amount is not None else None,
            description=description,
        )
    except VoucherNotFoundError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Voucher {entry.voucher_no} has been updated")


@cli.command()
@click.argument("voucher_id")
@click.pass_context
def delete(ctx: click.Context, voucher_id: str) -> None:
    """Delete a voucher from the ledger."""
    try:
        _store(ctx).delete_voucher(voucher_id)
    except VoucherNotFoundError as exc:
        raise click.ClickException(str(exc))
    click.echo("The voucher has been deleted")


@cli.command(name="list")
@click.option("--sort", "sort_key", type=click.Choice(list(SORT_KEYS)), default="voucher_date", show_default=True, help="Sort column")
@click.option("--desc", "descending", is_flag=True, help="Sort in descending order")
@click.pass_context
def list_vouchers(ctx: click.Context, sort_key: str, descending: bool) -> None:
    """List the vouchers in the ledger."""
    entries = _store(ctx).list_vouchers(sort_key=sort_key, descending=descending)
    if not entries:
        click.echo("No vouchers found.")
        return
    click.echo("\t".join(["Id", "No", "Date", "Type", "Amount", "Description"]))
    for e in entries:
        click.echo(
            "\t".join(
                [
                    e.id,
                    e.voucher_no,
                    e.voucher_date.strftime(DISPLAY_DATE_FORMAT),
                    e.kind.value,
                    format_amount(e.amount),
                    e.description,
                ]
            )
        )


@cli.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_vouchers(ctx: click.Context, path: Path) -> None:
    """Import vouchers from a JSON file holding a list of voucher records."""
    with path.open("r", encoding="utf-8") as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as exc:
            raise click.BadParameter(f"Invalid JSON: {exc}")
    if not isinstance(records, list):
        raise click.BadParameter("Voucher file must contain a JSON list")
    try:
        entries = _store(ctx).import_vouchers(records)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    click.echo(f"Imported {len(entries)} vouchers")


@cli.command()
@click.option("--as-of", "as_of", help="Calculate interest up to this date (default: today)")
@click.option("--grace", "grace_period", type=click.IntRange(min=0), help="Grace period in days (default from settings)")
@click.option("--rate", "interest_rate", help="Annual interest rate in percent (default from settings)")
@click.option("--output", "output", type=str, help="Output file path (.json, .csv, .xlsx or .pdf)")
@click.pass_context
def calculate(
    ctx: click.Context,
    as_of: Optional[str],
    grace_period: Optional[int],
    interest_rate: Optional[str],
    output: Optional[str],
) -> None:
    """Calculate interest on the ledger and print or export the account copy."""
    store = _store(ctx)
    ledger_settings = store.load_settings()
    try:
        party_name = require_party_name(ledger_settings)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))

    entries = store.list_vouchers()
    if not entries:
        raise click.ClickException("No vouchers found. Please add some vouchers first.")

    as_of_date = parse_date_option(as_of) or date.today()
    grace = grace_period if grace_period is not None else ledger_settings.default_grace_period
    if interest_rate is not None:
        try:
            rate = parse_rate(interest_rate)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--rate")
    else:
        rate = ledger_settings.default_interest_rate

    result = calculate_interest(entries, party_name, as_of_date, grace, rate)

    if output:
        path = Path(output)
        if path.suffix.lower().lstrip(".") not in EXPORTERS:
            raise click.BadParameter("Unsupported output format; use .json, .csv, .xlsx or .pdf")
        export_result(path, result, ledger_settings)
        click.echo(f"Report exported to {path}")
    else:
        print_summary(result)
        print_ledger(result, ledger_settings.firm_name, ledger_settings.currency_symbol)


if __name__ == "__main__":
    cli()
