import io
import logging
import os
from datetime import date
from decimal import Decimal

from flask import Flask, abort, flash, redirect, render_template, request, send_file, url_for

from interest_calc.data_models import LedgerSettings
from interest_calc.engine import calculate_interest
from interest_calc.exceptions import ConfigurationError, VoucherNotFoundError, require_party_name
from interest_calc.exporters import CONTENT_TYPES, EXPORTERS, export_filename, render_export
from interest_calc.formatter import interest_footer, ledger_rows, report_title
from interest_calc.ledger_store import SORT_KEYS, LedgerStore, create_store_from_env
from interest_calc.logging_config import setup_logging
from interest_calc.utils import format_amount, format_rate, parse_date, parse_rate

logger = logging.getLogger(__name__)


def _voucher_form_values(form) -> dict:
    return {
        "voucher_no": form.get("voucher_no", "").strip(),
        "voucher_date": form.get("voucher_date", "").strip(),
        "kind": form.get("kind", "debit"),
        "amount": form.get("amount", "").strip(),
        "description": form.get("description", "").strip(),
    }


def _require_voucher_fields(values: dict) -> None:
    if not values["voucher_no"] or not values["voucher_date"] or not values["amount"]:
        raise ValueError("Please fill all required fields")


def _calculation_params(source, settings: LedgerSettings):
    """Read as-of date, grace period and rate from a form or query string."""
    as_of_raw = source.get("as_of_date", "").strip()
    as_of_date = parse_date(as_of_raw) if as_of_raw else date.today()
    grace_raw = source.get("grace_period", "").strip()
    grace_period = int(grace_raw) if grace_raw else settings.default_grace_period
    if grace_period < 0:
        raise ValueError("Grace period must not be negative")
    rate_raw = source.get("interest_rate", "").strip()
    rate = parse_rate(rate_raw) if rate_raw else settings.default_interest_rate
    return as_of_date, grace_period, rate


def _run_calculation(store: LedgerStore, source):
    settings = store.load_settings()
    party_name = require_party_name(settings)
    entries = store.list_vouchers()
    if not entries:
        raise ValueError("No vouchers found. Please add some vouchers first.")
    as_of_date, grace_period, rate = _calculation_params(source, settings)
    return settings, calculate_interest(entries, party_name, as_of_date, grace_period, rate)


def create_app(store: LedgerStore | None = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    if store is None:
        store = create_store_from_env(os.environ.get("INTEREST_CALC_DATABASE_URL"))
    app.config["LEDGER_STORE"] = store

    app.jinja_env.filters["amount"] = format_amount
    app.jinja_env.filters["rate"] = format_rate
    app.jinja_env.filters["display_date"] = lambda d: d.strftime("%d/%m/%Y")

    @app.route("/")
    def index():
        sort_key = request.args.get("sort", "voucher_date")
        if sort_key not in SORT_KEYS:
            sort_key = "voucher_date"
        direction = "asc" if request.args.get("dir") == "asc" else "desc"
        vouchers = store.list_vouchers(sort_key=sort_key, descending=direction == "desc")
        total_debit = sum((v.amount for v in vouchers if v.is_debit), Decimal("0"))
        total_credit = sum((v.amount for v in vouchers if not v.is_debit), Decimal("0"))
        return render_template(
            "index.html",
            settings=store.load_settings(),
            vouchers=vouchers,
            sort_key=sort_key,
            direction=direction,
            total_debit=total_debit,
            total_credit=total_credit,
        )

    @app.route("/vouchers/add", methods=["GET", "POST"])
    def add_voucher():
        settings = store.load_settings()
        values = {"voucher_date": date.today().isoformat(), "kind": "debit"}
        if request.method == "POST":
            values = _voucher_form_values(request.form)
            try:
                require_party_name(settings)
                _require_voucher_fields(values)
                entry = store.add_voucher(**values)
            except (ConfigurationError, ValueError) as exc:
                flash(str(exc), "error")
            else:
                flash(f"Voucher {entry.voucher_no} has been added successfully.", "success")
                return redirect(url_for("index"))
        return render_template("voucher_form.html", settings=settings, values=values, editing=False)

    @app.route("/vouchers/<voucher_id>/edit", methods=["GET", "POST"])
    def edit_voucher(voucher_id: str):
        try:
            entry = store.get_voucher(voucher_id)
        except VoucherNotFoundError:
            abort(404)
        values = {
            "voucher_no": entry.voucher_no,
            "voucher_date": entry.voucher_date.isoformat(),
            "kind": entry.kind.value,
            "amount": str(entry.amount),
            "description": entry.description,
        }
        if request.method == "POST":
            values = _voucher_form_values(request.form)
            try:
                _require_voucher_fields(values)
                store.update_voucher(voucher_id, **values)
            except ValueError as exc:
                flash(str(exc), "error")
            else:
                flash("Voucher updated", "success")
                return redirect(url_for("index"))
        return render_template(
            "voucher_form.html",
            settings=store.load_settings(),
            values=values,
            editing=True,
            voucher_id=voucher_id,
        )

    @app.post("/vouchers/<voucher_id>/delete")
    def delete_voucher(voucher_id: str):
        try:
            store.delete_voucher(voucher_id)
        except VoucherNotFoundError:
            abort(404)
        flash("The voucher has been deleted successfully", "success")
        return redirect(url_for("index"))

    @app.route("/settings", methods=["GET", "POST"])
    def settings_page():
        settings = store.load_settings()
        if request.method == "POST":
            try:
                party_name = request.form.get("party_name", "").strip()
                if not party_name:
                    raise ValueError("Party name is required")
                settings = LedgerSettings(
                    party_name=party_name,
                    default_grace_period=int(request.form.get("default_grace_period", "15") or 15),
                    default_interest_rate=parse_rate(request.form.get("default_interest_rate", "18") or "18"),
                    currency_symbol=request.form.get("currency_symbol", settings.currency_symbol).strip() or "Rs.",
                    firm_name=request.form.get("firm_name", "").strip(),
                )
                store.save_settings(settings)
            except ValueError as exc:
                flash(str(exc), "error")
            else:
                flash("Your settings have been saved successfully.", "success")
                return redirect(url_for("index"))
        return render_template("settings.html", settings=settings)

    @app.route("/calculate-interest", methods=["GET", "POST"])
    def calculate_page():
        settings = store.load_settings()
        result = None
        rows = []
        form = {
            "as_of_date": date.today().isoformat(),
            "grace_period": str(settings.default_grace_period),
            "interest_rate": format_rate(settings.default_interest_rate),
        }
        if request.method == "POST":
            form = {k: request.form.get(k, "") for k in form}
            try:
                settings, result = _run_calculation(store, request.form)
            except (ConfigurationError, ValueError) as exc:
                flash(str(exc), "error")
            else:
                rows = ledger_rows(result)
                flash(f"Total interest: {settings.currency_symbol} {format_amount(result.total_interest)}", "success")
        return render_template(
            "calculate.html",
            settings=settings,
            form=form,
            result=result,
            rows=rows,
            title=report_title(result) if result else "",
            footer=interest_footer(result, settings.currency_symbol) if result else "",
            export_formats=list(EXPORTERS),
        )

    @app.get("/calculate-interest/export/<fmt>")
    def export_report(fmt: str):
        if fmt not in EXPORTERS:
            abort(404)
        try:
            settings, result = _run_calculation(store, request.args)
        except (ConfigurationError, ValueError) as exc:
            flash(str(exc), "error")
            return redirect(url_for("calculate_page"))
        content = render_export(fmt, result, settings)
        logger.info("Report downloaded", extra={"format": fmt, "size": len(content)})
        return send_file(
            io.BytesIO(content),
            mimetype=CONTENT_TYPES[fmt],
            as_attachment=True,
            download_name=export_filename(result, fmt),
        )

    return app


if __name__ == "__main__":
    setup_logging(os.environ.get("INTEREST_CALC_LOG_LEVEL", "INFO"))
    print("Starting Interest Calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
