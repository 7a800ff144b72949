"""File exports of a calculation result.

Each exporter renders a ``CalculationResult`` to bytes so the CLI can write
them to disk and the web app can send them as downloads:

- JSON: the full result, including allocations and interest periods.
- CSV: the account-copy ledger rows.
- XLSX (openpyxl) and PDF (reportlab): the printable account copy with the
  firm header and the interest footer.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .data_models import CalculationResult, LedgerEntry, LedgerSettings
from .formatter import LEDGER_HEADERS, describe_period, interest_footer, ledger_rows, report_title

logger = logging.getLogger(__name__)


def _entry_to_dict(entry: LedgerEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "voucher_no": entry.voucher_no,
        "voucher_date": entry.voucher_date.isoformat(),
        "description": entry.description,
        "kind": entry.kind.value,
        "amount": float(entry.amount),
    }


def result_to_dict(result: CalculationResult) -> Dict[str, Any]:
    """Convert a result into JSON-serialisable dictionaries."""
    settlements = []
    for s in result.debit_settlements:
        settlements.append(
            {
                "voucher": _entry_to_dict(s.entry),
                "due_date": s.due_date.isoformat(),
                "payments": [
                    {
                        "voucher": _entry_to_dict(a.credit_entry),
                        "applied_amount": float(a.applied_amount),
                    }
                    for a in s.allocations
                ],
                "periods": [
                    {
                        "from_date": p.from_date.isoformat(),
                        "to_date": p.to_date.isoformat(),
                        "principal": float(p.principal),
                        "days": p.days,
                        "interest_amount": float(p.interest_amount),
                        "narration": describe_period(p, result.interest_rate),
                    }
                    for p in s.periods
                ],
                "interest_total": float(s.interest_total),
                "outstanding_amount": float(s.outstanding_amount),
            }
        )
    return {
        "summary": {
            "party_name": result.party_name,
            "as_of_date": result.as_of_date.isoformat(),
            "grace_period": result.grace_period,
            "interest_rate": float(result.interest_rate),
            "total_debit": float(result.total_debit),
            "total_credit": float(result.total_credit),
            "total_interest": round(float(result.total_interest), 2),
            "unapplied_credit": float(result.unapplied_credit),
        },
        "debit_vouchers": settlements,
        "credit_vouchers": [_entry_to_dict(c) for c in result.credit_entries],
        "all_vouchers": [_entry_to_dict(e) for e in result.all_entries],
    }


def export_json(result: CalculationResult, settings: LedgerSettings) -> bytes:
    return json.dumps(result_to_dict(result), indent=2).encode("utf-8")


def export_csv(result: CalculationResult, settings: LedgerSettings) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(LEDGER_HEADERS + ["Interest"])
    for row in ledger_rows(result):
        writer.writerow(row.as_list() + ["; ".join(row.interest_lines)])
    return output.getvalue().encode("utf-8")


def export_excel(result: CalculationResult, settings: LedgerSettings) -> bytes:
    """Render the account copy as Excel (.xlsx) bytes using openpyxl."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Interest Calculation"

    bold = Font(bold=True)
    ws.append([settings.firm_name or result.party_name])
    ws["A1"].font = Font(bold=True, size=14)
    ws.append([report_title(result)])
    ws.append([])

    header_fill = PatternFill(start_color="DCDCDC", end_color="DCDCDC", fill_type="solid")
    ws.append([f"{h} ({settings.currency_symbol})" if h in ("Debit", "Credit", "Balance") else h for h in LEDGER_HEADERS])
    for cell in ws[ws.max_row]:
        cell.font = bold
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    rows = ledger_rows(result)
    for index, row in enumerate(rows):
        ws.append(row.as_list())
        if index in (0, len(rows) - 1):
            for cell in ws[ws.max_row]:
                cell.font = bold
        for col in ("C", "D", "E"):
            ws[f"{col}{ws.max_row}"].alignment = Alignment(horizontal="right")
        for line in row.interest_lines:
            ws.append(["", line])
            ws[f"B{ws.max_row}"].font = Font(italic=True)

    ws.append([])
    ws.append(["", interest_footer(result, settings.currency_symbol)])
    ws[f"B{ws.max_row}"].font = bold

    for col, width in zip("ABCDE", (12, 60, 15, 15, 18)):
        ws.column_dimensions[col].width = width

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def export_pdf(result: CalculationResult, settings: LedgerSettings) -> bytes:
    """Render the account copy as PDF using reportlab."""
    output = io.BytesIO()
    doc = SimpleDocTemplate(output, pagesize=A4, leftMargin=0.5 * inch, rightMargin=0.5 * inch)
    styles = getSampleStyleSheet()
    elements: List[Any] = []

    elements.append(Paragraph(escape(settings.firm_name or result.party_name), styles["Title"]))
    elements.append(Paragraph(escape(report_title(result)), styles["Normal"]))
    elements.append(Spacer(1, 0.2 * inch))

    table_data: List[List[str]] = [
        [f"{h} ({settings.currency_symbol})" if h in ("Debit", "Credit", "Balance") else h for h in LEDGER_HEADERS]
    ]
    span_rows: List[int] = []
    for row in ledger_rows(result):
        table_data.append(row.as_list())
        for line in row.interest_lines:
            span_rows.append(len(table_data))
            table_data.append(["", line, "", "", ""])

    style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#DCDCDC")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]
    for index in span_rows:
        style.append(("SPAN", (1, index), (-1, index)))
        style.append(("ALIGN", (1, index), (-1, index), "LEFT"))
        style.append(("FONTNAME", (1, index), (-1, index), "Helvetica-Oblique"))

    table = Table(table_data, repeatRows=1, colWidths=[0.9 * inch, 3.3 * inch, 0.9 * inch, 0.9 * inch, 1.1 * inch])
    table.setStyle(TableStyle(style))
    elements.append(table)
    elements.append(Spacer(1, 0.2 * inch))
    elements.append(Paragraph(f"<b>{escape(interest_footer(result, settings.currency_symbol))}</b>", styles["Normal"]))

    doc.build(elements)
    return output.getvalue()


EXPORTERS: Dict[str, Callable[[CalculationResult, LedgerSettings], bytes]] = {
    "json": export_json,
    "csv": export_csv,
    "xlsx": export_excel,
    "pdf": export_pdf,
}

CONTENT_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}


def render_export(fmt: str, result: CalculationResult, settings: LedgerSettings) -> bytes:
    fmt = fmt.lower().lstrip(".")
    if fmt not in EXPORTERS:
        raise ValueError(f"Unsupported export format {fmt!r}; use one of {', '.join(EXPORTERS)}")
    return EXPORTERS[fmt](result, settings)


def export_result(path: Path, result: CalculationResult, settings: LedgerSettings) -> None:
    """Write ``result`` to ``path``, choosing the format from its suffix."""
    content = render_export(path.suffix, result, settings)
    path.write_bytes(content)
    logger.info("Report exported", extra={"path": str(path), "size": len(content)})


def export_filename(result: CalculationResult, fmt: str) -> str:
    return f"{result.party_name}_Interest_{result.as_of_date.isoformat()}.{fmt}"
