"""
Excel export functionality for SessionSplit
"""
from __future__ import annotations
import logging
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from computations import payment_stats
from models import ExpenseCategory, Session

logger = logging.getLogger(__name__)

MONEY_FORMAT = "#,##0"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _supplemental_columns(session: Session) -> List[str]:
    """Expense names in ledger order, then any names only found in stored settlements"""
    names: List[str] = []
    for e in session.expenses:
        if e.category is ExpenseCategory.SUPPLEMENTAL and e.name not in names:
            names.append(e.name)
    for r in session.settlements:
        for s in r.supplemental:
            if s.expense_name not in names:
                names.append(s.expense_name)
    return names


def _write_settlement_sheet(wb: Workbook, session: Session) -> None:
    ws = wb.create_sheet("Settlement")
    extra = _supplemental_columns(session)
    headers = ["Member", "Present", "Base share"] + extra + ["Total", "Paid", "Note", "Replacement"]
    ws.append(headers)
    _style_header(ws, 1)
    ws.freeze_panes = "B2"

    for r in session.settlements:
        by_name = {}
        for s in r.supplemental:
            by_name[s.expense_name] = by_name.get(s.expense_name, 0.0) + s.amount
        ws.append(
            [r.display_name, "yes" if r.is_present else "no", r.base_share]
            + [by_name.get(n, 0.0) for n in extra]
            + [r.total, "yes" if r.is_paid else "no", r.payment_note or "", r.replacement_note or ""]
        )

    money_cols = range(3, 3 + len(extra) + 2)  # base share .. total
    last_data_row = ws.max_row
    if last_data_row >= 2:
        ws.append(["TOTALS"] + [""] * (len(headers) - 1))
        trow = ws.max_row
        ws.cell(trow, 1).font = Font(bold=True)
        for col in money_cols:
            letter = get_column_letter(col)
            ws.cell(trow, col).value = f"=SUM({letter}2:{letter}{last_data_row})"
            ws.cell(trow, col).font = Font(bold=True)

    for row in range(2, ws.max_row + 1):
        for col in money_cols:
            ws.cell(row, col).number_format = MONEY_FORMAT

    stats = payment_stats(session.settlements, session.price_slot)
    ws.append([])
    ws.append(["Paid", stats["paid_amount"], f"{stats['paid_count']}/{len(session.settlements)}"])
    ws.append(["Unpaid", stats["unpaid_amount"]])
    ws.append(["Progress %", round(stats["payment_progress"], 1)])
    if stats["pass_slot_total"]:
        ws.append(["Pass slots", stats["pass_slot_total"]])
    _autosize_columns(ws)


def _write_expense_sheet(wb: Workbook, session: Session) -> None:
    ws = wb.create_sheet("Expenses")
    ws.append(["Name", "Category", "Amount", "Shared by", "Description"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for e in session.expenses:
        shared_by = len(e.participant_subset) if e.participant_subset else "all present"
        ws.append([e.name, e.category.value, e.amount, shared_by, e.description])
    for row in range(2, ws.max_row + 1):
        ws.cell(row, 3).number_format = MONEY_FORMAT
    _autosize_columns(ws)


def _write_roster_sheet(wb: Workbook, session: Session) -> None:
    ws = wb.create_sheet("Roster")
    ws.append(["#", "Member", "Present", "Pass requested", "Replacement"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    pending = set(session.pass_request_ids)
    for i, p in enumerate(session.participants, start=1):
        ws.append([
            i,
            p.display_name or p.member_id,
            "yes" if p.is_present else "no",
            "yes" if p.member_id in pending else "",
            p.replacement_note or "",
        ])

    if session.waiting_queue:
        ws.append([])
        ws.append(["Waiting", f"{len(session.waiting_queue)} in queue"])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
        ws.cell(ws.max_row, 1).fill = PatternFill("solid", fgColor="D9E1F2")
        for w in session.waiting_queue:
            ws.append([w.priority, w.display_name or w.member_id])
    _autosize_columns(ws)


def export_settlement_excel(session: Session, filepath: str) -> None:
    """
    Export a session to Excel with sheets:
    - Settlement (one row per member, one column per supplemental expense, SUM totals)
    - Expenses
    - Roster (with waiting queue)
    """
    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    _write_settlement_sheet(wb, session)
    _write_expense_sheet(wb, session)
    _write_roster_sheet(wb, session)

    wb.save(filepath)
    logger.info("Exported session %s to %s", session.id, filepath)
