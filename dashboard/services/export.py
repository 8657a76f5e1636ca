from __future__ import annotations

import io

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

EXPORT_COLUMNS = ("id", "name", "email", "phone", "designation", "photo_url", "created_at", "updated_at")
SHEET_NAME = "Members"


def members_workbook(rows: list[dict]) -> bytes:
    """Render member rows as an .xlsx workbook with a single ``Members`` sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    ws.append(list(EXPORT_COLUMNS))
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(start_color="1B75BB", end_color="1B75BB", fill_type="solid")

    for row in rows:
        ws.append([row.get(col) or "" for col in EXPORT_COLUMNS])

    for column, name in zip(ws.columns, EXPORT_COLUMNS):
        width = max([len(name)] + [len(str(c.value or "")) for c in column])
        ws.column_dimensions[column[0].column_letter].width = min(60, width + 2)
    ws.freeze_panes = "A2"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
