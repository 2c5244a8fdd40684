"""Tabular report writers (CSV and Excel).

Menu item, outlet and customer names are free text typed by staff or
customers. Any text cell that a spreadsheet would read as a formula is
written with a leading apostrophe so it opens as plain text.
"""

import csv
import io
from io import BytesIO
from typing import Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

HEADER_FILL = "C0392B"
MAX_COLUMN_WIDTH = 50
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def neutralise(value):
    """Text starting like a formula gets a leading apostrophe; other values pass through."""
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def _safe_rows(rows: Iterable[Sequence]) -> List[list]:
    return [[neutralise(value) for value in row] for row in rows]


def create_csv_export(data: list, headers: list) -> BytesIO:
    """CSV with a UTF-8 BOM so spreadsheet apps pick the right encoding."""
    text_output = io.StringIO()
    writer = csv.writer(text_output, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    writer.writerows(_safe_rows(data))
    return BytesIO(b"\xef\xbb\xbf" + text_output.getvalue().encode("utf-8"))


def create_excel_export(data: list, headers: list, sheet_name: str = "Report") -> BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(start_color=HEADER_FILL, end_color=HEADER_FILL, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")
    for row in _safe_rows(data):
        ws.append(row)
    ws.freeze_panes = "A2"
    for column in ws.columns:
        longest = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        ws.column_dimensions[column[0].column_letter].width = min(longest + 2, MAX_COLUMN_WIDTH)
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output
