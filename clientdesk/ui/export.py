from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

EXPORT_COLUMNS = (
    ("code", "Code"),
    ("name", "Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("telephone", "Telephone"),
    ("address", "Address"),
    ("status", "Status"),
    ("birthDate", "Birth date"),
    ("pincode", "Pincode"),
    ("createdAt", "Created at"),
)


def export_excel(records: Iterable[dict[str, Any]], filename: str, directory: str | Path = ".") -> Path:
    """Write the records to ``<directory>/<filename>.xlsx`` in the given order and return the path."""
    wb = Workbook()
    ws = wb.active
    ws.title = "clients"

    ws.append([title for _, title in EXPORT_COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    widths = [len(title) for _, title in EXPORT_COLUMNS]
    for record in records:
        row = ["" if record.get(key) is None else record.get(key) for key, _ in EXPORT_COLUMNS]
        ws.append(row)
        for idx, value in enumerate(row):
            widths[idx] = max(widths[idx], len(str(value)))

    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = min(width + 2, 60)

    path = Path(directory) / f"{filename}.xlsx"
    wb.save(path)
    return path
