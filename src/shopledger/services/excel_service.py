from __future__ import annotations

import logging

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

from shopledger.domain.errors import DuplicateError, ValidationError

log = logging.getLogger(__name__)


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class ExcelService:
    def __init__(self, store, customer_service):
        self.store = store
        self.customers = customer_service

    def import_customers_excel(self, path: str) -> int:
        """
        Headers (any case):
          Name | Phone | Address

        The file is imported whole or not at all: a blank field or a phone
        already on file (or repeated in the sheet) rejects every row.
        """
        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        required = ["name", "phone", "address"]
        for r in required:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        existing_phones = {c.phone for c in self.store.customers}
        imported_phones: set[str] = set()
        rows: list[tuple[str, str, str]] = []

        for row in range(2, ws.max_row + 1):
            name, phone, address = (_cell_text(ws.cell(row=row, column=headers[h]).value) for h in required)
            if not (name or phone or address):
                continue
            if not name or not phone or not address:
                raise ValidationError(f"Row {row} is missing a name, phone or address.")
            if phone in existing_phones or phone in imported_phones:
                raise DuplicateError(f"Phone {phone} is already registered; nothing was imported.")
            imported_phones.add(phone)
            rows.append((name, phone, address))

        if not rows:
            raise ValidationError("The file has no customer rows.")

        added = self.customers.add_customers(rows)
        log.info("excel_import_customers path=%s rows=%s", path, len(added))
        return len(added)

    def export_customers_excel(self, path: str) -> int:
        wb = Workbook()
        ws = wb.active
        ws.title = "Customers"
        ws.append(["Customer ID", "Name", "Phone", "Address", "Total Due", "Last Purchase", "Due Since"])
        for c in ws[1]:
            c.font = Font(bold=True)

        summaries = self.customers.summaries()
        for out_row, s in enumerate(summaries, start=2):
            c = s.customer
            ws.append([c.id, c.name, c.phone, c.address, round(s.due_amount, 2), s.last_purchase, s.due_since])
            ws[f"E{out_row}"].number_format = "#,##0.00"

        ws.freeze_panes = "A2"
        for col, w in {"A": 12, "B": 26, "C": 16, "D": 34, "E": 14, "F": 14, "G": 14}.items():
            ws.column_dimensions[col].width = w
        wb.save(path)
        return len(summaries)
