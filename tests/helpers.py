"""Upload builders shared by the import tests."""
import io

from docx import Document
from openpyxl import Workbook

HEADERS = ["Tracking Code", "Sender", "Recipient", "Phone", "Weight", "City", "Payment", "Date"]


def make_xlsx(headers, rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_docx(blocks) -> bytes:
    doc = Document()
    for i, block in enumerate(blocks):
        if i:
            doc.add_paragraph("")
        for line in block:
            doc.add_paragraph(line)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def parcel_row(n: int, headers=HEADERS, **overrides):
    """One spreadsheet row, values laid out in ``headers`` order."""
    values = {
        "Tracking Code": f"TRK-{n:03d}",
        "Sender": f"Sender {n}",
        "Recipient": f"Recipient {n}",
        "Phone": f"99555500{n:04d}",
        "Weight": "1.5",
        "City": "Tbilisi",
        "Payment": "paid",
        "Date": "15/03/2024",
    }
    values.update(overrides)
    return [values.get(h) for h in headers]
