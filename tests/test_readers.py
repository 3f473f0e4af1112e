from datetime import datetime

import pytest

from warehouse_server.app.errors import EmptyInputError, InputFormatError, UnsupportedFormatError
from warehouse_server.app.readers import file_extension, read_source, split_blocks

from tests.helpers import make_docx, make_xlsx


class TestSpreadsheet:
    def test_headers_and_types_are_kept(self):
        data = make_xlsx(
            ["Tracking Code", "Phone", "Date", "Arrived"],
            [["A-1", 995555123456, 45367, datetime(2024, 3, 15)]],
        )
        rows = read_source(data, "parcels.xlsx")
        assert rows.headers == ["Tracking Code", "Phone", "Date", "Arrived"]
        assert rows.unit == "Row"
        record = rows.records[0]
        assert record["Tracking Code"] == "A-1"
        assert record["Date"] == 45367
        assert isinstance(record["Arrived"], datetime)
        assert not isinstance(record["Phone"], str)

    def test_empty_cells_become_none(self):
        data = make_xlsx(["Tracking Code", "City"], [["A-1", None], ["A-2", "Batumi"]])
        rows = read_source(data, "parcels.xlsx")
        assert rows.records[0]["City"] is None
        assert rows.records[1]["City"] == "Batumi"

    def test_header_only_sheet_is_empty(self):
        with pytest.raises(EmptyInputError):
            read_source(make_xlsx(["Tracking Code", "City"], []), "parcels.xlsx")

    def test_garbage_bytes(self):
        with pytest.raises(InputFormatError):
            read_source(b"definitely not a workbook", "parcels.xlsx")


def test_csv_cells_are_text():
    data = "Tracking Code,Weight\nA-1,2.5\nA-2,\n".encode("utf-8")
    rows = read_source(data, "parcels.csv")
    assert rows.records == [
        {"Tracking Code": "A-1", "Weight": "2.5"},
        {"Tracking Code": "A-2", "Weight": ""},
    ]


class TestDocument:
    def test_blocks_split_on_blank_lines(self):
        data = make_docx([
            ["Tracking Code: A-1", "City: Tbilisi"],
            ["Tracking Code：A-2", "ქალაქი： ბათუმი", "a line without a label"],
        ])
        rows = read_source(data, "parcels.docx")
        assert rows.unit == "Block"
        assert rows.records == [
            {"Tracking Code": "A-1", "City": "Tbilisi"},
            {"Tracking Code": "A-2", "ქალაქი": "ბათუმი"},
        ]
        assert rows.headers == ["Tracking Code", "City", "ქალაქი"]

    def test_value_keeps_later_colons(self):
        rows = split_blocks("Payment: paid at 10:30\n")
        assert rows.records == [{"Payment": "paid at 10:30"}]

    def test_plain_text_file(self):
        rows = read_source("City: Gori\n\n\nCity: Zugdidi\r\n".encode("utf-8"), "notes.txt")
        assert [r["City"] for r in rows.records] == ["Gori", "Zugdidi"]

    def test_document_without_labels_is_empty(self):
        with pytest.raises(EmptyInputError):
            read_source(make_docx([["just some prose"]]), "parcels.docx")


@pytest.mark.parametrize("name", ["parcels.pdf", "parcels", "image.png"])
def test_unsupported_extension(name):
    with pytest.raises(UnsupportedFormatError):
        read_source(b"whatever", name)


def test_empty_upload():
    with pytest.raises(EmptyInputError):
        read_source(b"", "parcels.xlsx")


def test_file_extension():
    assert file_extension("Parcels.XLSX") == ".xlsx"
    assert file_extension("xlsx") == ".xlsx"
    assert file_extension(".docx") == ".docx"
    assert file_extension("") == ""
