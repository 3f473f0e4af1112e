# warehouse_server/app/readers.py
import io
import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Dict, List

import pandas as pd
from docx import Document

from .errors import EmptyInputError, InputFormatError, UnsupportedFormatError

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = (".xlsx", ".xlsm")
CSV_EXTENSIONS = (".csv",)
DOCUMENT_EXTENSIONS = (".docx", ".txt")
SUPPORTED_EXTENSIONS = SPREADSHEET_EXTENSIONS + CSV_EXTENSIONS + DOCUMENT_EXTENSIONS

_BLOCK_SPLIT_RE = re.compile(r"\n[ \t\r\f\v]*\n")
_LABEL_SPLIT_RE = re.compile(r"[:：]")
_UNNAMED_RE = re.compile(r"^Unnamed: \d+$")


@dataclass
class SourceRows:
    records: List[Dict[str, Any]]
    headers: List[str] = field(default_factory=list)
    kind: str = "spreadsheet"

    @property
    def unit(self) -> str:
        return "Block" if self.kind == "document" else "Row"


def file_extension(name: str) -> str:
    name = (name or "").strip().lower()
    if not name:
        return ""
    suffix = PurePath(name).suffix
    if suffix:
        return suffix
    # bare extension: "xlsx" or ".xlsx"
    return "." + name.lstrip(".")


def _clean_cell(value):
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, str):
        return value.strip()
    return value


def _frame_to_rows(frame: pd.DataFrame, kind: str) -> SourceRows:
    headers = [str(c).strip() for c in frame.columns]
    keep = [i for i, h in enumerate(headers) if h and not _UNNAMED_RE.match(h)]
    headers = [headers[i] for i in keep]
    records = []
    for row in frame.itertuples(index=False, name=None):
        records.append({headers[j]: _clean_cell(row[i]) for j, i in enumerate(keep)})
    if not records:
        raise EmptyInputError("file has no data rows")
    return SourceRows(records=records, headers=headers, kind=kind)


def read_spreadsheet(data: bytes) -> SourceRows:
    """First worksheet, row 1 as headers. Cell types are kept (numbers, dates)."""
    try:
        frame = pd.read_excel(io.BytesIO(data), sheet_name=0, engine="openpyxl", dtype=object)
    except Exception as e:
        raise InputFormatError(f"could not read spreadsheet: {e}") from e
    return _frame_to_rows(frame, "spreadsheet")


def read_csv(data: bytes) -> SourceRows:
    try:
        frame = pd.read_csv(io.BytesIO(data), dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except pd.errors.EmptyDataError as e:
        raise EmptyInputError("file has no data rows") from e
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise InputFormatError(f"could not read csv: {e}") from e
    return _frame_to_rows(frame, "spreadsheet")


def extract_document_text(data: bytes) -> str:
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        raise InputFormatError(f"could not read document: {e}") from e
    return "\n".join(p.text for p in document.paragraphs)


def split_blocks(text: str) -> SourceRows:
    """Blank-line separated blocks of ``label: value`` lines, one record each."""
    records = []
    headers: List[str] = []
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    for block in _BLOCK_SPLIT_RE.split(text):
        record = {}
        for line in block.split("\n"):
            parts = _LABEL_SPLIT_RE.split(line, maxsplit=1)
            if len(parts) != 2:
                continue
            label, value = parts[0].strip(), parts[1].strip()
            if not label:
                continue
            record[label] = value
            if label not in headers:
                headers.append(label)
        if record:
            records.append(record)
    if not records:
        raise EmptyInputError("document has no label: value blocks")
    return SourceRows(records=records, headers=headers, kind="document")


def read_source(data: bytes, filename: str) -> SourceRows:
    ext = file_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"unsupported file type {ext or '(none)'}; expected one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    if not data:
        raise EmptyInputError("file is empty")

    if ext in SPREADSHEET_EXTENSIONS:
        rows = read_spreadsheet(data)
    elif ext in CSV_EXTENSIONS:
        rows = read_csv(data)
    elif ext == ".docx":
        rows = split_blocks(extract_document_text(data))
    else:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InputFormatError("text file is not valid UTF-8") from e
        rows = split_blocks(text)

    logger.debug("read %d %s records from %s (headers=%s)", len(rows.records), rows.kind, filename, rows.headers)
    return rows
