# warehouse_server/app/importer.py
"""Bulk import: raw rows -> resolved fields -> validated records -> one transaction."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .errors import NoValidRowsError
from .fields import is_blank, resolve_field
from .models import Item, ItemStatus, parse_status
from .readers import read_source
from .schemas import ItemIn, TEXT_FIELDS, describe_errors
from .store import create_many

logger = logging.getLogger(__name__)


@dataclass
class ImportBatch:
    records: List[ItemIn] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total: int = 0


@dataclass
class ImportResult:
    items: List[Item]
    errors: List[str]
    total: int

    @property
    def success(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "success": self.success,
            "errors": self.errors,
            "total": self.total,
        }


def resolve_record(raw: Mapping[str, Any], default_status: ItemStatus) -> Dict[str, Any]:
    data = {name: resolve_field(raw, name) for name in TEXT_FIELDS}
    # raw cell value: serial numbers and date cells are told apart downstream
    data["date"] = resolve_field(raw, "date", preserve_type=True)
    status = resolve_field(raw, "status")
    data["status"] = status if status is not None else default_status
    return data


def build_batch(raw_records: Iterable[Mapping[str, Any]],
                default_status=ItemStatus.IN_WAREHOUSE, unit: str = "Row") -> ImportBatch:
    """Validate every raw record; rejected ones are reported by their 1-based position."""
    default_status = parse_status(default_status)
    batch = ImportBatch()
    for number, raw in enumerate(raw_records, start=1):
        batch.total += 1
        if not raw or all(is_blank(v) for v in raw.values()):
            continue
        try:
            record = ItemIn(**resolve_record(raw, default_status))
        except ValidationError as e:
            batch.errors.append(f"{unit} {number}: {describe_errors(e)}")
            continue
        batch.records.append(record)
    return batch


def import_records(db: Session, raw_records: Iterable[Mapping[str, Any]],
                   default_status=ItemStatus.IN_WAREHOUSE, unit: str = "Row") -> ImportResult:
    batch = build_batch(raw_records, default_status, unit)
    if not batch.records:
        raise NoValidRowsError(batch.errors)
    items = create_many(db, batch.records)
    return ImportResult(items=items, errors=batch.errors, total=batch.total)


def import_file(db: Session, data: bytes, filename: str, default_status=ItemStatus.IN_WAREHOUSE) -> ImportResult:
    source = read_source(data, filename)
    try:
        result = import_records(db, source.records, default_status, unit=source.unit)
    except NoValidRowsError as e:
        logger.warning("import of %s rejected every %s (%d); headers=%s",
                       filename, source.unit.lower(), len(e.errors), source.headers)
        raise
    logger.info("imported %s: %d %ss read, %d saved, %d rejected",
                filename, result.total, source.unit.lower(), result.success, len(result.errors))
    return result
