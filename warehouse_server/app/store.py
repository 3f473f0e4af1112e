# warehouse_server/app/store.py
import logging
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import IMPORT_MAX_WAIT, IMPORT_TIMEOUT
from .errors import ItemNotFoundError, PersistenceError
from .models import Item, ItemStatus
from .schemas import ItemIn

logger = logging.getLogger(__name__)

# one bulk transaction at a time per process
_TX_SLOT = threading.Lock()

SEARCH_COLUMNS = (Item.tracking_code, Item.sender_name, Item.recipient_name, Item.phone, Item.city)


def _escape_like(text: str) -> str:
    # search terms are literal text, not LIKE patterns
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filtered(db: Session, status: Optional[ItemStatus] = None, q: Optional[str] = None):
    query = db.query(Item)
    if status is not None:
        query = query.filter(Item.status == ItemStatus(status).value)
    if q and q.strip():
        pattern = f"%{_escape_like(q.strip())}%"
        query = query.filter(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))
    return query


def list_items(db: Session, status=None, q=None, offset: int = 0, limit: Optional[int] = None) -> List[Item]:
    query = _filtered(db, status, q).order_by(Item.created_at.desc())
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_items(db: Session, status=None, q=None) -> int:
    return _filtered(db, status, q).count()


def get_item(db: Session, item_id: str) -> Item:
    item = db.get(Item, item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


def create_item(db: Session, record: ItemIn) -> Item:
    item = Item(**record.to_columns())
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("created item %s (%s)", item.id, item.tracking_code)
    return item


def create_many(db: Session, records: Sequence[ItemIn],
                max_wait: float = IMPORT_MAX_WAIT, timeout: float = IMPORT_TIMEOUT) -> List[Item]:
    """
    Insert all records in one transaction, in input order.

    Waits at most ``max_wait`` seconds for the transaction slot and gives the
    inserts ``timeout`` seconds; exceeding either, or any store error, rolls
    the whole batch back and raises PersistenceError.
    """
    if not _TX_SLOT.acquire(timeout=max_wait):
        raise PersistenceError(f"timed out after {max_wait:g}s waiting for a transaction slot")
    created: List[Item] = []
    try:
        deadline = time.monotonic() + timeout
        try:
            for record in records:
                item = Item(**record.to_columns())
                db.add(item)
                db.flush()
                created.append(item)
                if time.monotonic() >= deadline:
                    raise PersistenceError(f"batch insert exceeded {timeout:g}s, nothing was saved")
            db.commit()
        except PersistenceError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("batch insert of %d items failed", len(records))
            raise PersistenceError(f"batch insert failed: {e}") from e
    finally:
        _TX_SLOT.release()

    for item in created:
        db.refresh(item)
    logger.info("created %d items in one transaction", len(created))
    return created


def update_item(db: Session, item_id: str, changes: Dict[str, Any]) -> Item:
    item = get_item(db, item_id)
    for name, value in changes.items():
        setattr(item, name, value)
    db.commit()
    db.refresh(item)
    logger.info("updated item %s fields=%s", item_id, sorted(changes))
    return item


def delete_item(db: Session, item_id: str) -> None:
    item = get_item(db, item_id)
    db.delete(item)
    db.commit()
    logger.info("deleted item %s", item_id)


def delete_items(db: Session, status=None) -> int:
    query = _filtered(db, status)
    count = query.delete(synchronize_session=False)
    db.commit()
    logger.info("deleted %d items (status=%s)", count, ItemStatus(status).value if status else "ALL")
    return count


def status_counts(db: Session) -> Dict[str, int]:
    counts = {s.value: 0 for s in ItemStatus}
    for status, n in db.query(Item.status, func.count(Item.id)).group_by(Item.status).all():
        counts[status] = n
    counts["total"] = sum(counts[s.value] for s in ItemStatus)
    return counts


def export_rows(db: Session, status=None) -> List[Dict[str, Any]]:
    rows = _filtered(db, status).order_by(Item.created_at).all()
    return [item.to_dict() for item in rows]
