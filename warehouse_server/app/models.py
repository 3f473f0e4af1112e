# warehouse_server/app/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from .db import Base


class ItemStatus(str, enum.Enum):
    STOPPED = "STOPPED"
    IN_WAREHOUSE = "IN_WAREHOUSE"
    RELEASED = "RELEASED"
    REGION = "REGION"


# dashboard sections -> status
SECTION_STATUSES = {
    "stopped": ItemStatus.STOPPED,
    "in-warehouse": ItemStatus.IN_WAREHOUSE,
    "released": ItemStatus.RELEASED,
    "shipped": ItemStatus.RELEASED,
    "region": ItemStatus.REGION,
}

# labels shown on the dashboard, accepted back from imported files
STATUS_LABELS = {
    "გაჩერებული": ItemStatus.STOPPED,
    "საწყობშია": ItemStatus.IN_WAREHOUSE,
    "საწყობში": ItemStatus.IN_WAREHOUSE,
    "გაცემულია": ItemStatus.RELEASED,
    "გაცემული": ItemStatus.RELEASED,
    "რეგიონი": ItemStatus.REGION,
}


def parse_status(value) -> ItemStatus:
    """Map an enum value, section slug or dashboard label onto ItemStatus.

    Raises ValueError for anything outside the four statuses.
    """
    if isinstance(value, ItemStatus):
        return value
    text = str(value).strip()
    for candidate in (text, text.upper(), text.upper().replace("-", "_").replace(" ", "_")):
        try:
            return ItemStatus(candidate)
        except ValueError:
            pass
    key = text.lower()
    if key in SECTION_STATUSES:
        return SECTION_STATUSES[key]
    if text in STATUS_LABELS:
        return STATUS_LABELS[text]
    allowed = ", ".join(s.value for s in ItemStatus)
    raise ValueError(f"Status must be one of: {allowed}")


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# the parcel record
class Item(Base):
    __tablename__ = "items"
    id = Column(String(32), primary_key=True, default=_new_id)
    tracking_code = Column(String, index=True, nullable=False)
    sender_name = Column(String, nullable=False)
    recipient_name = Column(String, nullable=False)
    phone = Column(String, index=True, nullable=False)
    weight = Column(String, nullable=False)
    city = Column(String, index=True, nullable=False)
    payment_note = Column(Text, nullable=False, default="")
    date = Column(String(10), nullable=True)  # DD/MM/YYYY
    status = Column(String, index=True, nullable=False, default=ItemStatus.IN_WAREHOUSE.value)
    created_at = Column(DateTime(timezone=True), index=True, nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tracking_code": self.tracking_code,
            "sender_name": self.sender_name,
            "recipient_name": self.recipient_name,
            "phone": self.phone,
            "weight": self.weight,
            "city": self.city,
            "payment_note": self.payment_note,
            "date": self.date,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
