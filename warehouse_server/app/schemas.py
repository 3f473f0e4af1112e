# warehouse_server/app/schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .dates import normalize_date
from .fields import as_text, is_blank
from .models import ItemStatus, parse_status

REQUIRED_FIELDS = ("tracking_code", "sender_name", "recipient_name", "phone", "weight", "city")
TEXT_FIELDS = REQUIRED_FIELDS + ("payment_note",)


def _text(value):
    if isinstance(value, str):
        return value.strip()
    return as_text(value)


def _status(value):
    if is_blank(value):
        return None
    return parse_status(value)


class ItemIn(BaseModel):
    """A complete parcel record, ready to persist."""
    model_config = ConfigDict(extra="ignore")

    tracking_code: str = Field(min_length=1)
    sender_name: str = Field(min_length=1)
    recipient_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    weight: str = Field(min_length=1)
    city: str = Field(min_length=1)
    payment_note: str = ""
    date: Optional[str] = None
    status: ItemStatus = ItemStatus.IN_WAREHOUSE

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return _text(v)

    @field_validator("payment_note", mode="before")
    @classmethod
    def _payment_default(cls, v):
        return _text(v) or ""

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, v):
        return normalize_date(v)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return _status(v) or ItemStatus.IN_WAREHOUSE

    def to_columns(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["status"] = self.status.value
        return data


class ItemUpdate(BaseModel):
    """Partial update: only the fields sent are changed."""
    model_config = ConfigDict(extra="ignore")

    tracking_code: Optional[str] = Field(default=None, min_length=1)
    sender_name: Optional[str] = Field(default=None, min_length=1)
    recipient_name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    weight: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    payment_note: Optional[str] = None
    date: Optional[str] = None
    status: Optional[ItemStatus] = None

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, v):
        return _text(v)

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, v):
        return normalize_date(v)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return _status(v)

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        for name in REQUIRED_FIELDS + ("status",):
            # explicit null on a required column means "leave it"
            if name in data and data[name] is None:
                del data[name]
        if "payment_note" in data and data["payment_note"] is None:
            data["payment_note"] = ""
        if "status" in data:
            data["status"] = data["status"].value
        return data


class BulkIn(BaseModel):
    items: List[Dict[str, Any]] = Field(min_length=1)
    status: Optional[str] = None


class LoginIn(BaseModel):
    password: Optional[str] = None


def describe_errors(exc: ValidationError) -> str:
    """Human-readable, one line: ``sender_name is required; status: ...``."""
    return format_errors(exc.errors())


def format_errors(errors, skip_prefix=()) -> str:
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ())]
        if loc and loc[0] in skip_prefix:
            loc = loc[1:]
        name = ".".join(loc) or "item"
        if err.get("type") in ("missing", "string_too_short") or err.get("input") is None:
            parts.append(f"{name} is required")
        else:
            msg = err.get("msg", "invalid value")
            # pydantic prefixes errors raised inside validators
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            parts.append(f"{name}: {msg}")
    return "; ".join(parts)
