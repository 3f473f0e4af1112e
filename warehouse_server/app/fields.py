# warehouse_server/app/fields.py
"""Column-label resolution for imported rows.

Spreadsheet headers and document labels are free text in English or
Georgian. ``FIELD_LABELS`` lists the accepted labels per field; adding a
synonym is a data change here, never a code change in the importer.
"""
import math
import re
from typing import Any, Mapping, Optional, Sequence

FIELD_LABELS = {
    "tracking_code": [
        "tracking_code", "productNumber", "tracking code", "tracking number",
        "tracking", "product number", "code",
        "პროდუქტის ნომერი", "თრექინგ კოდი", "თრექინგი", "ნომერი", "კოდი",
    ],
    "sender_name": [
        "sender_name", "Name", "sender name", "sender", "client name", "first name",
        "კლიენტის სახელი", "გამგზავნი", "სახელი",
    ],
    "recipient_name": [
        "recipient_name", "fullName", "full name", "recipient name", "recipient", "last name",
        "კლიენტის გვარი", "სრული სახელი", "მიმღები", "გვარი",
    ],
    "phone": [
        "phone", "phone number", "telephone", "tel", "mobile",
        "ტელეფონი", "ტელ", "მობილური",
    ],
    "weight": [
        "weight", "weight kg", "kg",
        "წონა", "კგ",
    ],
    "city": [
        "city", "city name", "destination city", "town", "region",
        "ქალაქი", "რეგიონი",
    ],
    "payment_note": [
        "payment_note", "payment", "payment note", "paid", "price",
        "გადახდა", "გადასახადი", "ფასი", "თანხა",
    ],
    "date": [
        "date", "tarighi", "shipment date", "arrival date",
        "თარიღი",
    ],
    "status": [
        "status",
        "სტატუსი",
    ],
}

BLANK_TEXT = ("", "null", "undefined")

_WS_RE = re.compile(r"\s+")

# short labels like "Name", "tel" or "kg" only match a whole header
MIN_SUBSTRING_LENGTH = 5


def _exact(label: str) -> str:
    return label


def _fold(label: str) -> str:
    return label.casefold()


def _squash(label: str) -> str:
    return _WS_RE.sub("", label).casefold()


def _strip_punct(label: str) -> str:
    return _squash(label).replace(".", "")


def _substring_key(record: Mapping[str, Any], candidates: Sequence[str]) -> Optional[str]:
    best = None
    for candidate in candidates:
        needle = _strip_punct(candidate)
        if len(needle) < MIN_SUBSTRING_LENGTH:
            continue
        for key in record:
            hay = _strip_punct(str(key))
            if len(hay) < MIN_SUBSTRING_LENGTH:
                continue
            if needle in hay or hay in needle:
                # shortest header wins, independent of column order
                if best is None or (len(hay), hay) < (len(_strip_punct(best)), _strip_punct(best)):
                    best = key
        if best is not None:
            return best
    return None


_STRATEGIES = (
    _exact,
    _fold,
    _squash,
    _strip_punct,
)


def find_key(record: Mapping[str, Any], candidates: Sequence[str]) -> Optional[str]:
    """Return the record key matching one of ``candidates``.

    Each strategy (exact, case-insensitive, whitespace-insensitive,
    punctuation-insensitive) is tried across all candidates before the next
    one; substring containment (labels of five or more characters) is the
    last resort.
    """
    keys = [k for k in record if isinstance(k, str)]
    for strategy in _STRATEGIES:
        index = {}
        for key in keys:
            index.setdefault(strategy(key), key)
        for candidate in candidates:
            hit = index.get(strategy(candidate))
            if hit is not None:
                return hit
    return _substring_key({k: None for k in keys}, candidates)


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() in BLANK_TEXT:
        return True
    return False


def resolve_value(record: Mapping[str, Any], candidates: Sequence[str]):
    """Type-preserving lookup; None when missing or blank."""
    key = find_key(record, candidates)
    if key is None:
        return None
    value = record[key]
    if is_blank(value):
        return None
    return value


def as_text(value) -> Optional[str]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def resolve_text(record: Mapping[str, Any], candidates: Sequence[str]) -> Optional[str]:
    return as_text(resolve_value(record, candidates))


def resolve_field(record: Mapping[str, Any], field: str, preserve_type: bool = False):
    labels = FIELD_LABELS[field]
    if preserve_type:
        return resolve_value(record, labels)
    return resolve_text(record, labels)
