# warehouse_server/app/api.py
import csv
import io
import logging
from typing import Optional

import pandas as pd
from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import importer, store
from .auth import verify_password
from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .db import get_db, init_db
from .errors import (EmptyInputError, InputFormatError, ItemNotFoundError, NoValidRowsError,
                     PersistenceError, UnsupportedFormatError)
from .models import ItemStatus, parse_status
from .schemas import BulkIn, ItemIn, ItemUpdate, LoginIn, format_errors

logger = logging.getLogger(__name__)

app = FastAPI(title="Parcel Warehouse API")

EXPORT_COLUMNS = ["id", "tracking_code", "sender_name", "recipient_name", "phone", "weight",
                  "city", "payment_note", "date", "status", "created_at", "updated_at"]


# Startup: init DB
@app.on_event("startup")
def on_startup():
    init_db()


def _error(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    body = {"error": error, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def _status_param(value: Optional[str]) -> Optional[ItemStatus]:
    if value is None or value.strip() == "" or value.strip().lower() == "all":
        return None
    try:
        return parse_status(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "Invalid status", "message": str(e)})


# ---------------------------
# Error bodies: {error, message}
# ---------------------------
@app.exception_handler(StarletteHTTPException)
def http_error(request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return _error(exc.status_code, str(exc.detail), str(exc.detail))


@app.exception_handler(RequestValidationError)
def request_invalid(request, exc: RequestValidationError):
    errors = exc.errors()
    bad_status = any("status" in [str(p) for p in err.get("loc", ())] for err in errors)
    message = format_errors(errors, skip_prefix=("body", "query", "path", "form"))
    return _error(400, "Invalid status" if bad_status else "Invalid request", message)


@app.exception_handler(InputFormatError)
def input_format_error(request, exc: InputFormatError):
    if isinstance(exc, UnsupportedFormatError):
        error = "Unsupported file type"
    elif isinstance(exc, EmptyInputError):
        error = "Empty file"
    else:
        error = "Unreadable file"
    return _error(400, error, str(exc))


@app.exception_handler(NoValidRowsError)
def no_valid_rows(request, exc: NoValidRowsError):
    return _error(400, "No valid items found",
                  "No row passed validation. Check that the column headers match the expected fields.",
                  details=exc.errors)


@app.exception_handler(ItemNotFoundError)
def item_not_found(request, exc: ItemNotFoundError):
    return _error(404, "Item not found", str(exc))


@app.exception_handler(PersistenceError)
def persistence_failed(request, exc: PersistenceError):
    return _error(500, "Store unavailable", str(exc))


@app.exception_handler(SQLAlchemyError)
def store_failed(request, exc: SQLAlchemyError):
    logger.exception("store error on %s %s", request.method, request.url.path)
    return _error(500, "Store unavailable", exc.__class__.__name__)


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------
# Password check
# ---------------------------
@app.post("/api/auth/login")
def login(body: LoginIn):
    if not body.password:
        raise HTTPException(status_code=400, detail={"error": "Password required", "message": "password is required"})
    if not verify_password(body.password):
        logger.warning("rejected login attempt")
        raise HTTPException(status_code=401, detail={"error": "Invalid password", "message": "password is incorrect"})
    return {"success": True}


# ---------------------------
# Items collection
# ---------------------------
@app.get("/api/items")
def list_items(status: Optional[str] = None, q: Optional[str] = None,
               page: int = Query(1, ge=1),
               page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
               db: Session = Depends(get_db)):
    st = _status_param(status)
    total = store.count_items(db, st, q)
    rows = store.list_items(db, st, q, offset=(page - 1) * page_size, limit=page_size)
    return {"total": total, "page": page, "page_size": page_size, "items": [p.to_dict() for p in rows]}


@app.post("/api/items", status_code=201)
def create_item(item: ItemIn, db: Session = Depends(get_db)):
    return store.create_item(db, item).to_dict()


@app.post("/api/items/bulk", status_code=201)
def create_items(body: BulkIn, db: Session = Depends(get_db)):
    default_status = _status_param(body.status) or ItemStatus.IN_WAREHOUSE
    result = importer.import_records(db, body.items, default_status)
    return result.to_dict()


@app.delete("/api/items/bulk")
def delete_items(status: Optional[str] = None, db: Session = Depends(get_db)):
    count = store.delete_items(db, _status_param(status))
    return {"message": "Items deleted successfully", "count": count}


@app.post("/api/items/import", status_code=201)
def import_items(file: UploadFile = File(...), status: Optional[str] = Form(None),
                 db: Session = Depends(get_db)):
    default_status = _status_param(status) or ItemStatus.IN_WAREHOUSE
    data = file.file.read()
    result = importer.import_file(db, data, file.filename or "", default_status)
    return result.to_dict()


@app.get("/api/items/stats")
def item_stats(db: Session = Depends(get_db)):
    return store.status_counts(db)


@app.get("/api/items/export")
def export_items(status: Optional[str] = None, fmt: str = Query("csv", pattern="^(csv|xlsx)$"),
                 db: Session = Depends(get_db)):
    st = _status_param(status)
    rows = store.export_rows(db, st)
    name = f"parcels_{st.value.lower() if st else 'all'}"

    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)
        return Response(content=buffer.getvalue().encode("utf-8-sig"), media_type="text/csv",
                        headers={"Content-Disposition": f'attachment; filename="{name}.csv"'})

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="parcels")
    buffer.seek(0)
    return Response(content=buffer.read(),
                    media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                    headers={"Content-Disposition": f'attachment; filename="{name}.xlsx"'})


# ---------------------------
# Single item
# ---------------------------
@app.get("/api/items/{item_id}")
def get_item(item_id: str, db: Session = Depends(get_db)):
    return store.get_item(db, item_id).to_dict()


@app.put("/api/items/{item_id}")
def update_item(item_id: str, body: ItemUpdate, db: Session = Depends(get_db)):
    changes = body.changes()
    if not changes:
        return store.get_item(db, item_id).to_dict()
    return store.update_item(db, item_id, changes).to_dict()


@app.delete("/api/items/{item_id}")
def delete_item(item_id: str, db: Session = Depends(get_db)):
    store.delete_item(db, item_id)
    return {"success": True}
