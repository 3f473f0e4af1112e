# warehouse_client/client_app.py
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_URL = os.getenv("WAREHOUSE_URL", "http://127.0.0.1:8000")


class ClientError(Exception):
    def __init__(self, status_code: int, error: str, message: str = "", details=None):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details or []
        super().__init__(f"{status_code} {error}: {message}" if message else f"{status_code} {error}")


@dataclass
class StatusChangeResult:
    status: str
    updated: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.updated)

    def summary(self) -> str:
        if self.ok:
            return f"{len(self.updated)} updated to {self.status}"
        if self.partial:
            return f"some updates failed: {len(self.updated)} updated, {len(self.failed)} failed"
        return f"all {len(self.failed)} updates failed"


class WarehouseClient:
    """Thin wrapper over the warehouse HTTP API."""

    def __init__(self, base_url: str = DEFAULT_URL, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, r):
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            raise ClientError(r.status_code, body.get("error") or getattr(r, "reason", "") or "error",
                              body.get("message", ""), body.get("details"))
        return r.json()

    def login(self, password: str) -> bool:
        r = self.session.post(self._url("/api/auth/login"), json={"password": password}, timeout=self.timeout)
        if r.status_code in (400, 401):
            return False
        return bool(self._check(r).get("success"))

    def list_items(self, status: Optional[str] = None, q: Optional[str] = None,
                   page: int = 1, page_size: int = 50) -> dict:
        params = {"page": page, "page_size": page_size}
        if status:
            params["status"] = status
        if q:
            params["q"] = q
        return self._check(self.session.get(self._url("/api/items"), params=params, timeout=self.timeout))

    def get_item(self, item_id: str) -> dict:
        return self._check(self.session.get(self._url(f"/api/items/{item_id}"), timeout=self.timeout))

    def create_item(self, fields: dict) -> dict:
        return self._check(self.session.post(self._url("/api/items"), json=fields, timeout=self.timeout))

    def update_item(self, item_id: str, fields: dict) -> dict:
        return self._check(self.session.put(self._url(f"/api/items/{item_id}"), json=fields, timeout=self.timeout))

    def delete_item(self, item_id: str) -> dict:
        return self._check(self.session.delete(self._url(f"/api/items/{item_id}"), timeout=self.timeout))

    def delete_all(self, status: Optional[str] = None) -> int:
        params = {"status": status} if status else None
        r = self.session.delete(self._url("/api/items/bulk"), params=params, timeout=self.timeout)
        return self._check(r)["count"]

    def import_file(self, path: str, status: Optional[str] = None) -> dict:
        data = {"status": status} if status else None
        with open(path, "rb") as fh:
            files = {"file": (os.path.basename(path), fh.read())}
        # large files: the server holds one transaction for the whole batch
        r = self.session.post(self._url("/api/items/import"), files=files, data=data, timeout=max(self.timeout, 120))
        return self._check(r)

    def stats(self) -> dict:
        return self._check(self.session.get(self._url("/api/items/stats"), timeout=self.timeout))

    def change_status(self, ids: Iterable[str], status: str, max_workers: int = 8) -> StatusChangeResult:
        """
        One PUT per id, sent concurrently. Nothing is rolled back: the
        result lists which ids moved and why the others did not.
        """
        ids = list(dict.fromkeys(ids))
        result = StatusChangeResult(status=status)
        if not ids:
            return result

        def send(item_id):
            try:
                self.update_item(item_id, {"status": status})
                return item_id, None
            except ClientError as e:
                return item_id, e.message or e.error
            except requests.RequestException as e:
                return item_id, str(e)

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ids)))) as pool:
            for item_id, reason in pool.map(send, ids):
                if reason is None:
                    result.updated.append(item_id)
                else:
                    result.failed[item_id] = reason

        if result.failed:
            logger.warning("status change to %s: %s", status, result.summary())
        return result


def main(argv=None):
    """``python -m warehouse_client.client_app <file> [status]`` uploads one file."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: client_app.py FILE [STATUS]")
        return 2
    logging.basicConfig(level=logging.INFO)
    client = WarehouseClient()
    try:
        out = client.import_file(argv[0], argv[1] if len(argv) > 1 else None)
    except ClientError as e:
        print(f"Import failed: {e}")
        for line in e.details:
            print(f"  {line}")
        return 1
    print(f"{out['success']} succeeded, {len(out['errors'])} failed")
    for line in out["errors"]:
        print(f"  {line}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
