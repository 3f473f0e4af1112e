from datetime import datetime, timedelta, timezone

import pytest

from warehouse_server.app import store
from warehouse_server.app.errors import ItemNotFoundError, PersistenceError
from warehouse_server.app.models import ItemStatus
from warehouse_server.app.schemas import ItemIn


def _record(n, **kw):
    data = dict(tracking_code=f"T{n}", sender_name="S", recipient_name="R", phone=f"5{n}",
                weight="1", city="Tbilisi")
    data.update(kw)
    return ItemIn(**data)


class TestCreateMany:
    def test_returns_items_in_input_order(self, db):
        items = store.create_many(db, [_record(n) for n in range(5)])
        assert [i.tracking_code for i in items] == ["T0", "T1", "T2", "T3", "T4"]
        assert all(i.id and i.created_at for i in items)
        assert len({i.id for i in items}) == 5

    def test_execution_timeout_rolls_back_everything(self, db):
        with pytest.raises(PersistenceError):
            store.create_many(db, [_record(n) for n in range(3)], timeout=0)
        assert store.count_items(db) == 0

    def test_slot_wait_timeout(self, db):
        assert store._TX_SLOT.acquire(timeout=1)
        try:
            with pytest.raises(PersistenceError, match="transaction slot"):
                store.create_many(db, [_record(1)], max_wait=0.01)
        finally:
            store._TX_SLOT.release()
        assert store.count_items(db) == 0


def test_list_is_newest_first_and_searchable(db):
    old = store.create_item(db, _record(1, city="Batumi"))
    new = store.create_item(db, _record(2, recipient_name="Tamar"))
    old.created_at = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()

    assert [i.id for i in store.list_items(db)] == [new.id, old.id]
    assert [i.id for i in store.list_items(db, q="batumi")] == [old.id]
    assert [i.id for i in store.list_items(db, q="Tam")] == [new.id]
    assert [i.id for i in store.list_items(db, offset=1, limit=1)] == [old.id]


def test_search_treats_wildcards_as_text(db):
    underscored = store.create_item(db, _record(1, tracking_code="AB_1"))
    store.create_item(db, _record(2, tracking_code="ABX1"))
    percent = store.create_item(db, _record(3, city="100% Gori"))

    assert [i.id for i in store.list_items(db, q="AB_1")] == [underscored.id]
    assert [i.id for i in store.list_items(db, q="%")] == [percent.id]
    assert store.count_items(db, q="_") == 1


def test_update_merges_fields(db):
    item = store.create_item(db, _record(1, payment_note="cash", date="01/02/2024"))
    updated = store.update_item(db, item.id, {"city": "Kutaisi", "status": "RELEASED"})
    assert updated.city == "Kutaisi"
    assert updated.status == "RELEASED"
    assert updated.payment_note == "cash"
    assert updated.date == "01/02/2024"
    assert updated.tracking_code == "T1"


def test_missing_item(db):
    with pytest.raises(ItemNotFoundError):
        store.update_item(db, "nope", {"city": "x"})
    with pytest.raises(ItemNotFoundError):
        store.delete_item(db, "nope")


def test_filtered_delete_only_touches_that_status(db):
    store.create_many(db, [
        _record(1, status=ItemStatus.STOPPED),
        _record(2, status=ItemStatus.STOPPED),
        _record(3, status=ItemStatus.RELEASED),
        _record(4),
    ])
    assert store.delete_items(db, ItemStatus.STOPPED) == 2
    assert sorted(i.status for i in store.list_items(db)) == ["IN_WAREHOUSE", "RELEASED"]
    assert store.delete_items(db) == 2
    assert store.count_items(db) == 0


def test_status_counts(db):
    store.create_many(db, [_record(1, status="REGION"), _record(2), _record(3)])
    assert store.status_counts(db) == {
        "STOPPED": 0, "IN_WAREHOUSE": 2, "RELEASED": 0, "REGION": 1, "total": 3,
    }
