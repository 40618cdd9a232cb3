from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from catalog_api.core.errors import NotFound, StoreError, ValidationError
from catalog_api.models.catalog_item import CatalogItem
from catalog_api.models.provider import Provider
from catalog_api.services.item_store import EMBEDDED, STANDALONE, CatalogItemStore, new_item_id


def _service(provider_id: str, **extra) -> dict:
    return {
        "id": new_item_id(),
        "provider_id": provider_id,
        "category": "service",
        "name": "Oil Change",
        "price": 50.0,
        "duration": 30,
        "service_types": ["oil_change"],
        "images": [],
        **extra,
    }


def _product(provider_id: str, **extra) -> dict:
    return {
        "id": new_item_id(),
        "provider_id": provider_id,
        "category": "product",
        "name": "Brake Pads",
        "price": 120.0,
        "stock": 15,
        "uom": "pcs",
        "images": [],
        **extra,
    }


def test_workshop_items_go_to_standalone_table(db, workshop):
    store = CatalogItemStore(db)
    item = store.insert(_service(workshop.id), workshop.type)

    assert db.query(CatalogItem).filter(CatalogItem.id == item.id).count() == 1
    assert CatalogItemStore(db).locate(item.id).kind == STANDALONE
    assert [i.id for i in store.find_by_provider(workshop.id)] == [item.id]


def test_individual_service_is_embedded_in_provider(db, technician):
    store = CatalogItemStore(db)
    item = store.insert(_service(technician.id), technician.type)

    assert db.query(CatalogItem).count() == 0
    db.refresh(technician)
    assert [s["id"] for s in technician.services] == [item.id]

    location = CatalogItemStore(db).locate(item.id)
    assert location.kind == EMBEDDED
    assert location.parent_id == technician.id

    listed = CatalogItemStore(db).find_by_provider(technician.id)
    assert [i.id for i in listed] == [item.id]
    assert listed[0].name == "Oil Change"


def test_individual_product_stays_standalone(db, technician):
    store = CatalogItemStore(db)
    item = store.insert(_product(technician.id), technician.type)

    assert CatalogItemStore(db).locate(item.id).kind == STANDALONE


def test_find_by_provider_lists_standalone_newest_first_then_embedded(db, technician):
    store = CatalogItemStore(db)
    older = store.insert(_product(technician.id, name="Filter"), technician.type)
    embedded_a = store.insert(_service(technician.id, name="Tuning"), technician.type)
    newer = store.insert(_product(technician.id, name="Coolant"), technician.type)
    embedded_b = store.insert(_service(technician.id, name="Detailing"), technician.type)

    listed = CatalogItemStore(db).find_by_provider(technician.id)

    assert [i.id for i in listed] == [newer.id, older.id, embedded_a.id, embedded_b.id]


def test_find_by_provider_unknown_provider_is_empty(db):
    assert CatalogItemStore(db).find_by_provider("missing") == []


@pytest.mark.parametrize("provider_fixture", ["workshop", "technician"])
def test_update_status_regardless_of_location(db, request, provider_fixture):
    provider = request.getfixturevalue(provider_fixture)
    item = CatalogItemStore(db).insert(_service(provider.id), provider.type)

    CatalogItemStore(db).update_by_id(item.id, {"status": "inactive"})

    fresh = CatalogItemStore(db).get_by_id(item.id)
    assert fresh.status == "inactive"
    assert fresh.name == "Oil Change"
    assert fresh.duration == 30


def test_embedded_update_is_shallow_merge(db, technician):
    item = CatalogItemStore(db).insert(_service(technician.id, description="Full synthetic"), technician.type)

    updated = CatalogItemStore(db).update_by_id(item.id, {"price": 65.0, "unknown_key": "dropped"})

    assert updated.price == 65.0
    assert updated.description == "Full synthetic"
    assert updated.created_at == item.created_at
    db.refresh(technician)
    stored = technician.services[0]
    assert stored["price"] == 65.0
    assert "unknown_key" not in stored


def test_update_missing_item_raises_not_found(db, workshop, technician):
    with pytest.raises(NotFound):
        CatalogItemStore(db).update_by_id("does-not-exist", {"status": "inactive"})


def test_delete_missing_item_standalone_only(db, workshop):
    CatalogItemStore(db).insert(_product(workshop.id), workshop.type)
    with pytest.raises(NotFound):
        CatalogItemStore(db).delete_by_id("does-not-exist")


def test_delete_missing_item_embedded_only(db, technician):
    CatalogItemStore(db).insert(_service(technician.id), technician.type)
    with pytest.raises(NotFound):
        CatalogItemStore(db).delete_by_id("does-not-exist")


def test_delete_standalone_item(db, workshop):
    item = CatalogItemStore(db).insert(_product(workshop.id), workshop.type)

    assert CatalogItemStore(db).delete_by_id(item.id) == STANDALONE
    assert db.query(CatalogItem).count() == 0
    with pytest.raises(NotFound):
        CatalogItemStore(db).get_by_id(item.id)


def test_delete_embedded_item_pulls_it_from_provider(db, technician):
    keep = CatalogItemStore(db).insert(_service(technician.id, name="Keep"), technician.type)
    drop = CatalogItemStore(db).insert(_service(technician.id, name="Drop"), technician.type)

    assert CatalogItemStore(db).delete_by_id(drop.id) == EMBEDDED

    db.refresh(technician)
    assert [s["id"] for s in technician.services] == [keep.id]


def test_locate_is_memoized_until_store_mutates(db, workshop):
    store = CatalogItemStore(db)
    item = store.insert(_product(workshop.id), workshop.type)
    assert store.locate("missing") is None
    assert "missing" in store._locations

    store.delete_by_id(item.id)
    assert item.id not in store._locations
    assert store.locate(item.id) is None


class _BrokenSession:
    def __init__(self):
        self.rolled_back = False

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    def rollback(self):
        self.rolled_back = True


def test_persistence_failures_become_store_errors():
    session = _BrokenSession()
    with pytest.raises(StoreError) as exc_info:
        CatalogItemStore(session).find_by_provider("p1")
    assert session.rolled_back
    assert exc_info.value.client_message == "Storage operation failed"


def test_provider_lookup(db, technician):
    store = CatalogItemStore(db)
    assert isinstance(store.find_provider(technician.id), Provider)
    assert store.find_provider("missing") is None


@pytest.mark.parametrize("provider_fixture", ["workshop", "technician"])
def test_update_cannot_move_item_to_another_provider(db, request, provider_fixture):
    provider = request.getfixturevalue(provider_fixture)
    other = request.getfixturevalue("workshop" if provider_fixture == "technician" else "technician")
    store = CatalogItemStore(db)
    item = store.insert(_service(provider.id), provider.type)

    with pytest.raises(ValidationError):
        store.update_by_id(item.id, {"provider_id": other.id, "price": 99.0})

    unchanged = CatalogItemStore(db).get_by_id(item.id)
    assert unchanged.provider_id == provider.id
    assert unchanged.price == 50.0
    assert [i.id for i in CatalogItemStore(db).find_by_provider(provider.id)] == [item.id]
    # Resending the current owner is allowed
    assert CatalogItemStore(db).update_by_id(item.id, {"provider_id": provider.id}).provider_id == provider.id
