from __future__ import annotations

import json

import httpx
import pytest

from catalog_api.client.api import CatalogApiClient, CatalogApiError
from catalog_api.client.form import CatalogForm
from catalog_api.client.listing import present_item
from tests.conftest import register_provider


def test_error_envelope_becomes_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "message": "Item not found"})

    api = CatalogApiClient("http://api.test", transport=httpx.MockTransport(handler))

    with pytest.raises(CatalogApiError) as exc_info:
        api.get_item("missing")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Item not found"


def test_unreachable_server_becomes_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = CatalogApiClient("http://api.test", transport=httpx.MockTransport(handler))

    with pytest.raises(CatalogApiError) as exc_info:
        api.list_items("p1")
    assert exc_info.value.status_code == 0


def test_update_sends_keep_list_and_files(tmp_path):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"success": True, "item": {"id": "i1"}})

    photo = tmp_path / "new.jpg"
    photo.write_bytes(b"jpeg-bytes")
    api = CatalogApiClient("http://api.test", transport=httpx.MockTransport(handler))

    item = api.update_item(
        "i1",
        {"serviceTypes": ["tuning", "other"], "price": "80"},
        existing_images=["https://cdn.test/a.jpg"],
        image_paths=[f"file://{photo}"],
    )

    assert item == {"id": "i1"}
    assert (seen["method"], seen["path"]) == ("PUT", "/items/i1")
    body = seen["body"]
    assert b'name="serviceTypes"' in body
    assert json.dumps(["tuning", "other"]).encode() in body
    assert json.dumps(["https://cdn.test/a.jpg"]).encode() in body
    assert b'filename="new.jpg"' in body
    assert b"jpeg-bytes" in body


def test_form_to_list_view_scenario(client):
    """Product saved with zero stock shows as out of stock in the list view."""
    provider_id = register_provider(client, "workshop")
    api = CatalogApiClient("http://testserver", http_client=client)
    form = CatalogForm(provider_id)
    form.open_add("product")
    form.set_field("name", "Coolant")
    form.set_field("price", "45")
    form.set_field("stock", "0")
    form.add_uom("Gallon")

    saved = form.submit(api)

    assert saved["uom"] == "gallon"
    listed = api.list_items(provider_id)
    assert len(listed) == 1
    row = present_item(listed[0])
    assert row.badge == "Out of stock"
    assert row.quantity is None
    assert row.purchasable is False


def test_technician_service_round_trip_through_form(client):
    provider_id = register_provider(client, "individual", "Omar")
    api = CatalogApiClient("http://testserver", http_client=client)
    form = CatalogForm(provider_id)
    form.open_add("service")
    form.set_field("name", "Wax")
    form.set_field("price", "80")
    form.toggle_service_type("tuning")
    form.toggle_service_type("other")
    form.set_field("otherServiceName", "Custom Wax")

    saved = form.submit(api)
    reloaded = api.get_item(saved["id"])

    assert reloaded["serviceTypes"] == ["tuning", "other"]
    assert reloaded["otherServiceName"] == "Custom Wax"
    assert [i["id"] for i in api.list_services(provider_id)] == [saved["id"]]

    form.open_edit(reloaded)
    form.set_field("status", "inactive")
    updated = form.submit(api)
    assert updated["status"] == "inactive"

    assert api.delete_item(saved["id"]) == "Service removed from technician profile"
    assert api.list_items(provider_id) == []
