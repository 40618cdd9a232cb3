"""Add/edit sheet for catalog services and products.

Field values are kept as text exactly as typed (``price="12.50"``); the API
does the numeric coercion. Lifecycle::

    closed -> open_add | open_edit -> submitting -> closed
"""

import random
from typing import Any, Iterable, Optional

from catalog_api.client.api import CatalogApiClient
from catalog_api.client.vocabulary import (
    OTHER_SERVICE_TYPE,
    PRODUCT_CATEGORIES,
    SERVICE_TYPES,
    UOM_OPTIONS,
    TagVocabulary,
    normalize_tag,
)

CLOSED = "closed"
OPEN_ADD = "open_add"
OPEN_EDIT = "open_edit"
SUBMITTING = "submitting"

KINDS = ("service", "product")
MAX_IMAGES = 4

REMOTE_PREFIXES = ("http://", "https://", "/uploads/")


class FormStateError(RuntimeError):
    pass


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_remote_image(uri: str) -> bool:
    return uri.startswith(REMOTE_PREFIXES)


def generate_sku(category: str) -> str:
    prefix = "SVC" if category == "service" else "PRD"
    return f"{prefix}-{random.randint(0, 99999):06d}"


class CatalogForm:
    def __init__(
        self,
        provider_id: str,
        categories: Iterable[str] = PRODUCT_CATEGORIES,
        uoms: Iterable[str] = UOM_OPTIONS,
        service_types: Iterable[str] = SERVICE_TYPES,
    ):
        self.provider_id = provider_id
        self.categories = TagVocabulary(categories)
        self.uoms = TagVocabulary(uoms)
        self.service_types = TagVocabulary(service_types)
        self.state = CLOSED
        self.kind: Optional[str] = None
        self.item_id: Optional[str] = None
        self.data: dict[str, Any] = {}

    # --- lifecycle ---

    @property
    def is_open(self) -> bool:
        return self.state in (OPEN_ADD, OPEN_EDIT)

    def _require_open(self) -> None:
        if not self.is_open:
            raise FormStateError(f"form is {self.state}")

    def _defaults(self, kind: str) -> dict[str, Any]:
        is_product = kind == "product"
        return {
            "name": "",
            "price": "",
            "duration": "",
            "category": kind,
            "subCategory": (self.categories.first or "") if is_product else "",
            "images": [],
            "stock": "",
            "sku": "",
            "status": "active",
            "serviceTypes": [],
            "company": "",
            "description": "",
            "purchasePrice": "",
            "taxPercentage": "",
            "uom": (self.uoms.first or "") if is_product else "",
            "otherServiceName": "",
        }

    def open_add(self, kind: str) -> None:
        if kind not in KINDS:
            raise ValueError(f"kind must be one of {KINDS}")
        self.kind = kind
        self.item_id = None
        self.data = self._defaults(kind)
        self.state = OPEN_ADD

    def open_edit(self, record: dict[str, Any]) -> None:
        kind = record.get("category")
        if kind not in KINDS:
            raise ValueError(f"record category must be one of {KINDS}")
        data = self._defaults(kind)
        for key, default in data.items():
            if key not in record:
                continue
            value = record[key]
            data[key] = list(value or []) if isinstance(default, list) else _as_text(value)
        # Records may carry tags this session has never seen
        if data["subCategory"]:
            self.categories.add(data["subCategory"])
        if data["uom"]:
            self.uoms.add(data["uom"])
        self.kind = kind
        self.item_id = record.get("id")
        self.data = data
        self.state = OPEN_EDIT

    def close(self) -> None:
        self.state = CLOSED
        self.kind = None
        self.item_id = None
        self.data = {}

    # --- fields ---

    def set_field(self, name: str, value: Any) -> None:
        self._require_open()
        if name not in self.data:
            raise KeyError(name)
        self.data[name] = value

    def select_category(self, tag: str) -> None:
        self._require_open()
        if tag not in self.categories:
            raise ValueError(f"unknown category: {tag}")
        self.data["subCategory"] = normalize_tag(tag)

    def add_category(self, label: str) -> Optional[str]:
        """Add a custom category for this session and select it."""
        self._require_open()
        tag = self.categories.add(label)
        if tag:
            self.data["subCategory"] = tag
        return tag

    def select_uom(self, tag: str) -> None:
        self._require_open()
        if tag not in self.uoms:
            raise ValueError(f"unknown unit of measure: {tag}")
        self.data["uom"] = normalize_tag(tag)

    def add_uom(self, label: str) -> Optional[str]:
        """Add a custom unit of measure for this session and select it."""
        self._require_open()
        tag = self.uoms.add(label)
        if tag:
            self.data["uom"] = tag
        return tag

    def toggle_service_type(self, tag: str) -> None:
        self._require_open()
        current = self.data["serviceTypes"]
        if tag in current:
            self.data["serviceTypes"] = [t for t in current if t != tag]
        else:
            self.data["serviceTypes"] = [*current, tag]

    @property
    def needs_other_service_name(self) -> bool:
        return OTHER_SERVICE_TYPE in self.data.get("serviceTypes", [])

    def fill_sku(self) -> str:
        self._require_open()
        self.data["sku"] = generate_sku(self.kind)
        return self.data["sku"]

    # --- images ---

    def add_images(self, uris: Iterable[str]) -> list[str]:
        """Append picked images up to the cap; returns the ones accepted."""
        self._require_open()
        current = self.data["images"]
        room = MAX_IMAGES - len(current)
        accepted = [u for u in uris if u][:max(room, 0)]
        if accepted:
            self.data["images"] = [*current, *accepted]
        return accepted

    def remove_image(self, index: int) -> None:
        self._require_open()
        self.data["images"] = [u for i, u in enumerate(self.data["images"]) if i != index]

    # --- submit ---

    @property
    def can_submit(self) -> bool:
        return bool(str(self.data.get("name", "")).strip()) and bool(str(self.data.get("price", "")).strip())

    def payload(self) -> dict[str, Any]:
        fields = {k: v for k, v in self.data.items() if k != "images"}
        fields["providerId"] = self.provider_id
        if not self.needs_other_service_name:
            fields["otherServiceName"] = ""
        return fields

    def submit(self, client: CatalogApiClient) -> Optional[dict[str, Any]]:
        """Send the form. Returns the stored record, or None when name or price is blank."""
        self._require_open()
        if not self.can_submit:
            return None

        previous = self.state
        images = self.data["images"]
        local = [u for u in images if not is_remote_image(u)]
        self.state = SUBMITTING
        try:
            if previous == OPEN_EDIT:
                remote = [u for u in images if is_remote_image(u)]
                record = client.update_item(self.item_id, self.payload(), existing_images=remote, image_paths=local)
            else:
                record = client.create_item(self.payload(), image_paths=local)
        except Exception:
            self.state = previous
            raise
        self.close()
        return record
