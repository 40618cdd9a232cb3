"""Catalog item business rules: validation, coercion, image uploads.

Form posts arrive as strings (``"12.50"``, ``"0"``, ``'["tuning"]'``). This
module turns them into typed records, uploads any images, and hands the
result to ``CatalogItemStore`` which decides where the item is stored.
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic.alias_generators import to_camel
from starlette.concurrency import run_in_threadpool

from catalog_api.core.errors import NotFound, ValidationError
from catalog_api.schemas.catalog_item import CATEGORIES, STATUSES, CatalogItemOut
from catalog_api.services.item_store import CatalogItemStore, new_item_id
from catalog_api.services.object_storage import ImageUploader

logger = logging.getLogger(__name__)

FLOAT_FIELDS = ("price", "purchase_price", "tax_percentage")
INT_FIELDS = ("stock", "duration")
TEXT_FIELDS = ("description", "other_service_name", "sub_category", "sku", "company", "uom")


@dataclass
class ImageFile:
    filename: Optional[str]
    content: bytes


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_number(field: str, value: Any, integer: bool = False):
    label = to_camel(field)
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{label} must be a number")
    if number < 0:
        raise ValidationError(f"{label} cannot be negative")
    if integer:
        if not number.is_integer():
            raise ValidationError(f"{label} must be a whole number")
        return int(number)
    return number


def coerce_number(field: str, value: Any, default=None):
    """Parse a numeric form value; blank values give ``default``."""
    if _blank(value):
        return default
    return _to_number(field, value, integer=field in INT_FIELDS)


def parse_string_list(field: str, value: Any) -> list[str]:
    """Accept a list or its JSON serialization (multipart can't carry arrays)."""
    if _blank(value):
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError(f"{to_camel(field)} must be a JSON list")
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{to_camel(field)} must be a list of strings")
    return list(value)


def _text(value: Any) -> Optional[str]:
    if _blank(value):
        return None
    return str(value).strip()


class CatalogItemService:
    def __init__(
        self,
        store: CatalogItemStore,
        uploader: ImageUploader,
        max_images: int = 4,
        max_image_bytes: Optional[int] = None,
        image_extensions: Optional[Iterable[str]] = None,
    ):
        self.store = store
        self.uploader = uploader
        self.max_images = max_images
        self.max_image_bytes = max_image_bytes
        self.image_extensions = {e.lower() for e in image_extensions} if image_extensions else None

    # --- images ---

    def _check_images(self, files: list[ImageFile], already: int = 0) -> None:
        if already + len(files) > self.max_images:
            raise ValidationError(f"A catalog item can have at most {self.max_images} images")
        for f in files:
            ext = Path(f.filename or "").suffix.lower()
            if self.image_extensions and ext and ext not in self.image_extensions:
                raise ValidationError(f"Images must be one of: {', '.join(sorted(self.image_extensions))}")
            if self.max_image_bytes and len(f.content) > self.max_image_bytes:
                raise ValidationError(f"Each image must be under {self.max_image_bytes // 1024}KB")

    async def _upload_all(self, files: list[ImageFile]) -> list[str]:
        if not files:
            return []
        results = await asyncio.gather(*(self.uploader.upload(f.content, f.filename) for f in files))
        return [r.uri for r in results]

    # --- operations ---

    async def create(self, fields: dict[str, Any], images: Optional[list[ImageFile]] = None) -> CatalogItemOut:
        images = images or []
        provider_id = _text(fields.get("provider_id"))
        name = _text(fields.get("name"))
        category = _text(fields.get("category"))
        if not provider_id:
            raise ValidationError("providerId is required")
        if not name:
            raise ValidationError("name is required")
        if _blank(fields.get("price")):
            raise ValidationError("price is required")
        if category not in CATEGORIES:
            raise ValidationError("category must be 'service' or 'product'")

        status = _text(fields.get("status")) or "active"
        if status not in STATUSES:
            raise ValidationError("status must be 'active' or 'inactive'")

        is_product = category == "product"
        record = {
            "id": new_item_id(),
            "provider_id": provider_id,
            "name": name,
            "category": category,
            "price": coerce_number("price", fields.get("price")),
            "status": status,
            "description": _text(fields.get("description")),
            "tax_percentage": coerce_number("tax_percentage", fields.get("tax_percentage"), 0.0),
            "sub_category": _text(fields.get("sub_category")),
            "sku": _text(fields.get("sku")),
            "company": _text(fields.get("company")),
            "stock": coerce_number("stock", fields.get("stock"), 0) if is_product else None,
            "uom": _text(fields.get("uom")) if is_product else None,
            "purchase_price": coerce_number("purchase_price", fields.get("purchase_price"), 0.0) if is_product else None,
            "duration": None if is_product else coerce_number("duration", fields.get("duration"), 0),
            "service_types": [] if is_product else parse_string_list("service_types", fields.get("service_types")),
            "other_service_name": None if is_product else _text(fields.get("other_service_name")),
        }

        self._check_images(images)
        record["images"] = await self._upload_all(images)

        provider = await run_in_threadpool(self.store.find_provider, provider_id)
        return await run_in_threadpool(self.store.insert, record, provider.type if provider is not None else None)

    async def update(
        self,
        item_id: str,
        fields: dict[str, Any],
        existing_images: Any = None,
        images: Optional[list[ImageFile]] = None,
    ) -> CatalogItemOut:
        images = images or []
        updates: dict[str, Any] = {}
        for key, value in fields.items():
            if value is None:
                continue
            if key in FLOAT_FIELDS or key in INT_FIELDS:
                if not _blank(value):
                    updates[key] = coerce_number(key, value)
            elif key == "service_types":
                updates[key] = parse_string_list(key, value)
            elif key == "category":
                if value not in CATEGORIES:
                    raise ValidationError("category must be 'service' or 'product'")
                updates[key] = value
            elif key == "status":
                if value not in STATUSES:
                    raise ValidationError("status must be 'active' or 'inactive'")
                updates[key] = value
            elif key in ("name", "provider_id"):
                if _blank(value):
                    raise ValidationError(f"{to_camel(key)} cannot be empty")
                updates[key] = str(value).strip()
            elif key in TEXT_FIELDS:
                updates[key] = _text(value)

        # A blank keep-list counts as not sent
        if not _blank(existing_images):
            updates["images"] = parse_string_list("existing_images", existing_images)

        if images:
            kept = updates.get("images")
            if kept is None:
                # No explicit keep-list: new uploads extend what the item already has
                kept = (await run_in_threadpool(self.store.get_by_id, item_id)).images
            elif await run_in_threadpool(self.store.locate, item_id) is None:
                raise NotFound("Item not found")
            self._check_images(images, already=len(kept))
            updates["images"] = [*kept, *await self._upload_all(images)]
        elif "images" in updates and len(updates["images"]) > self.max_images:
            raise ValidationError(f"A catalog item can have at most {self.max_images} images")

        return await run_in_threadpool(self.store.update_by_id, item_id, updates)

    def get(self, item_id: str) -> CatalogItemOut:
        return self.store.get_by_id(item_id)

    def list_for_provider(self, provider_id: Optional[str]) -> list[CatalogItemOut]:
        if _blank(provider_id):
            raise ValidationError("Provider ID required")
        return self.store.find_by_provider(provider_id.strip())

    def list_services(self, provider_id: Optional[str]) -> list[CatalogItemOut]:
        return [i for i in self.list_for_provider(provider_id) if i.category == "service"]

    def delete(self, item_id: str) -> str:
        location = self.store.delete_by_id(item_id)
        logger.info("Deleted catalog item %s from %s storage", item_id, location)
        return location
