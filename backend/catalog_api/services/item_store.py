"""Catalog item persistence across the two places an item can live.

Workshops (and product entries of any provider) use the ``catalog_items``
table. Services of individual technicians are embedded in the technician's
``providers.services`` JSON list and have no row of their own. An item lives
in exactly one of the two; callers only ever see an item id.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog_api.core.errors import NotFound, StoreError, ValidationError
from catalog_api.models.catalog_item import CatalogItem
from catalog_api.models.provider import Provider, ProviderType
from catalog_api.schemas.catalog_item import CatalogItemOut

logger = logging.getLogger(__name__)

STANDALONE = "standalone"
EMBEDDED = "embedded"

# Keys accepted on insert/update; anything else in a partial is dropped
ITEM_FIELDS = frozenset(c.name for c in CatalogItem.__table__.columns) - {"id", "created_at", "updated_at"}


@dataclass(frozen=True)
class ItemLocation:
    kind: str
    parent_id: Optional[str] = None  # owning provider for embedded items


def new_item_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _embedded_record(item: CatalogItemOut) -> dict[str, Any]:
    return item.model_dump(mode="json")


def _check_owner(values: dict[str, Any], current: Optional[str]) -> None:
    # Items stay with the provider that created them
    if "provider_id" in values and values["provider_id"] != current:
        raise ValidationError("providerId cannot be changed")


class CatalogItemStore:
    """Read and mutate catalog items regardless of where they are stored.

    One instance per request: ``locate`` results are memoized on the instance
    and dropped whenever this instance mutates the item.
    """

    def __init__(self, db: Session):
        self.db = db
        self._locations: dict[str, Optional[ItemLocation]] = {}

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Catalog store %s failed", action)
            raise StoreError(f"{action} failed: {exc}") from exc

    # --- lookups ---

    def find_provider(self, provider_id: str) -> Optional[Provider]:
        with self._guard("provider lookup"):
            return self.db.query(Provider).filter(Provider.id == provider_id).first()

    def _providers_embedding(self, item_id: str) -> list[Provider]:
        # No index into the JSON list; scan every provider that has embedded services
        providers = self.db.query(Provider).filter(Provider.services.isnot(None)).all()
        return [p for p in providers if any(s.get("id") == item_id for s in p.services or [])]

    def locate(self, item_id: str) -> Optional[ItemLocation]:
        if item_id in self._locations:
            return self._locations[item_id]
        with self._guard("locate"):
            location = None
            row = self.db.query(CatalogItem.id).filter(CatalogItem.id == item_id).first()
            if row is not None:
                location = ItemLocation(STANDALONE)
            else:
                parents = self._providers_embedding(item_id)
                if parents:
                    location = ItemLocation(EMBEDDED, parents[0].id)
        self._locations[item_id] = location
        return location

    def find_by_provider(self, provider_id: str) -> list[CatalogItemOut]:
        """Standalone items (newest first) followed by embedded items in list order."""
        with self._guard("list"):
            rows = (
                self.db.query(CatalogItem)
                .filter(CatalogItem.provider_id == provider_id)
                .order_by(CatalogItem.created_at.desc())
                .all()
            )
            provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        items = [CatalogItemOut.model_validate(r) for r in rows]
        if provider is not None and provider.type == ProviderType.INDIVIDUAL:
            items.extend(CatalogItemOut.model_validate(s) for s in provider.services or [])
        return items

    def get_by_id(self, item_id: str) -> CatalogItemOut:
        location = self.locate(item_id)
        if location is None:
            raise NotFound("Item not found")
        with self._guard("get"):
            if location.kind == STANDALONE:
                row = self.db.query(CatalogItem).filter(CatalogItem.id == item_id).first()
                if row is not None:
                    return CatalogItemOut.model_validate(row)
            else:
                embedded = self._embedded_item(location.parent_id, item_id)
                if embedded is not None:
                    return CatalogItemOut.model_validate(embedded)
        self._locations.pop(item_id, None)
        raise NotFound("Item not found")

    def _embedded_item(self, provider_id: str, item_id: str) -> Optional[dict[str, Any]]:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if provider is None:
            return None
        return next((s for s in provider.services or [] if s.get("id") == item_id), None)

    # --- mutations ---

    def insert(self, fields: dict[str, Any], provider_type: Optional[str]) -> CatalogItemOut:
        """Store a new item. Individual technicians' services are embedded in their provider record."""
        now = _now()
        values = {k: v for k, v in fields.items() if k in ITEM_FIELDS}
        item_id = fields.get("id") or new_item_id()

        if provider_type == ProviderType.INDIVIDUAL and values.get("category") == "service":
            item = CatalogItemOut(id=item_id, created_at=now, updated_at=now, **values)
            with self._guard("insert"):
                provider = self.db.query(Provider).filter(Provider.id == values["provider_id"]).first()
                if provider is None:
                    raise NotFound("Provider not found")
                # Reassign so the JSON column registers the change
                provider.services = [*(provider.services or []), _embedded_record(item)]
                self.db.commit()
            logger.info("Embedded service %s in individual provider %s", item_id, provider.id)
            self._locations[item_id] = ItemLocation(EMBEDDED, provider.id)
            return item

        row = CatalogItem(id=item_id, created_at=now, updated_at=now, **values)
        with self._guard("insert"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        self._locations[item_id] = ItemLocation(STANDALONE)
        return CatalogItemOut.model_validate(row)

    def update_by_id(self, item_id: str, partial: dict[str, Any]) -> CatalogItemOut:
        """Apply ``partial`` to the item wherever it lives; partial keys win."""
        values = {k: v for k, v in partial.items() if k in ITEM_FIELDS}
        location = self.locate(item_id)
        if location is None:
            raise NotFound("Item not found")
        self._locations.pop(item_id, None)

        with self._guard("update"):
            if location.kind == STANDALONE:
                row = self.db.query(CatalogItem).filter(CatalogItem.id == item_id).first()
                if row is not None:
                    _check_owner(values, row.provider_id)
                    for key, value in values.items():
                        setattr(row, key, value)
                    row.updated_at = _now()
                    self.db.commit()
                    self.db.refresh(row)
                    return CatalogItemOut.model_validate(row)
            else:
                provider = self.db.query(Provider).filter(Provider.id == location.parent_id).first()
                services = list(provider.services or []) if provider is not None else []
                for index, existing in enumerate(services):
                    if existing.get("id") != item_id:
                        continue
                    _check_owner(values, existing.get("provider_id") or location.parent_id)
                    merged = CatalogItemOut.model_validate({**existing, **values, "updated_at": _now()})
                    services[index] = _embedded_record(merged)
                    provider.services = services
                    self.db.commit()
                    return merged
        raise NotFound("Item not found")

    def delete_by_id(self, item_id: str) -> str:
        """Remove the item; returns the location kind it was removed from."""
        location = self.locate(item_id)
        self._locations.pop(item_id, None)
        if location is None:
            raise NotFound("Item not found in any collection")

        with self._guard("delete"):
            if location.kind == STANDALONE:
                deleted = self.db.query(CatalogItem).filter(CatalogItem.id == item_id).delete(synchronize_session=False)
                self.db.commit()
                if deleted:
                    return STANDALONE
            else:
                pulled = 0
                for provider in self._providers_embedding(item_id):
                    provider.services = [s for s in provider.services if s.get("id") != item_id]
                    pulled += 1
                self.db.commit()
                if pulled:
                    return EMBEDDED
        raise NotFound("Item not found in any collection")
