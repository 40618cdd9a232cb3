from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CATEGORIES = ("service", "product")
STATUSES = ("active", "inactive")


class CatalogItemOut(BaseModel):
    """Canonical catalog item as returned to clients (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    provider_id: str
    category: str
    name: str
    price: float
    status: str = "active"
    images: list[str] = []
    description: Optional[str] = None
    tax_percentage: float = 0

    duration: Optional[int] = None
    service_types: list[str] = []
    other_service_name: Optional[str] = None

    sub_category: Optional[str] = None
    stock: Optional[int] = None
    sku: Optional[str] = None
    company: Optional[str] = None
    uom: Optional[str] = None
    purchase_price: Optional[float] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ItemResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    item: CatalogItemOut


class ItemListResponse(BaseModel):
    success: bool = True
    items: list[CatalogItemOut] = []


class MessageResponse(BaseModel):
    success: bool = True
    message: str
