from catalog_api.core.database import Base
from catalog_api.models.catalog_item import CatalogItem
from catalog_api.models.provider import Provider

__all__ = [
    "Base",
    "CatalogItem",
    "Provider",
]
