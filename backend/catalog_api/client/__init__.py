from catalog_api.client.api import CatalogApiClient, CatalogApiError
from catalog_api.client.form import CatalogForm, FormStateError
from catalog_api.client.listing import filter_items, present_item, stock_state
from catalog_api.client.vocabulary import TagVocabulary, normalize_tag

__all__ = [
    "CatalogApiClient",
    "CatalogApiError",
    "CatalogForm",
    "FormStateError",
    "TagVocabulary",
    "filter_items",
    "normalize_tag",
    "present_item",
    "stock_state",
]
