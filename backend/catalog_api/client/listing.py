"""Presentation rules for the services/products list screen."""

from dataclasses import dataclass
from typing import Any, Optional

IN_STOCK = "in_stock"
LOW_STOCK = "low_stock"
OUT_OF_STOCK = "out_of_stock"

LOW_STOCK_THRESHOLD = 5

TABS = ("all", "services", "products")


def _stock_count(item: dict[str, Any]) -> int:
    try:
        return int(float(item.get("stock") or 0))
    except (TypeError, ValueError):
        return 0


def stock_state(item: dict[str, Any]) -> Optional[str]:
    """Stock badge state for products; services have none."""
    if item.get("category") != "product":
        return None
    count = _stock_count(item)
    if count <= 0:
        return OUT_OF_STOCK
    if count < LOW_STOCK_THRESHOLD:
        return LOW_STOCK
    return IN_STOCK


@dataclass
class ListRow:
    id: str
    name: str
    category: str
    price_text: str
    thumbnail: Optional[str]
    badge: Optional[str]
    quantity: Optional[int]
    purchasable: bool
    inactive: bool


def _price_text(price: Any, currency: str) -> str:
    try:
        return f"{float(price):.2f} {currency}"
    except (TypeError, ValueError):
        return f"- {currency}"


def present_item(item: dict[str, Any], currency: str = "SAR") -> ListRow:
    """Row for one catalog record. Out-of-stock products show a blocking badge instead of a quantity."""
    state = stock_state(item)
    inactive = item.get("status") == "inactive"
    images = item.get("images") or []

    badge = None
    quantity = None
    if state == OUT_OF_STOCK:
        badge = "Out of stock"
    elif state is not None:
        quantity = _stock_count(item)
        badge = f"{quantity} in stock" if state == IN_STOCK else f"Only {quantity} left"

    return ListRow(
        id=item.get("id", ""),
        name=item.get("name", ""),
        category=item.get("category", ""),
        price_text=_price_text(item.get("price"), currency),
        thumbnail=images[0] if images else None,
        badge=badge,
        quantity=quantity,
        purchasable=not inactive and state != OUT_OF_STOCK,
        inactive=inactive,
    )


def filter_items(items: list[dict[str, Any]], tab: str = "all") -> list[dict[str, Any]]:
    if tab == "services":
        return [i for i in items if i.get("category") == "service"]
    if tab == "products":
        return [i for i in items if i.get("category") == "product"]
    return list(items)
