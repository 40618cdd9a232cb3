"""Tag vocabularies used by the catalog form dropdowns.

Operators can add their own categories and units while editing; additions
live for the session only and are never sent anywhere on their own.
"""

import re
from typing import Iterable, Iterator, Optional

_NON_WORD = re.compile(r"[^a-z0-9]+")

SERVICE_TYPES = (
    "diagnostics",
    "quick_service",
    "tuning",
    "detailing",
    "oil_change",
    "tires_alignment",
    "engine",
    "electrical",
    "other",
)
OTHER_SERVICE_TYPE = "other"

PRODUCT_CATEGORIES = (
    "brake_pads",
    "filters",
    "fluids",
    "tires",
    "accessories",
    "engine_parts",
    "tools",
)

UOM_OPTIONS = ("pcs", "litre", "kgs", "box", "carton", "bermil")


def normalize_tag(label: str) -> str:
    """'Tires & Alignment' -> 'tires_alignment'."""
    return _NON_WORD.sub("_", (label or "").strip().lower()).strip("_")


def tag_label(tag: str) -> str:
    """'oil_change' -> 'Oil Change'."""
    return " ".join(part.capitalize() for part in tag.split("_") if part)


class TagVocabulary:
    """Ordered, append-only set of normalized tags."""

    def __init__(self, defaults: Iterable[str] = ()):
        self._tags: list[str] = []
        for tag in defaults:
            self.add(tag)

    def add(self, label: str) -> Optional[str]:
        """Append ``label`` in normalized form and return the tag. Blank labels are ignored."""
        tag = normalize_tag(label)
        if not tag:
            return None
        if tag not in self._tags:
            self._tags.append(tag)
        return tag

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and normalize_tag(label) in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    @property
    def first(self) -> Optional[str]:
        return self._tags[0] if self._tags else None

    def as_list(self) -> list[str]:
        return list(self._tags)
