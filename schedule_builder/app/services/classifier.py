from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from schedule_builder.app.models.categories import UNCATEGORIZED, CategoryTable


def _first_match(type_name: str, categories: Iterable[str], table: CategoryTable) -> Optional[str]:
    for category in categories:
        if category == UNCATEGORIZED:
            continue
        if any(pattern in type_name for pattern in table.patterns_for(category)):
            return category
    return None


def classify_type(type_name: Any, table: CategoryTable) -> str:
    """
    Map a raw type string to a category name.

    Child categories are checked before parent categories so that the more
    specific role wins when both match the same type string.
    """
    if not isinstance(type_name, str) or not type_name.strip():
        return UNCATEGORIZED

    lowered = type_name.lower()
    match = _first_match(lowered, table.child_categories, table)
    if match:
        return match
    match = _first_match(lowered, table.parent_categories, table)
    if match:
        return match
    return UNCATEGORIZED


def classify_record(raw: Mapping[str, Any], table: CategoryTable) -> str:
    """Classify by speckleType, then type, then Other.Category."""
    other = raw.get("Other")
    candidates = [
        raw.get("speckleType"),
        raw.get("type"),
        other.get("Category") if isinstance(other, Mapping) else None,
    ]
    for candidate in candidates:
        category = classify_type(candidate, table)
        if category != UNCATEGORIZED:
            return category
    return UNCATEGORIZED

