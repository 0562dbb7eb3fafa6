from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from schedule_builder.app.models.elements import (
    UNGROUPED_CATEGORY,
    UNGROUPED_ID,
    UNGROUPED_MARK,
    UNGROUPED_TYPE,
    NormalizedElement,
    TableRow,
)

logger = logging.getLogger(__name__)


def ungrouped_row(orphans: List[TableRow]) -> TableRow:
    return TableRow(
        id=UNGROUPED_ID,
        type=UNGROUPED_TYPE,
        category=UNGROUPED_CATEGORY,
        mark=UNGROUPED_MARK,
        host=None,
        parameters={},
        is_child=False,
        details=orphans,
    )


def resolve_relationships(
    elements: Sequence[NormalizedElement],
    child_categories: Sequence[str],
) -> List[TableRow]:
    """
    Nest child rows under the parent whose mark equals the child's host.

    Matching is exact string equality. Parents sharing a mark: the last one
    wins the lookup. Unmatched children land under one synthetic ungrouped row.
    """
    child_set = set(child_categories)
    parents: List[NormalizedElement] = []
    children: List[NormalizedElement] = []
    for el in elements:
        if el.category in child_set:
            children.append(el)
        else:
            parents.append(el)

    # mark -> index into parents
    by_mark: Dict[str, int] = {}
    for idx, parent in enumerate(parents):
        if parent.mark:
            by_mark[parent.mark] = idx

    details: Dict[int, List[TableRow]] = {}
    orphans: List[TableRow] = []
    for child in children:
        row = TableRow.from_element(child, is_child=True)
        idx = by_mark.get(child.host) if child.host else None
        if idx is None:
            orphans.append(row)
        else:
            details.setdefault(idx, []).append(row)

    rows = [
        TableRow.from_element(parent, is_child=False, details=details.get(idx, []))
        for idx, parent in enumerate(parents)
    ]
    if orphans:
        rows.append(ungrouped_row(orphans))

    logger.debug(
        "Resolved %d parents, %d children (%d ungrouped)",
        len(parents), len(children), len(orphans),
    )
    return rows
