from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from schedule_builder.app.core.errors import EmptyResultError
from schedule_builder.app.models.categories import CategoryTable
from schedule_builder.app.models.elements import NormalizedElement, TableRow
from schedule_builder.app.models.pipeline import PipelineOptions, PipelineResult
from schedule_builder.app.services.discovery import discover_parameter_sets
from schedule_builder.app.services.relationships import resolve_relationships
from schedule_builder.app.services.walker import extract_elements

logger = logging.getLogger(__name__)


def filter_by_categories(
    elements: Sequence[NormalizedElement],
    parent_categories: Sequence[str],
    child_categories: Sequence[str],
) -> List[NormalizedElement]:
    """Keep elements in either selection. With nothing selected, keep everything."""
    if not parent_categories and not child_categories:
        return list(elements)
    selected = set(parent_categories) | set(child_categories)
    return [el for el in elements if el.category in selected]


def flat_rows(elements: Sequence[NormalizedElement], child_categories: Sequence[str]) -> List[TableRow]:
    child_set = set(child_categories)
    return [TableRow.from_element(el, is_child=el.category in child_set) for el in elements]


async def run_pipeline(
    tree: Any,
    parent_categories: Sequence[str],
    child_categories: Sequence[str],
    active_parameters: Optional[Sequence[str]] = None,
    options: Optional[PipelineOptions] = None,
    categories: Optional[CategoryTable] = None,
) -> PipelineResult:
    """
    Scene tree -> filtered elements, parent/child rows and discovered columns.

    Pure with respect to its arguments: equal inputs give byte-identical
    results. Raises on whole-run failures; per-node problems only show up in
    the returned stats.
    """
    options = options or PipelineOptions()
    categories = categories or CategoryTable()

    logger.info(
        "Starting schedule pipeline (parents=%s, children=%s, active_parameters=%s)",
        list(parent_categories),
        list(child_categories),
        "all" if active_parameters is None else len(active_parameters),
    )

    extraction = await extract_elements(tree, categories, options, active_parameters)
    stats = extraction.stats

    if stats.total_nodes == 0:
        logger.info("Scene tree holds no records yet")
        return PipelineResult(status="no_data", is_complete=True, stats=stats)
    if not extraction.elements:
        raise EmptyResultError(
            f"no elements could be extracted from {stats.total_nodes} nodes",
            stats.model_dump(),
        )

    filtered = filter_by_categories(extraction.elements, parent_categories, child_categories)
    kept_ids = {el.id for el in filtered}
    records = [r for r in extraction.records if r.element.id in kept_ids]

    parent_columns, child_columns = await discover_parameter_sets(
        records,
        parent_categories,
        child_categories,
        batch_size=options.discovery_batch_size,
        max_depth=options.max_depth,
    )
    table_rows = resolve_relationships(filtered, child_categories)

    result = PipelineResult(
        status="succeeded",
        filtered_elements=filtered,
        processed_elements=flat_rows(filtered, child_categories),
        table_rows=table_rows,
        parent_columns=parent_columns,
        child_columns=child_columns,
        is_complete=True,
        stats=stats,
    )
    logger.info(
        "Schedule pipeline complete: %d elements, %d rows, %d parent / %d child columns",
        len(filtered), len(table_rows), len(parent_columns), len(child_columns),
    )
    return result
