from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from schedule_builder.app.core.errors import DiscoveryError
from schedule_builder.app.models.elements import ExtractedRecord
from schedule_builder.app.models.parameters import ParameterDescriptor, ParameterGroup, is_value_state
from schedule_builder.app.services.coercion import infer_column_type
from schedule_builder.app.services.lookup import iter_fields, iter_groups, iter_ungrouped_fields, normalize_key

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def record_fields(record: ExtractedRecord, max_depth: int = 10) -> Iterable[Tuple[str, str, Any]]:
    """
    (source group, field name, value) for one record in precedence order.
    Records without a raw mapping fall back to their extracted parameters.
    """
    raw = record.raw
    if not isinstance(raw, Mapping):
        for key, state in record.element.parameters.items():
            yield ParameterGroup.PARAMETERS.value, key, state.current_value
        return

    for group_name, group in iter_groups(raw):
        yield from iter_fields(group_name, group, max_depth)
    for key, value in iter_ungrouped_fields(raw):
        yield ParameterGroup.PROPERTIES.value, key, value


def describe_record(record: ExtractedRecord, max_depth: int = 10) -> List[ParameterDescriptor]:
    seen: Dict[str, ParameterDescriptor] = {}
    for group, name, value in record_fields(record, max_depth):
        field = normalize_key(name)
        if field in seen:
            continue
        if is_value_state(value):
            value = value.get("currentValue", value.get("current_value"))
        seen[field] = ParameterDescriptor(
            field=field,
            header=name,
            source_group=group,
            type=infer_column_type(value),
            category=record.element.category,
        )
    return list(seen.values())


async def discover_parameters(
    records: Sequence[ExtractedRecord],
    selected_categories: Sequence[str],
    batch_size: int = 50,
    progress: Optional[ProgressCallback] = None,
    max_depth: int = 10,
) -> List[ParameterDescriptor]:
    """
    Union of all fields found on records of the selected categories.

    Runs in batches with a yield to the event loop between them. The first
    occurrence of a normalized field key wins.
    """
    if not selected_categories:
        return []

    wanted = set(selected_categories)
    candidates = [r for r in records if r.element.category in wanted]
    total = len(candidates)
    found: Dict[str, ParameterDescriptor] = {}

    logger.debug("Discovering parameters over %d records for %s", total, sorted(wanted))

    for batch_index, start in enumerate(range(0, total, batch_size)):
        for record in candidates[start:start + batch_size]:
            try:
                descriptors = describe_record(record, max_depth)
            except Exception as e:
                raise DiscoveryError(
                    f"parameter discovery failed: {type(e).__name__}: {e}",
                    node_id=record.element.id,
                    batch_index=batch_index,
                ) from e
            for d in descriptors:
                if d.field not in found:
                    found[d.field] = d

        processed = min(start + batch_size, total)
        if progress:
            progress(processed, total)
        await asyncio.sleep(0)

    logger.debug("Discovered %d parameters (%d records)", len(found), total)
    return list(found.values())


async def discover_parameter_sets(
    records: Sequence[ExtractedRecord],
    parent_categories: Sequence[str],
    child_categories: Sequence[str],
    batch_size: int = 50,
    max_depth: int = 10,
) -> Tuple[List[ParameterDescriptor], List[ParameterDescriptor]]:
    """Parent and child discovery run side by side; neither shares state with the other."""
    parent_columns, child_columns = await asyncio.gather(
        discover_parameters(records, parent_categories, batch_size, max_depth=max_depth),
        discover_parameters(records, child_categories, batch_size, max_depth=max_depth),
    )
    return parent_columns, child_columns
