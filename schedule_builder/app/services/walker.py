from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from schedule_builder.app.core.errors import InvalidSourceError, MalformedNodeError, SourceUnavailableError
from schedule_builder.app.models.categories import CategoryTable
from schedule_builder.app.models.elements import (
    ExtractedRecord,
    ExtractionResult,
    NodeError,
    NormalizedElement,
    ProcessingStats,
)
from schedule_builder.app.models.parameters import ParameterValueState, is_value_state
from schedule_builder.app.models.pipeline import PipelineOptions
from schedule_builder.app.services.classifier import classify_record
from schedule_builder.app.services.coercion import coerce_value, infer_value_type, unwrap
from schedule_builder.app.services.lookup import (
    find_parameter_value,
    find_property_in_groups,
    iter_fields,
    iter_groups,
    iter_ungrouped_fields,
    normalize_key,
    parameter_type_hint,
    scalar_text,
)

logger = logging.getLogger(__name__)

CHILD_POINTERS = ("children", "elements")


# -------------------------------------------------------------------------
# Per-record normalization
# -------------------------------------------------------------------------

def has_type_indicator(raw: Mapping[str, Any]) -> bool:
    for value in (raw.get("speckleType"), raw.get("type")):
        if isinstance(value, str) and value.strip():
            return True
    other = raw.get("Other")
    if isinstance(other, Mapping):
        category = other.get("Category")
        return isinstance(category, str) and bool(category.strip())
    return False


def _value_state(value: Any, type_hint: Optional[str] = None) -> ParameterValueState:
    if is_value_state(value):
        if isinstance(value, ParameterValueState):
            value = value.current_value
        else:
            value = value.get("currentValue", value.get("current_value"))
    value = unwrap(value)
    value_type = type_hint or infer_value_type(value)
    return ParameterValueState.fetched(coerce_value(value, value_type))  # type: ignore[arg-type]


def extract_parameters(
    raw: Mapping[str, Any],
    active_parameters: Optional[Sequence[str]],
    max_depth: int = 10,
) -> Dict[str, ParameterValueState]:
    """
    Active list given: one entry per listed field (null state when absent).
    No list: every discoverable field under its normalized key, first group wins.
    """
    result: Dict[str, ParameterValueState] = {}
    if active_parameters is not None:
        for name in active_parameters:
            value = find_parameter_value(raw, name, max_depth)
            result[name] = _value_state(value, parameter_type_hint(name))
        return result

    for group_name, group in iter_groups(raw):
        for _, field_name, value in iter_fields(group_name, group, max_depth):
            key = normalize_key(field_name)
            if key not in result:
                result[key] = _value_state(value)
    for field_name, value in iter_ungrouped_fields(raw):
        key = normalize_key(field_name)
        if key not in result:
            result[key] = _value_state(value)
    return result


def extract_element(
    raw: Mapping[str, Any],
    categories: CategoryTable,
    active_parameters: Optional[Sequence[str]] = None,
    max_depth: int = 10,
) -> NormalizedElement:
    raw_id = raw.get("id")
    if raw_id is None or str(raw_id).strip() == "":
        raise MalformedNodeError("record has no identifier")
    element_id = str(raw_id)

    try:
        constraints = raw.get("Constraints")
        host = None
        if isinstance(constraints, Mapping):
            host = scalar_text(constraints.get("Host"))
        if not host:
            host = find_property_in_groups(raw, "Host", max_depth)

        speckle_type = raw.get("speckleType")
        raw_type = raw.get("type")
        element_type = next(
            (t for t in (speckle_type, raw_type) if isinstance(t, str) and t.strip()),
            "Unknown",
        )

        return NormalizedElement(
            id=element_id,
            type=element_type,
            category=classify_record(raw, categories),
            mark=find_property_in_groups(raw, "Mark", max_depth) or element_id,
            host=host or None,
            parameters=extract_parameters(raw, active_parameters, max_depth),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise MalformedNodeError(f"{type(e).__name__}: {e}", node_id=element_id) from e


# -------------------------------------------------------------------------
# Traversal
# -------------------------------------------------------------------------

def _candidate_records(node: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    raw = node.get("raw")
    model = node.get("model")
    model_raw = model.get("raw") if isinstance(model, Mapping) else None

    records: List[Mapping[str, Any]] = []
    if isinstance(raw, Mapping):
        records.append(raw)
    if isinstance(model_raw, Mapping):
        if not isinstance(raw, Mapping) or model_raw.get("id") != raw.get("id"):
            records.append(model_raw)
    if raw is None and model is None and ("id" in node or has_type_indicator(node)):
        # Bare-record trees: the node is its own record
        records.append(node)
    return records


def _child_collections(node: Mapping[str, Any]) -> List[Sequence[Any]]:
    collections: List[Sequence[Any]] = []
    seen: Set[int] = set()
    model = node.get("model")
    sources = [node.get(p) for p in CHILD_POINTERS]
    if isinstance(model, Mapping):
        sources.append(model.get("children"))
    for coll in sources:
        if isinstance(coll, (list, tuple)) and id(coll) not in seen:
            seen.add(id(coll))
            collections.append(coll)
    return collections


class TreeWalker:
    """
    Pre-order, depth-bounded walk of a viewer scene tree.

    All per-run state lives on the instance: create one walker per extraction
    pass.
    """

    def __init__(
        self,
        categories: CategoryTable,
        options: Optional[PipelineOptions] = None,
        active_parameters: Optional[Sequence[str]] = None,
    ):
        self.categories = categories
        self.options = options or PipelineOptions()
        self.active_parameters = list(active_parameters) if active_parameters is not None else None

        self.stats = ProcessingStats()
        self.records: List[ExtractedRecord] = []
        self._emitted_ids: Set[str] = set()

    async def walk(self, root: Any) -> ExtractionResult:
        if root is None:
            raise SourceUnavailableError("scene tree root is not available")
        if not isinstance(root, Mapping):
            raise InvalidSourceError(
                f"scene tree root must be a mapping, got {type(root).__name__}",
                {"root_type": type(root).__name__},
            )

        max_depth = self.options.max_depth
        batch_size = self.options.walker_batch_size
        visited = 0

        # Children are pushed reversed so pops follow document order
        stack: List[Tuple[Any, int]] = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            if depth >= max_depth or not isinstance(node, Mapping):
                continue

            for raw in _candidate_records(node):
                self._process_record(raw, depth)

            pending: List[Any] = []
            for coll in _child_collections(node):
                pending.extend(child for child in coll if child)
            for child in reversed(pending):
                stack.append((child, depth + 1))

            visited += 1
            if visited % batch_size == 0:
                logger.debug("Walked %d tree nodes (%d elements so far)", visited, len(self.records))
                await asyncio.sleep(0)

        logger.info(
            "Extraction finished: total=%d processed=%d skipped=%d errors=%d",
            self.stats.total_nodes,
            self.stats.processed_nodes,
            self.stats.skipped_nodes,
            len(self.stats.errors),
        )
        return ExtractionResult(
            elements=[r.element for r in self.records],
            records=list(self.records),
            stats=self.stats,
        )

    def _process_record(self, raw: Mapping[str, Any], depth: int) -> None:
        self.stats.total_nodes += 1

        raw_id = raw.get("id")
        if raw_id is not None and str(raw_id) in self._emitted_ids:
            self.stats.skipped_nodes += 1
            return

        if not has_type_indicator(raw):
            self.stats.skipped_nodes += 1
            return

        try:
            element = extract_element(
                raw,
                self.categories,
                self.active_parameters,
                self.options.max_depth,
            )
        except MalformedNodeError as e:
            self.stats.skipped_nodes += 1
            self.stats.errors.append(NodeError(node_id=e.node_id, depth=depth, reason=e.message))
            logger.warning("Skipping malformed node %s at depth %d: %s", e.node_id or "<no id>", depth, e.message)
            return

        self._emitted_ids.add(element.id)
        self.records.append(ExtractedRecord(element=element, raw=raw))
        self.stats.processed_nodes += 1


async def extract_elements(
    root: Any,
    categories: CategoryTable,
    options: Optional[PipelineOptions] = None,
    active_parameters: Optional[Sequence[str]] = None,
) -> ExtractionResult:
    return await TreeWalker(categories, options, active_parameters).walk(root)
