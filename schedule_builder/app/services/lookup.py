from __future__ import annotations

import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from schedule_builder.app.models.parameters import (
    GROUP_PATH_SEPARATOR,
    KNOWN_GROUPS,
    PROPERTY_SET_PREFIX,
    ParameterGroup,
    ParameterValueType,
)
from schedule_builder.app.services.coercion import UNWRAP_FIELD

# Keys describing the node itself or the tree around it; never reported as fields
STRUCTURAL_KEYS = frozenset({
    "id",
    "speckleType",
    "type",
    "_type",
    "elements",
    "children",
    "parameters",
    "__closure",
    "expressID",
    "GlobalId",
    "model",
    "raw",
})

# Field name -> alternative spellings seen across exporters, plus a fixed type
PARAMETER_ALIASES: Dict[str, Tuple[List[str], ParameterValueType]] = {
    "width": (["width", "Width", "b", "B", "Width Parameter"], "number"),
    "height": (["height", "Height", "h", "H", "Height Parameter"], "number"),
    "length": (["length", "Length", "l", "L", "Length Parameter"], "number"),
    "family": (["family", "Family", "familyName", "FamilyName", "Family Type"], "string"),
    "mark": (["mark", "Mark", "markId", "MarkId"], "string"),
    "category": (["category", "Category", "elementCategory", "ElementCategory"], "string"),
    "host": (["host", "Host", "hostId", "HostId", "hostElement", "HostElement"], "string"),
}

_WS_RE = re.compile(r"\s+")


def normalize_key(name: str) -> str:
    return _WS_RE.sub("_", str(name)).lower()


def is_group(value: Any) -> bool:
    """A nested mapping that holds fields, as opposed to a wrapped scalar."""
    return isinstance(value, Mapping) and UNWRAP_FIELD not in value and "currentValue" not in value


def iter_groups(raw: Mapping[str, Any]) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    """
    Yield (source group, mapping) for the structural groups of a record, in
    discovery precedence order: parameters, fixed groups, property sets.
    """
    params = raw.get("parameters")
    if is_group(params):
        yield ParameterGroup.PARAMETERS.value, params

    for group in KNOWN_GROUPS:
        data = raw.get(group.value)
        if is_group(data):
            yield group.value, data

    for key, value in raw.items():
        if isinstance(key, str) and key.startswith(PROPERTY_SET_PREFIX) and is_group(value):
            yield key, value


def iter_fields(group_name: str, group: Mapping[str, Any], max_depth: int, depth: int = 0) -> Iterator[Tuple[str, str, Any]]:
    """Yield (source group path, field name, value) for every leaf under a group."""
    for key, value in group.items():
        if is_group(value):
            if depth + 1 < max_depth:
                yield from iter_fields(f"{group_name}{GROUP_PATH_SEPARATOR}{key}", value, max_depth, depth + 1)
            continue
        yield group_name, str(key), value


def iter_ungrouped_fields(raw: Mapping[str, Any]) -> Iterator[Tuple[str, Any]]:
    """Top-level scalars not claimed by a known group or property set."""
    known = {g.value for g in KNOWN_GROUPS}
    for key, value in raw.items():
        if not isinstance(key, str) or key in STRUCTURAL_KEYS or key in known:
            continue
        if key.startswith(PROPERTY_SET_PREFIX):
            continue
        if is_group(value) or isinstance(value, list):
            continue
        yield key, value


def scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, Mapping) and UNWRAP_FIELD in value:
        value = value[UNWRAP_FIELD]
    if value is None or value == "" or value is False:
        return None
    if isinstance(value, (Mapping, list)):
        return None
    return str(value)


def _search_nested(group: Mapping[str, Any], name: str, depth: int, max_depth: int) -> Optional[str]:
    for value in group.values():
        if is_group(value) and depth < max_depth:
            if name in value:
                found = scalar_text(value[name])
                if found:
                    return found
            found = _search_nested(value, name, depth + 1, max_depth)
            if found:
                return found
    return None


def find_property_in_groups(raw: Mapping[str, Any], name: str, max_depth: int = 10) -> Optional[str]:
    """
    Locate a textual property such as Mark or Host.

    Order: top-level key, Identity Data, parameters, every other top-level
    group in key order, then nested groups depth-first.
    """
    direct = scalar_text(raw.get(name))
    if direct:
        return direct

    ordered: List[Mapping[str, Any]] = []
    for key in (ParameterGroup.IDENTITY_DATA.value, "parameters"):
        group = raw.get(key)
        if is_group(group):
            ordered.append(group)
    for key, value in raw.items():
        if key in (ParameterGroup.IDENTITY_DATA.value, "parameters") or key in STRUCTURAL_KEYS:
            continue
        if is_group(value):
            ordered.append(value)

    for group in ordered:
        if name in group:
            found = scalar_text(group[name])
            if found:
                return found
    for group in ordered:
        found = _search_nested(group, name, 1, max_depth)
        if found:
            return found
    return None


def find_parameter_value(raw: Mapping[str, Any], param_name: str, max_depth: int = 10) -> Any:
    """
    Resolve one active parameter on a record: alias names in parameters, the
    Mark/Category/Host special cases, direct keys, then every group by
    normalized key.
    """
    names = PARAMETER_ALIASES.get(param_name, ([param_name], "string"))[0]
    params = raw.get("parameters")
    other = raw.get("Other")
    constraints = raw.get("Constraints")

    for name in names:
        if isinstance(params, Mapping) and params.get(name) is not None:
            return params[name]
        if name == "mark" and raw.get("Mark") is not None:
            return raw["Mark"]
        if name == "category" and isinstance(other, Mapping) and other.get("Category") is not None:
            return other["Category"]
        if name == "host" and isinstance(constraints, Mapping) and constraints.get("Host") is not None:
            return constraints["Host"]
        if name in raw and name not in STRUCTURAL_KEYS and raw[name] is not None:
            return raw[name]

    wanted = {normalize_key(n) for n in names}
    for group_name, group in iter_groups(raw):
        for _, field_name, value in iter_fields(group_name, group, max_depth):
            if normalize_key(field_name) in wanted and value is not None:
                return value
    return None


def parameter_type_hint(param_name: str) -> Optional[ParameterValueType]:
    entry = PARAMETER_ALIASES.get(param_name)
    return entry[1] if entry else None
