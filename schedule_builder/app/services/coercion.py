from __future__ import annotations

import json
import math
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

from schedule_builder.app.models.parameters import ParameterValue, ParameterValueType

# Speckle wraps some primitive values as {"_": value}
UNWRAP_FIELD = "_"

_ISO_DATE_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}([T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?$"
)


def unwrap(value: Any) -> Any:
    if isinstance(value, Mapping) and UNWRAP_FIELD in value:
        return value[UNWRAP_FIELD]
    return value


def parse_float(text: str) -> Optional[float]:
    """Full-string float parse. NaN/inf count as failures."""
    try:
        num = float(text.strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def is_iso_date(text: str) -> bool:
    return bool(_ISO_DATE_RE.match(text.strip()))


def infer_value_type(value: Any) -> ParameterValueType:
    """
    boolean for native bools, number for native numbers or strings that parse
    fully as a float, string for everything else.
    """
    value = unwrap(value)
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str) and parse_float(value) is not None:
        return "number"
    return "string"


def infer_column_type(value: Any) -> ParameterValueType:
    """Like infer_value_type, but recognizes dates for column display."""
    value = unwrap(value)
    if isinstance(value, (date, datetime)):
        return "date"
    if isinstance(value, str) and is_iso_date(value):
        return "date"
    return infer_value_type(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return value
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    if trimmed.endswith("%"):
        num = parse_float(trimmed[:-1])
        return None if num is None else num / 100
    if trimmed.startswith("$"):
        return parse_float(trimmed[1:])
    return parse_float(trimmed)


def _to_string(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        try:
            text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return None
        return None if text == "{}" else text
    return str(value)


def _to_date(value: Any) -> Optional[str]:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, str) and is_iso_date(value):
        return value.strip()
    return None


def coerce_value(value: Any, value_type: Optional[ParameterValueType] = None) -> ParameterValue:
    """
    Convert a raw field value to a display primitive. Total: every failure is
    reported as None.
    """
    if value is None:
        return None
    value = unwrap(value)
    if value is None:
        return None

    t = value_type or infer_value_type(value)
    if t == "number":
        return _to_number(value)
    if t == "string":
        return _to_string(value)
    if t == "boolean":
        return value if isinstance(value, bool) else None
    if t == "date":
        return _to_date(value)
    return None
