from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

ParameterValueType = Literal["string", "number", "boolean", "date"]
ParameterValue = Optional[Union[bool, float, int, str]]


class ParameterGroup(str, Enum):
    """Structural groups a discovered field can be sourced from."""

    PARAMETERS = "Parameters"
    PROPERTIES = "Properties"
    BASE_QUANTITIES = "BaseQuantities"
    CONSTRAINTS = "Constraints"
    DIMENSIONS = "Dimensions"
    GRAPHICS = "Graphics"
    IDENTITY_DATA = "Identity Data"
    OTHER = "Other"
    PHASING = "Phasing"
    STRUCTURAL = "Structural"


# Fixed groups walked on every node, in this order
KNOWN_GROUPS = [
    ParameterGroup.BASE_QUANTITIES,
    ParameterGroup.CONSTRAINTS,
    ParameterGroup.DIMENSIONS,
    ParameterGroup.GRAPHICS,
    ParameterGroup.IDENTITY_DATA,
    ParameterGroup.OTHER,
    ParameterGroup.PHASING,
    ParameterGroup.STRUCTURAL,
]

PROPERTY_SET_PREFIX = "Pset_"
GROUP_PATH_SEPARATOR = " > "


class ParameterValueState(BaseModel):
    model_config = ConfigDict(frozen=True)

    fetched_value: ParameterValue = None
    current_value: ParameterValue = None
    previous_value: ParameterValue = None
    user_value: ParameterValue = None

    @classmethod
    def fetched(cls, value: ParameterValue) -> "ParameterValueState":
        return cls(fetched_value=value, current_value=value, previous_value=value, user_value=None)


class ParameterDescriptor(BaseModel):
    """One discovered column: stable key, display header, source group and inferred type."""
    model_config = ConfigDict(frozen=True)

    field: str
    header: str
    source_group: str
    type: ParameterValueType = "string"
    category: str


def is_value_state(value: Any) -> bool:
    """True for mappings shaped like a serialized ParameterValueState."""
    if isinstance(value, ParameterValueState):
        return True
    if not isinstance(value, dict):
        return False
    return "currentValue" in value or "current_value" in value
