from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from schedule_builder.app.models.parameters import ParameterValueState

UNGROUPED_ID = "ungrouped"
UNGROUPED_TYPE = "Group"
UNGROUPED_MARK = "Ungrouped"
UNGROUPED_CATEGORY = "Groups"

# -------------------------------------------------------------------------
# Extraction output
# -------------------------------------------------------------------------

class NormalizedElement(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    category: str
    mark: str
    host: Optional[str] = None
    parameters: Dict[str, ParameterValueState] = Field(default_factory=dict)
    children: List["NormalizedElement"] = Field(default_factory=list)


class TableRow(NormalizedElement):
    """A parent row (may own details) or a child row (never owns details)."""

    is_child: bool = False
    details: List["TableRow"] = Field(default_factory=list)

    @classmethod
    def from_element(cls, element: NormalizedElement, is_child: bool, details: Optional[List["TableRow"]] = None) -> "TableRow":
        return cls(
            **element.model_dump(exclude={"parameters", "children"}),
            parameters=element.parameters,
            is_child=is_child,
            details=[] if is_child else list(details or []),
        )


class NodeError(BaseModel):
    node_id: Optional[str] = None
    depth: int = 0
    reason: str


class ProcessingStats(BaseModel):
    total_nodes: int = 0
    processed_nodes: int = 0
    skipped_nodes: int = 0
    errors: List[NodeError] = Field(default_factory=list)


@dataclass
class ExtractedRecord:
    """A normalized element paired with the raw record it came from."""
    element: NormalizedElement
    raw: Optional[Mapping[str, Any]] = None


@dataclass
class ExtractionResult:
    elements: List[NormalizedElement]
    records: List[ExtractedRecord]
    stats: ProcessingStats
