from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from schedule_builder.app.models.elements import NormalizedElement, ProcessingStats, TableRow
from schedule_builder.app.models.parameters import ParameterDescriptor

PipelineStatus = Literal["no_data", "succeeded", "failed"]


class PipelineOptions(BaseModel):
    """Per-run knobs handed to the core; built from Settings by the entry points."""

    max_depth: int = Field(default=10, ge=1)
    walker_batch_size: int = Field(default=100, ge=1)
    discovery_batch_size: int = Field(default=50, ge=1)


class PipelineResult(BaseModel):
    status: PipelineStatus = "no_data"
    filtered_elements: List[NormalizedElement] = Field(default_factory=list)
    processed_elements: List[TableRow] = Field(default_factory=list)
    table_rows: List[TableRow] = Field(default_factory=list)
    parent_columns: List[ParameterDescriptor] = Field(default_factory=list)
    child_columns: List[ParameterDescriptor] = Field(default_factory=list)
    is_complete: bool = False
    stats: ProcessingStats = Field(default_factory=ProcessingStats)


class ScheduleRequest(BaseModel):
    """
    Body of POST /schedule.
    tree: root node of the viewer scene graph (opaque mapping).
    active_parameters: None means "extract everything discoverable".
    """
    tree: Optional[dict] = None
    parent_categories: List[str] = Field(default_factory=list)
    child_categories: List[str] = Field(default_factory=list)
    active_parameters: Optional[List[str]] = None
