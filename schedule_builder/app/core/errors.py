from __future__ import annotations

from typing import Any, Dict, Optional


class ScheduleError(Exception):
    """Base for every failure surfaced by the schedule pipeline."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SourceUnavailableError(ScheduleError):
    """The scene tree is missing or not ready (terminal once retries are exhausted)."""


class InvalidSourceError(ScheduleError):
    """The root of the scene tree is not a node mapping."""


class MalformedNodeError(ScheduleError):
    """A single node could not be normalized. Absorbed by the walker."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message, {"node_id": node_id})
        self.node_id = node_id


class EmptyResultError(ScheduleError):
    """Traversal visited nodes but none of them produced an element."""


class DiscoveryError(ScheduleError):
    def __init__(self, message: str, node_id: Optional[str] = None, batch_index: Optional[int] = None):
        super().__init__(message, {"node_id": node_id, "batch_index": batch_index})
        self.node_id = node_id
        self.batch_index = batch_index
