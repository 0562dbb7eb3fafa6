from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from schedule_builder.app.core.errors import SourceUnavailableError
from schedule_builder.app.core.settings import Settings
from schedule_builder.app.models.categories import CategoryTable
from schedule_builder.app.models.pipeline import PipelineOptions, PipelineResult, PipelineStatus
from schedule_builder.app.services.pipeline import run_pipeline
from schedule_builder.app.services.sinks.base import SnapshotSink
from schedule_builder.app.services.source import TreeProvider, wait_for_source

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[PipelineResult], None]


class ScheduleSession:
    """
    Holds the latest published schedule for one viewer.

    Every tree replacement re-runs the pipeline from scratch. A run that
    finishes after a newer one has started is dropped without publishing.
    """

    def __init__(
        self,
        options: Optional[PipelineOptions] = None,
        categories: Optional[CategoryTable] = None,
        parent_categories: Optional[Sequence[str]] = None,
        child_categories: Optional[Sequence[str]] = None,
        active_parameters: Optional[Sequence[str]] = None,
        retry_attempts: int = 10,
        retry_interval_s: float = 0.5,
    ):
        self.options = options or PipelineOptions()
        self.categories = categories or CategoryTable()
        self.parent_categories: List[str] = list(parent_categories or [])
        self.child_categories: List[str] = list(child_categories or [])
        self.active_parameters = list(active_parameters) if active_parameters is not None else None
        self.retry_attempts = retry_attempts
        self.retry_interval_s = retry_interval_s

        self.snapshot: Optional[PipelineResult] = None
        self.status: PipelineStatus = "no_data"
        self.error: Optional[str] = None

        self._tree: Any = None
        self._generation = 0
        self._subscribers: List[SnapshotCallback] = []

    @classmethod
    def from_settings(cls, settings: Settings, active_parameters: Optional[Sequence[str]] = None) -> "ScheduleSession":
        return cls(
            options=settings.pipeline_options(),
            categories=settings.category_table(),
            parent_categories=settings.default_parent_selection,
            child_categories=settings.default_child_selection,
            active_parameters=active_parameters,
            retry_attempts=settings.source_retry_attempts,
            retry_interval_s=settings.source_retry_interval_s,
        )

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a consumer; returns a function that removes it again."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def add_sink(self, sink: SnapshotSink) -> Callable[[], None]:
        return self.subscribe(sink.publish)

    def select(
        self,
        parent_categories: Optional[Sequence[str]] = None,
        child_categories: Optional[Sequence[str]] = None,
        active_parameters: Optional[Sequence[str]] = None,
    ) -> None:
        if parent_categories is not None:
            self.parent_categories = list(parent_categories)
        if child_categories is not None:
            self.child_categories = list(child_categories)
        if active_parameters is not None:
            self.active_parameters = list(active_parameters)

    async def on_tree_replaced(self, tree: Any) -> Optional[PipelineResult]:
        self._tree = tree
        return await self.refresh()

    async def load(
        self,
        provider: TreeProvider,
        max_attempts: Optional[int] = None,
        interval_s: Optional[float] = None,
    ) -> Optional[PipelineResult]:
        """Wait for the viewer to expose a tree, then run on it. Retry knobs default to the session's."""
        try:
            tree = await wait_for_source(
                provider,
                self.retry_attempts if max_attempts is None else max_attempts,
                self.retry_interval_s if interval_s is None else interval_s,
            )
        except SourceUnavailableError as e:
            self._fail(e)
            raise
        return await self.on_tree_replaced(tree)

    def _fail(self, e: Exception) -> None:
        self.snapshot = None
        self.status = "failed"
        self.error = str(e)

    async def refresh(self) -> Optional[PipelineResult]:
        """
        Run the pipeline on the current tree and selections.

        Returns the published result, or None when this run was superseded.
        Failures clear the snapshot, mark the session failed and re-raise.
        """
        self._generation += 1
        generation = self._generation

        try:
            result = await run_pipeline(
                self._tree,
                self.parent_categories,
                self.child_categories,
                self.active_parameters,
                options=self.options,
                categories=self.categories,
            )
        except Exception as e:
            if generation != self._generation:
                logger.info("Discarding failure of superseded run %d: %s", generation, e)
                return None
            self._fail(e)
            logger.error("Schedule run %d failed: %s", generation, e)
            raise

        if generation != self._generation:
            logger.info("Discarding superseded run %d (latest is %d)", generation, self._generation)
            return None

        self.snapshot = result
        self.status = result.status
        self.error = None
        for callback in list(self._subscribers):
            callback(result)
        return result
