from __future__ import annotations

from schedule_builder.app.models.pipeline import PipelineResult


class SnapshotSink:
    """Consumer of published pipeline snapshots."""

    def publish(self, result: PipelineResult) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass
