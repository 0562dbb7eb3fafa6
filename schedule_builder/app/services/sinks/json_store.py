from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from schedule_builder.app.models.pipeline import PipelineResult
from schedule_builder.app.services.sinks.base import SnapshotSink


def jsonencoder(o: Any) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    return str(o)


def jsonl_append(path: Path, obj: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(obj, default=jsonencoder, ensure_ascii=False) + "\n")


class JsonSnapshotSink(SnapshotSink):
    def __init__(self, out_dir: Path):
        self.snapshot_path = out_dir / "schedule_snapshot.json"
        self.runs_path = out_dir / "runs.jsonl"

    def publish(self, result: PipelineResult) -> None:
        # Write to a temp file first so readers never see a half-written snapshot
        self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.snapshot_path.with_suffix(".json.tmp")
        tmp.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(self.snapshot_path)

        jsonl_append(self.runs_path, {
            "published_at": datetime.now(timezone.utc).replace(microsecond=0),
            "status": result.status,
            "rows": len(result.table_rows),
            "parent_columns": len(result.parent_columns),
            "child_columns": len(result.child_columns),
            "stats": result.stats.model_dump(mode="json", exclude={"errors"}),
            "errors": len(result.stats.errors),
        })
