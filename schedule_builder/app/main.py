from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

from schedule_builder.app.core.errors import (
    EmptyResultError,
    InvalidSourceError,
    ScheduleError,
    SourceUnavailableError,
)
from schedule_builder.app.core.settings import Settings, get_settings
from schedule_builder.app.models.pipeline import PipelineResult, ScheduleRequest
from schedule_builder.app.services.pipeline import run_pipeline
from schedule_builder.app.services.sinks.json_store import JsonSnapshotSink

logger = logging.getLogger(__name__)

app = FastAPI(title="Schedule Builder Service", version="0.1.0")


def _error_status(e: Exception) -> int:
    if isinstance(e, (SourceUnavailableError, InvalidSourceError)):
        return 400
    if isinstance(e, EmptyResultError):
        return 422
    return 500


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


@app.post("/schedule", response_model=PipelineResult)
async def schedule(req: ScheduleRequest) -> PipelineResult:
    settings = get_settings()
    parents = req.parent_categories or settings.default_parent_selection
    children = req.child_categories or settings.default_child_selection
    try:
        return await run_pipeline(
            req.tree,
            parents,
            children,
            req.active_parameters,
            options=settings.pipeline_options(),
            categories=settings.category_table(),
        )
    except ScheduleError as e:
        logger.error("Schedule request failed: %s", e.message)
        raise HTTPException(status_code=_error_status(e), detail={"error": type(e).__name__, "message": e.message, **e.details})
    except Exception as e:
        logger.exception("Unexpected failure while building schedule")
        raise HTTPException(status_code=500, detail=str(e))


def cli(argv: Optional[List[str]] = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Schedule Builder CLI")
    parser.add_argument("tree", help="Path to a scene tree JSON file")
    parser.add_argument("--parent", action="append", default=[], help="Parent category (repeatable)")
    parser.add_argument("--child", action="append", default=[], help="Child category (repeatable)")
    parser.add_argument("--param", action="append", default=None, help="Active parameter (repeatable); omit to extract all")
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--out-dir", help="Override OUT_DIR; implies --publish")
    parser.add_argument("--publish", action="store_true", help="Write the snapshot to the output directory")
    args = parser.parse_args(argv)

    settings = Settings()
    if args.max_depth is not None:
        settings.max_depth = args.max_depth
    if args.out_dir:
        settings.out_dir = Path(args.out_dir)

    logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(levelname)s - %(message)s')

    with open(args.tree, encoding="utf-8") as f:
        tree = json.load(f)

    result = asyncio.run(run_pipeline(
        tree,
        args.parent or settings.default_parent_selection,
        args.child or settings.default_child_selection,
        args.param,
        options=settings.pipeline_options(),
        categories=settings.category_table(),
    ))

    if args.publish or args.out_dir:
        settings.ensure_out_dir()
        JsonSnapshotSink(settings.out_dir).publish(result)

    print(result.model_dump_json(indent=2))


def serve() -> None:
    load_dotenv()
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(levelname)s - %(message)s')
    uvicorn.run("schedule_builder.app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    cli()
