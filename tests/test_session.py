# tests/test_session.py

import asyncio

import pytest

from schedule_builder.app.core.errors import EmptyResultError, SourceUnavailableError
from schedule_builder.app.core.settings import Settings
from schedule_builder.app.models.pipeline import PipelineOptions
from schedule_builder.app.services.session import ScheduleSession


def _session(**kwargs):
    return ScheduleSession(
        options=kwargs.pop("options", None),
        parent_categories=["Walls"],
        child_categories=["Structural Framing"],
        **kwargs,
    )


def test_tree_replacement_publishes_snapshot(wall_beam_tree):
    session = _session()
    published = []
    session.subscribe(published.append)

    result = asyncio.run(session.on_tree_replaced(wall_beam_tree))

    assert session.status == "succeeded"
    assert session.error is None
    assert session.snapshot is result
    assert published == [result]


def test_unsubscribe(wall_beam_tree):
    session = _session()
    published = []
    unsubscribe = session.subscribe(published.append)
    unsubscribe()

    asyncio.run(session.on_tree_replaced(wall_beam_tree))

    assert published == []


def test_failure_clears_snapshot(wall_beam_tree):
    session = _session()
    asyncio.run(session.on_tree_replaced(wall_beam_tree))
    assert session.snapshot is not None

    with pytest.raises(EmptyResultError):
        asyncio.run(session.on_tree_replaced({"id": "root", "children": [{"id": "x"}]}))

    assert session.snapshot is None
    assert session.status == "failed"
    assert "no elements" in session.error


def test_recovers_after_failure(wall_beam_tree):
    session = _session()
    with pytest.raises(EmptyResultError):
        asyncio.run(session.on_tree_replaced({"id": "x"}))

    asyncio.run(session.on_tree_replaced(wall_beam_tree))

    assert session.status == "succeeded"
    assert session.error is None


def test_superseded_run_is_discarded(speckle_tree, wall_beam_tree):
    session = _session(options=PipelineOptions(walker_batch_size=1))
    published = []
    session.subscribe(published.append)

    async def replace_twice():
        return await asyncio.gather(
            session.on_tree_replaced(speckle_tree),
            session.on_tree_replaced(wall_beam_tree),
        )

    stale, latest = asyncio.run(replace_twice())

    assert stale is None
    assert latest is not None
    assert published == [latest]
    assert session.snapshot is latest
    assert [r.id for r in latest.table_rows] == ["1"]


def test_selection_change_and_refresh(wall_beam_tree):
    session = _session()
    asyncio.run(session.on_tree_replaced(wall_beam_tree))

    session.select(child_categories=[])
    result = asyncio.run(session.refresh())

    assert [r.id for r in result.table_rows] == ["1"]
    assert result.child_columns == []


def test_empty_tree_is_no_data():
    session = _session()

    result = asyncio.run(session.on_tree_replaced({"model": {}}))

    assert result.status == "no_data"
    assert session.status == "no_data"


def test_load_waits_for_viewer(wall_beam_tree):
    session = _session()
    answers = iter([None, wall_beam_tree])

    result = asyncio.run(session.load(lambda: next(answers), interval_s=0))

    assert result.status == "succeeded"
    assert session.snapshot is result


def test_load_gives_up_and_marks_failure(wall_beam_tree):
    session = _session()
    asyncio.run(session.on_tree_replaced(wall_beam_tree))

    with pytest.raises(SourceUnavailableError):
        asyncio.run(session.load(lambda: None, max_attempts=2, interval_s=0))

    assert session.snapshot is None
    assert session.status == "failed"


def test_session_from_settings_uses_retry_settings():
    settings = Settings(
        source_retry_attempts=2,
        source_retry_interval_s=0,
        default_parent_selection=["Walls"],
        default_child_selection=["Doors"],
    )
    session = ScheduleSession.from_settings(settings)
    calls = []

    def provider():
        calls.append(1)
        return None

    with pytest.raises(SourceUnavailableError):
        asyncio.run(session.load(provider))

    assert len(calls) == 2
    assert session.parent_categories == ["Walls"]
    assert session.child_categories == ["Doors"]
