# tests/test_source.py

import asyncio

import pytest

from schedule_builder.app.core.errors import SourceUnavailableError
from schedule_builder.app.services.source import wait_for_source


def test_returns_once_tree_is_ready():
    answers = [None, None, {"id": "root"}]
    calls = []

    def provider():
        calls.append(1)
        return answers[len(calls) - 1]

    tree = asyncio.run(wait_for_source(provider, max_attempts=5, interval_s=0))

    assert tree == {"id": "root"}
    assert len(calls) == 3


def test_async_provider():
    async def provider():
        return {"id": "root"}

    assert asyncio.run(wait_for_source(provider, interval_s=0)) == {"id": "root"}


def test_gives_up_after_max_attempts():
    calls = []

    def provider():
        calls.append(1)
        return None

    with pytest.raises(SourceUnavailableError) as exc:
        asyncio.run(wait_for_source(provider, max_attempts=3, interval_s=0))

    assert len(calls) == 3
    assert exc.value.details["max_attempts"] == 3
