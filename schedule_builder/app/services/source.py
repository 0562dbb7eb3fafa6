from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from schedule_builder.app.core.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

TreeProvider = Callable[[], Union[Any, Awaitable[Any]]]


async def wait_for_source(provider: TreeProvider, max_attempts: int = 10, interval_s: float = 0.5) -> Any:
    """
    Poll provider until it returns a tree. Fixed interval, bounded attempts;
    raises SourceUnavailableError once the attempts are used up.
    """
    for attempt in range(1, max_attempts + 1):
        tree = provider()
        if inspect.isawaitable(tree):
            tree = await tree
        if tree is not None:
            if attempt > 1:
                logger.info("Scene tree became available after %d attempts", attempt)
            return tree
        logger.debug("Scene tree not ready (attempt %d/%d)", attempt, max_attempts)
        if attempt < max_attempts:
            await asyncio.sleep(interval_s)

    raise SourceUnavailableError(
        f"scene tree not available after {max_attempts} attempts",
        {"max_attempts": max_attempts, "interval_s": interval_s},
    )
