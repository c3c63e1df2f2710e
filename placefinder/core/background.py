"""Fire-and-forget work submitted from request handlers.

Services take a ``schedule`` callable with the signature of
``fastapi.BackgroundTasks.add_task``: the task runs after the response is sent
and nothing on the request path waits for it.
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

TaskScheduler = Callable[..., Any]


def guarded(description: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Run a background callable, logging instead of raising on failure"""
    try:
        func(*args, **kwargs)
    except Exception:
        logger.exception("Background task failed: %s", description)
