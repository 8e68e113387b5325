"""
Fire-and-forget background tasks with an observable error channel
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Deque, List, Set
import asyncio
import logging

from prometheus_client import Counter

logger = logging.getLogger(__name__)

BACKGROUND_TASK_FAILURES = Counter(
    'background_task_failures_total',
    'Failed fire-and-forget side effects',
    ['task']
)


@dataclass
class TaskFailure:
    """A side effect that raised after its request already returned"""
    name: str
    error: str
    exception: BaseException = field(repr=False)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BackgroundTaskRunner:
    """
    Runs best-effort side effects (cache writes, activity logs, notifications,
    financial records) off the request path.

    Failures land in `errors` instead of propagating to the caller.
    """

    def __init__(self, max_errors: int = 100):
        self._tasks: Set[asyncio.Task] = set()
        self.errors: Deque[TaskFailure] = deque(maxlen=max_errors)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: str) -> asyncio.Task:
        """Schedule coro without awaiting it"""
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return

        name = task.get_name()
        # Label by task kind ("notify:CONTACT_FORM" -> "notify")
        BACKGROUND_TASK_FAILURES.labels(task=name.split(':', 1)[0]).inc()
        self.errors.append(TaskFailure(name=name, error=str(exc), exception=exc))
        logger.warning(f"Background task {name} failed: {exc!r}")

    def failures(self, prefix: str = "") -> List[TaskFailure]:
        return [failure for failure in self.errors if failure.name.startswith(prefix)]

    async def drain(self) -> None:
        """Wait until every task spawned so far has finished"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
