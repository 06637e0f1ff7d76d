"""
Data models for the task scheduler.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from .exceptions import GraphIntegrityError

# Reserved key of the synthetic root record
ROOT_KEY = "__ROOT_TASK_KEY_SHOULD_NOT_BE_USED_BY_USER__"

TaskFn = Callable[[Dict[str, Any]], Awaitable[Any]]


async def noop(inputs: Optional[Dict[str, Any]] = None) -> None:
    """Work used by the root record and by placeholders."""
    return None


class SchedulerState(Enum):
    """Lifecycle states of a scheduler."""
    BUILDING = "building"
    RUNNING = "running"
    DONE = "done"


class TaskStatus(Enum):
    """Observable status of a single task record."""
    PLACEHOLDER = "placeholder"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(eq=False)
class TaskRecord:
    """A node of the dependency graph.

    Edges are stored as sets of task keys; the owning graph resolves them.
    """
    key: str
    work: TaskFn = noop
    depends_on: Set[str] = field(default_factory=set)
    dependents: Set[str] = field(default_factory=set)
    placeholder: bool = False
    late: bool = False
    result: Optional[asyncio.Future] = field(default=None, repr=False)

    @property
    def is_root(self) -> bool:
        return self.key == ROOT_KEY

    @property
    def started(self) -> bool:
        """Whether the record's work has been launched."""
        return self.result is not None

    def launch(self, factory: Callable[[], Awaitable[Any]]) -> asyncio.Future:
        """Fill the result slot with a future of ``factory()``.

        The slot is write-once; ``factory`` is not called if it is already set.

        Raises:
            GraphIntegrityError: If the record was already launched
        """
        if self.result is not None:
            raise GraphIntegrityError(
                f"Result of task '{self.key}' is already set: dependency graph traverse error",
                task_name=self.key,
            )
        self.result = asyncio.ensure_future(factory())
        return self.result

    @property
    def status(self) -> TaskStatus:
        if self.placeholder and self.result is None:
            return TaskStatus.PLACEHOLDER
        if self.result is None:
            return TaskStatus.PENDING
        if not self.result.done():
            return TaskStatus.RUNNING
        if self.result.cancelled() or self.result.exception() is not None:
            return TaskStatus.FAILED
        return TaskStatus.COMPLETED
