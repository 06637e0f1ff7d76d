"""
Graph executor: launches task records once their dependencies are launched and
composes the aggregate result mapping.
"""

import asyncio
import inspect
import logging
import time
from collections import deque
from typing import Any, Dict, List, Optional

from .config import SchedulerConfig
from .exceptions import TaskFailureError
from .graph import TaskGraph
from .models import TaskRecord

logger = logging.getLogger(__name__)


def _resolved(value: Any = None) -> asyncio.Future:
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class GraphExecutor:
    """
    Walks a task graph breadth-first from its root.

    A record is launched as soon as every record it depends on has been
    launched; its work then waits on the dependency futures, so independent
    tasks run concurrently on the event loop.
    """

    def __init__(self, graph: TaskGraph, config: Optional[SchedulerConfig] = None):
        """
        Initialize the executor.

        Args:
            graph: Graph to execute
            config: Scheduler configuration
        """
        self._graph = graph
        self._config = config or SchedulerConfig()
        self._logger = logger.getChild(self._config.name)

    def run(self) -> asyncio.Future:
        """
        Launch every reachable task.

        Must be called while the event loop is running.

        Returns:
            Future resolving to a mapping of task name to task result

        Raises:
            GraphIntegrityError: If a record would be launched twice
        """
        graph = self._graph
        graph.root.launch(_resolved)

        launched: List[TaskRecord] = []
        queue = deque([graph.root])

        while queue:
            record = queue.popleft()
            if not record.is_root:
                upstream = [graph.record(key) for key in sorted(record.depends_on)]
                self._launch(record, upstream)
                launched.append(record)

            for key in sorted(record.dependents):
                dependent = graph.record(key)
                if all(graph.record(dep).started for dep in dependent.depends_on):
                    queue.append(dependent)

        unreached = [rec.key for rec in graph.tasks() if not rec.started]
        if unreached:
            self._logger.warning(f"Tasks never became ready: {', '.join(unreached)}")

        self._logger.info(f"Launched run with {len(launched)} tasks")
        return asyncio.ensure_future(self._aggregate(launched))

    def bind_late(self, record: TaskRecord, upstream: List[TaskRecord]) -> asyncio.Future:
        """
        Launch a task registered after the run started.

        Args:
            record: Record of the appended task
            upstream: Already launched records it depends on

        Returns:
            Future of the task's result
        """
        self._logger.info(
            f"Binding late task '{record.key}' to {[dep.key for dep in upstream]}"
        )
        return self._launch(record, upstream)

    def _launch(self, record: TaskRecord, upstream: List[TaskRecord]) -> asyncio.Future:
        self._logger.debug(f"Launching task '{record.key}'")
        return record.launch(lambda: self._execute(record, upstream))

    async def _execute(self, record: TaskRecord, upstream: List[TaskRecord]) -> Any:
        """Wait for dependencies, then run the record's work with their values."""
        values = await asyncio.gather(*(dep.result for dep in upstream))
        inputs = {
            dep.key: value
            for dep, value in zip(upstream, values)
            if not dep.is_root
        }

        started_at = time.monotonic()
        try:
            value = record.work(inputs)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            self._logger.error(f"Task '{record.key}' failed: {e}")
            raise TaskFailureError(record.key, e) from e

        if self._config.log_task_timing:
            elapsed = time.monotonic() - started_at
            self._logger.info(f"Task '{record.key}' completed in {elapsed:.3f}s")
        else:
            self._logger.debug(f"Task '{record.key}' completed")
        return value

    async def _aggregate(self, launched: List[TaskRecord]) -> Dict[str, Any]:
        started_at = time.monotonic()
        try:
            values = await asyncio.gather(*(rec.result for rec in launched))
        except Exception as e:
            self._logger.error(f"Run failed: {e}")
            raise

        include_placeholders = self._config.include_placeholders
        results = {
            rec.key: value
            for rec, value in zip(launched, values)
            if include_placeholders or not rec.placeholder
        }
        self._logger.info(
            f"Run completed: {len(results)} results in {time.monotonic() - started_at:.3f}s"
        )
        return results
