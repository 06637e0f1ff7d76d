"""
Task scheduler.

Register named async tasks with the names of the tasks they depend on, in any
order, then start them all at once. Each task runs after its dependencies have
finished and receives their results as a ``{name: value}`` mapping; tasks that
do not depend on each other run concurrently.

Example::

    scheduler = TaskScheduler()
    scheduler.add_task("report", make_report, ["fetch", "parse"])
    scheduler.add_task("fetch", fetch)
    scheduler.add_task("parse", parse, ["fetch"])
    results = await scheduler.start()
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .config import SchedulerConfig
from .exceptions import AlreadyStartedError, InvalidArgumentError, NotStartedError
from .executor import GraphExecutor
from .graph import TaskGraph
from .models import ROOT_KEY, SchedulerState, TaskFn, TaskRecord
from .visualization import MermaidGenerator

logger = logging.getLogger(__name__)


class TaskScheduler:
    """
    Dependency-graph task scheduler.

    Lifecycle: tasks are registered with add_task() while BUILDING, start()
    moves the scheduler to RUNNING, and it becomes DONE when the aggregate
    result settles. append_task() adds tasks after start() and extends the
    aggregate result.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        """
        Initialize the scheduler.

        Args:
            config: Scheduler configuration, defaults to SchedulerConfig()
        """
        self.config = config or SchedulerConfig()
        self._graph = TaskGraph()
        self._executor = GraphExecutor(self._graph, self.config)
        self._state = SchedulerState.BUILDING
        self._results: Optional[asyncio.Future] = None
        self._logger = logger.getChild(self.config.name)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def graph(self) -> TaskGraph:
        return self._graph

    @property
    def results(self) -> Optional[asyncio.Future]:
        """
        Future of the aggregate result mapping.

        None before start(). Every append_task() replaces it with a future that
        also includes the appended task.
        """
        return self._results

    def add_task(self, name: str, task: TaskFn, dependencies: Optional[List[str]] = None) -> None:
        """
        Add a task. Must be called before start().

        Tasks can be added in any order; a dependency may name a task that is
        added later. Adding the same name again merges into the existing task
        and the last added callable wins.

        Args:
            name: Unique task name
            task: Callable receiving a mapping of dependency name to result and
                returning an awaitable (or a plain value)
            dependencies: Names of the tasks this task depends on

        Raises:
            InvalidArgumentError: If name or task is invalid
            AlreadyStartedError: If start() was already called
        """
        if self._state != SchedulerState.BUILDING:
            raise AlreadyStartedError(
                "Cannot add task after the scheduler has started; use append_task()",
                state=self._state.value,
            )
        self._validate_task(name, task)

        self._graph.add(name, task, dependencies)
        self._logger.debug(f"Added task '{name}' depending on {list(dependencies or [])}")

    def append_task(self, name: str, task: TaskFn, dependencies: Optional[List[str]] = None) -> None:
        """
        Add a task after start() was called.

        Dependencies must already be known to the scheduler; unknown names are
        dropped. The task's result is merged into a new aggregate result, see
        the results property.

        Args:
            name: Task name not used by any started task
            task: Task callable
            dependencies: Names of already added tasks this task depends on

        Raises:
            NotStartedError: If start() was not called yet
            InvalidArgumentError: If name or task is invalid or name is taken
        """
        if self._state == SchedulerState.BUILDING:
            raise NotStartedError(
                "append_task() adds a task after the scheduler has started; use add_task()",
                state=self._state.value,
            )
        self._validate_task(name, task)
        dep_names = TaskGraph.normalize_dependencies(name, dependencies)

        existing = self._graph.get(name)
        if existing is not None and existing.started:
            raise InvalidArgumentError(f"Task '{name}' is already scheduled", argument="name")

        upstream = []
        not_launched = []
        for dep in self._graph.resolve_dependencies(dep_names):
            if dep.started:
                upstream.append(dep)
            else:
                not_launched.append(dep.key)
        unknown = [dep_name for dep_name in dep_names if dep_name not in self._graph]
        if unknown:
            self._logger.warning(f"Ignoring unknown dependencies of late task '{name}': {unknown}")
        if not_launched:
            self._logger.warning(
                f"Ignoring dependencies of late task '{name}' that were not launched: {not_launched}"
            )

        record = self._graph.add(name, task, [dep.key for dep in upstream], late=True)
        self._executor.bind_late(record, upstream)

        self._results = asyncio.ensure_future(self._chain(self._results, record))
        self._state = SchedulerState.RUNNING
        self._results.add_done_callback(self._on_results_done)

    def start(self) -> asyncio.Future:
        """
        Begin executing all tasks.

        Must be called while the event loop is running. Each task runs once
        all its dependencies have finished and receives their results as a
        single ``{name: value}`` argument. Tasks with no pending dependencies
        run concurrently.

        Returns:
            Future resolving to ``{task_name: result}`` for all added tasks. It
            fails with TaskFailureError as soon as any task fails.

        Raises:
            AlreadyStartedError: If start() was already called
            UnresolvedDependencyError: If a dependency was never added
            CycleDetectedError: If the tasks depend on each other in a cycle
        """
        if self._state != SchedulerState.BUILDING:
            raise AlreadyStartedError("Cannot start more than once", state=self._state.value)

        self._graph.validate(
            allow_unresolved=self.config.allow_unresolved_dependencies,
            detect_cycles=self.config.detect_cycles,
        )

        self._state = SchedulerState.RUNNING
        self._logger.info(f"Starting {len(self._graph)} tasks")

        self._results = self._executor.run()
        self._results.add_done_callback(self._on_results_done)
        return self._results

    def task_names(self) -> List[str]:
        """Names of all tasks, including never-added dependency names."""
        return [rec.key for rec in self._graph.tasks()]

    def dependencies_of(self, name: str) -> List[str]:
        """Names of the direct dependencies of a task."""
        return self._graph.dependencies_of(name)

    def dependents_of(self, name: str) -> List[str]:
        """Names of the tasks directly depending on a task."""
        return self._graph.dependents_of(name)

    def to_mermaid(self, include_status: bool = True) -> str:
        """Render the task graph as a Mermaid flowchart."""
        return MermaidGenerator(self._graph, title=self.config.name).generate_flowchart(
            include_status=include_status
        )

    @staticmethod
    def _validate_task(name: str, task: TaskFn) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(f"Invalid task name: {name!r}", argument="name")
        if name == ROOT_KEY:
            raise InvalidArgumentError(f"Task name '{name}' is reserved", argument="name")
        if not callable(task):
            raise InvalidArgumentError(f"Task '{name}' is not callable", argument="task")

    @staticmethod
    async def _chain(previous: asyncio.Future, record: TaskRecord) -> Dict[str, Any]:
        others, value = await asyncio.gather(previous, record.result)
        return {**(others or {}), record.key: value}

    def _on_results_done(self, future: asyncio.Future) -> None:
        # Only the current aggregate decides the state
        if future is not self._results:
            return
        self._state = SchedulerState.DONE
        if future.cancelled():
            self._logger.warning("Aggregate result was cancelled")
        elif future.exception() is not None:
            self._logger.warning("Scheduler finished with a failure")
        else:
            self._logger.info(f"Scheduler finished with {len(future.result())} results")
