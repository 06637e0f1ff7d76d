"""Task graph store.

Holds one record per task name plus the synthetic root record, and wires
dependency edges as tasks are registered. Tasks may be registered in any
order: a dependency on a name that is not registered yet creates a
placeholder record under root, which the real task later takes over in place.
"""

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional

from .exceptions import CycleDetectedError, InvalidArgumentError, UnresolvedDependencyError
from .models import ROOT_KEY, TaskFn, TaskRecord

logger = logging.getLogger(__name__)


class TaskGraph:
    """Name-keyed store of task records and their dependency edges."""

    def __init__(self):
        self._root = TaskRecord(key=ROOT_KEY)
        self._records: Dict[str, TaskRecord] = {ROOT_KEY: self._root}

    @property
    def root(self) -> TaskRecord:
        return self._root

    def __contains__(self, name: str) -> bool:
        return name != ROOT_KEY and name in self._records

    def __len__(self) -> int:
        return len(self._records) - 1

    def get(self, name: str) -> Optional[TaskRecord]:
        """Get a record by name, or None. The root is never returned."""
        if name == ROOT_KEY:
            return None
        return self._records.get(name)

    def record(self, name: str) -> TaskRecord:
        """Get a record by name, including the root."""
        return self._records[name]

    def tasks(self) -> List[TaskRecord]:
        """All non-root records in insertion order."""
        return [rec for key, rec in self._records.items() if key != ROOT_KEY]

    def add(
        self,
        name: str,
        work: TaskFn,
        dependencies: Optional[Iterable[str]] = None,
        late: bool = False,
    ) -> TaskRecord:
        """Insert a task, merging into an existing record of the same name.

        Args:
            name: Task name
            work: Task callable
            dependencies: Names of the tasks this one depends on
            late: Whether the task is registered after execution started

        Returns:
            The record now holding the task

        Raises:
            InvalidArgumentError: If a dependency name is invalid
        """
        dep_names = self.normalize_dependencies(name, dependencies)

        record = self._records.get(name)
        if record is not None:
            logger.debug(
                f"Merging task '{name}' into existing "
                f"{'placeholder' if record.placeholder else 'record'}"
            )
            record.work = work
            record.placeholder = False
            record.late = late
        else:
            record = TaskRecord(key=name, work=work, late=late)
            self._records[name] = record

        if not dep_names:
            if not record.depends_on:
                self._link(self._root, record)
            return record

        for dep_name in dep_names:
            dep = self._records.get(dep_name)
            if dep is None:
                logger.debug(f"Creating placeholder for '{dep_name}' required by '{name}'")
                dep = TaskRecord(key=dep_name, placeholder=True)
                self._records[dep_name] = dep
                self._link(self._root, dep)
            self._link(dep, record)

        # A task with real dependencies must not also be triggered by root
        self._unlink(self._root, record)
        return record

    def resolve_dependencies(self, names: Optional[Iterable[str]]) -> List[TaskRecord]:
        """Records for the given names; unknown names are skipped."""
        found = []
        for name in dict.fromkeys(names or []):
            rec = self.get(name)
            if rec is not None:
                found.append(rec)
        return found

    def dependencies_of(self, name: str) -> List[str]:
        """Names of the direct dependencies of a task."""
        return sorted(k for k in self._require(name).depends_on if k != ROOT_KEY)

    def dependents_of(self, name: str) -> List[str]:
        """Names of the tasks directly depending on a task."""
        return sorted(self._require(name).dependents)

    def placeholders(self) -> List[str]:
        """Names referenced as dependencies but never registered."""
        return [rec.key for rec in self.tasks() if rec.placeholder]

    def unresolved(self) -> Dict[str, List[str]]:
        """Map of never-registered names to the tasks requiring them."""
        return {
            name: sorted(self._records[name].dependents)
            for name in self.placeholders()
        }

    def topological_order(self) -> List[str]:
        """Order task names so every task follows its dependencies.

        Raises:
            CycleDetectedError: If the graph has cycles
        """
        in_degree = {}
        for rec in self.tasks():
            in_degree[rec.key] = len([k for k in rec.depends_on if k != ROOT_KEY])

        # Kahn's algorithm
        queue = deque(key for key, degree in in_degree.items() if degree == 0)
        topo_order = []

        while queue:
            current = queue.popleft()
            topo_order.append(current)

            for neighbor in self._records[current].dependents:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(topo_order) != len(in_degree):
            visited = set(topo_order)
            remaining = [key for key in in_degree if key not in visited]
            raise CycleDetectedError(remaining)

        return topo_order

    def validate(self, allow_unresolved: bool = False, detect_cycles: bool = True) -> None:
        """Check that the graph can be started.

        Raises:
            UnresolvedDependencyError: If placeholders remain and are not allowed
            CycleDetectedError: If cycle detection is enabled and finds a cycle
        """
        if not allow_unresolved:
            missing = self.unresolved()
            if missing:
                raise UnresolvedDependencyError(missing)

        if detect_cycles:
            self.topological_order()

    def _require(self, name: str) -> TaskRecord:
        rec = self.get(name)
        if rec is None:
            raise InvalidArgumentError(f"Unknown task '{name}'", argument="name")
        return rec

    @staticmethod
    def normalize_dependencies(name: str, dependencies: Optional[Iterable[str]]) -> List[str]:
        if dependencies is None:
            return []
        if isinstance(dependencies, str):
            raise InvalidArgumentError(
                f"Dependencies of '{name}' must be a list of names, not a string",
                argument="dependencies",
            )

        names = []
        for dep_name in dependencies:
            if not isinstance(dep_name, str) or not dep_name:
                raise InvalidArgumentError(
                    f"Invalid dependency name {dep_name!r} for task '{name}'",
                    argument="dependencies",
                )
            if dep_name == ROOT_KEY:
                raise InvalidArgumentError(
                    f"Task '{name}' cannot depend on the reserved root key",
                    argument="dependencies",
                )
            if dep_name == name:
                raise InvalidArgumentError(
                    f"Task '{name}' cannot depend on itself",
                    argument="dependencies",
                )
            names.append(dep_name)

        return list(dict.fromkeys(names))

    @staticmethod
    def _link(upstream: TaskRecord, downstream: TaskRecord) -> None:
        downstream.depends_on.add(upstream.key)
        upstream.dependents.add(downstream.key)

    @staticmethod
    def _unlink(upstream: TaskRecord, downstream: TaskRecord) -> None:
        downstream.depends_on.discard(upstream.key)
        upstream.dependents.discard(downstream.key)
