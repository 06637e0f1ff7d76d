"""Custom exceptions for the dependency-graph task scheduler."""

from typing import Optional, Any, Dict, List


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidArgumentError(SchedulerError, ValueError):
    """Raised when a task name, callable or dependency list is invalid."""

    def __init__(self, message: str, argument: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.argument = argument


class ConfigurationError(SchedulerError):
    """Raised when scheduler configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.config_key = config_key


class LifecycleError(SchedulerError):
    """Raised when an operation is not allowed in the current scheduler state."""

    def __init__(self, message: str, state: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.state = state


class AlreadyStartedError(LifecycleError):
    """Raised when start() is repeated or add_task() is called after start()."""


class NotStartedError(LifecycleError):
    """Raised when append_task() is called before start()."""


class TaskFailureError(SchedulerError):
    """Raised when a task's work fails.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, task_name: str, cause: Optional[BaseException] = None, details: Optional[Dict[str, Any]] = None):
        message = f"Task '{task_name}' failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message, details)
        self.task_name = task_name


class GraphValidationError(SchedulerError):
    """Base exception for graphs that cannot be started."""


class UnresolvedDependencyError(GraphValidationError):
    """Raised when tasks depend on names that were never registered."""

    def __init__(self, missing: Dict[str, List[str]], details: Optional[Dict[str, Any]] = None):
        listing = ", ".join(
            f"'{name}' (required by {', '.join(sorted(dependents))})"
            for name, dependents in sorted(missing.items())
        )
        super().__init__(f"Unresolved dependencies: {listing}", details)
        self.missing = missing


class CycleDetectedError(GraphValidationError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, nodes: List[str], details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Graph contains cycles. Remaining nodes: {sorted(nodes)}", details)
        self.nodes = nodes


class GraphIntegrityError(SchedulerError):
    """Raised when the traversal tries to launch a task twice."""

    def __init__(self, message: str, task_name: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.task_name = task_name
