"""DAG Scheduler - run named async tasks in dependency order."""

from .scheduler import TaskScheduler
from .graph import TaskGraph
from .executor import GraphExecutor
from .models import (
    ROOT_KEY,
    SchedulerState,
    TaskFn,
    TaskRecord,
    TaskStatus,
    noop
)
from .config import (
    SchedulerConfig,
    ConfigLoader,
    load_scheduler_config
)
from .exceptions import (
    SchedulerError,
    InvalidArgumentError,
    ConfigurationError,
    LifecycleError,
    AlreadyStartedError,
    NotStartedError,
    TaskFailureError,
    GraphValidationError,
    UnresolvedDependencyError,
    CycleDetectedError,
    GraphIntegrityError
)
from .visualization import MermaidGenerator

__version__ = "0.1.0"

__all__ = [
    # Core scheduler
    "TaskScheduler",
    "TaskGraph",
    "GraphExecutor",
    "MermaidGenerator",

    # Data models
    "ROOT_KEY",
    "SchedulerState",
    "TaskFn",
    "TaskRecord",
    "TaskStatus",
    "noop",

    # Configuration
    "SchedulerConfig",
    "ConfigLoader",
    "load_scheduler_config",

    # Exceptions
    "SchedulerError",
    "InvalidArgumentError",
    "ConfigurationError",
    "LifecycleError",
    "AlreadyStartedError",
    "NotStartedError",
    "TaskFailureError",
    "GraphValidationError",
    "UnresolvedDependencyError",
    "CycleDetectedError",
    "GraphIntegrityError",
]
