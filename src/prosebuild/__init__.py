from .dsl import task, sh, group, watch, wf
from .runner import TaskRunner, TaskContext, load_workflow
from .model import Task, WatchBinding, PathGroup, Workflow
from .errors import BuildError, ConfigurationError, SubprocessError, NetworkError, FileSystemError

__all__ = [
    "task", "sh", "group", "watch", "wf",
    "TaskRunner", "TaskContext", "load_workflow",
    "Task", "WatchBinding", "PathGroup", "Workflow",
    "BuildError", "ConfigurationError", "SubprocessError", "NetworkError", "FileSystemError",
]
