# dag.py
from __future__ import annotations

from typing import Dict, Iterable, List

from .errors import ConfigurationError
from .model import Task


class TaskGraph:
    """
    Task registry + prerequisite graph.

    Edges point from a task to the tasks it `needs` (which must run BEFORE it).
    Registration rejects duplicate names right away; unknown prerequisites
    and cycles are rejected by validate(), which from_tasks() calls at
    construction and resolve() calls lazily otherwise.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}
        self._validated = False

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task]) -> "TaskGraph":
        graph = cls()
        for t in tasks:
            graph.register(t)
        graph.validate()
        return graph

    def register(self, task: Task) -> None:
        if task.name in self._tasks:
            raise ConfigurationError(f"Duplicate task name: {task.name!r}")
        self._tasks[task.name] = task
        self._validated = False

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown task {name!r}. Known tasks: {sorted(self._tasks)}"
            ) from None

    def tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def validate(self) -> None:
        known = set(self._tasks)
        for t in self._tasks.values():
            for need in t.needs:
                if need not in known:
                    raise ConfigurationError(
                        f"Task '{t.name}' needs missing task '{need}'. "
                        f"Known tasks: {sorted(known)}"
                    )

        # recursive DFS with colours; task graphs are tiny
        WHITE, GREY, BLACK = 0, 1, 2
        colour = {name: WHITE for name in self._tasks}
        stack: List[str] = []

        def visit(name: str) -> None:
            colour[name] = GREY
            stack.append(name)
            for need in self._tasks[name].needs:
                if colour[need] == GREY:
                    cycle = stack[stack.index(need):] + [need]
                    raise ConfigurationError(
                        f"Cyclic task dependency: {' -> '.join(cycle)}"
                    )
                if colour[need] == WHITE:
                    visit(need)
            stack.pop()
            colour[name] = BLACK

        for name in self._tasks:
            if colour[name] == WHITE:
                visit(name)

        self._validated = True

    def resolve(self, *names: str) -> List[str]:
        """
        Execution plan for `names`: depth-first, left-to-right over `needs`,
        prerequisites before dependents, each task at most once.
        """
        if not self._validated:
            self.validate()

        order: List[str] = []
        seen: set[str] = set()

        def visit(name: str) -> None:
            if name in seen:
                return
            seen.add(name)
            for need in self.get(name).needs:
                visit(need)
            order.append(name)

        for name in names:
            self.get(name)
            visit(name)
        return order
