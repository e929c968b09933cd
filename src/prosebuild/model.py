# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .patterns import compile_patterns, matches, static_base

if TYPE_CHECKING:
    from .runner import TaskContext


Action = Callable[["TaskContext"], Awaitable[None]]


@dataclass(frozen=True)
class PathGroup:
    """A named, immutable list of glob patterns relative to the project root."""
    name: str
    patterns: Tuple[str, ...]

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(self, "_compiled", compile_patterns(self.patterns))

    def matches(self, rel_path: str) -> bool:
        return matches(self._compiled, rel_path)

    def bases(self) -> List[str]:
        """Static directory prefixes of the positive patterns."""
        out: List[str] = []
        for p in self.patterns:
            if p.startswith("!"):
                continue
            base = static_base(p)
            if base not in out:
                out.append(base)
        return out


@dataclass(frozen=True)
class Task:
    """
    A named unit of build work.

    `needs` run (in declared order) before `action`. A task without an
    action only groups its prerequisites.
    `options` are BuildOptions overrides applied to the whole invocation
    whenever this task is part of the plan.
    """
    name: str
    action: Optional[Action] = None
    needs: Tuple[str, ...] = ()
    description: str = ""
    options: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "needs", tuple(self.needs))


@dataclass(frozen=True)
class WatchBinding:
    """Re-run `tasks` (as one invocation) when a file in `group` changes."""
    group: PathGroup
    tasks: Tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tasks", tuple(self.tasks))


@dataclass
class Workflow:
    tasks: list[Task]
    watches: list[WatchBinding] = field(default_factory=list)

    def task_names(self) -> list[str]:
        return [t.name for t in self.tasks]
