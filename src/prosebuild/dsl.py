# dsl.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from .model import Action, PathGroup, Task, WatchBinding, Workflow
from .steps.shell import command


def sh(*argv: str, capture: bool = False) -> Action:
    """Action that runs a fixed command from the project root: sh("npm", "run", "lint")."""
    if not argv:
        raise ValueError("sh() needs a command")
    return command(*argv, capture=capture)


def task(
    name: str,
    action: Optional[Action] = None,
    *,
    needs: Optional[Sequence[str]] = None,
    description: str = "",
    options: Optional[Dict[str, Any]] = None,
) -> Task:
    return Task(
        name=name,
        action=action,
        needs=tuple(needs or ()),
        description=description,
        options=dict(options or {}),
    )


def group(name: str, *patterns: str) -> PathGroup:
    if not patterns:
        raise ValueError(f"group({name!r}) must have at least one pattern")
    return PathGroup(name=name, patterns=patterns)


def watch(paths: PathGroup, *tasks: str) -> WatchBinding:
    if not tasks:
        raise ValueError(f"watch({paths.name!r}) must re-run at least one task")
    return WatchBinding(group=paths, tasks=tasks)


def wf(*tasks: Task, watches: Iterable[WatchBinding] = ()) -> Workflow:
    """
    Workflow definition helper. Use this name so you can define your own
    def workflow(): return wf(task(...), task(...)).

    Users can write:
        from prosebuild import wf, task, sh

        def workflow():
            return wf(
                task("lint", sh("npm", "run", "lint")),
                task("default", needs=["lint"]),
            )
    """
    return Workflow(tasks=list(tasks), watches=list(watches))
