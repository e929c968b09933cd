# runner.py
from __future__ import annotations

import runpy
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import httpx

from . import settings
from .config import BuildOptions, ProjectLayout
from .dag import TaskGraph
from .errors import ConfigurationError
from .model import Task, WatchBinding, Workflow
from .process import AsyncioProcessRunner, ProcessRunner
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Workflow loading (local file/module)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a python file path.

    The file must define either:
      - workflow() -> Workflow | List[Task]
      - WORKFLOW = Workflow(...) or TASKS = [Task, ...]
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise ConfigurationError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ConfigurationError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"prosebuild_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    loaded = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        loaded = globals_dict["workflow"]()
    elif "WORKFLOW" in globals_dict:
        loaded = globals_dict["WORKFLOW"]
    elif "TASKS" in globals_dict:
        loaded = globals_dict["TASKS"]

    if isinstance(loaded, Workflow):
        return loaded
    if isinstance(loaded, list) and all(isinstance(t, Task) for t in loaded):
        return Workflow(tasks=loaded)
    raise ConfigurationError(
        "Workflow must return/define a Workflow or a List[Task]. "
        "Define workflow() -> Workflow, WORKFLOW = Workflow(...) or TASKS = [Task, ...]."
    )


# ----------------------------------------------------------------------
# Execution context
# ----------------------------------------------------------------------

@dataclass
class TaskContext:
    """Everything an action may touch. Built once per invocation."""
    task: str
    options: BuildOptions
    layout: ProjectLayout
    processes: ProcessRunner
    console: Console
    runner: "TaskRunner"
    watches: List[WatchBinding] = field(default_factory=list)
    http_transport: Optional[httpx.AsyncBaseTransport] = None

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.http_transport,
            timeout=settings.http_timeout(),
            follow_redirects=True,
        )


# ----------------------------------------------------------------------
# Runner
# ----------------------------------------------------------------------

class TaskRunner:
    """
    Runs tasks from a TaskGraph.

    run(*names) resolves the plan (each task once, prerequisites first),
    then awaits every action in order. The first failure stops the plan and
    propagates; nothing is retried and nothing is remembered between runs.
    """

    def __init__(
        self,
        workflow: Union[Workflow, Sequence[Task]],
        *,
        layout: Optional[ProjectLayout] = None,
        options: Optional[BuildOptions] = None,
        processes: Optional[ProcessRunner] = None,
        console: Optional[Console] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not isinstance(workflow, Workflow):
            workflow = Workflow(tasks=list(workflow))
        self.workflow = workflow
        self.graph = TaskGraph.from_tasks(workflow.tasks)
        for binding in workflow.watches:
            for name in binding.tasks:
                self.graph.get(name)
        self.layout = layout or ProjectLayout()
        self.options = options or BuildOptions()
        self.processes = processes or AsyncioProcessRunner()
        self.console = console or get_console()
        self.http_transport = http_transport

    def plan(self, *names: str) -> List[str]:
        return self.graph.resolve(*names)

    def effective_options(
        self, order: Iterable[str], base: Optional[BuildOptions] = None
    ) -> BuildOptions:
        opts = base or self.options
        for name in order:
            opts = opts.with_overrides(self.graph.get(name).options)
        return opts

    async def run(self, *names: str, options: Optional[BuildOptions] = None) -> Dict[str, str]:
        if not names:
            names = ("default",)
        order = self.plan(*names)
        opts = self.effective_options(order, options)

        self.console.print_plan(order)
        if opts.production:
            self.console.print_debug("production mode: on")

        results: Dict[str, str] = {}
        for name in order:
            task = self.graph.get(name)
            if task.action is None:
                results[name] = "ok(group)"
                continue

            ctx = TaskContext(
                task=name,
                options=opts,
                layout=self.layout,
                processes=self.processes,
                console=self.console,
                runner=self,
                watches=list(self.workflow.watches),
                http_transport=self.http_transport,
            )
            self.console.print_task_start(name)
            started = time.monotonic()
            try:
                await task.action(ctx)
            except Exception as e:
                self.console.print_task_failed(name, time.monotonic() - started, str(e))
                raise
            self.console.print_task_done(name, time.monotonic() - started)
            results[name] = "ok"

        return results
