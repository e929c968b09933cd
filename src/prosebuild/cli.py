# cli.py
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from . import settings
from .config import BuildOptions, ProjectLayout
from .errors import BuildError, ConfigurationError, SubprocessError
from .model import Workflow
from .pipeline import prose_workflow
from .runner import TaskRunner, load_workflow
from .ui.console import Console, get_console, set_console


DEFAULT_WORKFLOW = "prosebuild_workflow.py"


def find_workflow_files(root: Path) -> list[Path]:
    """
    Find all workflow files in `root`.

    Returns:
        List of Path objects for workflow files
    """
    workflow_files = []

    default_workflow = root / DEFAULT_WORKFLOW
    if default_workflow.exists():
        workflow_files.append(default_workflow)

    for path in root.glob("*_workflow.py"):
        if path != default_workflow:
            workflow_files.append(path)

    return sorted(workflow_files)


def discover_workflow(workflow_arg: str | None, root: Path) -> Optional[Path]:
    """
    Discover workflow file from argument or default.

    Args:
        workflow_arg: Optional workflow argument from CLI
        root: Project root to search

    Returns:
        Path to workflow file, or None to use the built-in Prose workflow

    Raises:
        ConfigurationError: If the workflow cannot be found or is ambiguous
    """
    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            raise ConfigurationError(f"Could not find workflow file: {workflow_arg}")
        return workflow_path

    workflow_files = find_workflow_files(root)
    if len(workflow_files) > 1:
        file_list = ", ".join(f.name for f in workflow_files)
        raise ConfigurationError(
            f"Multiple workflow files found ({file_list}); pass --workflow to pick one"
        )
    return workflow_files[0] if workflow_files else None


_LOADED = "prosebuild.loaded_workflow"


def _load(ctx: click.Context) -> tuple[Workflow, str, ProjectLayout]:
    """Load the workflow once per invocation; ctx.meta is shared by every sub-context."""
    loaded = ctx.meta.get(_LOADED)
    if loaded is not None:
        return loaded

    params = ctx.find_root().params
    root = Path(params.get("root") or ".").resolve()
    layout = ProjectLayout(root=root)
    path = discover_workflow(params.get("workflow"), root)
    if path is None:
        loaded = prose_workflow(layout), "built-in prose workflow", layout
    else:
        loaded = load_workflow(path), path.name, layout
    ctx.meta[_LOADED] = loaded
    return loaded


def _exit_code(exc: BaseException) -> int:
    if isinstance(exc, SubprocessError) and 0 < exc.exit_code < 256:
        return exc.exit_code
    return 1


def execute(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Run one invocation over `names` and exit with its status."""
    console = get_console()
    params = ctx.find_root().params

    try:
        workflow, source, layout = _load(ctx)
        options = BuildOptions.from_env()
        if params.get("production"):
            options = options.with_overrides({"production": True})
        runner = TaskRunner(workflow, layout=layout, options=options, console=console)
    except ConfigurationError as e:
        console.print_error("Invalid workflow", str(e))
        sys.exit(1)

    console.print_workflow(source, len(workflow.tasks))

    try:
        results = asyncio.run(runner.run(*names))
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except ConfigurationError as e:
        console.print_error("Invalid task", str(e))
        sys.exit(1)
    except BuildError as e:
        if console.debug:
            console.print_exception(e)
        else:
            console.print_error("Build failed", str(e))
        sys.exit(_exit_code(e))
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_results(results)


class TaskGroup(click.Group):
    """Every task of the loaded workflow is also a top-level command."""

    def _workflow(self, ctx: click.Context) -> Optional[Workflow]:
        try:
            return _load(ctx)[0]
        except ConfigurationError:
            return None

    def list_commands(self, ctx: click.Context) -> list[str]:
        names = super().list_commands(ctx)
        wf = self._workflow(ctx)
        if wf is not None:
            names += [n for n in wf.task_names() if n not in names]
        return names

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd
        wf = self._workflow(ctx)
        if wf is None:
            return None
        for t in wf.tasks:
            if t.name == cmd_name:
                return _task_command(t.name, t.description)
        return None


def _task_command(name: str, description: str) -> click.Command:
    @click.pass_context
    def _cmd(ctx):
        execute(ctx, (name,))

    return click.Command(name, callback=_cmd, help=description or f"Run task '{name}'.")


@click.group(cls=TaskGroup)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present, else the built-in Prose workflow)",
)
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Project root")
@click.option("--production", is_flag=True, default=False, help="Minify bundles (same as PROSE_ENV=production)")
@click.pass_context
def cli(ctx, debug, workflow, root, production):
    """prosebuild: task runner for the Prose front-end build."""
    console = Console(debug=debug or settings.debug_from_env())
    set_console(console)


@cli.command()
@click.argument("tasks", nargs=-1)
@click.pass_context
def run(ctx, tasks):
    """Run TASKS (and their prerequisites) as one invocation."""
    execute(ctx, tuple(tasks) or ("default",))


@cli.command("list")
@click.pass_context
def list_tasks(ctx):
    """List tasks with their prerequisites."""
    console = get_console()
    try:
        workflow, source, _layout = _load(ctx)
    except ConfigurationError as e:
        console.print_error("Invalid workflow", str(e))
        sys.exit(1)

    console.print_info(f"Tasks ({source}):")
    for t in workflow.tasks:
        needs = f" <- {', '.join(t.needs)}" if t.needs else ""
        desc = f"  {t.description}" if t.description else ""
        console.print_info(f"  {t.name}{needs}{desc}")
    if workflow.watches:
        console.print_info("Watches:")
        for b in workflow.watches:
            console.print_info(f"  {b.group.name}: {', '.join(b.group.patterns)} -> {', '.join(b.tasks)}")


def main() -> None:  # pragma: no cover
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
