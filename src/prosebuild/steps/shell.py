# steps/shell.py
from __future__ import annotations

from typing import Sequence

from ..process import check_call
from ..runner import TaskContext
from .fs import ensure_dir


async def node_script(ctx: TaskContext, script: str) -> None:
    """Run `node <script>` from the project root."""
    await check_call(
        ctx.processes,
        [ctx.layout.node, script],
        cwd=ctx.layout.root,
    )


async def translations(ctx: TaskContext) -> None:
    # Needs translations/transifex.auth ({"user": "", "pass": ""}) for the
    # locale sync itself; that part is entirely up to the script.
    ensure_dir(ctx.layout.dist_dir)
    await node_script(ctx, ctx.layout.translations_script)
    await node_script(ctx, ctx.layout.templates_script)


async def templates(ctx: TaskContext) -> None:
    ensure_dir(ctx.layout.dist_dir)
    await node_script(ctx, ctx.layout.templates_script)


async def browser_tests(ctx: TaskContext) -> None:
    """Run the headless test runner; its output goes straight to the terminal."""
    layout = ctx.layout
    await check_call(
        ctx.processes,
        [layout.tool(layout.test_runner), layout.test_page],
        cwd=layout.root,
        capture=False,
    )


def command(*argv: str, capture: bool = False):
    """Action factory: run a fixed command from the project root."""
    cmd: Sequence[str] = list(argv)

    async def _run(ctx: TaskContext) -> None:
        await check_call(ctx.processes, cmd, cwd=ctx.layout.root, capture=capture)

    _run.__name__ = f"command[{cmd[0] if cmd else ''}]"
    return _run
