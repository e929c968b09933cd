# steps/bundle.py
from __future__ import annotations

from typing import List, Sequence

from ..config import ProjectLayout
from ..process import check_call
from ..runner import TaskContext
from .fs import read_text, write_text


# ---------------------------------------------------------------------
# Command builders
# ---------------------------------------------------------------------

def browserify_command(
    layout: ProjectLayout,
    entry: str,
    *,
    debug: bool = False,
    externals: Sequence[str] = (),
) -> List[str]:
    cmd = [layout.tool(layout.browserify), entry]
    if debug:
        cmd.append("--debug")
    for module in layout.no_parse:
        cmd.append(f"--noparse={layout.path(module)}")
    for module in externals:
        cmd.extend(["--external", module])
    return cmd


def uglify_command(layout: ProjectLayout) -> List[str]:
    # no file argument: uglifyjs reads stdin and writes stdout
    return [layout.tool(layout.uglifyjs), "--compress", "--mangle"]


# ---------------------------------------------------------------------
# Execution primitives
# ---------------------------------------------------------------------

async def bundle(ctx: TaskContext, entry: str, **kwargs) -> str:
    """Bundle `entry` with browserify and return the bundle source."""
    status = await check_call(
        ctx.processes,
        browserify_command(ctx.layout, entry, **kwargs),
        cwd=ctx.layout.root,
    )
    return status.stdout


def concat(parts: Sequence[str]) -> str:
    return "\n".join(parts)


def vendor_sources(layout: ProjectLayout) -> List[str]:
    return [read_text(layout.path(p)) for p in layout.vendor_scripts]


async def minify(ctx: TaskContext, source: str) -> str:
    status = await check_call(
        ctx.processes,
        uglify_command(ctx.layout),
        cwd=ctx.layout.root,
        input=source,
    )
    return status.stdout


# ---------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------

async def build_tests(ctx: TaskContext) -> None:
    layout = ctx.layout
    tests = await bundle(
        ctx,
        layout.test_entry,
        debug=True,
        externals=layout.test_externals,
    )
    write_text(layout.path(layout.test_output), concat([*vendor_sources(layout), tests]))


async def build_app(ctx: TaskContext) -> None:
    layout = ctx.layout
    app = await bundle(ctx, layout.app_entry)
    out = concat([*vendor_sources(layout), app])
    if ctx.options.production:
        ctx.console.print_debug("minifying bundle")
        out = await minify(ctx, out)
    write_text(layout.dist_file(layout.app_output), out)
