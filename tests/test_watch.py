"""Tests for watch bindings: matching, coalescing and re-running tasks."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import Callable, List, Sequence

import pytest
from watchdog.events import DirModifiedEvent, FileModifiedEvent, FileMovedEvent

from prosebuild.config import ProjectLayout
from prosebuild.dsl import group, watch
from prosebuild.errors import SubprocessError
from prosebuild.model import Workflow
from prosebuild.pipeline import prose_workflow
from prosebuild.runner import TaskContext, TaskRunner
from prosebuild.ui.console import Console
from prosebuild.watcher import WatchSession, _ChangeHandler


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


def recording_workflow(
    layout: ProjectLayout, log: List[str], keep: Sequence[str] = ()
) -> Workflow:
    """The real Prose graph and bindings, with every action except `keep` replaced by a recorder."""
    real = prose_workflow(layout)

    def record(name: str):
        async def _action(ctx: TaskContext) -> None:
            log.append(name)

        return _action

    tasks = [
        t if t.name in keep else dataclasses.replace(t, action=record(t.name) if t.action else None)
        for t in real.tasks
    ]
    return Workflow(tasks=tasks, watches=real.watches)


@pytest.fixture
def log() -> List[str]:
    return []


@pytest.fixture
def session_factory(layout: ProjectLayout, console: Console, log: List[str]):
    def _make() -> WatchSession:
        workflow = recording_workflow(layout, log)
        runner = TaskRunner(workflow, layout=layout, console=console)
        return WatchSession(runner, workflow.watches, root=layout.root, settle=0.02)

    return _make


class TestMatching:
    def test_app_change_hits_app_group_only(self, session_factory, layout) -> None:
        session = session_factory()
        assert session.notify(str(layout.root / "app" / "views" / "app.js")) == ["app scripts"]

    def test_relative_and_outside_paths(self, session_factory, tmp_path_factory) -> None:
        session = session_factory()
        assert session.notify("style/base.css") == ["stylesheets"]
        outside = tmp_path_factory.mktemp("elsewhere") / "app" / "boot.js"
        assert session.notify(str(outside)) == []

    def test_built_test_bundle_ignored(self, session_factory, layout) -> None:
        session = session_factory()
        assert session.notify(str(layout.root / "test" / "lib" / "index.js")) == []
        assert session.notify(str(layout.root / "test" / "index.html")) == ["test sources"]


class TestReruns:
    @pytest.mark.asyncio
    async def test_app_change_reruns_app_and_tests(self, session_factory, layout, log) -> None:
        session = session_factory()
        session.start(observe=False)
        try:
            session.notify(str(layout.root / "app" / "boot.js"))
            await wait_until(lambda: "build-tests" in log)
        finally:
            await session.stop()

        # one invocation: shared prerequisites once, then both bundles
        assert log == ["templates", "oauth", "build-app", "build-tests"]
        assert session.runs()["app scripts"] == 1

    @pytest.mark.asyncio
    async def test_stylesheet_change_reruns_css_only(self, session_factory, layout, log) -> None:
        session = session_factory()
        session.start(observe=False)
        try:
            session.notify(str(layout.root / "style" / "components" / "button.css"))
            await wait_until(lambda: "css" in log)
            await asyncio.sleep(0.05)
        finally:
            await session.stop()

        assert log == ["css"]
        assert "build-app" not in log

    @pytest.mark.asyncio
    async def test_burst_of_changes_coalesces(self, session_factory, layout, log) -> None:
        session = session_factory()
        session.start(observe=False)
        try:
            for _ in range(5):
                session.notify(str(layout.root / "templates" / "app.html"))
            await wait_until(lambda: "build-app" in log)
            await asyncio.sleep(0.1)
        finally:
            await session.stop()

        assert log.count("build-app") == 1
        assert session.runs()["templates"] == 1

    @pytest.mark.asyncio
    async def test_failed_run_keeps_watching(self, layout, console, log) -> None:
        attempts = {"n": 0}

        async def css(ctx: TaskContext) -> None:
            attempts["n"] += 1
            log.append("css")
            if attempts["n"] == 1:
                raise SubprocessError(command=["postcss"], exit_code=1)

        base = recording_workflow(layout, log)
        tasks = [dataclasses.replace(t, action=css) if t.name == "css" else t for t in base.tasks]
        workflow = Workflow(tasks=tasks, watches=base.watches)
        runner = TaskRunner(workflow, layout=layout, console=console)
        session = WatchSession(runner, workflow.watches, root=layout.root, settle=0.01)

        session.start(observe=False)
        try:
            session.notify("style/style.css")
            await wait_until(lambda: attempts["n"] == 1)
            await asyncio.sleep(0.05)
            session.notify("style/style.css")
            await wait_until(lambda: attempts["n"] == 2)
        finally:
            await session.stop()

        assert session.runs()["stylesheets"] == 2


class TestChangeHandler:
    @pytest.mark.asyncio
    async def test_events_are_forwarded_to_loop(self, session_factory, layout, log) -> None:
        session = session_factory()
        handler = _ChangeHandler(session, asyncio.get_running_loop())
        session.start(observe=False)
        try:
            handler.on_any_event(DirModifiedEvent(str(layout.root / "style")))
            handler.on_any_event(
                FileMovedEvent(str(layout.root / "tmp.css~"), str(layout.root / "style" / "base.css"))
            )
            await wait_until(lambda: "css" in log)
        finally:
            await session.stop()

        assert log == ["css"]

    @pytest.mark.asyncio
    async def test_modified_file_event(self, session_factory, layout, log) -> None:
        session = session_factory()
        handler = _ChangeHandler(session, asyncio.get_running_loop())
        session.start(observe=False)
        try:
            handler.on_any_event(FileModifiedEvent(str(layout.root / "test" / "index.js")))
            await wait_until(lambda: "build-tests" in log)
        finally:
            await session.stop()

        assert log == ["templates", "oauth", "build-tests"]


class TestResilience:
    @pytest.mark.asyncio
    async def test_undecodable_stylesheet_does_not_stop_binding(
        self, layout, console, fake_processes
    ) -> None:
        workflow = prose_workflow(layout)
        runner = TaskRunner(workflow, layout=layout, console=console, processes=fake_processes)
        session = WatchSession(runner, workflow.watches, root=layout.root, settle=0.01)
        base = layout.root / "style" / "base.css"
        output = layout.dist_dir / "prose.css"

        session.start(observe=False)
        try:
            base.write_bytes(b"html { content: '\xa9'; }\n")
            session.notify(str(base))
            await wait_until(lambda: session.runs()["stylesheets"] == 1)
            await asyncio.sleep(0.05)
            assert not output.exists()

            base.write_text("html { margin: 0; }\n", encoding="utf-8")
            session.notify(str(base))
            await wait_until(output.exists)
        finally:
            await session.stop()

        assert session.runs()["stylesheets"] == 2
        assert "html { margin: 0; }" in output.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_reported_and_watching_continues(
        self, layout, console, log, capsys
    ) -> None:
        attempts = {"n": 0}

        async def css(ctx: TaskContext) -> None:
            attempts["n"] += 1
            log.append("css")
            if attempts["n"] == 1:
                raise RuntimeError("postcss plugin crashed")

        base = recording_workflow(layout, log)
        tasks = [dataclasses.replace(t, action=css) if t.name == "css" else t for t in base.tasks]
        workflow = Workflow(tasks=tasks, watches=base.watches)
        runner = TaskRunner(workflow, layout=layout, console=console)
        session = WatchSession(runner, workflow.watches, root=layout.root, settle=0.01)

        session.start(observe=False)
        try:
            session.notify("style/style.css")
            await wait_until(lambda: attempts["n"] == 1)
            await asyncio.sleep(0.05)
            session.notify("style/style.css")
            await wait_until(lambda: attempts["n"] == 2)
        finally:
            await session.stop()

        assert log == ["css", "css"]
        err = capsys.readouterr().err
        assert "Watch run failed" in err
        assert "RuntimeError: postcss plugin crashed" in err


class TestWatchDirs:
    def test_only_pattern_bases_are_watched(self, session_factory, layout) -> None:
        (layout.root / "node_modules" / "handsontable").mkdir(parents=True)
        (layout.root / ".git").mkdir()
        session = session_factory()

        root = session.root
        assert session.watch_dirs() == [root / "app", root / "test", root / "templates", root / "style"]

    def test_nested_and_missing_bases(self, layout, console) -> None:
        (layout.root / "style" / "components").mkdir(parents=True, exist_ok=True)
        runner = TaskRunner([], layout=layout, console=console)
        bindings = [
            watch(group("components", "style/components/*.css"), "css"),
            watch(group("styles", "style/**/*.css"), "css"),
            watch(group("docs", "docs/**/*.md"), "css"),
        ]
        session = WatchSession(runner, bindings, root=layout.root)

        assert session.watch_dirs() == [session.root / "style"]


class TestWatchTask:
    @pytest.mark.asyncio
    async def test_file_writes_rerun_bound_tasks(self, layout, console, log) -> None:
        workflow = recording_workflow(layout, log, keep=("watch",))
        runner = TaskRunner(workflow, layout=layout, console=console)

        running = asyncio.ensure_future(runner.run("watch"))
        try:
            await wait_until(lambda: "css" in log)
            # let the observer come up
            await asyncio.sleep(0.5)
            assert log == ["templates", "oauth", "build-app", "build-tests", "css"]

            del log[:]
            (layout.root / "style" / "base.css").write_text("html { margin: 1px; }\n", encoding="utf-8")
            await wait_until(lambda: "css" in log, timeout=5.0)
            await asyncio.sleep(0.5)
            assert log == ["css"]

            del log[:]
            (layout.root / "app" / "boot.js").write_text("require('./views/app');\n// edit\n", encoding="utf-8")
            await wait_until(lambda: "build-tests" in log, timeout=5.0)
            assert log == ["templates", "oauth", "build-app", "build-tests"]
        finally:
            running.cancel()
            await asyncio.gather(running, return_exceptions=True)

        assert running.cancelled()
