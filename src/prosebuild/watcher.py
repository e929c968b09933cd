# watcher.py
# File watching for `watch`: one watchdog observer over the project root,
# one worker coroutine per WatchBinding.
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from . import settings
from .config import BuildOptions
from .errors import BuildError
from .model import WatchBinding
from .ui.console import Console

if TYPE_CHECKING:
    from .runner import TaskContext, TaskRunner


def _decode(path: str | bytes) -> str:
    return path if isinstance(path, str) else path.decode("utf-8")


class _BindingWorker:
    """
    Re-runs one binding's tasks after its files change.

    Bursts are coalesced: once poked, wait until no new poke arrived for
    `settle` seconds, then run. A poke during a run schedules exactly one
    follow-up run.
    """

    def __init__(
        self,
        binding: WatchBinding,
        runner: "TaskRunner",
        console: Console,
        settle: float,
        options: Optional[BuildOptions],
    ) -> None:
        self.binding = binding
        self.runner = runner
        self.console = console
        self.settle = settle
        self.options = options
        self.runs = 0
        self._dirty = asyncio.Event()

    def poke(self) -> None:
        self._dirty.set()

    async def serve(self) -> None:
        while True:
            await self._dirty.wait()
            while True:
                self._dirty.clear()
                await asyncio.sleep(self.settle)
                if not self._dirty.is_set():
                    break

            tasks = list(self.binding.tasks)
            self.console.print_watch_trigger(self.binding.group.name, tasks)
            self.runs += 1
            try:
                await self.runner.run(*tasks, options=self.options)
            except BuildError as e:
                # keep watching; the runner already reported the failing task
                self.console.print_debug(f"watch run failed: {e}")
            except Exception as e:
                self.console.print_error("Watch run failed", f"{type(e).__name__}: {e}")


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file events from the observer thread to the event loop."""

    def __init__(self, session: "WatchSession", loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self.session = session
        self.loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        paths = [_decode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(_decode(dest))
        for p in paths:
            self.loop.call_soon_threadsafe(self.session.notify, p)


class WatchSession:
    """
    Watch bindings for the lifetime of the process.

    notify(path) is the single entry point for changes; the observer
    calls it on the loop thread, tests can call it directly.
    """

    def __init__(
        self,
        runner: "TaskRunner",
        bindings: Sequence[WatchBinding],
        *,
        root: Path,
        settle: Optional[float] = None,
        options: Optional[BuildOptions] = None,
    ) -> None:
        self.runner = runner
        self.root = Path(root).resolve()
        self.console = runner.console
        settle = settings.WATCH_SETTLE_SECONDS if settle is None else settle
        self.workers: List[_BindingWorker] = [
            _BindingWorker(b, runner, self.console, settle, options) for b in bindings
        ]
        self._observer: Optional[Observer] = None
        self._serving: List[asyncio.Task] = []

    def _relative(self, path: str) -> Optional[str]:
        p = Path(path)
        if not p.is_absolute():
            return p.as_posix()
        try:
            return p.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def notify(self, path: str) -> List[str]:
        """Poke every binding whose group matches `path`; returns the group names."""
        rel = self._relative(path)
        if rel is None:
            return []
        hit: List[str] = []
        for worker in self.workers:
            if worker.binding.group.matches(rel):
                worker.poke()
                hit.append(worker.binding.group.name)
        if hit:
            self.console.print_debug(f"{rel} changed ({', '.join(hit)})")
        return hit

    def runs(self) -> Dict[str, int]:
        return {w.binding.group.name: w.runs for w in self.workers}

    def watch_dirs(self) -> List[Path]:
        """Existing, non-overlapping directories covering every binding's patterns."""
        candidates: List[Path] = []
        for worker in self.workers:
            for base in worker.binding.group.bases():
                d = (self.root / base) if base else self.root
                if d not in candidates:
                    candidates.append(d)
        dirs: List[Path] = []
        for d in sorted(candidates, key=lambda p: len(p.parts)):
            if any(d == kept or kept in d.parents for kept in dirs):
                continue
            if not d.is_dir():
                self.console.print_debug(f"not watching {d}: no such directory")
                continue
            dirs.append(d)
        return dirs

    def start(self, observe: bool = True) -> None:
        loop = asyncio.get_running_loop()
        self._serving = [loop.create_task(w.serve()) for w in self.workers]
        if observe:
            observer = Observer()
            handler = _ChangeHandler(self, loop)
            for d in self.watch_dirs():
                observer.schedule(handler, str(d), recursive=True)
            observer.start()
            self._observer = observer
        self.console.print_watch_started([w.binding.group.name for w in self.workers])

    async def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        for t in self._serving:
            t.cancel()
        await asyncio.gather(*self._serving, return_exceptions=True)
        self._serving = []

    async def serve_forever(self) -> None:
        self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()


async def watch(ctx: "TaskContext") -> None:
    """Action for the `watch` task: serve the workflow's bindings until killed."""
    session = WatchSession(
        ctx.runner,
        ctx.watches,
        root=ctx.layout.root,
        options=ctx.options,
    )
    await session.serve_forever()
