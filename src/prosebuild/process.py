# process.py
# External-command abstraction.
# Tasks never spawn processes directly: they go through the ProcessRunner
# handed to them in the TaskContext, so tests can swap in a fake.

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from .errors import TOOL_HINTS, SubprocessError


@dataclass(frozen=True)
class ExitStatus:
    """Result of one external command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        capture: bool = True,
    ) -> ExitStatus:
        ...


class AsyncioProcessRunner:
    """
    Runs commands with asyncio.create_subprocess_exec.

    capture=True collects stdout/stderr (bundler output, error detail);
    capture=False lets the child write straight to our terminal.
    """

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        capture: bool = True,
    ) -> ExitStatus:
        full_env = os.environ.copy()
        full_env.update(env or {})

        pipe = asyncio.subprocess.PIPE if capture else None
        try:
            proc = await asyncio.create_subprocess_exec(
                *[str(c) for c in command],
                cwd=str(cwd) if cwd else None,
                env=full_env,
                stdin=asyncio.subprocess.PIPE if input is not None else None,
                stdout=pipe,
                stderr=pipe,
            )
        except FileNotFoundError:
            tool = Path(str(command[0])).name
            return ExitStatus(
                returncode=127,
                stderr=f"{tool}: command not found",
            )

        out, err = await proc.communicate(
            input.encode("utf-8") if input is not None else None
        )
        return ExitStatus(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=(out or b"").decode("utf-8", errors="replace"),
            stderr=(err or b"").decode("utf-8", errors="replace"),
        )


async def check_call(
    processes: ProcessRunner,
    command: Sequence[str],
    **kwargs,
) -> ExitStatus:
    """Run `command` and raise SubprocessError unless it exits 0."""
    status = await processes.run(command, **kwargs)
    if not status.ok:
        tool = Path(str(command[0])).name
        hint = TOOL_HINTS.get(tool) if status.returncode == 127 else None
        raise SubprocessError(
            command=list(command),
            exit_code=status.returncode,
            stderr=status.stderr,
            hint=hint,
        )
    return status
