# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


class BuildError(Exception):
    """Base class for every failure a task run can report."""


class ConfigurationError(BuildError):
    """Unknown or duplicate task, cyclic prerequisites, unusable workflow file."""


TOOL_HINTS = {
    "node": "Install Node.js or fix PATH (or set PROSEBUILD_NODE).",
    "browserify": "Run `npm install` (browserify is a dev dependency).",
    "uglifyjs": "Run `npm install` (uglify-js is a dev dependency).",
    "mocha-phantomjs": "Run `npm install` (mocha-phantomjs is a dev dependency).",
}


@dataclass
class SubprocessError(BuildError):
    command: Sequence[str]
    exit_code: int
    stderr: str = ""
    hint: str | None = None

    def __str__(self) -> str:
        cmd = " ".join(str(c) for c in self.command)
        lines = [f"command failed (exit={self.exit_code}): {cmd}"]
        if self.stderr:
            lines.append(self.stderr.rstrip()[-4000:])
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)


@dataclass
class NetworkError(BuildError):
    url: str
    reason: str

    def __str__(self) -> str:
        return f"request to {self.url} failed: {self.reason}"


@dataclass
class FileSystemError(BuildError):
    path: str
    reason: str
    details: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "\n".join([f"{self.path}: {self.reason}", *self.details])


class CssImportError(FileSystemError):
    """An @import that could not be resolved. Reported, never fatal."""
