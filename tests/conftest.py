"""
Shared fixtures for prosebuild tests.

Provides a throwaway Prose project tree, a ProjectLayout pointing at it and
a recording ProcessRunner double, so no test needs node or the network.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import pytest

from prosebuild.config import ProjectLayout
from prosebuild.process import ExitStatus
from prosebuild.ui.console import Console


Responder = Union[ExitStatus, Callable[[List[str], Optional[str]], ExitStatus]]


class FakeProcessRunner:
    """Records every command; answers by tool name (basename of argv[0])."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.responses: Dict[str, Responder] = {}

    def on(self, tool: str, response: Responder) -> None:
        self.responses[tool] = response

    def tools(self) -> List[str]:
        return [Path(c[0]).name for c in self.calls]

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        capture: bool = True,
    ) -> ExitStatus:
        cmd = [str(c) for c in command]
        self.calls.append(cmd)
        self.inputs.append(input)
        await asyncio.sleep(0)

        tool = Path(cmd[0]).name
        response = self.responses.get(tool)
        if response is None:
            return self._default(tool, cmd, input)
        if isinstance(response, ExitStatus):
            return response
        return response(cmd, input)

    @staticmethod
    def _default(tool: str, cmd: List[str], input: Optional[str]) -> ExitStatus:
        if tool == "browserify":
            return ExitStatus(0, stdout=f"// bundle of {cmd[1]}\nvar answer = 42;\n")
        if tool == "uglifyjs":
            return ExitStatus(0, stdout="".join((input or "").split()))
        return ExitStatus(0)


@pytest.fixture
def fake_processes() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def console() -> Console:
    return Console(debug=True)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal Prose source tree."""
    files = {
        "vendor/liquid.js": "var Liquid = {};\n",
        "app/boot.js": "require('./views/app');\n",
        "app/views/app.js": "module.exports = {};\n",
        "test/index.js": "require('./app');\n",
        "test/index.html": "<html></html>\n",
        "templates/app.html": "<div></div>\n",
        "style/style.css": '@import "base.css";\n@import url(components/button.css);\nbody { color: #333; }\n',
        "style/base.css": "html { margin: 0; }\n",
        "style/components/button.css": "@import '../base.css';\n.button { padding: 4px; }\n",
    }
    for rel, content in files.items():
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    return tmp_path


@pytest.fixture
def layout(project: Path) -> ProjectLayout:
    return ProjectLayout(
        root=project,
        node="node",
        oauth_url="https://example.test/oauth.json",
    )
