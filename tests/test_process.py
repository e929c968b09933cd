"""Tests for the asyncio-backed external command runner."""

from __future__ import annotations

import sys

import pytest

from prosebuild.errors import SubprocessError
from prosebuild.process import AsyncioProcessRunner, check_call


class TestAsyncioProcessRunner:
    @pytest.fixture
    def runner(self) -> AsyncioProcessRunner:
        return AsyncioProcessRunner()

    @pytest.mark.asyncio
    async def test_captures_stdout(self, runner: AsyncioProcessRunner) -> None:
        status = await runner.run([sys.executable, "-c", "print('bundled')"])
        assert status.ok
        assert status.stdout.strip() == "bundled"

    @pytest.mark.asyncio
    async def test_feeds_stdin(self, runner: AsyncioProcessRunner) -> None:
        status = await runner.run(
            [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read().upper())"],
            input="var a = 1;",
        )
        assert status.stdout == "VAR A = 1;"

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, runner: AsyncioProcessRunner) -> None:
        status = await runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(4)"]
        )
        assert not status.ok
        assert status.returncode == 4
        assert status.stderr == "boom"

    @pytest.mark.asyncio
    async def test_env_is_merged(self, runner: AsyncioProcessRunner) -> None:
        status = await runner.run(
            [sys.executable, "-c", "import os; print(os.environ['PROSE_ENV'])"],
            env={"PROSE_ENV": "production"},
        )
        assert status.stdout.strip() == "production"

    @pytest.mark.asyncio
    async def test_missing_executable(self, runner: AsyncioProcessRunner) -> None:
        status = await runner.run(["definitely-not-a-real-tool-xyz"])
        assert status.returncode == 127

    @pytest.mark.asyncio
    async def test_check_call_adds_tool_hint(self, runner: AsyncioProcessRunner, tmp_path) -> None:
        with pytest.raises(SubprocessError) as exc_info:
            await check_call(runner, [str(tmp_path / "node_modules" / ".bin" / "browserify"), "app/boot.js"])
        assert exc_info.value.exit_code == 127
        assert "npm install" in str(exc_info.value)
