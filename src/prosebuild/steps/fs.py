# steps/fs.py
from __future__ import annotations

import shutil
from pathlib import Path

from ..errors import FileSystemError
from ..runner import TaskContext


def remove_tree(path: Path) -> bool:
    """Remove `path` recursively. Returns False if it was already absent."""
    if not path.exists() and not path.is_symlink():
        return False
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        raise FileSystemError(path=str(path), reason=e.strerror or str(e)) from e
    return True


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(path=str(path), reason=e.strerror or str(e)) from e
    return path


def write_text(path: Path, content: str) -> None:
    """Overwrite `path` completely; parents are created as needed."""
    ensure_dir(path.parent)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FileSystemError(path=str(path), reason=e.strerror or str(e)) from e


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileSystemError(path=str(path), reason="file not found") from e
    except UnicodeDecodeError as e:
        raise FileSystemError(path=str(path), reason="not valid UTF-8") from e
    except OSError as e:
        raise FileSystemError(path=str(path), reason=e.strerror or str(e)) from e


# ---------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------

async def clean(ctx: TaskContext) -> None:
    dist = ctx.layout.dist_dir
    if not remove_tree(dist):
        ctx.console.print_debug(f"{dist} already absent")
