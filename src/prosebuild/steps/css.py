# steps/css.py
# Stylesheet step: inline @import directives into one file.
#
#   @import "base.css";
#   @import url("grid.css") screen and (min-width: 600px);
#
# Each import resolves relative to the importing file first, then to the
# configured css root. Remote imports stay as they are. A file is inlined
# once; later imports of it (including cycles) are dropped.
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Set

from ..errors import CssImportError, FileSystemError
from ..runner import TaskContext
from .fs import read_text, write_text

IMPORT_RE = re.compile(
    r"""@import\s+
        (?:url\(\s*(?P<uq>['"]?)(?P<url>[^'")]+)(?P=uq)\s*\)
          |(?P<q>['"])(?P<path>[^'"]+)(?P=q))
        \s*(?P<media>[^;]*?)\s*;""",
    re.VERBOSE,
)
COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
REMOTE_PREFIXES = ("http://", "https://", "//")


class ImportResolver:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.seen: Set[Path] = set()

    def locate(self, target: str, importer: Path) -> Optional[Path]:
        for base in (importer.parent, self.root):
            candidate = (base / target).resolve()
            if candidate.is_file():
                return candidate
            if not candidate.suffix:
                with_ext = candidate.with_suffix(".css")
                if with_ext.is_file():
                    return with_ext
        return None

    def inline(self, path: Path) -> str:
        path = path.resolve()
        self.seen.add(path)
        source = read_text(path)
        # imports inside comments must not be followed
        source = COMMENT_RE.sub(lambda m: m.group(0).replace("@import", "@\\import"), source)

        def replace(m: re.Match) -> str:
            target = m.group("url") or m.group("path")
            media = (m.group("media") or "").strip()
            if target.startswith(REMOTE_PREFIXES):
                return m.group(0)
            found = self.locate(target, path)
            if found is None:
                raise CssImportError(
                    path=str(path),
                    reason=f"failed to find '{target}'",
                    details=[f"looked in {path.parent} and {self.root}"],
                )
            if found in self.seen:
                return ""
            body = self.inline(found)
            if media:
                return f"@media {media} {{\n{body}\n}}"
            return body

        out = IMPORT_RE.sub(replace, source)
        return out.replace("@\\import", "@import")


def resolve_imports(entry: Path, root: Path) -> str:
    """Return `entry` with every local @import inlined."""
    if not entry.is_file():
        raise FileSystemError(path=str(entry), reason="file not found")
    return ImportResolver(root).inline(entry)


async def css(ctx: TaskContext) -> None:
    layout = ctx.layout
    entry = layout.path(layout.css_entry)
    try:
        bundled = resolve_imports(entry, layout.path(layout.css_root))
    except CssImportError as e:
        # soft-fail: report, write nothing, keep going
        ctx.console.print_error("CSS import failed", str(e))
        return
    write_text(layout.dist_file(layout.css_output), bundled)
