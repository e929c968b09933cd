"""Project layout and per-invocation build options."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from . import settings


class BuildOptions(BaseModel):
    """
    Options read once at the start of an invocation.

    Replaces the old process-wide PROSE_ENV flag: the value is threaded into
    the run explicitly and never changes while the run is in flight.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    production: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildOptions":
        return cls(production=settings.production_from_env(environ))

    def with_overrides(self, overrides: Mapping[str, Any]) -> "BuildOptions":
        if not overrides:
            return self
        # validate through the model rather than model_copy(update=...)
        return BuildOptions(**{**self.model_dump(), **dict(overrides)})


class ProjectLayout(BaseModel):
    """Every fixed path, command and URL the Prose pipeline touches."""
    model_config = ConfigDict(frozen=True)

    root: Path = Field(default_factory=Path.cwd)

    dist: str = "dist"

    # stylesheets
    css_entry: str = "style/style.css"
    css_root: str = "style"
    css_output: str = "prose.css"

    # scripts
    vendor_scripts: List[str] = ["vendor/liquid.js"]
    app_entry: str = "app/boot.js"
    app_output: str = "prose.js"
    test_entry: str = "test/index.js"
    test_output: str = "test/lib/index.js"
    test_externals: List[str] = ["chai", "mocha"]
    no_parse: List[str] = ["node_modules/handsontable/dist/handsontable.full.js"]

    # external programs
    node: str = Field(default_factory=settings.node_executable)
    browserify: str = "node_modules/.bin/browserify"
    uglifyjs: str = "node_modules/.bin/uglifyjs"
    translations_script: str = "translations/update_locales"
    templates_script: str = "build"
    test_runner: str = "./node_modules/mocha-phantomjs/bin/mocha-phantomjs"
    test_page: str = "test/index.html"

    # oauth bootstrap
    oauth_file: str = "oauth.json"
    oauth_url: str = Field(default_factory=settings.oauth_url)

    # watch globs
    app_globs: List[str] = ["app/**/**/*.js"]
    test_globs: List[str] = [
        "test/**/*.{js, json}",
        "test/index.html",
        "!test/lib/index.js",  # built test file
    ]
    template_globs: List[str] = ["templates/**/*.html"]
    css_globs: List[str] = ["style/**/*.css"]

    def path(self, rel: str) -> Path:
        """Resolve a layout-relative path against the project root."""
        p = Path(rel)
        return p if p.is_absolute() else self.root / p

    @property
    def dist_dir(self) -> Path:
        return self.path(self.dist)

    def dist_file(self, name: str) -> Path:
        return self.dist_dir / name

    def tool(self, rel: str) -> str:
        """Local node_modules tools resolve against the root; bare names go through PATH."""
        if "/" in rel:
            return str(self.path(rel))
        return rel
