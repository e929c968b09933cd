# pipeline.py
# The Prose front-end build: every named task and what re-runs on change.
from __future__ import annotations

from typing import Optional

from .config import ProjectLayout
from .dsl import group, task, watch, wf
from .model import Workflow
from .steps import bundle, css, fs, oauth, shell
from .watcher import watch as watch_action


def prose_workflow(layout: Optional[ProjectLayout] = None) -> Workflow:
    layout = layout or ProjectLayout()

    app = group("app scripts", *layout.app_globs)
    tests = group("test sources", *layout.test_globs)
    templates = group("templates", *layout.template_globs)
    styles = group("stylesheets", *layout.css_globs)

    return wf(
        task("clean", fs.clean, description="Remove the dist directory"),
        task(
            "translations",
            shell.translations,
            description="Sync locales from Transifex, then rebuild templates",
        ),
        task("css", css.css, description="Inline @imports into dist/prose.css"),
        task("templates", shell.templates, description="Build templates"),
        task("oauth", oauth.oauth, description="Create oauth.json if missing"),
        task(
            "build-tests",
            bundle.build_tests,
            needs=["templates", "oauth"],
            description="Bundle the test suite into test/lib/index.js",
        ),
        task(
            "build-app",
            bundle.build_app,
            needs=["templates", "oauth"],
            description="Bundle the app into dist/prose.js",
        ),
        task(
            "watch",
            watch_action,
            needs=["build-app", "build-tests", "css"],
            description="Rebuild on change",
        ),
        task(
            "test",
            shell.browser_tests,
            needs=["build-tests"],
            description="Run the browser test suite",
        ),
        task("build", needs=["build-tests", "build-app", "css"], description="Build site and tests"),
        task(
            "production",
            needs=["build"],
            options={"production": True},
            description="Minified build",
        ),
        task("default", needs=["build"]),
        watches=[
            watch(app, "build-app", "build-tests"),
            watch(tests, "build-tests"),
            watch(templates, "build-app"),
            watch(styles, "css"),
        ],
    )
