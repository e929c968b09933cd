# prosebuild_workflow.py
# Project workflow: the stock Prose build plus a lint task.
from __future__ import annotations

from prosebuild import sh, task
from prosebuild.pipeline import prose_workflow


def workflow():
    wf = prose_workflow()
    wf.tasks.append(
        task(
            "lint",
            sh("node_modules/.bin/eslint", "app", "test"),
            description="Lint app and test scripts",
        )
    )
    return wf
