from __future__ import annotations
import os
import shutil
from typing import Mapping, Optional

PRODUCTION_ENV_VAR = "PROSE_ENV"
PRODUCTION_SENTINEL = "production"

DEFAULT_OAUTH_URL = "https://raw.githubusercontent.com/prose/prose/gh-pages/oauth.json"
WATCH_SETTLE_SECONDS = float(os.environ.get("PROSEBUILD_WATCH_SETTLE", "0.2"))


def production_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get(PRODUCTION_ENV_VAR) == PRODUCTION_SENTINEL


def debug_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("PROSEBUILD_DEBUG", "").lower() in ("1", "true", "yes")


def node_executable(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("PROSEBUILD_NODE") or shutil.which("node") or "node"


def oauth_url(environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return env.get("PROSEBUILD_OAUTH_URL") or DEFAULT_OAUTH_URL


def http_timeout(environ: Optional[Mapping[str, str]] = None) -> Optional[float]:
    """Seconds before an HTTP request gives up; None (the default) waits indefinitely."""
    env = os.environ if environ is None else environ
    raw = env.get("PROSEBUILD_HTTP_TIMEOUT")
    return float(raw) if raw else None
