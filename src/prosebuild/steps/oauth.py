# steps/oauth.py
from __future__ import annotations

import httpx

from ..errors import NetworkError
from ..runner import TaskContext
from .fs import ensure_dir, write_text


async def fetch_text(ctx: TaskContext, url: str) -> str:
    async with ctx.http_client() as client:
        try:
            response = await client.get(url)
            _ = response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(url=url, reason=f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(url=url, reason=str(e) or type(e).__name__) from e
        return response.text


async def oauth(ctx: TaskContext) -> None:
    """Create oauth.json from the public default unless one already exists."""
    layout = ctx.layout
    ensure_dir(layout.dist_dir)
    target = layout.path(layout.oauth_file)
    if target.exists():
        ctx.console.print_info(f"Using existing {layout.oauth_file}.")
        return
    body = await fetch_text(ctx, layout.oauth_url)
    write_text(target, body)
