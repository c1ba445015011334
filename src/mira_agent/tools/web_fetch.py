"""web_fetch tool: download a page and return its readable text.

The HTML is reduced to plain text with a deliberately small set of rules:
script and style blocks are dropped, remaining tags are removed, a handful
of entities are decoded and whitespace is collapsed.
"""

import re
from typing import Any

import httpx
from pydantic import BaseModel, Field

from mira_agent.core.logging import ErrorIds, logError
from mira_agent.core.sessions import SessionRecord
from mira_agent.core.urls import UnsupportedUrlError, normalize_url

DEFAULT_MAX_CHARS = 12_000
FETCH_TIMEOUT_SECONDS = 20.0
USER_AGENT = "MIRA-Agent/1.0 (+https://innova-space-edu.github.io/mira-agent/)"

_SCRIPT_RE = re.compile(r"<script\b[\s\S]*?</script\s*>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[\s\S]*?</style\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[^>]+(>|$)")
_WHITESPACE_RE = re.compile(r"\s+")

_ENTITIES = {
    "&nbsp;": " ",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&amp;": "&",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES), re.IGNORECASE)


class WebFetchArgs(BaseModel):
    url: str
    max_chars: int = Field(default=DEFAULT_MAX_CHARS, ge=1)


def strip_html_to_text(html: str) -> str:
    """Extract readable text from an HTML document.

    Args:
        html: Raw HTML.

    Returns:
        Plain text with scripts, styles and tags removed and whitespace collapsed.
    """
    if not html:
        return ""
    text = _SCRIPT_RE.sub(" ", html)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0).lower()], text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=FETCH_TIMEOUT_SECONDS,
        headers={"User-Agent": USER_AGENT},
    )


async def web_fetch(
    args: WebFetchArgs,
    record: SessionRecord,
    client: httpx.AsyncClient,
) -> dict[str, Any]:
    """Fetch a URL and return its extracted text.

    Non-2xx responses are normal results carrying their status; only
    transport failures produce an ``error`` entry.

    Args:
        args: Validated tool arguments.
        record: The session the turn belongs to (receives log lines).
        client: Shared HTTP client.

    Returns:
        ``{url, status, contentType, text}`` or ``{url, error}``.
    """
    try:
        url = normalize_url(args.url)
    except UnsupportedUrlError as e:
        record.log(f"web_fetch rejected: {args.url} ({e})")
        return {"url": args.url, "error": str(e)}

    record.log(f"web_fetch: {url}")

    try:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
    except httpx.HTTPError as e:
        logError(ErrorIds.WEB_FETCH_FAILED, f"web_fetch failed: {e}", extra={"url": url})
        record.log(f"web_fetch failed: {e}")
        return {"url": url, "error": f"Fetch failed: {e}"}

    content_type = response.headers.get("content-type", "")
    text = strip_html_to_text(response.text)[: args.max_chars]

    mime = content_type.split(";")[0].strip() or "unknown"
    record.log(f"web_fetch status {response.status_code} ({mime})")
    record.log(f"extracted {len(text)} chars")

    return {
        "url": url,
        "status": response.status_code,
        "contentType": content_type,
        "text": text,
    }
