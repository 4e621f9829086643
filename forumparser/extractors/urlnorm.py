"""URL resolution helpers for references scraped out of forum markup."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

_ABSOLUTE_PREFIXES: tuple[str, ...] = ("http://", "https://")


def absolute_url(reference: Any, origin: str) -> str:
    """Resolve *reference* against the forum's fixed *origin* host.

    Rules, checked in order:
    - empty / blank → ``""``
    - already ``http://`` or ``https://`` → unchanged
    - protocol-relative ``//host/path`` → ``https:`` prefixed
    - root-relative ``/path`` → ``https://<origin>/path``
    - anything else → returned as-is (best-effort passthrough)

    Example:
        absolute_url("/discussion/categories/general", "7sage.com")
        → https://7sage.com/discussion/categories/general
    """
    if not reference:
        return ""
    ref = str(reference).strip()
    if not ref:
        return ""
    if ref.startswith(_ABSOLUTE_PREFIXES):
        return ref
    if ref.startswith("//"):
        return f"https:{ref}"
    if ref.startswith("/"):
        return f"https://{origin}{ref}"
    return ref


def extract_domain(url: str) -> str:
    """Return the netloc (host) component of a URL, lowercased."""
    try:
        return urlparse(url).netloc.lower()
    except Exception:
        return ""
