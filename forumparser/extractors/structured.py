"""Embedded structured data (JSON-LD) reader.

Absence of a block and a malformed block are deliberately indistinguishable:
every reader here returns ``None`` rather than raising.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Entity types describing the post itself, preferred over a generic page node.
_POSTING_TYPES: frozenset[str] = frozenset(
    {
        "discussionforumposting",
        "socialmediaposting",
        "comment",
        "article",
        "blogposting",
        "newsarticle",
        "techarticle",
        "question",
    },
)

_PAGE_TYPES: frozenset[str] = frozenset(
    {
        "webpage",
        "qapage",
        "itempage",
        "profilepage",
    },
)


def _node_types(node: dict) -> set[str]:
    raw = node.get("@type", "")
    if isinstance(raw, list):
        return {str(t).lower() for t in raw}
    return {str(raw).lower()}


def _iter_nodes(raw: Any) -> list[dict]:
    if isinstance(raw, list):
        candidates = raw
    elif isinstance(raw, dict):
        graph = raw.get("@graph")
        candidates = graph if isinstance(graph, list) else [raw]
    else:
        return []
    return [node for node in candidates if isinstance(node, dict)]


def find_structured_node(soup: BeautifulSoup) -> dict | None:
    """Return the JSON-LD node describing the page's posting, or ``None``.

    Posting/article nodes win over a generic ``WebPage`` node; among nodes of
    the same rank the first one in document order wins.
    """
    page_node: dict | None = None

    for script in soup.find_all("script", type="application/ld+json"):
        try:
            raw = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue

        for node in _iter_nodes(raw):
            types = _node_types(node)
            if types & _POSTING_TYPES:
                return node
            if page_node is None and types & _PAGE_TYPES:
                page_node = node

    return page_node


def author_from_node(node: dict | None) -> str | None:
    if not node:
        return None
    author = node.get("author")
    if isinstance(author, list) and author:
        author = author[0]
    if isinstance(author, dict):
        name = author.get("name")
        return str(name) if name else None
    if isinstance(author, str):
        return author
    return None


def date_from_node(node: dict | None) -> str | None:
    """``dateModified`` if present, else ``datePublished``."""
    if not node:
        return None
    for key in ("dateModified", "datePublished"):
        value = node.get(key)
        if value:
            return str(value)
    return None
