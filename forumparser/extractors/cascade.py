"""Ordered-fallback selector primitives.

A :class:`Cascade` is an explicit, inspectable list of ``(label, strategy)``
pairs.  Strategies are evaluated strictly in declaration order and evaluation
stops at the first non-empty, whitespace-trimmed candidate.  Declaration order
is the trust ranking: structural selectors first, raw-HTML regex last.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup, Tag

if TYPE_CHECKING:
    from forumparser.profiles import ForumProfile

logger = logging.getLogger(__name__)

# Strategies whose label starts with this prefix scan the raw HTML text
# rather than the parsed document.
RAW_REGEX_PREFIX = "regex:"


def safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


@dataclass(frozen=True)
class Page:
    """One parsed document plus the raw text it was parsed from."""

    soup: BeautifulSoup
    html: str
    profile: ForumProfile


Strategy = Callable[[Page], Any]


@dataclass(frozen=True)
class Cascade:
    """Named, ordered sequence of extraction strategies for one field."""

    name: str
    strategies: tuple[tuple[str, Strategy], ...]

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self.strategies]

    def run(self, page: Page) -> str:
        """Return the first non-empty candidate, or ``""``.

        A strategy that raises is logged and treated as an empty result.
        Raw-HTML regex strategies are skipped when the page's profile
        disables them.
        """
        for label, strategy in self.strategies:
            if label.startswith(RAW_REGEX_PREFIX) and not page.profile.allow_raw_html_regex:
                continue
            try:
                candidate = strategy(page)
            except Exception as exc:
                logger.debug("%s: strategy %s failed: %s", self.name, label, exc)
                continue
            value = safe_str(candidate).strip()
            if value:
                logger.debug("%s: resolved by %s", self.name, label)
                return value
        logger.debug("%s: no strategy matched", self.name)
        return ""


# ---------------------------------------------------------------------------
# Generic selector flavours
# ---------------------------------------------------------------------------

def first_text(soup: BeautifulSoup, selectors: Iterable[str]) -> str:
    """Trimmed text of the first element matched by the first productive selector."""
    for sel in selectors:
        el = soup.select_one(sel)
        if el is None:
            continue
        text = el.get_text().strip()
        if text:
            return text
    return ""


def first_attr(soup: BeautifulSoup, selectors: Iterable[str], attr: str) -> str:
    """Trimmed *attr* value of the first element matched by the first productive selector."""
    for sel in selectors:
        el = soup.select_one(sel)
        if el is None:
            continue
        value = safe_str(el.get(attr)).strip()
        if value:
            return value
    return ""


def first_link_text(soup: BeautifulSoup, predicate: Callable[[str, Tag], bool]) -> str:
    """Scan every ``<a>`` in document order; text of the first one accepted by *predicate*."""
    for link in soup.find_all("a"):
        if not isinstance(link, Tag):
            continue
        href = safe_str(link.get("href")).strip()
        if predicate(href, link):
            text = link.get_text().strip()
            if text:
                return text
    return ""


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim the ends."""
    return " ".join(text.split())
