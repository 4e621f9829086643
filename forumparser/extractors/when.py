"""When resolver: absolute timestamp or relative-time phrase of a post."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from forumparser.extractors.cascade import (
    RAW_REGEX_PREFIX,
    Cascade,
    Page,
    collapse_whitespace,
    first_attr,
    first_text,
)
from forumparser.extractors.structured import date_from_node, find_structured_node
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile

_EDITED_AGO_RE = re.compile(r"\bEdited\s+\d+\s+\w+\s+ago\b", re.IGNORECASE)
_AGO_RE = re.compile(r"\b\d+\s+\w+\s+ago\b", re.IGNORECASE)


def _regex(pattern: re.Pattern[str]):
    def strategy(page: Page) -> str:
        m = pattern.search(page.html)
        return m.group(0) if m else ""
    return strategy


WHEN_CASCADE = Cascade(
    "when",
    (
        ("time_datetime", lambda page: first_attr(page.soup, ["time[datetime]"], "datetime")),
        ("time_text", lambda page: first_text(page.soup, ["time"])),
        (RAW_REGEX_PREFIX + "edited_ago", _regex(_EDITED_AGO_RE)),
        (RAW_REGEX_PREFIX + "ago", _regex(_AGO_RE)),
        ("jsonld_date", lambda page: date_from_node(find_structured_node(page.soup))),
    ),
)


def find_when(
    soup: BeautifulSoup,
    html: str = "",
    profile: ForumProfile = DEFAULT_PROFILE,
) -> str:
    return collapse_whitespace(WHEN_CASCADE.run(Page(soup=soup, html=html, profile=profile)))
