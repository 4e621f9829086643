"""Username resolver."""

from __future__ import annotations

from bs4 import BeautifulSoup

from forumparser.extractors.cascade import Cascade, Page, first_link_text, first_text
from forumparser.extractors.structured import author_from_node, find_structured_node
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile

# Themes that print the author without linking to a profile page
_BYLINE_SELECTORS: tuple[str, ...] = (
    '[class*="author" i]',
    '[class*="byline" i]',
    '[rel="author"]',
)


def _profile_link(page: Page) -> str:
    prefix = page.profile.profile_prefix
    return first_text(
        page.soup,
        [
            f'a[href^="{prefix}"]',
            f'a[href*="{prefix}"]',
            '[class*="UserLink"] a',
            '[class*="user"] a[href*="profile"]',
        ],
    )


def _link_scan(page: Page) -> str:
    prefix = page.profile.profile_prefix
    return first_link_text(page.soup, lambda href, _: href.startswith(prefix))


def _byline(page: Page) -> str:
    return first_text(page.soup, _BYLINE_SELECTORS)


def _jsonld_author(page: Page) -> str | None:
    return author_from_node(find_structured_node(page.soup))


USERNAME_CASCADE = Cascade(
    "username",
    (
        ("profile_link", _profile_link),
        ("link_scan", _link_scan),
        ("byline", _byline),
        ("jsonld_author", _jsonld_author),
    ),
)


def find_username(soup: BeautifulSoup, profile: ForumProfile = DEFAULT_PROFILE) -> str:
    return USERNAME_CASCADE.run(Page(soup=soup, html="", profile=profile))
