"""Topic resolver: the category/topic link of a discussion page."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from forumparser.extractors.cascade import safe_str
from forumparser.extractors.urlnorm import absolute_url
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile

logger = logging.getLogger(__name__)


def _permalink_re(profile: ForumProfile) -> re.Pattern[str]:
    # /discussion/54829/some-post, /discussion/54829?page=2
    return re.compile("^" + re.escape(profile.discussion_prefix) + r"\d+(?:[/?#]|$)")


def is_topic_href(href: str, profile: ForumProfile = DEFAULT_PROFILE) -> bool:
    """True if *href* points at a topic/category rather than a user or a post.

    Rejected: profile links, the bare discussion root, and post permalinks
    (purely numeric segment right after the discussion prefix).
    """
    href = href.strip()
    if not href or not href.startswith(profile.discussion_prefix):
        return False
    if href.startswith(profile.profile_prefix):
        return False
    if href in (profile.discussion_root, profile.discussion_prefix):
        return False
    return not _permalink_re(profile).match(href)


def find_topic(soup: BeautifulSoup, profile: ForumProfile = DEFAULT_PROFILE) -> tuple[str, str]:
    """Return ``(topic, topic_url)`` from the first surviving link in document order."""
    for link in soup.select(f'a[href^="{profile.discussion_prefix}"]'):
        href = safe_str(link.get("href")).strip()
        if not is_topic_href(href, profile):
            continue
        logger.debug("topic: using link %s", href)
        return link.get_text().strip(), absolute_url(href, profile.origin)
    return "", ""
