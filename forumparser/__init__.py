"""forumparser - turn a discussion-forum page into a small structured record.

Quick usage::

    from forumparser import fetch

    record = fetch("https://7sage.com/discussion/categories/general/some-thread")
    print(record.topic, record.username, record.avatar_url, record.when_text)

Offline extraction::

    from forumparser import extract

    record = extract(html, url=page_url, origin="7sage.com")

Every field of :class:`DiscussionRecord` is a string; a field the page does
not reveal is ``""``.  Extraction itself never raises.
"""

from forumparser.items import DiscussionRecord
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile, load_profile
from forumparser.query import (
    FetchError,
    InvalidURLError,
    extract,
    fetch,
    fetch_html,
    validate_discussion_url,
)

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_PROFILE",
    "DiscussionRecord",
    "FetchError",
    "ForumProfile",
    "InvalidURLError",
    "extract",
    "fetch",
    "fetch_html",
    "load_profile",
    "validate_discussion_url",
]
