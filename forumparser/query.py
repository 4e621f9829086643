"""forumparser.query - fetch a discussion page and extract its record.

Basic usage::

    from forumparser.query import fetch

    record = fetch("https://7sage.com/discussion/categories/general/some-thread")
    print(record.topic, record.username, record.when_text)

    # Wire shape used by the HTTP service
    payload = record.to_payload()

Offline usage::

    from forumparser.query import extract

    record = extract(html, url="https://7sage.com/discussion/...")
"""

from __future__ import annotations

import gzip
import logging
import random
import re
import time
import urllib.error
import urllib.request
import zlib
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import ValidationError

from forumparser.extractors.avatar import find_avatar, upscale_avatar
from forumparser.extractors.topic import find_topic
from forumparser.extractors.urlnorm import extract_domain
from forumparser.extractors.username import find_username
from forumparser.extractors.when import find_when
from forumparser.items import DiscussionRecord
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile

logger = logging.getLogger(__name__)

_DEFAULT_UA = "Mozilla/5.0 (compatible; NewsletterGenerator/1.0)"

DEFAULT_TIMEOUT = 20


# ---------------------------------------------------------------------------
# Public exceptions
# ---------------------------------------------------------------------------

class FetchError(RuntimeError):
    """Raised when a discussion page cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(self, message: str, url: str = "", status: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class InvalidURLError(ValueError):
    """Raised when a URL is not a discussion page of the configured forum."""


def validate_discussion_url(url: str, profile: ForumProfile = DEFAULT_PROFILE) -> str:
    """Return the stripped *url*, or raise :class:`InvalidURLError`."""
    url = (url or "").strip()
    if not url.startswith(profile.base_url):
        raise InvalidURLError(f"URL must start with {profile.base_url}")
    return url


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def _decode_response_body(raw: bytes, headers: Any, url: str) -> str:
    encoding = ""
    if headers is not None:
        encoding = str(headers.get("Content-Encoding", "")).lower().strip()

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except AttributeError:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        return raw.decode("utf-8", errors="replace")


def fetch_html(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = 2,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    *timeout* is an overall deadline in seconds covering every attempt and
    backoff sleep; expiry raises :class:`FetchError`.  Transient failures
    (429, 5xx, network errors) are retried up to *max_retries* times with
    jittered exponential backoff.

    Raises:
        FetchError: On HTTP errors, connection failures, timeouts or
            unsupported URL schemes.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or _DEFAULT_UA,
            "Accept": "text/html",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
        },
    )

    deadline = time.monotonic() + timeout
    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        try:
            with urllib.request.urlopen(req, timeout=remaining) as resp:
                return _decode_response_body(resp.read(), resp.headers, url)

        except urllib.error.HTTPError as exc:
            exc.close()
            last_exc = FetchError(f"Fetch failed: {exc.code}", url=url, status=exc.code)
            if exc.code not in _RETRY_CODES or attempt >= max_retries:
                raise last_exc from exc

        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise FetchError(f"Timed out fetching {url} after {timeout}s", url=url) from exc
            last_exc = FetchError(f"URL error fetching {url}: {exc.reason}", url=url)
            if attempt >= max_retries:
                raise last_exc from exc

        except TimeoutError as exc:
            raise FetchError(f"Timed out fetching {url} after {timeout}s", url=url) from exc

        except OSError as exc:
            last_exc = FetchError(f"Network error fetching {url}: {exc}", url=url)
            if attempt >= max_retries:
                raise last_exc from exc

        delay = min((2 ** attempt) + random.uniform(0, 1), max(deadline - time.monotonic(), 0))
        logger.debug(
            "%s; retrying in %.1fs (attempt %d/%d)",
            last_exc, delay, attempt + 1, max_retries,
        )
        time.sleep(delay)

    raise FetchError(f"Timed out fetching {url} after {timeout}s", url=url) from last_exc


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _guarded(field: str, fn: Callable[[], Any], default: Any) -> Any:
    try:
        return fn()
    except Exception as exc:
        logger.debug("Resolver for %s failed, leaving it blank: %s", field, exc)
        return default


def _resolve_profile(
    url: str,
    origin: str | None,
    profile: ForumProfile | None,
) -> ForumProfile:
    profile = profile or DEFAULT_PROFILE
    if not origin and profile is DEFAULT_PROFILE and url:
        origin = extract_domain(url.strip())
    if not origin:
        return profile
    try:
        return ForumProfile(**{**profile.model_dump(), "origin": origin})
    except (ValueError, ValidationError) as exc:
        logger.debug("Ignoring unusable origin %r, keeping %s: %s", origin, profile.origin, exc)
        return profile


_EDITED_RE = re.compile(r"Edited\s+\d+", re.IGNORECASE)


def _log_page_signals(html: str, profile: ForumProfile) -> None:
    logger.debug(
        "Page signals: profile_links=%s gravatar=%s time_tag=%s edited_ago=%s",
        profile.profile_prefix in html,
        "gravatar" in html.lower(),
        "<time" in html,
        bool(_EDITED_RE.search(html)),
    )


def extract(
    html: str,
    *,
    url: str = "",
    origin: str | None = None,
    profile: ForumProfile | None = None,
) -> DiscussionRecord:
    """Run every field resolver over *html* and assemble a record.

    Never raises: an unresolvable or failing field is left blank.

    Args:
        html:    Raw HTML of a discussion page.
        url:     The page URL, echoed verbatim into ``source_url``.
        origin:  Host used to absolutize root-relative references.  Defaults
                 to the profile's origin (or the host of *url* when no
                 profile is given).
        profile: Forum profile; :data:`DEFAULT_PROFILE` when omitted.
    """
    html = html or ""
    profile = _resolve_profile(url, origin, profile)

    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as exc:
        logger.debug("HTML parse failed, returning an empty record: %s", exc)
        return DiscussionRecord(source_url=url)

    if logger.isEnabledFor(logging.DEBUG):
        _log_page_signals(html, profile)

    topic, topic_url = _guarded("topic", lambda: find_topic(soup, profile), ("", ""))
    username = _guarded("username", lambda: find_username(soup, profile), "")
    avatar_raw = _guarded("avatar", lambda: find_avatar(soup, html, profile), "")
    avatar_url = _guarded("avatar", lambda: upscale_avatar(avatar_raw, profile), avatar_raw)
    when_text = _guarded("when", lambda: find_when(soup, html, profile), "")

    record = DiscussionRecord(
        source_url=url,
        title="",
        topic=topic,
        topic_url=topic_url,
        username=username,
        avatar_url=avatar_url,
        when_text=when_text,
    )
    logger.debug("Extracted %s: found=%s", url or "<html>", record.found_fields)
    return record


def fetch(
    url: str,
    *,
    profile: ForumProfile | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_retries: int = 2,
    user_agent: str | None = None,
    validate: bool = True,
) -> DiscussionRecord:
    """Fetch a discussion page and extract its record.

    Raises:
        InvalidURLError: *url* is not a discussion page of the forum
            (only when *validate* is true).
        FetchError: The page could not be fetched.
    """
    profile = profile or DEFAULT_PROFILE
    url = validate_discussion_url(url, profile) if validate else url.strip()
    logger.info("Fetching %s", url)
    html = fetch_html(url, timeout=timeout, user_agent=user_agent, max_retries=max_retries)
    return extract(html, url=url, profile=profile)
