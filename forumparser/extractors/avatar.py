"""Avatar resolver and avatar URL post-processing."""

from __future__ import annotations

import logging
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from forumparser.extractors.cascade import RAW_REGEX_PREFIX, Cascade, Page, first_attr
from forumparser.extractors.urlnorm import absolute_url
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile

logger = logging.getLogger(__name__)

_AVATAR_HINT_SELECTORS: tuple[str, ...] = (
    'img[class*="avatar" i]',
    'img[alt*="avatar" i]',
)


def first_srcset_url(srcset: str) -> str:
    """First candidate URL of a ``srcset`` list.

    Example:
        "a.jpg 1x, b.jpg 2x" → "a.jpg"
    """
    if not srcset:
        return ""
    first = srcset.split(",")[0].strip()
    parts = first.split()
    return parts[0] if parts else ""


def _cdn_selectors(profile: ForumProfile, attr: str) -> list[str]:
    return [f'img[{attr}*="{host}"]' for host in profile.image_cdn_hosts]


def _avatar_src(page: Page) -> str:
    selectors = [f"{sel}[src]" for sel in _AVATAR_HINT_SELECTORS]
    return absolute_url(first_attr(page.soup, selectors, "src"), page.profile.origin)


def _cdn_src(page: Page) -> str:
    selectors = _cdn_selectors(page.profile, "src")
    return absolute_url(first_attr(page.soup, selectors, "src"), page.profile.origin)


def _srcset(page: Page) -> str:
    selectors = [f"{sel}[srcset]" for sel in _AVATAR_HINT_SELECTORS]
    selectors += _cdn_selectors(page.profile, "srcset")
    srcset = first_attr(page.soup, selectors, "srcset")
    return absolute_url(first_srcset_url(srcset), page.profile.origin)


def _raw_cdn_url(page: Page) -> str:
    # Catches avatars that only appear inside inline scripts or JSON blobs.
    pattern = re.compile(
        r"https?://" + page.profile.avatar_raw_host_pattern + r"/[^\"' )]+",
        re.IGNORECASE,
    )
    m = pattern.search(page.html)
    return m.group(0) if m else ""


AVATAR_CASCADE = Cascade(
    "avatar",
    (
        ("avatar_src", _avatar_src),
        ("cdn_src", _cdn_src),
        ("srcset", _srcset),
        (RAW_REGEX_PREFIX + "cdn_url", _raw_cdn_url),
    ),
)


def find_avatar(
    soup: BeautifulSoup,
    html: str = "",
    profile: ForumProfile = DEFAULT_PROFILE,
) -> str:
    return AVATAR_CASCADE.run(Page(soup=soup, html=html, profile=profile))


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def upscale_avatar(avatar_url: str, profile: ForumProfile = DEFAULT_PROFILE) -> str:
    """Ask size-parameterized avatar services for a larger rendition.

    The size parameter is overwritten, never appended, so the transform is
    idempotent.  Unparseable URLs and other hosts are returned unchanged.
    """
    if not avatar_url:
        return ""
    try:
        parts = urlsplit(avatar_url)
        host = (parts.hostname or "").lower()
    except ValueError as exc:
        logger.debug("Cannot parse avatar URL %r: %s", avatar_url, exc)
        return avatar_url
    if not parts.scheme or not host:
        return avatar_url
    if not any(h.lower() in host for h in profile.upscale_hosts):
        return avatar_url

    param = profile.upscale_param
    size = str(profile.upscale_size)
    query: list[tuple[str, str]] = []
    replaced = False
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == param:
            if replaced:
                continue
            value = size
            replaced = True
        query.append((key, value))
    if not replaced:
        query.append((param, size))

    return urlunsplit(parts._replace(query=urlencode(query)))
