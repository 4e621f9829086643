"""Unit tests for the field resolvers."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from forumparser.extractors.avatar import find_avatar, first_srcset_url, upscale_avatar
from forumparser.extractors.structured import (
    author_from_node,
    date_from_node,
    find_structured_node,
)
from forumparser.extractors.topic import find_topic, is_topic_href
from forumparser.extractors.username import find_username
from forumparser.extractors.when import find_when
from forumparser.profiles import ForumProfile

ORIGIN = "forum.example"
PROFILE = ForumProfile(origin=ORIGIN)


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


# ---------------------------------------------------------------------------
# Topic
# ---------------------------------------------------------------------------

class TestTopic:
    def test_skips_profile_root_and_permalinks(self):
        html = """
        <a href="/discussion/profile/jdoe">J. Doe</a>
        <a href="/discussion">Root</a>
        <a href="/discussion/">Root slash</a>
        <a href="/discussion/54829/some-post">Post</a>
        <a href="/discussion/categories/general">General</a>
        """
        topic, url = find_topic(_soup(html), PROFILE)
        assert topic == "General"
        assert url == "https://forum.example/discussion/categories/general"

    def test_document_order_among_survivors(self):
        html = """
        <a href="/discussion/categories/lsat">LSAT</a>
        <a href="/discussion/categories/general">General</a>
        """
        assert find_topic(_soup(html), PROFILE)[0] == "LSAT"

    def test_no_survivor_yields_blanks(self):
        html = '<a href="/discussion/profile/x">X</a><a href="/discussion/12">Post</a>'
        assert find_topic(_soup(html), PROFILE) == ("", "")

    def test_links_outside_discussion_ignored(self):
        html = '<a href="/blog/categories/general">Blog</a>'
        assert find_topic(_soup(html), PROFILE) == ("", "")

    @pytest.mark.parametrize(
        "href",
        [
            "/discussion/profile/jdoe",
            "/discussion",
            "/discussion/",
            "/discussion/54829",
            "/discussion/54829/",
            "/discussion/54829/some-post",
            "/discussion/54829?page=2",
        ],
    )
    def test_rejected_hrefs(self, href):
        assert not is_topic_href(href, PROFILE)

    @pytest.mark.parametrize(
        "href",
        [
            "/discussion/categories/general",
            "/discussion/2024-recap",
            "/discussion/tags/lr",
        ],
    )
    def test_accepted_hrefs(self, href):
        assert is_topic_href(href, PROFILE)

    def test_custom_prefixes(self):
        profile = ForumProfile(origin="f.example", discussion_prefix="/t", profile_prefix="/t/u")
        html = '<a href="/t/u/bob">Bob</a><a href="/t/99">Post</a><a href="/t/c/help">Help</a>'
        assert find_topic(_soup(html), profile) == ("Help", "https://f.example/t/c/help")


# ---------------------------------------------------------------------------
# Username
# ---------------------------------------------------------------------------

class TestUsername:
    def test_exact_profile_prefix(self):
        html = '<a href="/discussion/profile/jdoe"> J. Doe </a>'
        assert find_username(_soup(html), PROFILE) == "J. Doe"

    def test_absolute_profile_link(self):
        html = '<a href="https://forum.example/discussion/profile/amy">Amy</a>'
        assert find_username(_soup(html), PROFILE) == "Amy"

    def test_user_link_class(self):
        html = '<span class="UserLink-wrapper"><a href="/members/7">Sam</a></span>'
        assert find_username(_soup(html), PROFILE) == "Sam"

    def test_first_profile_link_without_text_falls_through(self):
        # The first selector's first match is an icon-only link; the full
        # link scan still finds a named one.
        html = """
        <a href="/discussion/profile/jdoe"><img src="/i.png"></a>
        <a href="/discussion/profile/jdoe">J. Doe</a>
        """
        assert find_username(_soup(html), PROFILE) == "J. Doe"

    def test_byline_without_link(self):
        html = '<div class="post-meta"><span class="byline">Written by Kim</span></div>'
        assert find_username(_soup(html), PROFILE) == "Written by Kim"

    def test_author_class_case_insensitive(self):
        html = '<span class="PostAuthor">Lee</span>'
        assert find_username(_soup(html), PROFILE) == "Lee"

    def test_jsonld_author_last(self, jsonld_html):
        assert find_username(_soup(jsonld_html), PROFILE) == "Maria K"

    def test_profile_link_beats_jsonld(self):
        html = """
        <script type="application/ld+json">
          {"@type": "DiscussionForumPosting", "author": {"name": "From JSON"}}
        </script>
        <a href="/discussion/profile/jdoe">From Link</a>
        """
        assert find_username(_soup(html), PROFILE) == "From Link"

    def test_nothing_found(self, minimal_html):
        assert find_username(_soup(minimal_html), PROFILE) == ""


# ---------------------------------------------------------------------------
# Avatar
# ---------------------------------------------------------------------------

class TestAvatar:
    def test_avatar_class_beats_cdn(self):
        html = """
        <img src="https://ik.imagekit.io/7sage/u9.png">
        <img class="Avatar" src="/images/u1.jpg">
        """
        assert find_avatar(_soup(html), html, PROFILE) == "https://forum.example/images/u1.jpg"

    def test_avatar_alt_hint(self):
        html = '<img alt="User avatar" src="//cdn.example/a.png">'
        assert find_avatar(_soup(html), html, PROFILE) == "https://cdn.example/a.png"

    def test_cdn_src(self):
        html = '<img class="photo" src="https://ik.imagekit.io/7sage/u9.png">'
        assert find_avatar(_soup(html), html, PROFILE) == "https://ik.imagekit.io/7sage/u9.png"

    def test_srcset_first_candidate(self):
        html = '<img class="avatar" srcset="/img/a-1x.png 1x, /img/a-2x.png 2x">'
        assert find_avatar(_soup(html), html, PROFILE) == "https://forum.example/img/a-1x.png"

    def test_cdn_srcset(self):
        html = '<img srcset="https://ik.imagekit.io/x/a.png 64w, https://ik.imagekit.io/x/b.png 128w">'
        assert find_avatar(_soup(html), html, PROFILE) == "https://ik.imagekit.io/x/a.png"

    def test_raw_html_regex_last_resort(self, relative_time_html):
        soup = _soup(relative_time_html)
        result = find_avatar(soup, relative_time_html, PROFILE)
        assert result == "https://ik.imagekit.io/7sage/avatars/u42.png?tr=w-64"

    def test_raw_html_regex_disabled(self, relative_time_html):
        profile = ForumProfile(origin=ORIGIN, allow_raw_html_regex=False)
        assert find_avatar(_soup(relative_time_html), relative_time_html, profile) == ""

    def test_nothing_found(self, minimal_html):
        assert find_avatar(_soup(minimal_html), minimal_html, PROFILE) == ""


class TestSrcset:
    def test_first_url(self):
        assert first_srcset_url("a.jpg 1x, b.jpg 2x") == "a.jpg"

    def test_single_url_without_descriptor(self):
        assert first_srcset_url(" a.jpg ") == "a.jpg"

    def test_empty(self):
        assert first_srcset_url("") == ""
        assert first_srcset_url(" , b.jpg") == ""


class TestUpscaleAvatar:
    def test_overwrites_size(self):
        url = "https://secure.gravatar.com/avatar/abc?size=64&d=mp"
        result = upscale_avatar(url)
        assert "size=192" in result
        assert "size=64" not in result
        assert "d=mp" in result

    def test_adds_missing_size(self):
        assert upscale_avatar("https://www.gravatar.com/avatar/abc") == (
            "https://www.gravatar.com/avatar/abc?size=192"
        )

    def test_idempotent(self):
        once = upscale_avatar("https://gravatar.com/avatar/abc?size=32&size=48")
        assert upscale_avatar(once) == once
        assert once.count("size=") == 1

    def test_other_hosts_untouched(self):
        url = "https://ik.imagekit.io/7sage/u1.png?size=64"
        assert upscale_avatar(url) == url

    def test_invalid_url_untouched(self):
        for bad in ("http://[::1", "not a url", "/relative/a.png"):
            assert upscale_avatar(bad) == bad

    def test_empty(self):
        assert upscale_avatar("") == ""

    def test_profile_size(self):
        profile = ForumProfile(upscale_size=256, upscale_param="s")
        assert upscale_avatar("https://gravatar.com/avatar/x?s=80", profile) == (
            "https://gravatar.com/avatar/x?s=256"
        )


# ---------------------------------------------------------------------------
# When
# ---------------------------------------------------------------------------

class TestWhen:
    def test_datetime_attribute_first(self):
        html = '<time datetime="2024-01-05T10:00:00Z">Jan 5</time>'
        assert find_when(_soup(html), html, PROFILE) == "2024-01-05T10:00:00Z"

    def test_time_text_normalized(self):
        html = "<time>3\n  days   ago</time>"
        assert find_when(_soup(html), html, PROFILE) == "3 days ago"

    def test_edited_phrase(self):
        html = "<div>Posted 2 days ago</div><div>Edited 5 minutes ago</div>"
        assert find_when(_soup(html), html, PROFILE) == "Edited 5 minutes ago"

    def test_edited_phrase_across_lines(self, relative_time_html):
        soup = _soup(relative_time_html)
        assert find_when(soup, relative_time_html, PROFILE) == "Edited 21 mins ago"

    def test_bare_ago_phrase(self):
        html = "<span>3 days ago</span>"
        assert find_when(_soup(html), html, PROFILE) == "3 days ago"

    def test_jsonld_date_modified_preferred(self, jsonld_html):
        assert find_when(_soup(jsonld_html), jsonld_html, PROFILE) == "2023-11-02T09:30:00Z"

    def test_jsonld_date_published_fallback(self):
        html = """
        <script type="application/ld+json">
          {"@type": "Article", "datePublished": "2022-02-02"}
        </script>
        """
        assert find_when(_soup(html), html, PROFILE) == "2022-02-02"

    def test_nothing_found(self, minimal_html):
        assert find_when(_soup(minimal_html), minimal_html, PROFILE) == ""


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------

class TestStructuredData:
    def test_malformed_block_is_absent(self):
        soup = _soup('<script type="application/ld+json">{oops</script>')
        assert find_structured_node(soup) is None

    def test_posting_preferred_over_webpage(self, jsonld_html):
        node = find_structured_node(_soup(jsonld_html))
        assert node is not None
        assert node["@type"] == "DiscussionForumPosting"

    def test_webpage_used_when_alone(self):
        soup = _soup(
            '<script type="application/ld+json">{"@type": "WebPage", "author": "Ann"}</script>',
        )
        assert author_from_node(find_structured_node(soup)) == "Ann"

    def test_type_list(self):
        soup = _soup(
            '<script type="application/ld+json">'
            '[{"@type": ["Thing", "BlogPosting"], "author": [{"name": "Bo"}]}]'
            "</script>",
        )
        assert author_from_node(find_structured_node(soup)) == "Bo"

    def test_unrelated_types_ignored(self):
        soup = _soup(
            '<script type="application/ld+json">{"@type": "Organization", "name": "7Sage"}</script>',
        )
        assert find_structured_node(soup) is None

    def test_readers_accept_none(self):
        assert author_from_node(None) is None
        assert date_from_node(None) is None

    def test_date_preference(self):
        assert date_from_node({"datePublished": "a", "dateModified": "b"}) == "b"
        assert date_from_node({"datePublished": "a"}) == "a"
