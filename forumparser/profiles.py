"""YAML-based forum profiles.

A profile tells the resolvers where a forum keeps its discussions, its user
profiles and its avatars.  Profiles file layout::

    default:
      origin: 7sage.com
    domains:
      forum.example.org:
        origin: forum.example.org
        discussion_prefix: /t/
        profile_prefix: /u/
        image_cdn_hosts: [avatars.example-cdn.net]
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, field_validator


class ForumProfile(BaseModel):
    """Site-specific knobs consumed by the field resolvers."""

    model_config = {"frozen": True}

    origin: str = "7sage.com"
    discussion_prefix: str = "/discussion/"
    profile_prefix: str = "/discussion/profile/"

    # Avatar hosting
    image_cdn_hosts: tuple[str, ...] = ("imagekit.io",)
    avatar_raw_host_pattern: str = r"ik\.imagekit\.io"
    upscale_hosts: tuple[str, ...] = ("gravatar.com",)
    upscale_param: str = "size"
    upscale_size: int = Field(default=192, gt=0)

    # Last-resort regex scans over the raw page text
    allow_raw_html_regex: bool = True

    @field_validator("origin", mode="before")
    @classmethod
    def strip_origin(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if "://" in v:
                v = urlparse(v).netloc
            return v.rstrip("/")
        return v

    @field_validator("discussion_prefix", "profile_prefix", mode="before")
    @classmethod
    def ensure_slashes(cls, v: Any) -> Any:
        if isinstance(v, str):
            stripped = v.strip().strip("/")
            return f"/{stripped}/" if stripped else "/"
        return v

    @field_validator("avatar_raw_host_pattern")
    @classmethod
    def check_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid avatar_raw_host_pattern {v!r}: {exc}") from exc
        return v

    @property
    def discussion_root(self) -> str:
        """The discussion prefix without its trailing slash, e.g. ``/discussion``."""
        return self.discussion_prefix.rstrip("/")

    @property
    def base_url(self) -> str:
        return f"https://{self.origin}{self.discussion_prefix}"


DEFAULT_PROFILE = ForumProfile()


def load_profile(path: str | Path, url: str = "") -> ForumProfile:
    """Load YAML profiles and return the merged profile for *url*.

    The longest ``domains`` key matching the URL's host (exactly or as a
    parent domain) is merged over ``default``.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    default = data.get("default", {}) if isinstance(data, dict) else {}
    domains = data.get("domains", {}) if isinstance(data, dict) else {}

    netloc = urlparse(url).netloc.lower()
    best_key = ""
    best_cfg: dict[str, Any] = {}
    if netloc and isinstance(domains, dict):
        for key, cfg in domains.items():
            if not isinstance(key, str) or not isinstance(cfg, dict):
                continue
            key_lower = key.lower()
            if (netloc == key_lower or netloc.endswith("." + key_lower)) and (
                len(key_lower) > len(best_key)
            ):
                best_key = key_lower
                best_cfg = cfg

    merged: dict[str, Any] = {}
    if isinstance(default, dict):
        merged.update(default)
    merged.update(best_cfg)
    return ForumProfile(**merged)
