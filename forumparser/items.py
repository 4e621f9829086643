"""Pydantic schema for extracted discussion records."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


class DiscussionRecord(BaseModel):
    """Canonical output of one extraction.

    Every field is a string; unresolved fields are ``""``, never ``None``.
    Instances are immutable.
    """

    model_config = {"frozen": True}

    # Identity
    source_url: str = ""

    # Always blank: the page heading is not scraped.
    title: str = ""

    # Scraped fields
    topic: str = ""
    topic_url: str = ""
    username: str = ""
    avatar_url: str = ""
    when_text: str = ""

    @field_validator("source_url", mode="before")
    @classmethod
    def keep_source_url(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator(
        "title", "topic", "topic_url", "username", "avatar_url", "when_text", mode="before",
    )
    @classmethod
    def coerce_blank(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def found_fields(self) -> list[str]:
        """Names of the scraped fields that resolved to a non-empty value."""
        return [
            name
            for name in ("topic", "topic_url", "username", "avatar_url", "when_text")
            if getattr(self, name)
        ]

    def to_payload(self) -> dict[str, str]:
        """Wire shape returned by the HTTP service under ``data``."""
        return {
            "url": self.source_url,
            "title": self.title,
            "topic": self.topic,
            "topicUrl": self.topic_url,
            "username": self.username,
            "avatar": self.avatar_url,
            "when": self.when_text,
        }
