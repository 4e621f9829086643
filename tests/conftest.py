"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def discussion_html() -> str:
    return _read_fixture("discussion.html")


@pytest.fixture
def jsonld_html() -> str:
    return _read_fixture("jsonld_only.html")


@pytest.fixture
def minimal_html() -> str:
    return _read_fixture("minimal.html")


@pytest.fixture
def relative_time_html() -> str:
    return _read_fixture("relative_time.html")
