"""Service settings for the forumparser HTTP API.

Every value can be overridden from the environment:

    FORUMPARSER_PROFILE  YAML profiles file (see forumparser.profiles)
    FORUMPARSER_ORIGIN   forum host, overrides the profile's origin
    PRESET_KEY           preset key used when a request names none
    PRESETS_PATH         JSON file backing the preset store
    FETCH_TIMEOUT        overall upstream fetch deadline in seconds
    FETCH_RETRIES        retries on transient upstream failures
    CORS_ORIGINS         comma-separated allowed origins, or "*"
    PORT                 listen port for ``python -m forumparser serve``
    DEBUG                "1" logs extraction signals at DEBUG level
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from forumparser.presets import DEFAULT_PRESET_KEY
from forumparser.profiles import DEFAULT_PROFILE, ForumProfile, load_profile

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_PRESETS_PATH = "./data/presets.json"
DEFAULT_FETCH_TIMEOUT = 20.0
DEFAULT_FETCH_RETRIES = 2
DEFAULT_PORT = 3000

# Headers/methods the browser front-end needs
CORS_ALLOW_HEADERS = ["Content-Type", "Authorization"]
CORS_ALLOW_METHODS = ["POST", "OPTIONS", "GET", "PUT"]


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class ServiceSettings:
    profile: ForumProfile = DEFAULT_PROFILE
    preset_key: str = DEFAULT_PRESET_KEY
    presets_path: str = DEFAULT_PRESETS_PATH
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    fetch_retries: int = DEFAULT_FETCH_RETRIES
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    port: int = DEFAULT_PORT
    debug: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ServiceSettings:
        env = os.environ if env is None else env

        profile = DEFAULT_PROFILE
        profile_path = env.get("FORUMPARSER_PROFILE", "").strip()
        if profile_path:
            profile = load_profile(profile_path)
        origin = env.get("FORUMPARSER_ORIGIN", "").strip()
        if origin:
            profile = ForumProfile(**{**profile.model_dump(), "origin": origin})

        cors_raw = env.get("CORS_ORIGINS", "*").strip() or "*"
        cors_origins = (
            ["*"] if cors_raw == "*"
            else [o.strip() for o in cors_raw.split(",") if o.strip()]
        )

        return cls(
            profile=profile,
            preset_key=env.get("PRESET_KEY", "").strip() or DEFAULT_PRESET_KEY,
            presets_path=env.get("PRESETS_PATH", "").strip() or DEFAULT_PRESETS_PATH,
            fetch_timeout=_env_float(env, "FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
            fetch_retries=_env_int(env, "FETCH_RETRIES", DEFAULT_FETCH_RETRIES),
            cors_origins=cors_origins,
            port=_env_int(env, "PORT", DEFAULT_PORT),
            debug=env.get("DEBUG", "") == "1",
        )
