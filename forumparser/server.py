"""HTTP API around the extraction engine.

Routes:
    GET  /                   health check, plain-text ``ok``
    POST /scrape-discussion  ``{"url": ...}`` → ``{"ok": true, "data": {...}}``
    GET  /presets?key=       stored preset (``data: null`` if never saved)
    PUT  /presets            ``{"key"?: ..., "data": {...}}``

Every failure is reported as ``{"ok": false, "error": "..."}``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from forumparser.presets import PresetStore, PresetStoreError
from forumparser.query import FetchError, InvalidURLError, fetch
from forumparser.settings import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, ServiceSettings

logger = logging.getLogger(__name__)


class ScrapeRequest(BaseModel):
    url: Any = None


class PresetBody(BaseModel):
    key: Any = None
    data: Any = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(
    settings: ServiceSettings | None = None,
    store: PresetStore | None = None,
) -> FastAPI:
    settings = settings or ServiceSettings.from_env()
    store = store or PresetStore(settings.presets_path, default_key=settings.preset_key)

    if settings.debug:
        logging.getLogger("forumparser").setLevel(logging.DEBUG)

    app = FastAPI(title="forumparser")
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Request body must be a JSON object")

    @app.get("/", response_class=PlainTextResponse)
    def health():
        return "ok"

    @app.post("/scrape-discussion")
    def scrape_discussion(body: ScrapeRequest):
        url = str(body.url or "").strip()
        logger.debug("Received url: %r", url)
        try:
            record = fetch(
                url,
                profile=settings.profile,
                timeout=settings.fetch_timeout,
                max_retries=settings.fetch_retries,
            )
        except InvalidURLError as exc:
            return _error(400, str(exc))
        except FetchError as exc:
            logger.warning("Upstream fetch failed for %s: %s", url, exc)
            return _error(502, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error scraping %s", url)
            return _error(500, str(exc))

        logger.debug(
            "Scraped %s: title=(blank-by-design) found=%s", url, record.found_fields,
        )
        return {"ok": True, "data": record.to_payload()}

    @app.get("/presets")
    def get_presets(key: str | None = Query(default=None)):
        resolved = store.key_for(key)
        try:
            preset = store.load(resolved)
        except PresetStoreError as exc:
            logger.error("%s", exc)
            return _error(500, str(exc))
        return {
            "ok": True,
            "key": resolved,
            "data": preset.data if preset else None,
            "updated_at": preset.updated_at if preset else None,
        }

    @app.put("/presets")
    def put_presets(body: PresetBody):
        if not isinstance(body.data, dict):
            return _error(400, "Body must include { data: object }")
        try:
            preset = store.save(body.key, body.data)
        except PresetStoreError as exc:
            logger.error("%s", exc)
            return _error(500, str(exc))
        return {"ok": True, "key": preset.key}

    return app
