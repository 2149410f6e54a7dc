"""
HTTP front end of the presenter

A FastAPI application over one shared ZettelstoreClient. Handlers are
synchronous; FastAPI runs them in its thread pool. Each slide-set request
builds its own SlideSet, completes it under a time limit, and renders it.

Routes:
    GET /health      liveness probe
    GET /            home zettel
    GET /l           zettel list, query string forwarded to the Zettelstore
    GET /{zid}       slide-set table of contents, or the zettel as page
    GET /sl/{zid}    Slidy show
    GET /rv/{zid}    reveal.js show
    GET /ho/{zid}    handout
    GET /c/{zid}     raw zettel content (images)
"""

import threading
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .client import ZettelNotFound, ZettelstoreClient, ZettelstoreError
from .completion import CompletionCancelled, SlideSetInvariantError
from .log import LOG, state_connectToLogger
from .meta import string_get
from .render import (
    RENDERERS,
    errorPage_render,
    slideTOC_render,
    zettelList_render,
    zettelPage_render,
)
from .slideset import SlideSet
from .zjson import ZettelID
from ..config.settings import AppSettings, appsettings
from ..models.presenter import KEY_ROLE, KEY_SYNTAX, ZID_DEFAULT_HOME, PresenterConfig
from ..models.state import ProgramState

# Media types of raw content served by /c/{zid}, by zettel syntax
MEDIA_TYPES = {
    "gif": "image/gif",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
    "webp": "image/webp",
}


def zid_check(zid: str) -> ZettelID:
    """Validate a path segment as zettel identifier, 404 otherwise"""
    result = ZettelID(zid)
    if not result.is_valid():
        raise HTTPException(status_code=404, detail=f"Not a zettel identifier: {zid}")
    return result


def slideset_build(client: ZettelstoreClient, zid: ZettelID, timeout: float) -> SlideSet:
    """
    Load, fill, and complete the slide set of a zettel.

    Args:
        client: Zettelstore access
        zid: Identifier of the slide-set zettel
        timeout: Seconds completion may take before it is cancelled

    Returns:
        Completed SlideSet

    Raises:
        HTTPException: 404 unknown zettel, 502 Zettelstore failure,
            504 completion timed out, 500 broken slide-set bookkeeping
    """
    try:
        order = client.order_fetch(zid)
    except ZettelNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ZettelstoreError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    slideset = SlideSet(zid, order.meta)
    for entry in order.entries:
        if not entry.zid.is_valid():
            LOG(f"Slide set {zid}: skipping invalid entry {entry.zid!r}", level=1)
            continue
        slideset.slide_add(entry.zid, client)

    cancel = threading.Event()
    timer = threading.Timer(timeout, cancel.set)
    timer.daemon = True
    timer.start()
    try:
        slideset.completion(client, cancel)
    except CompletionCancelled as e:
        raise HTTPException(status_code=504, detail=f"Slide set {zid}: {e}") from e
    except SlideSetInvariantError as e:
        LOG(f"Slide set {zid}: {e}", level=1)
        raise HTTPException(status_code=500, detail=f"Slide set {zid}: {e}") from e
    finally:
        timer.cancel()
    return slideset


def app_create(
    client: ZettelstoreClient,
    config: PresenterConfig,
    state: ProgramState,
    settings: Optional[AppSettings] = None,
) -> FastAPI:
    """
    Build the presenter application.

    Args:
        client: Shared Zettelstore client
        config: Presenter defaults (slide-set role, author, ...)
        state: Program state; its verbosity governs request logging
        settings: Application settings, defaults to the global ones

    Returns:
        FastAPI application
    """
    settings = settings or appsettings
    app = FastAPI(title="Zettel Presenter", docs_url=None, redoc_url=None)

    @app.middleware("http")
    async def logger_connect(request: Request, call_next):
        state_connectToLogger(state)
        LOG(f"{request.method} {request.url.path}", level=3)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def error_page(request: Request, exc: StarletteHTTPException):
        LOG(f"{request.url.path}: {exc.status_code} {exc.detail}", level=2)
        return HTMLResponse(
            errorPage_render(f"Error {exc.status_code}", str(exc.detail)),
            status_code=exc.status_code,
        )

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    def zettel_show(zid: ZettelID) -> HTMLResponse:
        try:
            meta = client.meta_fetch(zid)
            if string_get(meta, KEY_ROLE) == config.slideset_role:
                return HTMLResponse(slideTOC_render(client.order_fetch(zid)))
            return HTMLResponse(zettelPage_render(client.zettel_fetch(zid), settings))
        except ZettelNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except ZettelstoreError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

    @app.get("/", response_class=HTMLResponse)
    def home():
        return zettel_show(ZID_DEFAULT_HOME)

    @app.get("/l", response_class=HTMLResponse)
    def zettel_list(request: Request):
        try:
            entries = client.zettel_list(dict(request.query_params))
        except ZettelstoreError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return HTMLResponse(zettelList_render(entries))

    def slideset_show(kind: str, zid: str) -> HTMLResponse:
        slideset = slideset_build(client, zid_check(zid), settings.completion_timeout)
        renderer = RENDERERS[kind](settings)
        return HTMLResponse(renderer.render(slideset, config))

    @app.get("/sl/{zid}", response_class=HTMLResponse)
    def slidy_show(zid: str):
        return slideset_show("sl", zid)

    @app.get("/rv/{zid}", response_class=HTMLResponse)
    def reveal_show(zid: str):
        return slideset_show("rv", zid)

    @app.get("/ho/{zid}", response_class=HTMLResponse)
    def handout_show(zid: str):
        return slideset_show("ho", zid)

    @app.get("/c/{zid}")
    def content_get(zid: str):
        checked = zid_check(zid)
        try:
            syntax = string_get(client.meta_fetch(checked), KEY_SYNTAX)
            data = client.raw_fetch(checked)
        except ZettelNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except ZettelstoreError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        media_type = MEDIA_TYPES.get(syntax, "text/plain; charset=utf-8")
        return Response(content=data, media_type=media_type)

    @app.get("/{zid}", response_class=HTMLResponse)
    def zettel_get(zid: str):
        return zettel_show(zid_check(zid))

    return app
