# larrix/dev/server.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, RedirectResponse, Response, StreamingResponse

from ..console import Console
from ..settings import Settings, settings as default_settings
from .broadcaster import Broadcaster

log = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
}
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Access-Control-Allow-Origin": "*",
}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Connection": "keep-alive",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), CONTENT_TYPE_OCTET_STREAM)

def resolve_static(staging_root: Path, url_path: str) -> Optional[Path]:
    """Map a request path onto the staging tree; None if it points outside."""
    root = Path(staging_root).resolve()
    rel = url_path.lstrip("/")
    target = root / rel
    if url_path.endswith("/"):
        target = target / "index.html"
    target = target.resolve()
    if root not in target.parents:
        return None
    return target


def create_app(
    staging_root: Path,
    broadcaster: Broadcaster,
    settings: Settings = default_settings,
    console: Optional[Console] = None,
) -> FastAPI:
    console = console or Console()
    staging_root = Path(staging_root)
    events_path = settings.EVENTS_PATH

    app = FastAPI(title="Larrix dev server", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.broadcaster = broadcaster
    app.state.staging_root = staging_root

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # ---------- live reload push stream ----------
    @app.options(events_path, include_in_schema=False)
    def events_preflight():
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    @app.get(events_path, include_in_schema=False)
    async def events(request: Request):
        console.step("dev", f"Request: {request.method} {request.url.path}")
        client = broadcaster.register()

        async def stream():
            try:
                async for frame in client.stream():
                    yield frame
            finally:
                broadcaster.unregister(client)

        return StreamingResponse(stream(), media_type="text/event-stream", headers=EVENT_STREAM_HEADERS)

    # ---------- static files from the staging tree ----------
    @app.get("/", include_in_schema=False)
    def root_redirect():
        return RedirectResponse("/popup/", status_code=302)

    @app.get("/{url_path:path}", include_in_schema=False)
    def static_file(url_path: str, request: Request):
        console.step("dev", f"Request: {request.method} {request.url.path}")
        target = resolve_static(staging_root, request.url.path)
        if target is None or not target.is_file():
            console.error(f"Error serving file {request.url.path}: not found")
            return PlainTextResponse("Not Found", status_code=404)
        try:
            body = target.read_bytes()
        except OSError as e:
            console.error(f"Error serving file {target}: {e}")
            return PlainTextResponse("Not Found", status_code=404)
        return Response(content=body, media_type=content_type_for(target))

    return app
