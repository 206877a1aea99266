"""
Preview server - FastAPI application.

Serves the build output with a live-reload client injected into every
HTML page, plus the websocket the client listens on.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, Response
from fastapi.staticfiles import StaticFiles

from config import RELOAD_PATH
from .models import StatusResponse
from .reload import ReloadHub

NO_CACHE = {'Cache-Control': 'no-cache'}

RELOAD_CLIENT = (
    "<script>(function(){var l=location,"
    "s=new WebSocket((l.protocol==='https:'?'wss://':'ws://')+l.host+'%s');"
    "s.onmessage=function(e){var m=JSON.parse(e.data);"
    "if(m.type==='css'){document.querySelectorAll('link[rel=\"stylesheet\"]')"
    ".forEach(function(n){n.href=n.href.split('?')[0]+'?v='+Date.now();});}"
    "else if(m.type==='reload'){l.reload();}};})();</script>"
) % RELOAD_PATH

_BODY_CLOSE = re.compile(rb'</body\s*>', re.IGNORECASE)


def inject_reload_client(html: bytes) -> bytes:
    """
    Insert the live-reload client before the last </body> (or append it).

    Works on raw bytes so pages in any ASCII-compatible encoding are
    served unchanged apart from the inserted script.
    """
    client = RELOAD_CLIENT.encode('ascii')
    matches = list(_BODY_CLOSE.finditer(html))
    if not matches:
        return html + client
    pos = matches[-1].start()
    return html[:pos] + client + html[pos:]


class LiveReloadStaticFiles(StaticFiles):
    """StaticFiles that injects the reload client into HTML and disables caching."""

    async def get_response(self, path: str, scope) -> Response:
        response = await super().get_response(path, scope)
        if isinstance(response, FileResponse) and response.media_type == 'text/html':
            html = await run_in_threadpool(Path(response.path).read_bytes)
            return Response(
                inject_reload_client(html),
                status_code=response.status_code,
                headers={'Content-Type': 'text/html', **NO_CACHE},
            )
        response.headers.update(NO_CACHE)
        return response


def create_app(
    dist_dir: Path,
    hub: Optional[ReloadHub] = None,
    status_provider: Optional[Callable[[], StatusResponse]] = None,
) -> FastAPI:
    """
    Create and configure the preview application.

    Parameters
    ----------
    dist_dir : Path
        Directory to serve.
    hub : ReloadHub, optional
        Live-reload hub shared with the watch supervisor.
    status_provider : callable, optional
        Returns the current StatusResponse for GET /__status.

    Returns
    -------
    FastAPI
        Configured application instance.
    """
    hub = hub or ReloadHub()
    app = FastAPI(
        title="sitebuild preview",
        description="Serves the build output with live reload",
        version="0.1.0",
    )
    app.state.hub = hub

    @app.websocket(RELOAD_PATH)
    async def reload_socket(websocket: WebSocket):
        await hub.connect(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            hub.disconnect(websocket)

    @app.get("/__status", response_model=StatusResponse)
    async def status():
        if status_provider is not None:
            return status_provider()
        return StatusResponse(state="serving", clients=hub.client_count)

    # Mounted last: everything not matched above is a file under dist/
    app.mount(
        "/",
        LiveReloadStaticFiles(directory=str(dist_dir), html=True, check_dir=False),
        name="dist",
    )

    return app
