"""Web server

HTTP API:
    GET    /                      HTML page with the current layout diagram
    GET    /api/layout            current snapshot (previews included)
    GET    /api/layout/svg        SVG diagram of the current snapshot
    GET    /api/layout/text       plain-text diagram
    POST   /api/ops               {"op": ..., "args": {...}} -> one manager operation
    POST   /api/gesture           one raw gesture event
    GET    /api/templates         template catalog
    GET    /api/layouts           named layout names
    GET    /api/layouts/{name}    stored snapshot
    PUT    /api/layouts/{name}    save the current layout under a name
    POST   /api/layouts/{name}/apply   restore a stored layout
    DELETE /api/layouts/{name}    delete a named layout
    GET    /api/debug             supervisor queue / gesture state

WebSocket /ws: pushes {"type": "layout", ...} on every committed change or
preview, and accepts MessageHandler messages.
"""

import asyncio
from html import escape
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field

from ..errors import CapacityExceeded, DuplicateStream, LayoutError, NotFound, TemplateLocked
from ..layout.persistence import LayoutStore
from ..layout.templates import list_templates
from ..layout.types import LayoutSnapshot
from ..render.renderer import LayoutRenderer
from ..supervisor import LayoutSupervisor
from ..telemetry import get_logger
from .handlers import MessageHandler, run_gesture, run_operation

logger = get_logger(__name__)

# LayoutError -> HTTP status
_ERROR_STATUS: dict[type[LayoutError], int] = {
    NotFound: 404,
    DuplicateStream: 409,
    CapacityExceeded: 409,
    TemplateLocked: 409,
}


class OperationRequest(BaseModel):
    op: str
    args: dict[str, Any] = Field(default_factory=dict)


class GestureRequest(BaseModel):
    kind: str
    phase: str = "ended"
    target: str | None = None
    translation: dict[str, float] | None = None
    scale: float = 1.0
    timestamp: float | None = None


def error_status(error: dict | None) -> int:
    if error is None:
        return 200
    for cls, status in _ERROR_STATUS.items():
        if error["error"] == cls.__name__:
            return status
    return 422


class WebServer:
    """HTTP + WebSocket front end for one LayoutSupervisor."""

    def __init__(
        self,
        supervisor: LayoutSupervisor,
        store: LayoutStore | None = None,
        renderer: LayoutRenderer | None = None,
    ):
        self.app = FastAPI(title="MultiStream")
        self.supervisor = supervisor
        self.store = store or LayoutStore()
        self.clients: list[WebSocket] = []
        self._renderer = renderer or LayoutRenderer()
        self._pending: set[asyncio.Task] = set()

        self._handler = MessageHandler(
            supervisor=supervisor,
            store=self.store,
            broadcast=self.broadcast,
        )

        self._setup_routes()
        self._unsubscribe = supervisor.manager.subscribe(self._on_layout_update)

    def close(self) -> None:
        self._unsubscribe()

    def _on_layout_update(self, snapshot: LayoutSnapshot) -> None:
        """Manager subscriber; schedules a broadcast on the running loop."""
        if not self.clients:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.broadcast({"type": "layout", "layout": snapshot.to_dict()}))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _setup_routes(self):
        @self.app.get("/", response_class=HTMLResponse)
        async def index():
            titles = await self.supervisor.stream_titles()
            svg = self._renderer.render_svg(self.supervisor.manager.snapshot(), titles)
            return (
                "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
                f"<title>{escape(self.app.title)}</title></head>"
                f"<body>{svg}</body></html>"
            )

        @self.app.get("/api/layout")
        async def get_layout():
            return self.supervisor.manager.snapshot().to_dict()

        @self.app.get("/api/layout/svg")
        async def get_layout_svg():
            titles = await self.supervisor.stream_titles()
            try:
                svg = self._renderer.render_svg(self.supervisor.manager.snapshot(), titles)
            except Exception as e:
                logger.error(f"[Web] SVG render failed: {e}")
                return Response(
                    content=f"Render error: {e}",
                    status_code=500,
                    media_type="text/plain",
                )
            return Response(
                content=svg,
                media_type="image/svg+xml",
                headers={"Cache-Control": "no-cache"},
            )

        @self.app.get("/api/layout/text", response_class=PlainTextResponse)
        async def get_layout_text():
            titles = await self.supervisor.stream_titles()
            return self._renderer.render_text(self.supervisor.manager.snapshot(), titles)

        @self.app.post("/api/ops")
        async def post_operation(request: OperationRequest):
            try:
                result = await run_operation(self.supervisor, request.op, request.args)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            result["layout"] = self.supervisor.manager.snapshot().to_dict()
            status = 503 if result["dropped"] else error_status(result["error"])
            return JSONResponse(result, status_code=status)

        @self.app.post("/api/gesture")
        async def post_gesture(request: GestureRequest):
            try:
                result = await run_gesture(self.supervisor, request.model_dump())
            except (KeyError, ValueError) as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            result["layout"] = self.supervisor.manager.snapshot().to_dict()
            return result

        @self.app.get("/api/templates")
        async def get_templates():
            return [t.to_dict() for t in list_templates()]

        @self.app.get("/api/layouts")
        async def get_layouts():
            return {"names": self.store.list_names()}

        @self.app.get("/api/layouts/{name}")
        async def get_named_layout(name: str):
            snapshot = self.store.load(name)
            if snapshot is None:
                raise HTTPException(status_code=404, detail=f"No layout named {name!r}")
            return snapshot.to_dict()

        @self.app.put("/api/layouts/{name}")
        async def put_named_layout(name: str):
            if not self.store.save(name, self.supervisor.manager.serialize()):
                raise HTTPException(status_code=500, detail="Failed to save layout")
            return {"ok": True, "name": name}

        @self.app.post("/api/layouts/{name}/apply")
        async def apply_named_layout(name: str):
            snapshot = self.store.load(name)
            if snapshot is None:
                raise HTTPException(status_code=404, detail=f"No layout named {name!r}")
            command = await self.supervisor.execute("restore", snapshot=snapshot)
            if command is None:
                raise HTTPException(status_code=503, detail="Command queue full")
            body = {
                "ok": command.error is None,
                "error": command.error.to_dict() if command.error else None,
                "layout": self.supervisor.manager.snapshot().to_dict(),
            }
            return JSONResponse(body, status_code=error_status(body["error"]))

        @self.app.delete("/api/layouts/{name}")
        async def delete_named_layout(name: str):
            if not self.store.delete(name):
                raise HTTPException(status_code=404, detail=f"No layout named {name!r}")
            return {"ok": True, "name": name}

        @self.app.get("/api/debug")
        async def get_debug():
            return self.supervisor.debug_snapshot()

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            await websocket.accept()
            self.clients.append(websocket)
            try:
                await websocket.send_json(self._handler.snapshot_message())
                while True:
                    data = await websocket.receive_text()
                    await self._handler.handle(websocket, data)
            except WebSocketDisconnect:
                pass
            finally:
                if websocket in self.clients:
                    self.clients.remove(websocket)

    async def broadcast(self, data: dict):
        """Send to every connected client; drop clients that fail."""
        for client in list(self.clients):
            try:
                await client.send_json(data)
            except Exception as e:
                logger.debug(f"[Web] Dropping client after send failure: {e}")
                if client in self.clients:
                    self.clients.remove(client)
