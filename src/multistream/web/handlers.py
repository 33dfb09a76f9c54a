"""Request and WebSocket message handling

Shared by the HTTP routes and the WebSocket endpoint:
- build_kwargs: JSON args -> LayoutManager keyword arguments
- to_jsonable: operation results -> JSON-friendly values
- MessageHandler: WebSocket message dispatch
"""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import WebSocket

from ..gesture.types import GestureEvent
from ..layout.geometry import Point, Size
from ..layout.persistence import LayoutStore
from ..supervisor import LayoutSupervisor
from ..telemetry import get_logger

logger = get_logger(__name__)

_POINT_ARGS = {"origin", "position", "translation"}
_SIZE_ARGS = {"size"}


def build_kwargs(args: dict[str, Any]) -> dict[str, Any]:
    """Convert JSON arguments to the value types the manager expects.

    Raises:
        ValueError: a geometry argument is malformed
    """
    kwargs: dict[str, Any] = {}
    for key, value in args.items():
        if key in _POINT_ARGS and isinstance(value, dict):
            kwargs[key] = Point(float(value["x"]), float(value["y"]))
        elif key in _SIZE_ARGS and isinstance(value, dict):
            kwargs[key] = Size(float(value["width"]), float(value["height"]))
        else:
            kwargs[key] = value
    return kwargs


def to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


async def run_operation(supervisor: LayoutSupervisor, op: str, args: dict[str, Any]) -> dict:
    """Queue one operation, drain the queue, and describe the outcome.

    Raises:
        ValueError: unknown operation or malformed arguments
    """
    try:
        kwargs = build_kwargs(args)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed arguments for {op}: {e}") from e

    command = await supervisor.execute(op, **kwargs)
    if command is None:
        return {"ok": False, "op": op, "dropped": True, "error": None, "result": None}
    return {
        "ok": command.error is None,
        "op": op,
        "dropped": False,
        "error": command.error.to_dict() if command.error else None,
        "result": to_jsonable(command.result),
    }


async def run_gesture(supervisor: LayoutSupervisor, payload: dict[str, Any]) -> dict:
    """Feed one raw gesture event and drain the queue."""
    event = GestureEvent.from_dict(payload)
    command = supervisor.feed_gesture(event)
    await supervisor.process_queued()
    if command is None:
        return {"ok": False, "dropped": True, "results": []}
    results = to_jsonable(command.result or [])
    return {"ok": command.error is None, "dropped": False, "results": results}


@dataclass
class MessageHandler:
    """WebSocket message handler

    Messages are JSON objects:
        {"action": "op", "op": "add_stream", "args": {"stream_id": "twitch:x"}}
        {"action": "gesture", "event": {"kind": "tap", "target": "twitch:x"}}
        {"action": "snapshot"}
    """

    supervisor: LayoutSupervisor
    store: LayoutStore
    broadcast: Callable[[dict], Awaitable[None]]

    async def handle(self, websocket: WebSocket, data: str) -> None:
        try:
            msg = json.loads(data)
        except json.JSONDecodeError:
            await websocket.send_json({"type": "error", "message": "invalid JSON"})
            return

        action = msg.get("action")
        try:
            if action == "op":
                result = await run_operation(self.supervisor, msg["op"], msg.get("args", {}))
                await websocket.send_json({"type": "op_result", **result})
            elif action == "gesture":
                result = await run_gesture(self.supervisor, msg["event"])
                await websocket.send_json({"type": "gesture_result", **result})
            elif action == "snapshot":
                await websocket.send_json(self.snapshot_message())
            else:
                await websocket.send_json({"type": "error", "message": f"unknown action: {action}"})
        except (KeyError, ValueError) as e:
            logger.warning(f"[WebSocket] Bad message {action}: {e}")
            await websocket.send_json({"type": "error", "message": str(e)})

    def snapshot_message(self) -> dict:
        return {"type": "layout", "layout": self.supervisor.manager.snapshot().to_dict()}
