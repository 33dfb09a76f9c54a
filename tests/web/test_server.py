"""WebServer HTTP / WebSocket tests"""

import pytest
from fastapi.testclient import TestClient

from multistream.layout.geometry import Point, Rect, Size
from multistream.runtime import bootstrap
from multistream.web import create_app
from multistream.web.handlers import build_kwargs, to_jsonable
from multistream.web.server import error_status


@pytest.fixture
def components(tmp_path):
    return bootstrap(store_path=tmp_path / "layouts.json", attach_timer=False)


@pytest.fixture
def server(components):
    server = create_app(components)
    yield server
    server.close()


@pytest.fixture
def client(server):
    return TestClient(server.app)


def op(client, name, **args):
    return client.post("/api/ops", json={"op": name, "args": args})


class TestHelpers:
    def test_build_kwargs(self):
        kwargs = build_kwargs({
            "stream_id": "a",
            "origin": {"x": 1, "y": 2},
            "size": {"width": 300, "height": 200},
        })
        assert kwargs == {"stream_id": "a", "origin": Point(1.0, 2.0), "size": Size(300.0, 200.0)}

    def test_build_kwargs_malformed(self):
        with pytest.raises(KeyError):
            build_kwargs({"origin": {"x": 1}})

    def test_to_jsonable(self):
        assert to_jsonable([Rect(0, 0, 10, 10), True]) == [
            {"x": 0, "y": 0, "width": 10, "height": 10},
            True,
        ]

    def test_error_status(self):
        assert error_status(None) == 200
        assert error_status({"error": "NotFound"}) == 404
        assert error_status({"error": "DuplicateStream"}) == 409
        assert error_status({"error": "InvalidGeometry"}) == 422


class TestLayoutRoutes:
    def test_index(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "<svg" in response.text

    def test_get_layout(self, client, components):
        response = client.get("/api/layout")
        assert response.status_code == 200
        assert response.json()["template_id"] == components.manager.template.id

    def test_svg(self, client):
        response = client.get("/api/layout/svg")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")

    def test_text(self, client):
        op(client, "add_stream", stream_id="twitch:shroud")
        response = client.get("/api/layout/text")
        assert response.status_code == 200
        assert "twitch:shroud" in response.text

    def test_templates(self, client):
        ids = [t["id"] for t in client.get("/api/templates").json()]
        assert {"single", "grid2x2", "grid3x3", "grid4x4", "stack", "custom"} <= set(ids)

    def test_debug(self, client):
        op(client, "add_stream", stream_id="a")
        body = client.get("/api/debug").json()
        assert body["queue"]["depth"] == 0
        assert body["recent_errors"] == []
        assert body["counters"]["layout.op.ok{op=add_stream}"] == 1


class TestOperations:
    def test_add_stream(self, client, components):
        response = op(client, "add_stream", stream_id="a")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["result"]["stream_id"] == "a"
        assert [s["stream_id"] for s in body["layout"]["slots"]] == ["a"]
        assert components.playback.playing == {"a"}

    def test_not_found(self, client):
        response = op(client, "set_focus", stream_id="ghost")
        assert response.status_code == 404
        assert response.json()["error"]["error"] == "NotFound"

    def test_duplicate(self, client):
        op(client, "add_stream", stream_id="a")
        response = op(client, "add_stream", stream_id="a")
        assert response.status_code == 409
        assert response.json()["error"]["reason"] == "duplicate_stream"

    def test_template_locked(self, client):
        op(client, "add_stream", stream_id="a")
        response = op(client, "move_slot", stream_id="a", origin={"x": 10, "y": 10})
        assert response.status_code == 409

    def test_unknown_operation(self, client):
        assert op(client, "explode").status_code == 400

    def test_missing_argument(self, client, components):
        op(client, "add_stream", stream_id="a")
        response = op(client, "add_stream")

        assert response.status_code == 400
        assert components.manager.stream_ids == ["a"]
        assert op(client, "add_stream", stream_id="b").status_code == 200

    def test_malformed_geometry(self, client):
        response = op(client, "move_slot", stream_id="a", origin={"x": 1})
        assert response.status_code == 400

    def test_manual_geometry(self, client):
        op(client, "set_template", template="custom")
        op(client, "add_stream", stream_id="a")
        op(client, "resize_slot", stream_id="a", size={"width": 400, "height": 300})
        response = op(client, "move_slot", stream_id="a", origin={"x": 50, "y": 60})

        assert response.status_code == 200
        assert response.json()["result"]["frame"] == {"x": 50, "y": 60, "width": 400, "height": 300}


class TestGestureRoute:
    def test_double_tap(self, client):
        op(client, "add_stream", stream_id="a")
        client.post("/api/gesture", json={"kind": "tap", "target": "a", "timestamp": 1.0})
        response = client.post("/api/gesture", json={"kind": "tap", "target": "a", "timestamp": 1.1})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["results"][0]["intent"]["kind"] == "toggle_fullscreen"
        assert body["layout"]["fullscreen_stream_id"] == "a"

    def test_failed_intent(self, client):
        response = client.post("/api/gesture", json={"kind": "close", "target": "ghost"})
        body = response.json()
        assert body["ok"] is False
        assert body["results"][0]["error"]["reason"] == "not_found"

    def test_unknown_kind(self, client):
        response = client.post("/api/gesture", json={"kind": "wiggle"})
        assert response.status_code == 400


class TestNamedLayouts:
    def test_save_apply_delete(self, client, components):
        op(client, "add_stream", stream_id="a")
        op(client, "add_stream", stream_id="b")

        response = client.put("/api/layouts/evening")
        assert response.json() == {"ok": True, "name": "evening"}
        assert client.get("/api/layouts").json() == {"names": ["evening"]}
        stored = client.get("/api/layouts/evening").json()
        assert [s["stream_id"] for s in stored["slots"]] == ["a", "b"]

        op(client, "remove_stream", stream_id="a")
        response = client.post("/api/layouts/evening/apply")
        assert response.status_code == 200
        assert components.manager.stream_ids == ["a", "b"]

        assert client.delete("/api/layouts/evening").status_code == 200
        assert client.get("/api/layouts").json() == {"names": []}

    def test_missing_layout(self, client):
        assert client.get("/api/layouts/nope").status_code == 404
        assert client.post("/api/layouts/nope/apply").status_code == 404
        assert client.delete("/api/layouts/nope").status_code == 404


class TestWebSocket:
    def test_snapshot_on_connect(self, client):
        with client.websocket_connect("/ws") as ws:
            message = ws.receive_json()
            assert message["type"] == "layout"
            assert message["layout"]["slots"] == []

    def test_op_message(self, client, server):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"action": "op", "op": "add_stream", "args": {"stream_id": "a"}})
            messages = [ws.receive_json(), ws.receive_json()]

            by_type = {m["type"]: m for m in messages}
            assert set(by_type) == {"op_result", "layout"}
            assert by_type["op_result"]["ok"] is True
            assert by_type["layout"]["layout"]["slots"][0]["stream_id"] == "a"

    def test_bad_messages(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json")
            assert ws.receive_json() == {"type": "error", "message": "invalid JSON"}
            ws.send_json({"action": "dance"})
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"action": "op", "op": "set_focus", "args": {"stream": "a"}})
            assert ws.receive_json()["type"] == "error"
            ws.send_json({"action": "snapshot"})
            assert ws.receive_json()["type"] == "layout"

    def test_client_removed_on_disconnect(self, client, server):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            assert len(server.clients) == 1
        assert server.clients == []
