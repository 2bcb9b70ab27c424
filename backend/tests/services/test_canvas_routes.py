"""Canvas Routes - end-to-end through FastAPI with fake AI and SQLite.

Tests:
    - Create -> generate -> snapshot carries React Flow graph
    - Compose flow over HTTP; illegal transitions answer 409
    - Brainstorm answers 202 Loading, panel later Loaded
    - Save / list / load / delete projects
    - Export PNG with Content-Disposition; empty canvas 204
    - Health probes
"""

from uuid import UUID

import pytest

from mindcanvas.api.routes.canvas_helpers import _workspaces


async def _canvas(client) -> str:
    res = await client.post("/api/v1/canvases")
    assert res.status_code == 201
    return res.json()["id"]


async def _generated_canvas(client, topic="Healthy Snacks") -> str:
    canvas_id = await _canvas(client)
    res = await client.post(
        f"/api/v1/canvases/{canvas_id}/generate", json={"topic": topic},
    )
    assert res.status_code == 200
    return canvas_id


async def test_create_canvas_is_empty_and_idle(client):
    res = await client.post("/api/v1/canvases")
    body = res.json()
    assert body["mode"] == "idle"
    assert body["graph"] == {"nodes": [], "edges": []}
    assert body["panel"]["status"] == "empty"


async def test_unknown_canvas_404(client):
    res = await client.get("/api/v1/canvases/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_generate_returns_flow_graph(client):
    canvas_id = await _generated_canvas(client)
    body = (await client.get(f"/api/v1/canvases/{canvas_id}")).json()
    assert body["name"] == "Healthy Snacks"
    assert len(body["graph"]["nodes"]) == 9
    root = body["graph"]["nodes"][0]
    assert root["type"] == "root"
    assert root["position"] == {"x": 0.0, "y": 0.0}
    assert root["data"]["brainstormable"] is True
    edge = body["graph"]["edges"][0]
    assert edge["type"] == "smoothstep"
    assert edge["animated"] is True


async def test_generate_blank_topic_is_validation_error(client):
    canvas_id = await _canvas(client)
    res = await client.post(
        f"/api/v1/canvases/{canvas_id}/generate", json={"topic": "   "},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_generation_failure_keeps_graph(client, generator):
    canvas_id = await _generated_canvas(client)
    generator.fail = True
    res = await client.post(
        f"/api/v1/canvases/{canvas_id}/generate", json={"topic": "Other"},
    )
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "GENERATION_FAILED"
    body = (await client.get(f"/api/v1/canvases/{canvas_id}")).json()
    assert body["name"] == "Healthy Snacks"


async def test_compose_flow(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"
    assert (await client.post(f"{base}/compose")).json()["mode"] == "composing"
    assert (await client.post(f"{base}/compose")).status_code == 409

    res = await client.put(f"{base}/compose", json={"label": "Idea X"})
    assert res.json()["draft"] == "Idea X"
    body = (await client.post(f"{base}/compose/confirm")).json()

    assert body["mode"] == "idle"
    manual = [n for n in body["graph"]["nodes"] if n["type"] == "manual"]
    assert [n["data"]["label"] for n in manual] == ["Idea X"]
    assert len(body["graph"]["edges"]) == 8
    assert {"type": "success", "message": "Node added", "code": None} in body["notifications"]


async def test_select_while_composing_is_409(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"
    await client.post(f"{base}/compose")
    res = await client.post(f"{base}/nodes/b1/select")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ILLEGAL_TRANSITION"


async def test_connect_drag_and_delete(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"

    body = (await client.post(f"{base}/edges", json={"source": "b1-l1", "target": "b2-l1"})).json()
    assert len(body["graph"]["edges"]) == 9

    await client.post(f"{base}/nodes/b1/drag/start")
    body = (await client.patch(f"{base}/nodes/b1/position", json={"x": 500, "y": 10})).json()
    assert body["dragging_node_id"] == "b1"
    body = (await client.post(f"{base}/nodes/b1/drag/end")).json()
    b1 = next(n for n in body["graph"]["nodes"] if n["id"] == "b1")
    assert b1["position"] == {"x": 500.0, "y": 10.0}

    body = (await client.delete(f"{base}/nodes/b1")).json()
    assert all(n["id"] != "b1" for n in body["graph"]["nodes"])
    assert all("b1" not in (e["source"], e["target"]) for e in body["graph"]["edges"])

    assert (await client.delete(f"{base}/nodes/ghost")).status_code == 404


async def test_end_drag_of_wrong_node_409(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"
    await client.post(f"{base}/nodes/b1/drag/start")
    res = await client.post(f"{base}/nodes/b2/drag/end")
    assert res.status_code == 409
    body = (await client.get(base)).json()
    assert body["dragging_node_id"] == "b1"


async def test_brainstorm_then_panel_loaded(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"
    res = await client.post(f"{base}/nodes/b1/brainstorm")
    assert res.status_code == 202
    assert res.json()["status"] == "loading"

    await _workspaces[UUID(canvas_id)].wait_for_background()
    panel = (await client.get(f"{base}/panel")).json()
    assert panel["status"] == "loaded"
    assert panel["node_id"] == "b1"
    assert panel["content"]["angles"] == ["Healthy Snacks 1 angle"]

    body = (await client.post(f"{base}/panel/close")).json()
    assert body["panel"]["status"] == "empty"


async def test_save_list_load_delete(client):
    canvas_id = await _generated_canvas(client)
    base = f"/api/v1/canvases/{canvas_id}"
    await client.put(f"{base}/name", json={"name": "Snack Plan"})
    await client.put(f"{base}/viewport", json={"x": 1, "y": 2, "zoom": 0.5})

    body = (await client.post(f"{base}/save")).json()
    project_id = body["project_id"]
    assert project_id is not None

    projects = (await client.get("/api/v1/projects")).json()["projects"]
    assert [(p["id"], p["name"], p["node_count"]) for p in projects] == [
        (project_id, "Snack Plan", 9),
    ]

    other = await _canvas(client)
    body = (await client.post(f"/api/v1/canvases/{other}/load/{project_id}")).json()
    assert body["name"] == "Snack Plan"
    assert body["viewport"] == {"x": 1.0, "y": 2.0, "zoom": 0.5}
    assert len(body["graph"]["nodes"]) == 9
    assert all(n["data"]["brainstormable"] for n in body["graph"]["nodes"])

    assert (await client.delete(f"/api/v1/projects/{project_id}")).status_code == 204
    assert (await client.get("/api/v1/projects")).json()["projects"] == []
    assert (await client.delete(f"/api/v1/projects/{project_id}")).status_code == 404


async def test_save_empty_canvas_stores_nothing(client):
    canvas_id = await _canvas(client)
    body = (await client.post(f"/api/v1/canvases/{canvas_id}/save")).json()
    assert body["project_id"] is None
    assert (await client.get("/api/v1/projects")).json()["projects"] == []


async def test_load_unknown_project_404(client):
    canvas_id = await _canvas(client)
    res = await client.post(f"/api/v1/canvases/{canvas_id}/load/nope")
    assert res.status_code == 404


async def test_export_png(client):
    canvas_id = await _generated_canvas(client)
    res = await client.get(f"/api/v1/canvases/{canvas_id}/export")
    assert res.status_code == 200
    assert res.headers["content-type"] == "image/png"
    assert res.headers["content-disposition"] == (
        'attachment; filename="mindmap-Healthy Snacks.png"; '
        "filename*=UTF-8''mindmap-Healthy%20Snacks.png"
    )
    assert res.content.startswith(b"\x89PNG")


async def test_export_vietnamese_topic(client):
    canvas_id = await _generated_canvas(client, topic="Chiến lược marketing")
    res = await client.get(f"/api/v1/canvases/{canvas_id}/export")
    assert res.status_code == 200
    disposition = res.headers["content-disposition"]
    assert 'filename="mindmap-Chien luoc marketing.png"' in disposition
    assert "filename*=UTF-8''mindmap-Chi%E1%BA%BFn" in disposition
    notes = (await client.get(f"/api/v1/canvases/{canvas_id}")).json()["notifications"]
    assert "Export ready" in [n["message"] for n in notes]


async def test_export_empty_canvas_204(client):
    canvas_id = await _canvas(client)
    res = await client.get(f"/api/v1/canvases/{canvas_id}/export")
    assert res.status_code == 204
    assert res.content == b""


async def test_close_canvas(client):
    canvas_id = await _canvas(client)
    assert (await client.delete(f"/api/v1/canvases/{canvas_id}")).status_code == 204
    assert (await client.get(f"/api/v1/canvases/{canvas_id}")).status_code == 404


@pytest.mark.parametrize("path, expected", [
    ("/api/v1/health/", 200),
    ("/api/v1/health/ready", 200),
])
async def test_health(client, path, expected):
    assert (await client.get(path)).status_code == expected


async def test_generate_accepts_bare_keyword(client):
    canvas_id = await _canvas(client)
    res = await client.post(f"/api/v1/canvases/{canvas_id}/generate", json="Coffee")
    assert res.status_code == 200
    assert res.json()["name"] == "Coffee"


async def test_readiness_counts_open_canvases(client):
    before = (await client.get("/api/v1/health/ready")).json()["open_canvases"]
    await _canvas(client)
    body = (await client.get("/api/v1/health/ready")).json()
    assert body["checks"] == {"database": "healthy"}
    assert body["open_canvases"] == before + 1
