"""Tests for the HTTP and WebSocket API."""
import pytest
from fastapi.testclient import TestClient
from esbook.main import app
from tests.test_utils import create_test_contents


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def create_notebook(client, name=None) -> str:
    response = client.post("/api/v1/notebooks/", json={"name": name} if name else None)
    assert response.status_code == 200
    return response.json()["notebook_id"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_list_get_delete_notebook(client):
    notebook_id = create_notebook(client, "Mine")

    listed = client.get("/api/v1/notebooks/").json()["notebooks"]
    assert {"id": notebook_id, "name": "Mine"} in listed

    notebook = client.get(f"/api/v1/notebooks/{notebook_id}").json()
    assert notebook["name"] == "Mine"
    assert len(notebook["cells"]) == 1

    assert client.delete(f"/api/v1/notebooks/{notebook_id}").status_code == 200
    assert client.get(f"/api/v1/notebooks/{notebook_id}").status_code == 404


def test_cell_crud_and_run(client):
    notebook_id = create_notebook(client)
    first_id = client.get(f"/api/v1/notebooks/{notebook_id}").json()["cells"][0]["id"]

    response = client.post(
        f"/api/v1/notebooks/{notebook_id}/cells",
        json={"input": "6 * 7", "after_cell_id": first_id}
    )
    cell_id = response.json()["cell_id"]

    run = client.post(f"/api/v1/notebooks/{notebook_id}/cells/{cell_id}/run").json()
    assert run == {"cell_id": cell_id, "state": "completed", "status": "success"}

    cells = client.get(f"/api/v1/notebooks/{notebook_id}").json()["cells"]
    assert [c["id"] for c in cells] == [first_id, cell_id]
    assert cells[1]["output"] == [{"type": "text", "text": "42"}]
    assert "42" in cells[1]["html"]

    update = client.put(f"/api/v1/notebooks/{notebook_id}/cells/{cell_id}", json={"input": "1"})
    assert update.status_code == 200

    assert client.delete(f"/api/v1/notebooks/{notebook_id}/cells/{cell_id}").status_code == 200
    cells = client.get(f"/api/v1/notebooks/{notebook_id}").json()["cells"]
    assert [c["id"] for c in cells] == [first_id]


def test_cell_errors(client):
    notebook_id = create_notebook(client)
    revision = client.get(f"/api/v1/notebooks/{notebook_id}").json()["revision"]
    cell_id = client.get(f"/api/v1/notebooks/{notebook_id}").json()["cells"][0]["id"]

    stale = client.put(
        f"/api/v1/notebooks/{notebook_id}/cells/{cell_id}",
        json={"input": "1", "expected_revision": revision + 5}
    )
    assert stale.status_code == 409

    assert client.put(f"/api/v1/notebooks/{notebook_id}/cells/missing", json={"input": "1"}).status_code == 404
    assert client.post(
        f"/api/v1/notebooks/{notebook_id}/cells", json={"after_cell_id": "missing"}
    ).status_code == 404
    assert client.post("/api/v1/notebooks/missing/cells", json={}).status_code == 404


def test_contents_put_and_render(client):
    notebook_id = create_notebook(client)
    contents = create_test_contents(
        [{"id": "a", "input": "'hi'", "output": [{"type": "text", "text": "<i>saved</i>"}]}],
        notebook_id=notebook_id
    )

    response = client.put(f"/api/v1/notebooks/{notebook_id}/contents", json=contents)
    assert response.status_code == 200
    assert response.json()["cells"][0]["output"] == [{"type": "text", "text": "<i>saved</i>"}]

    got = client.get(f"/api/v1/notebooks/{notebook_id}/contents").json()
    assert got["elements"] == contents["elements"]

    html = client.get(f"/api/v1/notebooks/{notebook_id}/render").text
    assert "&lt;i&gt;saved&lt;/i&gt;" in html

    bad = client.put(f"/api/v1/notebooks/{notebook_id}/contents", json={"nb_type": "wrong"})
    assert bad.status_code == 400


def test_run_and_clear_notebook(client):
    notebook_id = create_notebook(client)
    contents = create_test_contents(
        [{"id": "a", "input": "self.n = 1"}, {"id": "b", "input": "self.n + 1"}],
        notebook_id=notebook_id
    )
    client.put(f"/api/v1/notebooks/{notebook_id}/contents", json=contents)

    run = client.post(f"/api/v1/notebooks/{notebook_id}/run").json()
    assert run == {"states": ["completed", "completed"]}

    cleared = client.post(f"/api/v1/notebooks/{notebook_id}/clear").json()
    assert len(cleared["cells"]) == 1
    assert cleared["cells"][0]["input"] == ""


def test_websocket_run_cell_streams_output(client):
    notebook_id = create_notebook(client)
    cell_id = client.get(f"/api/v1/notebooks/{notebook_id}").json()["cells"][0]["id"]
    client.put(f"/api/v1/notebooks/{notebook_id}/cells/{cell_id}", json={"input": "print('streamed')"})

    with client.websocket_connect(f"/api/v1/ws/notebooks/{notebook_id}") as websocket:
        websocket.send_json({"type": "run_cell", "cellId": cell_id})
        messages = []
        while True:
            message = websocket.receive_json()
            messages.append(message)
            if message["type"] == "cell_status" and message["status"] != "running":
                break

    types = [m["type"] for m in messages]
    assert types[0] == "cell_status"
    assert "output_element_added" in types
    assert messages[-1]["status"] == "success"
    added = next(m for m in messages if m["type"] == "output_element_added")
    assert "streamed" in added["html"]


def test_websocket_errors(client):
    notebook_id = create_notebook(client)
    with client.websocket_connect(f"/api/v1/ws/notebooks/{notebook_id}") as websocket:
        websocket.send_json({"type": "run_cell", "cellId": "missing"})
        assert websocket.receive_json()["type"] == "error"
        websocket.send_json({"type": "teleport"})
        assert "Unknown message type" in websocket.receive_json()["message"]

    with client.websocket_connect("/api/v1/ws/notebooks/missing") as websocket:
        assert websocket.receive_json() == {"type": "error", "message": "Notebook not found"}
