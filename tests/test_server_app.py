"""Tests for the FastAPI server application."""

from __future__ import annotations

import json
import math
from collections.abc import Iterator
from typing import Any

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from arkview.config import ViewerConfig
from arkview.model import Agent, Snapshot, Vector3
from arkview.projection import ProjectionAxes, project
from arkview.server.app import (
    _frame_to_dict,
    app,
    get_store,
    handle_control_command,
    reset_store,
)
from arkview.source import EdgeClient
from arkview.viewer import SnapshotPoller, ViewerStore


@pytest.fixture(autouse=True)
def fresh_store() -> Iterator[ViewerStore]:
    """Give every test its own global store."""
    reset_store()
    store = get_store()
    store.apply_snapshot(
        Snapshot(
            agents=(
                Agent(id="a", kind="car", position=Vector3(3, 4, 0)),
                Agent(id="b", kind="bus", position=Vector3(50, 1, 0)),
            )
        ),
        sequence=1,
    )
    yield store
    reset_store()


@pytest.fixture
def client() -> TestClient:
    """Create a test client; the lifespan (and so the poller) is not started."""
    return TestClient(app)


class TestViewEndpoints:
    """Tests for /api/view."""

    def test_get_view(self, client: TestClient) -> None:
        response = client.get("/api/view")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["axes"] == "xy"
        assert data["extent"] == 100.0
        assert data["sequence"] == 1
        assert data["grid"]["size"] == 200.0
        assert data["grid"]["divisions"] == 20
        assert data["camera"]["axes"] == "xy"
        assert data["camera"]["right"] == pytest.approx(110.0)
        assert [m["id"] for m in data["markers"]] == ["a", "b"]
        assert data["markers"][0]["position"] == [3.0, 4.0, 0.0]

    def test_set_axes(self, client: TestClient, fresh_store: ViewerStore) -> None:
        response = client.put("/api/view/axes", json={"axes": "yz"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True
        assert fresh_store.axes is ProjectionAxes.YZ
        assert client.get("/api/view").json()["camera"]["rotation"] == pytest.approx(
            [1.5707963, 1.5707963, 0.0]
        )

    def test_set_invalid_axes(self, client: TestClient, fresh_store: ViewerStore) -> None:
        response = client.put("/api/view/axes", json={"axes": "zz"})

        assert response.status_code == 422
        assert fresh_store.axes is ProjectionAxes.XY

    def test_set_selection_by_ids(self, client: TestClient) -> None:
        response = client.put("/api/view/selection", json={"agent_ids": ["b", "a", "b"]})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"agent_ids": ["a", "b"]}
        markers = client.get("/api/view").json()["markers"]
        assert all(m["selected"] and m["color"] == "red" for m in markers)

    def test_set_selection_by_row_state(self, client: TestClient) -> None:
        response = client.put(
            "/api/view/selection", json={"row_selection": {"a": True, "b": False}}
        )

        assert response.json() == {"agent_ids": ["a"]}
        assert client.get("/api/view/selection").json() == {"agent_ids": ["a"]}

    def test_set_selection_requires_payload(self, client: TestClient) -> None:
        response = client.put("/api/view/selection", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAgentEndpoints:
    """Tests for /api/agents."""

    def test_get_agents(self, client: TestClient) -> None:
        response = client.get("/api/agents")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [
            {"id": "a", "kind": "car", "x": 3.0, "y": 4.0, "z": 0.0},
            {"id": "b", "kind": "bus", "x": 50.0, "y": 1.0, "z": 0.0},
        ]

    def test_get_agent(self, client: TestClient) -> None:
        response = client.get("/api/agents/b")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["kind"] == "bus"

    def test_get_missing_agent(self, client: TestClient) -> None:
        response = client.get("/api/agents/zed")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "zed" in response.json()["detail"]


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy"}


class TestFrameToDict:
    """Tests for frame serialisation."""

    def test_enum_values_are_plain_strings(self) -> None:
        frame = project(Snapshot(), ProjectionAxes.XZ)

        data = _frame_to_dict(frame)

        assert data["axes"] == "xz"
        assert type(data["axes"]) is str
        assert data["camera"]["flip_vertical"] is True
        assert data["markers"] == []


class TestControlCommands:
    """Tests for handle_control_command()."""

    def test_set_axes(self, fresh_store: ViewerStore) -> None:
        result = handle_control_command(fresh_store, {"type": "set_axes", "axes": "XZ"})

        assert result["success"] is True
        assert fresh_store.axes is ProjectionAxes.XZ

    def test_invalid_axes(self, fresh_store: ViewerStore) -> None:
        result = handle_control_command(fresh_store, {"type": "set_axes", "axes": "q"})

        assert result["success"] is False
        assert fresh_store.axes is ProjectionAxes.XY

    def test_select_and_clear(self, fresh_store: ViewerStore) -> None:
        result = handle_control_command(fresh_store, {"type": "select", "agent_ids": ["a"]})
        assert result == {"success": True, "message": "Selected 1 agents"}
        assert fresh_store.selection == frozenset({"a"})

        handle_control_command(fresh_store, {"type": "clear_selection"})
        assert fresh_store.selection == frozenset()

    def test_select_requires_list(self, fresh_store: ViewerStore) -> None:
        result = handle_control_command(fresh_store, {"type": "select", "agent_ids": "a"})

        assert result["success"] is False

    def test_unknown_command(self, fresh_store: ViewerStore) -> None:
        result = handle_control_command(fresh_store, {"type": "zoom"})

        assert result == {"success": False, "message": "Unknown command: zoom"}


class TestWebSockets:
    """Tests for the WebSocket endpoints."""

    def test_frames_stream(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/frames") as websocket:
            first = websocket.receive_json()
            second = websocket.receive_json()

        assert first["axes"] == "xy"
        assert len(first["markers"]) == 2
        assert second["camera"] == first["camera"]

    def test_frames_follow_axes_change(self, client: TestClient) -> None:
        """Each streamed frame re-derives the camera from the current axes."""
        with client.websocket_connect("/ws/frames") as websocket:
            websocket.receive_json()
            client.put("/api/view/axes", json={"axes": "yz"})
            frame = websocket.receive_json()
            while frame["axes"] != "yz":
                frame = websocket.receive_json()

        assert frame["camera"]["position"][0] > 0
        assert frame["camera"]["screen_right"] == [0.0, 1.0, 0.0]

    def test_control_socket(self, client: TestClient, fresh_store: ViewerStore) -> None:
        with client.websocket_connect("/ws/control") as websocket:
            websocket.send_json({"type": "set_axes", "axes": "xz"})
            assert websocket.receive_json()["success"] is True
            websocket.send_json(["not", "an", "object"])
            assert websocket.receive_json()["success"] is False

        assert fresh_store.axes is ProjectionAxes.XZ

    def test_control_client_lifecycle_is_logged(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("INFO", logger="arkview.server.app"):
            with client.websocket_connect("/ws/control") as websocket:
                websocket.send_json({"type": "clear_selection"})
                websocket.receive_json()

        assert "Control client connected" in caplog.text
        assert "Control client disconnected" in caplog.text


@pytest.fixture
def edge_requests() -> Iterator[list[dict[str, Any]]]:
    """Install a running edge client and poller backed by a mock edge.

    The poller feeds a new, empty global store. Yields the request bodies the
    edge received.
    """
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "timestamp": 1,
                "neighbors": {
                    "c": {
                        "kind": "ship",
                        "transform": {"localTranslation": {"x": 1, "y": 1, "z": 1}},
                    }
                },
            },
        )

    edge = EdgeClient(
        config=ViewerConfig(edge_url="http://edge.test", _env_file=None),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    reset_store()
    app.state.edge_client = edge
    app.state.poller = SnapshotPoller(edge, get_store())
    yield bodies
    del app.state.edge_client
    del app.state.poller


class TestQueryEndpoints:
    """Tests for /api/query."""

    def test_not_running(self, client: TestClient) -> None:
        """Without the lifespan there is no edge client to configure."""
        response = client.put("/api/query", json={"neighbors_number": 5})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_get_query(self, client: TestClient, edge_requests: list[dict[str, Any]]) -> None:
        response = client.get("/api/query")

        assert response.json() == {
            "neighbors_number": None,
            "change_detection": False,
            "refreshed": False,
        }
        assert edge_requests == []

    def test_set_neighbors_number_polls_immediately(
        self,
        client: TestClient,
        edge_requests: list[dict[str, Any]],
    ) -> None:
        """The new cap is sent at once and its result replaces the snapshot."""
        response = client.put("/api/query", json={"neighbors_number": 5})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["neighbors_number"] == 5
        assert response.json()["refreshed"] is True
        assert edge_requests == [{"changeDetection": False, "neighborsNumber": 5}]
        assert get_store().snapshot.ids() == frozenset({"c"})
        assert get_store().sequence == 1

    def test_clear_neighbors_number(
        self, client: TestClient, edge_requests: list[dict[str, Any]]
    ) -> None:
        client.put("/api/query", json={"neighbors_number": 5})
        response = client.put("/api/query", json={"neighbors_number": None})

        assert response.json()["neighbors_number"] is None
        assert edge_requests[-1] == {"changeDetection": False}

    def test_rejects_non_positive_cap(
        self, client: TestClient, edge_requests: list[dict[str, Any]]
    ) -> None:
        response = client.put("/api/query", json={"neighbors_number": 0})

        assert response.status_code == 422
        assert edge_requests == []


class TestExtremeCoordinates:
    def test_view_with_huge_coordinate(
        self, client: TestClient, fresh_store: ViewerStore
    ) -> None:
        """A coordinate past the last finite decade still yields a frame."""
        fresh_store.apply_snapshot(
            Snapshot(agents=(Agent(id="far", kind="satellite", position=Vector3(1.5e308, 0, 0)),)),
            sequence=2,
        )

        response = client.get("/api/view")

        assert response.status_code == status.HTTP_200_OK
        assert math.isfinite(response.json()["grid"]["size"])
