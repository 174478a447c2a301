"""FastAPI server exposing the projected view.

Provides:
- REST API for the current view frame, the agent table, the axes and
  selection transitions, and the neighbours query settings
- WebSocket /ws/frames: Stream ViewFrame objects at the configured frame rate
- WebSocket /ws/control: Receive set_axes/select/clear_selection commands

The lifespan owns the edge client and the snapshot poller; both are released
when the app shuts down.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from arkview import __version__
from arkview.config import get_viewer_config
from arkview.projection.axes import ProjectionAxes
from arkview.source.client import EdgeClient
from arkview.viewer.poller import SnapshotPoller
from arkview.viewer.store import ViewerStore
from arkview.viewer.table import AgentRow, agent_row, agent_rows, selection_from_row_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from arkview.projection.projector import ViewFrame

logger = logging.getLogger(__name__)


# Global view state
_store: ViewerStore | None = None


def get_store() -> ViewerStore:
    """Get or create the global viewer store."""
    global _store
    if _store is None:
        _store = ViewerStore(axes=get_viewer_config().default_axes)
    return _store


def reset_store() -> None:
    """Drop the global store; the next get_store() builds a fresh one."""
    global _store
    _store = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: poll the edge while the app is serving."""
    config = get_viewer_config()
    store = get_store()
    async with (
        EdgeClient(config) as client,
        SnapshotPoller(client, store, interval=config.poll_interval) as poller,
    ):
        app.state.edge_client = client
        app.state.poller = poller
        try:
            yield
        finally:
            del app.state.edge_client
            del app.state.poller


app = FastAPI(
    title="arkview",
    description="Live orthographic viewer for edge agent telemetry",
    version=__version__,
    lifespan=lifespan,
)


# Pydantic models for REST requests/responses


class AxesRequest(BaseModel):
    """Request model for selecting the projection plane."""

    axes: ProjectionAxes = Field(description="Projection plane: xy, yz or xz")


class SelectionRequest(BaseModel):
    """Request model for replacing the selection set.

    Either an explicit id list or a table row-selection state.
    """

    agent_ids: list[str] | None = Field(default=None, description="Agent IDs to highlight")
    row_selection: dict[str, bool] | None = Field(
        default=None, description="Row selection state keyed by agent ID"
    )


class SelectionResponse(BaseModel):
    """Response model for the current selection set."""

    agent_ids: list[str] = Field(description="Highlighted agent IDs, sorted")


class ControlCommandResponse(BaseModel):
    """Response for view transitions."""

    success: bool = Field(description="Whether command succeeded")
    message: str = Field(description="Status message")


class QueryRequest(BaseModel):
    """Request model for changing the neighbours query cap."""

    neighbors_number: int | None = Field(
        default=None, ge=1, description="Maximum agents per query; null removes the cap"
    )


class QueryResponse(BaseModel):
    """Current neighbours query settings."""

    neighbors_number: int | None = Field(description="Maximum agents per query")
    change_detection: bool = Field(description="Whether only changed agents are requested")
    refreshed: bool = Field(
        default=False, description="Whether an immediate poll applied a new snapshot"
    )


def _frame_to_dict(frame: ViewFrame) -> dict[str, Any]:
    """Convert a ViewFrame dataclass to a JSON-serializable dict."""
    data = asdict(frame)
    data["axes"] = frame.axes.value
    data["camera"]["axes"] = frame.camera.axes.value
    return data


def _selection_response(selection: frozenset[str]) -> SelectionResponse:
    return SelectionResponse(agent_ids=sorted(selection))


# REST endpoints


@app.get("/api/view", tags=["view"])
async def get_view() -> dict[str, Any]:
    """Get the frame for the current snapshot, axes and selection."""
    return _frame_to_dict(get_store().frame())


@app.put("/api/view/axes", response_model=ControlCommandResponse, tags=["view"])
async def set_axes(request: AxesRequest) -> ControlCommandResponse:
    """Select the projection plane. Takes effect on the next frame."""
    axes = get_store().set_axes(request.axes)
    return ControlCommandResponse(success=True, message=f"Projection axes set to {axes.value}")


@app.get("/api/view/selection", response_model=SelectionResponse, tags=["view"])
async def get_selection() -> SelectionResponse:
    """Get the current selection set."""
    return _selection_response(get_store().selection)


@app.put("/api/view/selection", response_model=SelectionResponse, tags=["view"])
async def set_selection(request: SelectionRequest) -> SelectionResponse:
    """Replace the selection set.

    Raises:
        HTTPException: If neither agent_ids nor row_selection is given.
    """
    if request.agent_ids is not None:
        ids: frozenset[str] = frozenset(request.agent_ids)
    elif request.row_selection is not None:
        ids = selection_from_row_state(request.row_selection)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either agent_ids or row_selection is required",
        )
    return _selection_response(get_store().set_selection(ids))


@app.get("/api/agents", response_model=list[AgentRow], tags=["agents"])
async def get_agents() -> list[AgentRow]:
    """Get the agent table for the current snapshot."""
    return agent_rows(get_store().snapshot)


@app.get("/api/agents/{agent_id}", response_model=AgentRow, tags=["agents"])
async def get_agent(agent_id: str) -> AgentRow:
    """Get a single agent row by ID."""
    agent = get_store().snapshot.get(agent_id)
    if agent is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Agent '{agent_id}' not found",
        )
    return agent_row(agent)


def _running(request: Request) -> tuple[EdgeClient, SnapshotPoller]:
    """The lifespan-owned edge client and poller.

    Raises:
        HTTPException: 503 if the app is not polling the edge.
    """
    client = getattr(request.app.state, "edge_client", None)
    poller = getattr(request.app.state, "poller", None)
    if client is None or poller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Edge polling is not running",
        )
    return client, poller


def _query_response(client: EdgeClient, refreshed: bool = False) -> QueryResponse:
    return QueryResponse(
        neighbors_number=client.request.neighbors_number,
        change_detection=client.request.change_detection,
        refreshed=refreshed,
    )


@app.get("/api/query", response_model=QueryResponse, tags=["query"])
async def get_query(request: Request) -> QueryResponse:
    """Get the settings sent with each neighbours query."""
    client, _ = _running(request)
    return _query_response(client)


@app.put("/api/query", response_model=QueryResponse, tags=["query"])
async def set_query(body: QueryRequest, request: Request) -> QueryResponse:
    """Change the neighbours cap and poll once with it straight away.

    A failed immediate poll leaves the view as it was; the next timer tick
    uses the new cap either way.
    """
    client, poller = _running(request)
    client.set_neighbors_number(body.neighbors_number)
    logger.info("Neighbours cap set to %s", body.neighbors_number)
    refreshed = await poller.poll_once()
    return _query_response(client, refreshed=refreshed)


# WebSocket endpoints


@app.websocket("/ws/frames")
async def websocket_frames(websocket: WebSocket) -> None:
    """Stream ViewFrames at the configured frame rate.

    Every frame is derived afresh, camera included, so a client that resets
    its camera between frames is put back on the selected plane.
    """
    await websocket.accept()
    logger.info("Frame client connected: %s", websocket.client)
    store = get_store()
    interval = 1.0 / get_viewer_config().frame_rate
    loop = asyncio.get_running_loop()

    try:
        while True:
            start = loop.time()
            await websocket.send_json(_frame_to_dict(store.frame()))
            elapsed = loop.time() - start
            await asyncio.sleep(max(0.0, interval - elapsed))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("Frame streaming error: %s", str(e))
    logger.info("Frame client disconnected: %s", websocket.client)


def handle_control_command(store: ViewerStore, data: dict[str, Any]) -> dict[str, Any]:
    """Apply one control command to the store.

    Accepts commands:
    - {"type": "set_axes", "axes": "yz"} - Select the projection plane
    - {"type": "select", "agent_ids": ["a", "b"]} - Replace the selection set
    - {"type": "clear_selection"} - Clear the selection set

    Returns:
        Response dict with ``success`` and ``message``.
    """
    cmd_type = str(data.get("type", "")).lower()

    if cmd_type == "set_axes":
        try:
            axes = store.set_axes(str(data.get("axes", "")).lower())
        except ValueError:
            return {"success": False, "message": f"Invalid axes: {data.get('axes')}"}
        return {"success": True, "message": f"Projection axes set to {axes.value}"}
    if cmd_type == "select":
        agent_ids = data.get("agent_ids")
        if not isinstance(agent_ids, list):
            return {"success": False, "message": "agent_ids must be a list"}
        selection = store.set_selection(str(agent_id) for agent_id in agent_ids)
        return {"success": True, "message": f"Selected {len(selection)} agents"}
    if cmd_type == "clear_selection":
        store.clear_selection()
        return {"success": True, "message": "Selection cleared"}
    return {"success": False, "message": f"Unknown command: {cmd_type}"}


@app.websocket("/ws/control")
async def websocket_control(websocket: WebSocket) -> None:
    """Receive view commands; see handle_control_command."""
    await websocket.accept()
    logger.info("Control client connected: %s", websocket.client)
    store = get_store()

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json({"success": False, "message": "Expected an object"})
                continue
            await websocket.send_json(handle_control_command(store, data))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("Control WebSocket error: %s", str(e))
    logger.info("Control client disconnected: %s", websocket.client)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
