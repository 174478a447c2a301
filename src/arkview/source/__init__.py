"""Data source: HTTP client for the edge neighbours query."""

from arkview.source.client import (
    NEIGHBORS_QUERY_PATH,
    EdgeClient,
    EdgeClientError,
    NeighborsQueryRequest,
    NeighborsQueryResponse,
)

__all__ = [
    "NEIGHBORS_QUERY_PATH",
    "EdgeClient",
    "EdgeClientError",
    "NeighborsQueryRequest",
    "NeighborsQueryResponse",
]
