"""Edge neighbours client.

Queries ``POST /api/edge/neighbors/_query`` and validates the response
envelope. Individual agent records are left raw; sparse records are the
snapshot model's business, not a protocol error.

No retry or authentication: a failed query raises EdgeClientError and the
caller decides whether the tick is simply skipped.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from arkview.config import ViewerConfig, get_viewer_config
from arkview.model.snapshot import Snapshot, normalize

logger = logging.getLogger(__name__)

NEIGHBORS_QUERY_PATH = "/api/edge/neighbors/_query"


class EdgeClientError(Exception):
    """Exception raised when a neighbours query fails."""

    pass


class NeighborsQueryRequest(BaseModel):
    """Body of a neighbours query.

    Attributes:
        change_detection: Ask only for agents changed since the last query.
        neighbors_number: Optional cap on the number of agents returned.
    """

    model_config = ConfigDict(populate_by_name=True)

    change_detection: bool = Field(default=False, alias="changeDetection")
    neighbors_number: int | None = Field(default=None, ge=1, alias="neighborsNumber")

    def to_body(self) -> dict[str, Any]:
        """Wire representation, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class NeighborsQueryResponse(BaseModel):
    """Envelope of a neighbours query response.

    Attributes:
        timestamp: Opaque server timestamp.
        neighbors: Raw agent records keyed by agent id.
    """

    model_config = ConfigDict(extra="allow")

    timestamp: Any = None
    neighbors: dict[str, Any] = Field(default_factory=dict)

    @field_validator("neighbors", mode="before")
    @classmethod
    def null_neighbors_as_empty(cls, v: Any) -> Any:
        """An edge with no agents may send null."""
        return {} if v is None else v

    def to_snapshot(self) -> Snapshot:
        return normalize(self.neighbors, timestamp=self.timestamp)


class EdgeClient:
    """Async client for the edge neighbours endpoint.

    Example:
        >>> async with EdgeClient() as client:
        ...     snapshot = await client.fetch_snapshot()
    """

    def __init__(
        self,
        config: ViewerConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Optional ViewerConfig. If not provided, loads from environment.
            http_client: Optional pre-built httpx client (e.g. with a mock
                transport). The caller keeps ownership of a client passed in.
        """
        self._config = config or get_viewer_config()
        self._base_url = self._config.edge_url
        self._request = NeighborsQueryRequest(
            change_detection=self._config.change_detection,
            neighbors_number=self._config.neighbors_number,
        )
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._config.request_timeout)

    @property
    def request(self) -> NeighborsQueryRequest:
        return self._request

    def set_neighbors_number(self, neighbors_number: int | None) -> None:
        """Change the neighbours cap for subsequent queries."""
        self._request = NeighborsQueryRequest(
            change_detection=self._request.change_detection,
            neighbors_number=neighbors_number,
        )

    async def query(self) -> NeighborsQueryResponse:
        """Run one neighbours query.

        Returns:
            The validated response envelope.

        Raises:
            EdgeClientError: On connection failure, timeout, HTTP error status,
                or a body that is not a neighbours response.
        """
        url = f"{self._base_url}{NEIGHBORS_QUERY_PATH}"
        try:
            response = await self._http.post(url, json=self._request.to_body())
            response.raise_for_status()
            return NeighborsQueryResponse.model_validate(response.json())
        except httpx.ConnectError as e:
            logger.error("Failed to connect to edge at %s: %s", self._base_url, str(e))
            raise EdgeClientError(f"Cannot connect to edge at {self._base_url}") from e
        except httpx.TimeoutException as e:
            logger.error(
                "Neighbours query timed out after %s seconds", self._config.request_timeout
            )
            raise EdgeClientError(f"Request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error("Edge HTTP error: %s", e.response.status_code)
            raise EdgeClientError(f"HTTP error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Edge transport error: %s", str(e))
            raise EdgeClientError(f"Transport error: {e}") from e
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("Malformed neighbours response: %s", str(e))
            raise EdgeClientError(f"Malformed response: {e}") from e

    async def fetch_snapshot(self) -> Snapshot:
        """Query the edge and normalize the result into a Snapshot."""
        return (await self.query()).to_snapshot()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> EdgeClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
