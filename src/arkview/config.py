"""Viewer configuration loaded from the environment.

Settings are read from ``ARKVIEW_``-prefixed environment variables and an
optional ``.env`` file.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from arkview.projection.axes import ProjectionAxes

logger = logging.getLogger(__name__)


class ViewerConfig(BaseSettings):
    """Configuration for the telemetry viewer.

    Environment Variables:
        ARKVIEW_EDGE_URL: Base URL of the edge service (default: http://localhost:2237)
        ARKVIEW_POLL_INTERVAL: Seconds between neighbour queries (default: 1.0)
        ARKVIEW_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 5.0)
        ARKVIEW_NEIGHBORS_NUMBER: Cap on agents per response (default: unset)
        ARKVIEW_CHANGE_DETECTION: Ask the edge for changed agents only (default: false)
        ARKVIEW_DEFAULT_AXES: Initial projection plane, xy/yz/xz (default: xy)
        ARKVIEW_FRAME_RATE: Frames per second on /ws/frames (default: 30)
        ARKVIEW_HOST / ARKVIEW_PORT: Bind address of the viewer server
        ARKVIEW_LOG_LEVEL: Log level of the arkview and access loggers (default: INFO)
        ARKVIEW_LOG_FORMAT: text or json (default: text)

    Example:
        >>> config = ViewerConfig()  # Loads from environment
        >>> config = ViewerConfig(edge_url="http://edge:2237", poll_interval=0.5)
    """

    model_config = SettingsConfigDict(
        env_prefix="ARKVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    edge_url: str = Field(
        default="http://localhost:2237",
        description="Base URL of the edge service",
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0,
        le=60.0,
        description="Seconds between neighbour queries",
    )
    request_timeout: float = Field(
        default=5.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    neighbors_number: int | None = Field(
        default=None,
        ge=1,
        description="Maximum number of neighbours requested per query",
    )
    change_detection: bool = Field(
        default=False,
        description="Request only agents changed since the previous query",
    )
    default_axes: ProjectionAxes = Field(
        default=ProjectionAxes.XY,
        description="Projection plane selected at startup",
    )
    frame_rate: float = Field(
        default=30.0,
        gt=0,
        le=120.0,
        description="Frames per second streamed on /ws/frames",
    )
    host: str = Field(default="127.0.0.1", description="Viewer bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Viewer bind port")
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")
    log_format: Literal["text", "json"] = Field(default="text", description="Log line format")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept level names case-insensitively; WARN means WARNING."""
        level = v.upper()
        if level == "WARN":
            level = "WARNING"
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: object) -> object:
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("edge_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise the base URL so paths can be appended."""
        return v.rstrip("/")

    @field_validator("default_axes", mode="before")
    @classmethod
    def normalize_axes(cls, v: object) -> object:
        """Accept axes names case-insensitively."""
        if isinstance(v, str):
            return v.lower()
        return v


@lru_cache
def get_viewer_config() -> ViewerConfig:
    """Get the cached viewer configuration.

    To reload, call ``get_viewer_config.cache_clear()`` first.
    """
    config = ViewerConfig()
    logger.info(
        "Loaded viewer configuration: edge_url=%s, poll_interval=%ss, axes=%s",
        config.edge_url,
        config.poll_interval,
        config.default_axes.value,
    )
    return config
