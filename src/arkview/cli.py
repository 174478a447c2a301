"""Command-line interface for arkview."""

import argparse
import os
import sys

import uvicorn

from arkview import __version__
from arkview.config import get_viewer_config
from arkview.logging_config import configure_logging
from arkview.projection.axes import ProjectionAxes


def main(args: list[str] | None = None) -> int:
    """Run the viewer server.

    Command-line options override the ARKVIEW_* environment settings.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="arkview",
        description="arkview - Live orthographic viewer for edge agent telemetry",
    )
    parser.add_argument("--host", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: 8000)")
    parser.add_argument(
        "--edge-url",
        default=None,
        help="Base URL of the edge service (default: http://localhost:2237)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between neighbour queries (default: 1.0)",
    )
    parser.add_argument(
        "--neighbors-number",
        type=int,
        default=None,
        help="Maximum number of agents requested per query",
    )
    parser.add_argument(
        "--axes",
        choices=[axes.value for axes in ProjectionAxes],
        default=None,
        help="Initial projection plane (default: xy)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parsed = parser.parse_args(args)

    # Settings are read by the server process, so pass overrides via env
    overrides = {
        "ARKVIEW_EDGE_URL": parsed.edge_url,
        "ARKVIEW_POLL_INTERVAL": parsed.interval,
        "ARKVIEW_NEIGHBORS_NUMBER": parsed.neighbors_number,
        "ARKVIEW_DEFAULT_AXES": parsed.axes,
    }
    for key, value in overrides.items():
        if value is not None:
            os.environ[key] = str(value)
    get_viewer_config.cache_clear()
    config = get_viewer_config()

    configure_logging(config.log_level, config.log_format)

    host = parsed.host or config.host
    port = parsed.port or config.port
    print(f"Starting arkview at http://{host}:{port} (edge: {config.edge_url})")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "arkview.server.app:app",
        host=host,
        port=port,
        reload=parsed.reload,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
