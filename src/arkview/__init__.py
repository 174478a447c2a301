"""arkview - Live orthographic viewer for edge agent telemetry."""

__version__ = "0.1.0"

__all__ = ["__version__"]
