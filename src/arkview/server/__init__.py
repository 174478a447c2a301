"""HTTP and WebSocket server for the viewer."""
