"""HTTP and WebSocket routers for the overlay server."""
