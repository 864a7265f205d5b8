"""
FastAPI dependencies. Use Depends(get_state) / Depends(get_session) in route handlers.
"""
from fastapi import HTTPException, Request

from app_state import AppState
from posecam.session import OverlaySession


def get_state(request: Request) -> AppState:
	"""Return the app state instance attached in lifespan."""
	return request.app.state.state


def get_session(request: Request) -> OverlaySession:
	"""Return the overlay session; 503 while the server is still starting up."""
	session = get_state(request).session
	if session is None:
		raise HTTPException(status_code=503, detail="Overlay session not ready")
	return session
