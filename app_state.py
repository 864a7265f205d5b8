"""
Explicit app state – single source of truth for runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Optional

from posecam.config import AppConfig
from posecam.session import OverlaySession


class AppState:
	"""
	Holds all runtime state for the app. Populated in server lifespan.
	"""

	cfg: Optional[AppConfig] = None
	session: Optional[OverlaySession] = None

	# WebSocket manager (set at app load)
	manager: Any = None

	def __init__(self, cfg: Optional[AppConfig] = None, manager: Any = None) -> None:
		self.cfg = cfg
		self.manager = manager
		self.session = None
