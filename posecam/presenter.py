from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from posecam.types import Point

logger = logging.getLogger(__name__)

Edge = Tuple[Point, Point]


class OverlayPresenter(ABC):
	"""
	Draws the overlay. Fire-and-forget: nothing flows back into the loop.
	"""

	@abstractmethod
	def render(self, edges: Sequence[Edge], points: Sequence[Point]) -> None: ...

	def render_fps(self, fps: int) -> None:
		return None


def overlay_message(edges: Sequence[Edge], points: Sequence[Point], fps: Optional[int] = None) -> Dict[str, Any]:
	return {
		"type": "overlay",
		"points": [p.as_list() for p in points],
		"edges": [[a.as_list(), b.as_list()] for a, b in edges],
		"fps": fps,
	}


class BroadcastPresenter(OverlayPresenter):
	"""
	Hands overlay frames to an async broadcaster (the websocket
	ConnectionManager) without blocking the caller.

	Latest-only: there is one pending message slot and at most one sender task.
	A frame rendered while a send is still in progress overwrites the slot, so
	a slow client skips frames rather than queueing them. Skeleton and FPS of
	one snapshot travel in the same message.
	"""

	def __init__(self, broadcast: Callable[[Dict[str, Any]], Awaitable[None]]) -> None:
		self._broadcast = broadcast
		self._edges: List[Edge] = []
		self._points: List[Point] = []
		self._fps: Optional[int] = None
		self._slot: Optional[Dict[str, Any]] = None
		self._sender: Optional[asyncio.Task] = None
		self.last_message: Optional[Dict[str, Any]] = None

	@property
	def sending(self) -> bool:
		return self._sender is not None and not self._sender.done()

	def render(self, edges: Sequence[Edge], points: Sequence[Point]) -> None:
		self._edges = list(edges)
		self._points = list(points)
		self._post()

	def render_fps(self, fps: int) -> None:
		self._fps = int(fps)
		self._post()

	def _post(self) -> None:
		message = overlay_message(self._edges, self._points, self._fps)
		self.last_message = message
		self._slot = message
		if self.sending:
			return
		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			return
		self._sender = loop.create_task(self._drain())

	async def _drain(self) -> None:
		# No await between the final slot check and returning, so a post never
		# lands in a slot nobody will read.
		while self._slot is not None:
			message, self._slot = self._slot, None
			try:
				await self._broadcast(message)
			except Exception as e:
				logger.warning("[Overlay] broadcast failed: %r", e)
