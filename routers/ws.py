"""WebSocket endpoint and ConnectionManager. Route: /ws (overlay messages)."""
import asyncio
import json
import logging
from typing import Any, Dict, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])


class ConnectionManager:
	"""
	Fan-out to every connected viewer. One broadcast at a time: the lock is held
	across the sends, so each socket receives overlay frames in publish order.
	A client whose send fails is dropped; it gets a fresh frame on reconnect.
	"""

	def __init__(self) -> None:
		self._clients: Set[WebSocket] = set()
		self._lock = asyncio.Lock()

	@property
	def client_count(self) -> int:
		return len(self._clients)

	async def connect(self, websocket: WebSocket) -> None:
		await websocket.accept()
		async with self._lock:
			self._clients.add(websocket)

	async def disconnect(self, websocket: WebSocket) -> None:
		async with self._lock:
			self._clients.discard(websocket)

	async def broadcast_json(self, message: Dict[str, Any]) -> None:
		payload = json.dumps(message, separators=(",", ":"))
		async with self._lock:
			if not self._clients:
				return
			clients = list(self._clients)
			results = await asyncio.gather(*(ws.send_text(payload) for ws in clients), return_exceptions=True)
			for ws, res in zip(clients, results):
				if isinstance(res, Exception):
					logger.info("[WS] dropping client after failed send: %r", res)
					self._clients.discard(ws)


manager = ConnectionManager()


@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
	await manager.connect(websocket)
	try:
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		pass
	finally:
		await manager.disconnect(websocket)
