from __future__ import annotations

import asyncio
import itertools
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional


class FrameScheduler(ABC):
	"""
	"Run on next display frame" primitive.

	`request` returns a positive handle; `cancel` drops a pending callback and is
	a no-op for unknown or already-fired handles.
	"""

	@abstractmethod
	def request(self, callback: Callable[[], None]) -> int: ...

	@abstractmethod
	def cancel(self, handle: int) -> None: ...

	@abstractmethod
	def pending(self) -> int: ...


class AsyncioFrameScheduler(FrameScheduler):
	"""
	Fires callbacks on the running event loop, aligned to a fixed refresh tick.

	refresh_hz <= 0 fires on the next loop iteration instead (uncapped).
	"""

	def __init__(self, refresh_hz: float = 60.0, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
		try:
			hz = float(refresh_hz)
		except (TypeError, ValueError):
			hz = 60.0
		self._period: float = (1.0 / hz) if hz > 0.0 else 0.0
		self._loop = loop
		self._ids = itertools.count(1)
		self._handles: Dict[int, asyncio.Handle] = {}

	def _get_loop(self) -> asyncio.AbstractEventLoop:
		return self._loop or asyncio.get_running_loop()

	def _delay(self) -> float:
		if self._period <= 0.0:
			return 0.0
		# Next tick boundary of the monotonic clock.
		return self._period - (time.monotonic() % self._period)

	def request(self, callback: Callable[[], None]) -> int:
		handle_id = next(self._ids)
		loop = self._get_loop()

		def _fire() -> None:
			if self._handles.pop(handle_id, None) is None:
				return
			callback()

		delay = self._delay()
		if delay <= 0.0:
			self._handles[handle_id] = loop.call_soon(_fire)
		else:
			self._handles[handle_id] = loop.call_later(delay, _fire)
		return handle_id

	def cancel(self, handle: int) -> None:
		h = self._handles.pop(handle, None)
		if h is not None:
			h.cancel()

	def pending(self) -> int:
		return len(self._handles)
