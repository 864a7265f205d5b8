from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List

from posecam.types import Orientation

logger = logging.getLogger(__name__)

OrientationCallback = Callable[[Orientation], None]


class OrientationMonitor(ABC):
	@abstractmethod
	def current(self) -> Orientation: ...

	@abstractmethod
	def subscribe(self, callback: OrientationCallback) -> Callable[[], None]:
		"""Register for change events. Returns an unsubscribe function."""
		...


class ManualOrientationMonitor(OrientationMonitor):
	"""
	Orientation reported from outside (the viewing client posts it).

	Callbacks fire only on an actual change, in subscription order, on the
	thread that called `set`.
	"""

	def __init__(self, initial: Orientation = Orientation.PORTRAIT_UP) -> None:
		self._lock = threading.Lock()
		self._current = initial
		self._callbacks: List[OrientationCallback] = []

	def current(self) -> Orientation:
		with self._lock:
			return self._current

	def subscribe(self, callback: OrientationCallback) -> Callable[[], None]:
		with self._lock:
			self._callbacks.append(callback)

		def _unsubscribe() -> None:
			with self._lock:
				if callback in self._callbacks:
					self._callbacks.remove(callback)

		return _unsubscribe

	def set(self, orientation: Orientation) -> bool:
		with self._lock:
			if orientation is self._current:
				return False
			self._current = orientation
			callbacks = list(self._callbacks)
		logger.info("[Orientation] -> %s", orientation.value)
		for cb in callbacks:
			cb(orientation)
		return True
