from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from posecam.types import CameraFacing, Rectangle


class Frame:
	"""
	Opaque handle to one captured image, exclusively owned by the cycle that
	acquired it. `release()` returns it to its source and is idempotent.
	"""

	__slots__ = ("image", "t_host", "index", "_on_release", "_released")

	def __init__(
		self,
		image: Any,
		t_host: Optional[float] = None,
		index: int = 0,
		on_release: Optional[Callable[["Frame"], None]] = None,
	) -> None:
		self.image = image
		self.t_host = float(t_host) if t_host is not None else time.time()
		self.index = int(index)
		self._on_release = on_release
		self._released = False

	@property
	def released(self) -> bool:
		return self._released

	def release(self) -> None:
		if self._released:
			return
		self._released = True
		self.image = None
		cb = self._on_release
		self._on_release = None
		if cb is not None:
			cb(self)


class FrameSource(ABC):
	"""
	Camera adapter interface.

	`next_frame` may suspend and raises FrameSourceExhausted when no further
	frame can be produced. The geometry setters describe how the *next* frame
	should be prepared for the model (size and texture rotation).
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	async def next_frame(self) -> Frame: ...

	@abstractmethod
	def close(self) -> None: ...

	def set_output_geometry(self, output_rect: Rectangle, rotation_deg: int) -> None:
		return None

	def set_facing(self, facing: CameraFacing) -> None:
		return None

	def update_preview(self) -> None:
		"""Push the latest frame to the preview when auto-render is off."""
		return None

	def get_latest_jpeg(self) -> tuple[Optional[bytes], Optional[float]]:
		return None, None

	def get_status(self) -> Dict[str, Any]:
		return {"name": self.name()}
