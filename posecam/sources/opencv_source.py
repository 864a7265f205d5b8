from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from posecam.errors import FrameSourceExhausted
from posecam.preview import encode_jpeg
from posecam.sources.base import Frame, FrameSource
from posecam.types import CameraFacing, Rectangle

logger = logging.getLogger(__name__)

SourceSpec = Union[int, str]

_ROTATE_CODES = {
	90: cv2.ROTATE_90_CLOCKWISE,
	180: cv2.ROTATE_180,
	270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def prepare_model_input(bgr: np.ndarray, output_rect: Rectangle, rotation_deg: int, flip_input: bool) -> np.ndarray:
	"""
	Turn a raw BGR capture into the model's RGB input: rotate, resize to the
	effective output rectangle, then reverse horizontally.
	"""
	img = bgr
	code = _ROTATE_CODES.get(int(rotation_deg) % 360)
	if code is not None:
		img = cv2.rotate(img, code)
	size = (max(1, int(round(output_rect.width))), max(1, int(round(output_rect.height))))
	if (img.shape[1], img.shape[0]) != size:
		img = cv2.resize(img, size, interpolation=cv2.INTER_LINEAR)
	if flip_input:
		img = cv2.flip(img, 1)
	return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


class OpenCvFrameSource(FrameSource):
	"""
	cv2.VideoCapture-backed frame source (USB/UVC camera index or video file).

	Notes:
	- Reads run in the default executor so the event loop never blocks on the device.
	- Each facing maps to its own capture spec; switching facing reopens the device
	  before the next read.
	- The latest raw capture is kept for the live preview; JPEG encoding uses Pillow (posecam.preview).
	"""

	def __init__(
		self,
		sources: Dict[CameraFacing, SourceSpec],
		*,
		facing: CameraFacing = CameraFacing.FRONT,
		output_rect: Rectangle = Rectangle(180, 240),
		rotation_deg: int = 0,
		flip_input: bool = True,
		auto_render: bool = True,
		jpeg_quality: int = 80,
	) -> None:
		self._lock = threading.Lock()
		self._sources = dict(sources)
		self._facing = facing
		self._open_facing: Optional[CameraFacing] = None
		self._cap: Optional[cv2.VideoCapture] = None

		self._output_rect = output_rect
		self._rotation_deg = int(rotation_deg)
		self._flip_input = bool(flip_input)
		self._auto_render = bool(auto_render)
		self._jpeg_quality = int(jpeg_quality) if 1 <= int(jpeg_quality) <= 95 else 80

		self._frame_idx = 0
		self._outstanding = 0
		self._last_raw: Optional[np.ndarray] = None
		self._preview_raw: Optional[np.ndarray] = None
		self._preview_t: Optional[float] = None
		self._preview_jpeg: Optional[bytes] = None
		self._preview_jpeg_t: Optional[float] = None
		self._last_error: Optional[str] = None

	def name(self) -> str:
		return "opencv"

	def set_output_geometry(self, output_rect: Rectangle, rotation_deg: int) -> None:
		with self._lock:
			self._output_rect = output_rect
			self._rotation_deg = int(rotation_deg)

	def set_facing(self, facing: CameraFacing) -> None:
		with self._lock:
			self._facing = facing

	async def next_frame(self) -> Frame:
		loop = asyncio.get_running_loop()
		raw, t_host = await loop.run_in_executor(None, self._read_blocking)
		with self._lock:
			output_rect = self._output_rect
			rotation = self._rotation_deg
			flip = self._flip_input
			self._frame_idx += 1
			idx = self._frame_idx
			self._outstanding += 1
			self._last_raw = raw
			if self._auto_render:
				self._set_preview(raw, t_host)
		rgb = prepare_model_input(raw, output_rect, rotation, flip)
		return Frame(rgb, t_host=t_host, index=idx, on_release=self._on_release)

	def _on_release(self, _frame: Frame) -> None:
		with self._lock:
			self._outstanding = max(0, self._outstanding - 1)

	def _read_blocking(self) -> tuple[np.ndarray, float]:
		with self._lock:
			facing = self._facing
		if self._cap is None or self._open_facing is not facing:
			self._reopen(facing)
		assert self._cap is not None
		ok, frame = self._cap.read()
		if not ok or frame is None:
			msg = f"lost capture for {facing.value} camera ({self._sources.get(facing)!r})"
			with self._lock:
				self._last_error = msg
			raise FrameSourceExhausted(msg)
		return frame, time.time()

	def _reopen(self, facing: CameraFacing) -> None:
		if self._cap is not None:
			self._cap.release()
			self._cap = None
		spec = self._sources.get(facing)
		if spec is None:
			raise FrameSourceExhausted(f"no capture source configured for {facing.value} camera")
		cap = cv2.VideoCapture(spec)
		if not cap.isOpened():
			cap.release()
			msg = f"cannot open {facing.value} camera ({spec!r})"
			with self._lock:
				self._last_error = msg
			raise FrameSourceExhausted(msg)
		logger.info("[Camera] opened %s camera (%r)", facing.value, spec)
		self._cap = cap
		self._open_facing = facing

	def _set_preview(self, raw: np.ndarray, t_host: float) -> None:
		# Caller holds the lock.
		self._preview_raw = raw
		self._preview_t = t_host

	def update_preview(self) -> None:
		with self._lock:
			if self._last_raw is not None:
				self._set_preview(self._last_raw, time.time())

	def get_latest_jpeg(self) -> tuple[Optional[bytes], Optional[float]]:
		with self._lock:
			raw = self._preview_raw
			t = self._preview_t
			if raw is None or t is None:
				return None, None
			if self._preview_jpeg is not None and self._preview_jpeg_t == t:
				return self._preview_jpeg, t
		jpg = encode_jpeg(cv2.cvtColor(raw, cv2.COLOR_BGR2RGB), self._jpeg_quality)
		with self._lock:
			self._preview_jpeg = jpg
			self._preview_jpeg_t = t
		return jpg, t

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"name": self.name(),
				"facing": self._facing.value,
				"open": self._cap is not None,
				"source": self._sources.get(self._facing),
				"frame_idx": self._frame_idx,
				"outstanding_frames": self._outstanding,
				"output_size": self._output_rect.as_list(),
				"rotation_deg": self._rotation_deg,
				"flip_input": self._flip_input,
				"t_last_preview": self._preview_t,
				"error": self._last_error,
			}

	def close(self) -> None:
		cap = self._cap
		self._cap = None
		self._open_facing = None
		if cap is not None:
			cap.release()
