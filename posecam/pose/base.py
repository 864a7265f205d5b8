from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from posecam.sources.base import Frame
from posecam.types import PoseResult


class PoseEstimator(ABC):
	"""
	Model adapter interface.

	Implementations take an RGB image (H,W,3 uint8) already sized to the output
	rectangle and return keypoints in that image's pixel space.
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def infer_rgb(self, rgb) -> PoseResult: ...

	@abstractmethod
	def close(self) -> None: ...

	async def estimate(self, frame: Frame) -> PoseResult:
		# Model calls block; keep them off the event loop.
		loop = asyncio.get_running_loop()
		return await loop.run_in_executor(None, self.infer_rgb, frame.image)
