from __future__ import annotations

import asyncio
import itertools
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from posecam.errors import FrameSourceExhausted
from posecam.pose.base import PoseEstimator
from posecam.presenter import OverlayPresenter
from posecam.scheduler import FrameScheduler
from posecam.sources.base import Frame, FrameSource
from posecam.types import CameraFacing, Keypoint, PoseResult, Rectangle


async def settle(turns: int = 20) -> None:
	for _ in range(turns):
		await asyncio.sleep(0)


class FakeFrameSource(FrameSource):
	"""Endless scripted frames; optionally gated or exhausted after N frames."""

	def __init__(self, exhaust_after: Optional[int] = None, error: Optional[Exception] = None) -> None:
		self.exhaust_after = exhaust_after
		self.error = error
		self.gate: Optional[asyncio.Event] = None
		self.acquired = 0
		self.released: List[int] = []
		self.geometry: List[Tuple[Rectangle, int]] = []
		self.facings: List[CameraFacing] = []
		self.preview_updates = 0
		self.closed = False

	def name(self) -> str:
		return "fake"

	async def next_frame(self) -> Frame:
		if self.gate is not None:
			await self.gate.wait()
		if self.error is not None:
			raise self.error
		if self.exhaust_after is not None and self.acquired >= self.exhaust_after:
			raise FrameSourceExhausted("no more frames")
		self.acquired += 1
		return Frame(image=f"img{self.acquired}", index=self.acquired, on_release=lambda f: self.released.append(f.index))

	def set_output_geometry(self, output_rect: Rectangle, rotation_deg: int) -> None:
		self.geometry.append((output_rect, rotation_deg))

	def set_facing(self, facing: CameraFacing) -> None:
		self.facings.append(facing)

	def update_preview(self) -> None:
		self.preview_updates += 1

	def close(self) -> None:
		self.closed = True


def sample_pose(score: Optional[float] = 0.9) -> PoseResult:
	return PoseResult(
		keypoints=(
			Keypoint("left_shoulder", 45.0, 60.0, score),
			Keypoint("right_shoulder", 135.0, 60.0, score),
		),
		backend="fake",
	)


class FakeEstimator(PoseEstimator):
	"""Records concurrency; fails on the listed (1-based) call numbers."""

	def __init__(self, fail_on: Tuple[int, ...] = (), pose: Optional[PoseResult] = None) -> None:
		self.fail_on = set(fail_on)
		self.pose = pose or sample_pose()
		self.gate: Optional[asyncio.Event] = None
		self.calls = 0
		self.active = 0
		self.max_active = 0
		self.closed = False

	def name(self) -> str:
		return "fake"

	def infer_rgb(self, rgb) -> PoseResult:
		return self.pose

	async def estimate(self, frame: Frame) -> PoseResult:
		self.calls += 1
		call = self.calls
		self.active += 1
		self.max_active = max(self.max_active, self.active)
		try:
			if self.gate is not None:
				await self.gate.wait()
			else:
				await asyncio.sleep(0)
			if call in self.fail_on:
				raise RuntimeError("model error")
			return self.pose
		finally:
			self.active -= 1

	def close(self) -> None:
		self.closed = True


class ManualScheduler(FrameScheduler):
	"""Frame callbacks only run when the test calls fire()."""

	def __init__(self) -> None:
		self._ids = itertools.count(1)
		self._pending: Dict[int, Callable[[], None]] = {}
		self.cancelled: List[int] = []
		self.requests = 0

	def request(self, callback: Callable[[], None]) -> int:
		handle = next(self._ids)
		self._pending[handle] = callback
		self.requests += 1
		return handle

	def cancel(self, handle: int) -> None:
		if self._pending.pop(handle, None) is not None:
			self.cancelled.append(handle)

	def pending(self) -> int:
		return len(self._pending)

	def fire(self) -> None:
		items = list(self._pending.values())
		self._pending.clear()
		for cb in items:
			cb()


class RecordingPresenter(OverlayPresenter):
	def __init__(self) -> None:
		self.frames: List[tuple] = []
		self.fps: List[int] = []

	def render(self, edges, points) -> None:
		self.frames.append((list(edges), list(points)))

	def render_fps(self, fps: int) -> None:
		self.fps.append(fps)


@pytest.fixture
def source() -> FakeFrameSource:
	return FakeFrameSource()


@pytest.fixture
def estimator() -> FakeEstimator:
	return FakeEstimator()


@pytest.fixture
def scheduler() -> ManualScheduler:
	return ManualScheduler()


@pytest.fixture
def presenter() -> RecordingPresenter:
	return RecordingPresenter()
