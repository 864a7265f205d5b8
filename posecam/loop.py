from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from posecam.errors import FrameSourceExhausted, InvalidLoopState
from posecam.fps import FpsEstimator
from posecam.pose.base import PoseEstimator
from posecam.scheduler import FrameScheduler
from posecam.sources.base import FrameSource
from posecam.types import LoopState, OverlaySnapshot, PoseResult

logger = logging.getLogger(__name__)


class InferenceLoop:
	"""
	Continuous acquire -> infer -> publish -> reschedule cycle.

	Lifecycle is IDLE -> RUNNING -> CANCELLED; CANCELLED is terminal, build a new
	loop to resume.

	Concurrency model:
	  - single asyncio task per cycle; the next cycle is only requested from the
	    frame scheduler after the current one has published, so at most one
	    estimator call is ever outstanding.
	  - the only suspension points are the frame source and the estimator.
	  - cancellation is sampled, not signalled: `cancel()` sets a flag and drops
	    the pending scheduler callback. A cycle that already issued its estimator
	    call completes and publishes before the flag is observed at the
	    scheduling boundary (bounded one-cycle tail). A cycle still waiting for
	    its frame drops the frame instead of starting inference.
	  - the estimator call has no timeout; a hung model hangs the loop.

	Failures:
	  - a failed estimator call skips publishing for that cycle only.
	  - frame source exhaustion (or any acquisition error) is fatal: the loop
	    moves to CANCELLED, keeps the error in `error` and calls `on_fatal`.
	    Nothing escapes the cycle task except event-loop cancellation.
	"""

	def __init__(
		self,
		source: FrameSource,
		estimator: PoseEstimator,
		scheduler: FrameScheduler,
		*,
		on_update: Optional[Callable[[OverlaySnapshot], None]] = None,
		on_fatal: Optional[Callable[[BaseException], None]] = None,
		auto_render: bool = True,
		clock: Callable[[], float] = time.perf_counter,
	) -> None:
		self._source = source
		self._estimator = estimator
		self._scheduler = scheduler
		self._on_update = on_update
		self._on_fatal = on_fatal
		self._auto_render = bool(auto_render)
		self._clock = clock

		self._state: LoopState = LoopState.IDLE
		self._stop_requested: bool = False
		self._frame_handle: Optional[int] = None
		self._task: Optional[asyncio.Task] = None
		self._inflight: bool = False
		self._cycle: int = 0
		self._fps = FpsEstimator()
		self._snapshot = OverlaySnapshot()

		self.error: Optional[BaseException] = None
		self.inference_calls: int = 0
		self.inference_failures: int = 0

	@property
	def state(self) -> LoopState:
		return self._state

	@property
	def latest(self) -> OverlaySnapshot:
		"""Last published pose + FPS pair (last-write-wins)."""
		return self._snapshot

	@property
	def inflight(self) -> bool:
		return self._inflight

	def start(self) -> None:
		"""Begin cycling. Must be called from within a running event loop."""
		if self._state is not LoopState.IDLE:
			raise InvalidLoopState(f"cannot start loop in state {self._state.value}")
		aio_loop = asyncio.get_running_loop()
		self._state = LoopState.RUNNING
		logger.info("[Loop] started (source=%s, estimator=%s)", self._source.name(), self._estimator.name())
		self._inflight = True
		self._task = aio_loop.create_task(self._run_cycle())

	def cancel(self) -> None:
		"""
		Request stop. Idempotent once started. After this returns no new
		estimator call is issued; a call already in flight may still publish once.
		A loop that was never started cannot be cancelled.
		"""
		if self._state is LoopState.IDLE:
			raise InvalidLoopState("cannot cancel a loop that was never started")
		if self._stop_requested:
			return
		self._stop_requested = True
		self._state = LoopState.CANCELLED
		self._drop_pending_frame()
		logger.info("[Loop] cancelled after %d cycle(s)", self._cycle)

	async def wait_closed(self) -> None:
		"""Wait for the cycle in flight (if any) to finish."""
		task = self._task
		if task is not None and not task.done():
			await task

	async def aclose(self) -> None:
		if self._state is LoopState.IDLE:
			return
		self.cancel()
		await self.wait_closed()

	def get_status(self) -> dict:
		snap = self._snapshot
		return {
			"state": self._state.value,
			"cycles": self._cycle,
			"fps": snap.fps,
			"latency_ms": snap.latency_ms,
			"inflight": self._inflight,
			"inference_calls": self.inference_calls,
			"inference_failures": self.inference_failures,
			"error": repr(self.error) if self.error is not None else None,
		}

	def _drop_pending_frame(self) -> None:
		if self._frame_handle is not None:
			self._scheduler.cancel(self._frame_handle)
			self._frame_handle = None

	def _on_frame(self) -> None:
		self._frame_handle = None
		if self._stop_requested:
			return
		if self._inflight:
			# Single flight: never overlap estimator calls.
			logger.warning("[Loop] frame callback fired while a cycle is in flight; ignored")
			return
		self._inflight = True
		self._task = asyncio.get_running_loop().create_task(self._run_cycle())

	async def _run_cycle(self) -> None:
		# _inflight was raised when this task was created.
		try:
			await self._cycle_once()
		except asyncio.CancelledError:
			self._stop_requested = True
			self._state = LoopState.CANCELLED
			raise
		except Exception as e:
			self._fail(e)
		finally:
			self._inflight = False

	async def _cycle_once(self) -> None:
		try:
			frame = await self._source.next_frame()
		except FrameSourceExhausted:
			raise
		except asyncio.CancelledError:
			raise
		except Exception as e:
			raise FrameSourceExhausted(f"frame acquisition failed: {e!r}") from e

		if self._stop_requested:
			frame.release()
			return

		pose: Optional[PoseResult] = None
		latency_ms: Optional[float] = None
		self.inference_calls += 1
		start = self._clock()
		try:
			pose = await self._estimator.estimate(frame)
			latency_ms = (self._clock() - start) * 1000.0
		except asyncio.CancelledError:
			raise
		except Exception as e:
			self.inference_failures += 1
			logger.warning("[Loop] inference failed on frame %d: %r", frame.index, e)
		finally:
			frame.release()

		if pose is not None:
			self._publish(pose, latency_ms)

		if self._stop_requested:
			return

		if not self._auto_render:
			self._source.update_preview()

		self._frame_handle = self._scheduler.request(self._on_frame)

	def _publish(self, pose: PoseResult, latency_ms: Optional[float]) -> None:
		self._cycle += 1
		if latency_ms is not None:
			self._fps.update(latency_ms)
		snapshot = OverlaySnapshot(
			pose=pose,
			fps=self._fps.current,
			latency_ms=latency_ms,
			cycle=self._cycle,
			t_host=time.time(),
		)
		# One reference swap; readers see either the old pair or the new one.
		self._snapshot = snapshot
		if self._on_update is not None:
			try:
				self._on_update(snapshot)
			except Exception:
				logger.exception("[Loop] update callback failed on cycle %d", self._cycle)

	def _fail(self, exc: BaseException) -> None:
		self.error = exc
		self._stop_requested = True
		self._state = LoopState.CANCELLED
		self._drop_pending_frame()
		if isinstance(exc, FrameSourceExhausted):
			logger.error("[Loop] frame source exhausted: %s", exc)
		else:
			logger.error("[Loop] fatal error: %r", exc)
		if self._on_fatal is not None:
			try:
				self._on_fatal(exc)
			except Exception:
				logger.exception("[Loop] fatal callback failed")
