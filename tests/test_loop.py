import asyncio

import pytest

from conftest import FakeEstimator, FakeFrameSource, settle
from posecam.errors import FrameSourceExhausted, InvalidLoopState
from posecam.loop import InferenceLoop
from posecam.types import LoopState


def test_cycle_publishes_releases_and_reschedules(source, estimator, scheduler):
	published = []

	async def main():
		loop = InferenceLoop(source, estimator, scheduler, on_update=published.append)
		assert loop.state is LoopState.IDLE
		loop.start()
		await settle()
		assert loop.state is LoopState.RUNNING
		assert estimator.calls == 1
		assert source.released == [1]
		assert loop.latest.cycle == 1
		assert loop.latest.pose is estimator.pose
		assert scheduler.pending() == 1

		scheduler.fire()
		await settle()
		assert estimator.calls == 2
		assert source.released == [1, 2]
		assert [s.cycle for s in published] == [1, 2]
		await loop.aclose()

	asyncio.run(main())


def test_start_twice_or_after_cancel_is_invalid(source, estimator, scheduler):
	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		with pytest.raises(InvalidLoopState):
			loop.start()
		await loop.aclose()
		assert loop.state is LoopState.CANCELLED
		with pytest.raises(InvalidLoopState):
			loop.start()

	asyncio.run(main())


def test_cancel_before_start_is_invalid_and_loop_can_still_start(source, estimator, scheduler):
	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		with pytest.raises(InvalidLoopState):
			loop.cancel()
		assert loop.state is LoopState.IDLE
		await loop.aclose()
		assert loop.state is LoopState.IDLE

		loop.start()
		await settle()
		assert estimator.calls == 1
		await loop.aclose()
		assert loop.state is LoopState.CANCELLED

	asyncio.run(main())


def test_cancel_is_idempotent_and_drops_pending_frame(source, estimator, scheduler):
	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		await settle()
		assert scheduler.pending() == 1
		loop.cancel()
		loop.cancel()
		assert scheduler.pending() == 0
		assert len(scheduler.cancelled) == 1
		scheduler.fire()
		await settle()
		assert estimator.calls == 1

	asyncio.run(main())


def test_inflight_call_publishes_once_after_cancel(source, estimator, scheduler):
	async def main():
		estimator.gate = asyncio.Event()
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		await settle()
		assert loop.inflight
		assert estimator.calls == 1

		loop.cancel()
		assert loop.state is LoopState.CANCELLED
		estimator.gate.set()
		await loop.wait_closed()

		# The tail cycle publishes, but nothing new is scheduled or started.
		assert loop.latest.cycle == 1
		assert scheduler.requests == 0
		assert estimator.calls == 1
		assert source.released == [1]

	asyncio.run(main())


def test_cancel_while_waiting_for_frame_skips_inference(source, estimator, scheduler):
	async def main():
		source.gate = asyncio.Event()
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		await settle()
		loop.cancel()
		source.gate.set()
		await loop.wait_closed()
		assert estimator.calls == 0
		assert source.released == [1]
		assert loop.latest.pose is None

	asyncio.run(main())


def test_transient_inference_failure_skips_publish_and_continues(source, scheduler):
	estimator = FakeEstimator(fail_on=(1,))

	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		await settle()
		assert loop.latest.pose is None
		assert loop.inference_failures == 1
		assert source.released == [1]
		assert scheduler.pending() == 1

		scheduler.fire()
		await settle()
		assert loop.latest.pose is not None
		assert loop.state is LoopState.RUNNING
		await loop.aclose()

	asyncio.run(main())


def test_frame_source_exhaustion_is_fatal_and_quiescent(estimator, scheduler):
	source = FakeFrameSource(exhaust_after=1)
	fatal = []

	async def main():
		loop = InferenceLoop(source, estimator, scheduler, on_fatal=fatal.append)
		loop.start()
		await settle()
		scheduler.fire()
		await settle()
		await loop.wait_closed()
		assert loop.state is LoopState.CANCELLED
		assert isinstance(loop.error, FrameSourceExhausted)
		assert fatal == [loop.error]
		assert scheduler.pending() == 0
		assert estimator.calls == 1

	asyncio.run(main())


def test_acquisition_error_is_wrapped_as_exhaustion(estimator, scheduler):
	source = FakeFrameSource(error=OSError("device unplugged"))

	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		await loop.wait_closed()
		assert isinstance(loop.error, FrameSourceExhausted)
		assert isinstance(loop.error.__cause__, OSError)
		assert loop.state is LoopState.CANCELLED

	asyncio.run(main())


def test_fps_from_latency_and_degenerate_latency_keeps_previous(source, estimator, scheduler):
	ticks = iter([0.0, 0.0395, 1.0, 1.0])

	async def main():
		loop = InferenceLoop(source, estimator, scheduler, clock=lambda: next(ticks))
		loop.start()
		await settle()
		assert loop.latest.fps == 25
		assert loop.latest.latency_ms == pytest.approx(39.5)

		scheduler.fire()
		await settle()
		# Zero latency: pose still published, fps retained.
		assert loop.latest.cycle == 2
		assert loop.latest.fps == 25
		await loop.aclose()

	asyncio.run(main())


def test_manual_render_updates_preview_each_cycle(source, estimator, scheduler):
	async def main():
		loop = InferenceLoop(source, estimator, scheduler, auto_render=False)
		loop.start()
		await settle()
		scheduler.fire()
		await settle()
		assert source.preview_updates == 2
		await loop.aclose()

	asyncio.run(main())


def test_never_overlaps_inference_calls(source, estimator, scheduler):
	async def main():
		loop = InferenceLoop(source, estimator, scheduler)
		loop.start()
		for _ in range(5):
			await settle()
			scheduler.fire()
			scheduler.fire()
		await settle()
		assert estimator.max_active == 1
		assert estimator.calls == 6
		await loop.aclose()

	asyncio.run(main())


def test_failing_update_callback_does_not_stop_loop(source, estimator, scheduler):
	def boom(_snapshot):
		raise ValueError("presenter broke")

	async def main():
		loop = InferenceLoop(source, estimator, scheduler, on_update=boom)
		loop.start()
		await settle()
		assert loop.state is LoopState.RUNNING
		assert scheduler.pending() == 1
		await loop.aclose()

	asyncio.run(main())
