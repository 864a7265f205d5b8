import asyncio

from posecam.scheduler import AsyncioFrameScheduler


def test_uncapped_scheduler_fires_on_next_turn():
	fired = []

	async def main():
		sched = AsyncioFrameScheduler(refresh_hz=0)
		handle = sched.request(lambda: fired.append(1))
		assert handle > 0
		assert sched.pending() == 1
		await asyncio.sleep(0)
		await asyncio.sleep(0)
		assert fired == [1]
		assert sched.pending() == 0

	asyncio.run(main())


def test_cancelled_request_never_fires():
	fired = []

	async def main():
		sched = AsyncioFrameScheduler(refresh_hz=200)
		handle = sched.request(lambda: fired.append(1))
		sched.cancel(handle)
		sched.cancel(handle)
		await asyncio.sleep(0.05)
		assert fired == []
		assert sched.pending() == 0

	asyncio.run(main())


def test_paced_scheduler_fires_within_a_frame():
	fired = []

	async def main():
		sched = AsyncioFrameScheduler(refresh_hz=100)
		first = sched.request(lambda: fired.append("a"))
		second = sched.request(lambda: fired.append("b"))
		assert first != second
		await asyncio.sleep(0.1)
		assert sorted(fired) == ["a", "b"]

	asyncio.run(main())
