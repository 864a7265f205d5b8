from __future__ import annotations

import math
from typing import Optional


def fps_from_latency(latency_ms: float) -> Optional[int]:
	"""
	floor(1000 / latency). Returns None for latency <= 0 (unmeasured) so the
	caller can keep its previous figure instead of publishing 0 or infinity.
	"""
	try:
		latency = float(latency_ms)
	except (TypeError, ValueError):
		return None
	if not (latency > 0.0) or math.isinf(latency):
		return None
	return int(math.floor(1000.0 / latency))


class FpsEstimator:
	"""
	Single-sample FPS figure derived from the latest cycle latency only.

	No rolling window: `current` is whatever the last measurable cycle gave.
	"""

	def __init__(self, initial: int = 0) -> None:
		self.current: int = int(initial)

	def update(self, latency_ms: float) -> Optional[int]:
		fps = fps_from_latency(latency_ms)
		if fps is not None:
			self.current = fps
		return fps
