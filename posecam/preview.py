from __future__ import annotations

import asyncio
import math
from io import BytesIO
from typing import AsyncIterator, Callable, Optional, Tuple

from PIL import Image

MJPEG_BOUNDARY = b"frame"

LatestJpegFn = Callable[[], Tuple[Optional[bytes], Optional[float]]]


def encode_jpeg(rgb, quality: int = 80) -> bytes:
	"""Encode an RGB (H,W,3 uint8) array as JPEG."""
	buf = BytesIO()
	Image.fromarray(rgb).save(buf, format="JPEG", quality=int(quality), optimize=True)
	return buf.getvalue()


def mjpeg_part(jpeg: bytes, boundary: bytes = MJPEG_BOUNDARY) -> bytes:
	"""One multipart/x-mixed-replace part: boundary, headers and the JPEG body."""
	head = b"--%s\r\nContent-Type: image/jpeg\r\nContent-Length: %d\r\n\r\n" % (boundary, len(jpeg))
	return head + jpeg + b"\r\n"


async def mjpeg_from_latest(get_latest_jpeg_fn: LatestJpegFn, fps: float) -> AsyncIterator[bytes]:
	"""
	Paced MJPEG stream over a "latest JPEG" getter.

	Samples the getter once per tick of `fps` (15 when unusable) and yields one
	part per new capture; a tick that finds the frame already sent yields
	nothing. A slow reader falls behind by whole frames, never by a backlog.
	"""
	interval = 1.0 / fps if isinstance(fps, (int, float)) and math.isfinite(fps) and fps > 0 else 1.0 / 15.0
	loop = asyncio.get_running_loop()
	last_t: Optional[float] = None
	next_tick = loop.time()
	while True:
		jpeg, t = get_latest_jpeg_fn()
		if jpeg is not None and t is not None and t != last_t:
			last_t = t
			yield mjpeg_part(jpeg)
		next_tick = max(next_tick + interval, loop.time())
		await asyncio.sleep(next_tick - loop.time())
