from __future__ import annotations


class PoseCamError(Exception):
	"""Base class for errors raised by the overlay core."""


class InvalidLoopState(PoseCamError, RuntimeError):
	"""
	Raised on programming errors against the loop lifecycle, e.g. starting a loop
	twice or starting one that was already cancelled.
	"""


class FrameSourceExhausted(PoseCamError):
	"""No further frames can be obtained from the frame source."""
