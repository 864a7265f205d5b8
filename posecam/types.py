from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Orientation(str, Enum):
	PORTRAIT_UP = "portrait_up"
	PORTRAIT_DOWN = "portrait_down"
	LANDSCAPE_LEFT = "landscape_left"
	LANDSCAPE_RIGHT = "landscape_right"

	@property
	def is_portrait(self) -> bool:
		return self in (Orientation.PORTRAIT_UP, Orientation.PORTRAIT_DOWN)

	@classmethod
	def parse(cls, value: str) -> "Orientation":
		"""Accept 'landscape_left', 'LANDSCAPE-LEFT', 'Landscape Left' etc."""
		key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
		for o in cls:
			if o.value == key:
				return o
		raise ValueError(f"unknown orientation: {value!r}")


class CameraFacing(str, Enum):
	FRONT = "front"
	BACK = "back"

	def toggled(self) -> "CameraFacing":
		return CameraFacing.BACK if self is CameraFacing.FRONT else CameraFacing.FRONT

	@classmethod
	def parse(cls, value: str) -> "CameraFacing":
		key = str(value).strip().lower()
		for f in cls:
			if f.value == key:
				return f
		raise ValueError(f"unknown camera facing: {value!r}")


class LoopState(str, Enum):
	IDLE = "idle"
	RUNNING = "running"
	CANCELLED = "cancelled"


@dataclass(frozen=True)
class Rectangle:
	width: float
	height: float

	def swapped(self) -> "Rectangle":
		return Rectangle(width=self.height, height=self.width)

	def as_list(self) -> list:
		return [self.width, self.height]


@dataclass(frozen=True)
class Point:
	x: float
	y: float

	def as_list(self) -> list:
		return [self.x, self.y]


@dataclass(frozen=True)
class Keypoint:
	"""
	A single 2D joint estimate in output-rectangle pixel space.
	"""

	name: str
	x: float
	y: float
	score: Optional[float] = None  # [0..1]; None when the model does not report one


@dataclass(frozen=True)
class PoseResult:
	"""
	One subject's keypoints for a single frame, in model order.

	Replaced wholesale every cycle; never merged with a previous result.
	"""

	keypoints: Tuple[Keypoint, ...] = ()
	backend: str = ""

	def get(self, name: str) -> Optional[Keypoint]:
		for kp in self.keypoints:
			if kp.name == name:
				return kp
		return None

	def by_name(self) -> Dict[str, Keypoint]:
		return {kp.name: kp for kp in self.keypoints}


@dataclass(frozen=True)
class OverlaySnapshot:
	"""
	The single published slot: a pose result paired with the FPS figure of the
	same cycle. Swapped as one object so readers never see a torn pairing.
	"""

	pose: Optional[PoseResult] = None
	fps: int = 0
	latency_ms: Optional[float] = None
	cycle: int = 0
	t_host: Optional[float] = None
