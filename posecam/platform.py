from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Tuple

from posecam.types import CameraFacing, Orientation, Rectangle


class PlatformFamily(str, Enum):
	"""
	Device classes that differ in how the camera texture follows the device.

	- A: the camera texture is rotated by the platform when the device turns.
	- B: the texture stays fixed; the capture stage must rotate it itself.
	"""

	A = "A"
	B = "B"

	@classmethod
	def parse(cls, value: str) -> "PlatformFamily":
		key = str(value).strip().upper()
		for f in cls:
			if f.value == key:
				return f
		raise ValueError(f"unknown platform family: {value!r}")


@dataclass(frozen=True)
class PlatformProfile:
	"""
	All platform-dependent geometry rules, resolved once and passed around as data.

	- aspect_ratio: width / height of both the model output and the preview.
	- mirror_facings: camera facings whose x-coordinate is flipped.
	- swap_output_in_landscape: swap the output rectangle's width/height in landscape.
	- rotation_table: (orientation, facing) -> texture rotation in degrees; absent keys are 0.
	"""

	family: PlatformFamily
	aspect_ratio: float
	mirror_facings: FrozenSet[CameraFacing]
	swap_output_in_landscape: bool
	rotation_table: Mapping[Tuple[Orientation, CameraFacing], int] = field(default_factory=dict)

	def should_mirror(self, facing: CameraFacing) -> bool:
		return facing in self.mirror_facings

	def nominal_output_rect(self, output_width: float) -> Rectangle:
		return Rectangle(width=float(output_width), height=float(output_width) / self.aspect_ratio)

	def preview_rect(self, preview_width: float, preview_height: float | None = None) -> Rectangle:
		h = float(preview_height) if preview_height else float(preview_width) / self.aspect_ratio
		return Rectangle(width=float(preview_width), height=h)

	def effective_output_rect(self, nominal: Rectangle, orientation: Orientation) -> Rectangle:
		if self.swap_output_in_landscape and not orientation.is_portrait:
			return nominal.swapped()
		return nominal

	def texture_rotation(self, orientation: Orientation, facing: CameraFacing) -> int:
		return int(self.rotation_table.get((orientation, facing), 0))


_ROTATION_B: Dict[Tuple[Orientation, CameraFacing], int] = {
	(Orientation.PORTRAIT_DOWN, CameraFacing.FRONT): 180,
	(Orientation.PORTRAIT_DOWN, CameraFacing.BACK): 180,
	(Orientation.LANDSCAPE_LEFT, CameraFacing.FRONT): 270,
	(Orientation.LANDSCAPE_LEFT, CameraFacing.BACK): 90,
	(Orientation.LANDSCAPE_RIGHT, CameraFacing.FRONT): 90,
	(Orientation.LANDSCAPE_RIGHT, CameraFacing.BACK): 270,
}

PROFILES: Dict[PlatformFamily, PlatformProfile] = {
	PlatformFamily.A: PlatformProfile(
		family=PlatformFamily.A,
		aspect_ratio=3.0 / 4.0,
		mirror_facings=frozenset({CameraFacing.FRONT, CameraFacing.BACK}),
		swap_output_in_landscape=False,
	),
	PlatformFamily.B: PlatformProfile(
		family=PlatformFamily.B,
		aspect_ratio=9.0 / 16.0,
		mirror_facings=frozenset({CameraFacing.BACK}),
		swap_output_in_landscape=True,
		rotation_table=_ROTATION_B,
	),
}


def resolve_profile(family: PlatformFamily | str) -> PlatformProfile:
	if not isinstance(family, PlatformFamily):
		family = PlatformFamily.parse(family)
	return PROFILES[family]
