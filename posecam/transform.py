from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from posecam.platform import PlatformProfile
from posecam.pose.skeleton import COCO17_EDGES
from posecam.types import CameraFacing, Keypoint, Orientation, Point, PoseResult, Rectangle

DEFAULT_MIN_KEYPOINT_SCORE = 0.3


def effective_score(kp: Keypoint, missing: float = 1.0) -> float:
	return missing if kp.score is None else float(kp.score)


def to_screen(
	x: float,
	y: float,
	*,
	orientation: Orientation,
	facing: CameraFacing,
	profile: PlatformProfile,
	output_rect: Rectangle,
	preview_rect: Rectangle,
) -> Point:
	"""
	Map a point from model output space to preview (screen) space.

	1. The nominal output rectangle is swapped in landscape when the platform
	   profile asks for it (its camera texture does not follow the device).
	2. x is mirrored against the effective width for the profile's mirrored facings.
	3. Both axes are scaled to the preview; landscape swaps which preview side
	   feeds which axis.

	Results are not clamped; inputs outside the output rectangle land off-screen.
	"""
	eff = profile.effective_output_rect(output_rect, orientation)
	xm = eff.width - x if profile.should_mirror(facing) else x
	portrait = orientation.is_portrait
	screen_x = (xm / eff.width) * (preview_rect.width if portrait else preview_rect.height)
	screen_y = (y / eff.height) * (preview_rect.height if portrait else preview_rect.width)
	return Point(x=screen_x, y=screen_y)


@dataclass(frozen=True)
class CoordinateTransform:
	"""
	Output-to-screen mapping bound to one platform profile and rectangle pair.

	Stateless: orientation and facing are passed per call, so the same instance
	can be shared by the loop owner and any reader.
	"""

	profile: PlatformProfile
	output_rect: Rectangle
	preview_rect: Rectangle
	min_score: float = DEFAULT_MIN_KEYPOINT_SCORE

	def effective_output_rect(self, orientation: Orientation) -> Rectangle:
		return self.profile.effective_output_rect(self.output_rect, orientation)

	def oriented_preview_rect(self, orientation: Orientation) -> Rectangle:
		"""Preview rectangle as laid out on screen (width/height swap in landscape)."""
		return self.preview_rect if orientation.is_portrait else self.preview_rect.swapped()

	def texture_rotation(self, orientation: Orientation, facing: CameraFacing) -> int:
		return self.profile.texture_rotation(orientation, facing)

	def point(self, x: float, y: float, orientation: Orientation, facing: CameraFacing) -> Point:
		return to_screen(
			x,
			y,
			orientation=orientation,
			facing=facing,
			profile=self.profile,
			output_rect=self.output_rect,
			preview_rect=self.preview_rect,
		)

	def is_visible(self, kp: Keypoint) -> bool:
		# Strictly above the threshold; an unscored joint is not drawn on its own.
		return effective_score(kp, missing=0.0) > self.min_score

	def visible_points(self, pose: Optional[PoseResult], orientation: Orientation, facing: CameraFacing) -> List[Point]:
		if pose is None:
			return []
		return [self.point(kp.x, kp.y, orientation, facing) for kp in pose.keypoints if self.is_visible(kp)]

	def skeleton_edges(
		self,
		pose: Optional[PoseResult],
		orientation: Orientation,
		facing: CameraFacing,
		pairs: Sequence[Tuple[str, str]] = COCO17_EDGES,
	) -> List[Tuple[Point, Point]]:
		"""
		Edges whose two endpoints both reach the threshold (inclusive). An
		unscored endpoint counts as fully confident. Pairs naming a joint the
		pose does not contain are skipped.
		"""
		if pose is None:
			return []
		kps = pose.by_name()
		edges: List[Tuple[Point, Point]] = []
		for a, b in pairs:
			kp1 = kps.get(a)
			kp2 = kps.get(b)
			if kp1 is None or kp2 is None:
				continue
			if effective_score(kp1) >= self.min_score and effective_score(kp2) >= self.min_score:
				edges.append(
					(
						self.point(kp1.x, kp1.y, orientation, facing),
						self.point(kp2.x, kp2.y, orientation, facing),
					)
				)
		return edges
